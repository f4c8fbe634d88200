"""
====================================================
SQL text utilities for pseudo-SQL routine sources.
====================================================

This package provides pure functions over SQL text: splitting scripts into
statements and resolving ``@NAME@`` placeholders. None of them touch a
database; column type placeholders read the scratch database through its
capability only.

The package follows a clear organization:
    - splitter.py: Statement splitting with source line numbers
    - placeholders.py: Placeholder discovery, resolution and substitution

Example:
    >>> from sql.splitter import split_statements
    >>> from sql.placeholders import find_placeholders
    >>> 
    >>> split_statements("create table t (id int);\\ninsert into t values (1);")
    ['create table t (id int)', 'insert into t values (1)']
    >>> find_placeholders("select @SCHEMA@.t.id from t")
    ['@SCHEMA@']
"""

__version__ = "1.0.0"
__all__ = [
    # Splitter
    'ScriptStatement', 'split_script', 'split_statements',
    # Placeholders
    'column_type_pairs', 'find_placeholders', 'mark_unresolved',
    'normalize_replace_pairs', 'resolve_placeholders', 'substitute'
]

from .placeholders import (
    column_type_pairs,
    find_placeholders,
    mark_unresolved,
    normalize_replace_pairs,
    resolve_placeholders,
    substitute,
)
from .splitter import ScriptStatement, split_script, split_statements
