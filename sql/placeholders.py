"""
===========================================
Placeholder utilities for pseudo-SQL sources.
===========================================

Pseudo-SQL sources may hold placeholders of the form ``@NAME@`` (or
``@TABLE.COLUMN%type@``) that are replaced with literal values when a
routine is loaded. Placeholder names are matched case-insensitively: the
replacement pairs are keyed by the upper-cased placeholder.

Substitution is a single pass of literal token swaps: at every position the
longest matching token is replaced and scanning continues after it, so a
replacement value is never substituted again.

Functions:
- find_placeholders: All placeholders in a text in order of occurrence
- normalize_replace_pairs: Key replacement pairs by upper-cased ``@NAME@``
- resolve_placeholders: Split placeholders into resolved pairs and unknowns
- substitute: Single pass literal token replacement
- mark_unresolved: Wrap unresolved placeholders for diagnostic output
- column_type_pairs: ``@TABLE.COLUMN%TYPE@`` pairs from the scratch database

Usage:
    from sql.placeholders import normalize_replace_pairs, resolve_placeholders

    pairs = normalize_replace_pairs({'SCHEMA': "'main'"})
    replace, unknown = resolve_placeholders(source, pairs)
"""

import re
from collections import defaultdict
from typing import Dict, List, Mapping, Optional, Sequence, Tuple

PLACEHOLDER_PATTERN = re.compile(r'@[A-Za-z0-9_.]+(?:%type)?@')

# Markup around unresolved placeholders in diagnostic output.
ERROR_OPEN = '<error>'
ERROR_CLOSE = '</error>'


def find_placeholders(text: str) -> List[str]:
    """Return all placeholders in a text in order of occurrence."""
    return PLACEHOLDER_PATTERN.findall(text)


def normalize_replace_pairs(pairs: Optional[Mapping[str, str]]) -> Dict[str, str]:
    """Key replacement pairs by their upper-cased placeholder.

    Keys may be given with or without the surrounding ``@`` characters.

    Args:
        pairs: Mapping from placeholder name to replacement value

    Returns:
        Mapping from ``@NAME@`` (upper case) to replacement value
    """
    normalized = {}
    for key, value in (pairs or {}).items():
        name = key.strip().strip('@')
        normalized[f'@{name}@'.upper()] = str(value)
    return normalized


def resolve_placeholders(
    text: str,
    replace_pairs: Mapping[str, str]
) -> Tuple[Dict[str, str], List[str]]:
    """Resolve the placeholders in a text against replacement pairs.

    Args:
        text: Source text to scan
        replace_pairs: Normalized replacement pairs (see normalize_replace_pairs)

    Returns:
        Tuple of (replace mapping keyed by the placeholder as written in the
        text, sorted list of distinct unresolved placeholders)
    """
    replace: Dict[str, str] = {}
    unknown = set()
    for placeholder in find_placeholders(text):
        value = replace_pairs.get(placeholder.upper())
        if value is None:
            unknown.add(placeholder)
        else:
            replace[placeholder] = value
    return replace, sorted(unknown)


def substitute(text: str, replace: Mapping[str, str]) -> str:
    """Replace tokens in a text in a single pass.

    At each position the longest token starting there is replaced and
    scanning resumes after it. Replacement values are not scanned again.

    Args:
        text: Text to substitute
        replace: Mapping from token to replacement value

    Returns:
        The substituted text
    """
    if not replace or not text:
        return text

    # Candidate tokens grouped by first character, longest first.
    index: Dict[str, List[str]] = defaultdict(list)
    for token in replace:
        if token:
            index[token[0]].append(token)
    for tokens in index.values():
        tokens.sort(key=len, reverse=True)

    parts = []
    position = 0
    pending = 0
    length = len(text)
    while position < length:
        for token in index.get(text[position], ()):
            if text.startswith(token, position):
                parts.append(text[pending:position])
                parts.append(replace[token])
                position += len(token)
                pending = position
                break
        else:
            position += 1
    parts.append(text[pending:])

    return ''.join(parts)


def mark_unresolved(text: str, placeholders: Sequence[str]) -> str:
    """Wrap every unresolved placeholder in error markup."""
    return substitute(text, {
        placeholder: f'{ERROR_OPEN}{placeholder}{ERROR_CLOSE}' for placeholder in placeholders
    })


def column_type_pairs(scratch) -> Dict[str, str]:
    """Build ``@TABLE.COLUMN%TYPE@`` replacement pairs from a scratch database.

    Args:
        scratch: Scratch database offering list_tables() and
            describe_columns()

    Returns:
        Mapping from upper-cased column type placeholder to the declared
        type of the column
    """
    pairs = {}
    for table in scratch.list_tables():
        for column in scratch.describe_columns(table):
            key = f"@{table}.{column['name']}%type@".upper()
            pairs[key] = column['type']
    return pairs
