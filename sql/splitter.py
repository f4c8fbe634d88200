"""
===========================================
SQL script splitting utilities.
===========================================

Database drivers execute one statement per call, so scripts holding many
statements (e.g. the script seeding the scratch database) are split into
individually executable statements first.

A statement ends at a semicolon that is followed by optional horizontal
whitespace and then a line break or the end of the script. A ``--`` comment
may sit between the semicolon and the line break; it belongs to the statement
it ends, so the next statement always starts on a fresh line. Text after the
last such semicolon is a dangling fragment (typically a trailing comment) and
is never executed.

This is not a SQL parser: a semicolon inside a string literal also ends a
statement when it is at the end of a line or followed by ``--``, e.g.
``insert into t values ('a;--b');`` is cut after ``'a``.

Functions:
- iter_fragments: Yield all fragments of a script with their positions
- split_script: Return the executable statements with their line numbers
- split_statements: Return the executable statement texts only

Usage:
    from sql.splitter import split_script

    for statement in split_script(script):
        try:
            conn.exec_driver_sql(statement.text)
        except DBAPIError as e:
            raise StatementExecutionError(str(e), statement.text, statement.line)
"""

import re
from dataclasses import dataclass
from typing import Iterator, List

# Semicolon, optional horizontal whitespace, an optional line comment, then a
# line break or the end of the script.
STATEMENT_TERMINATOR = re.compile(r';[ \t\f\v]*(?:--[^\r\n]*)?(?:\r\n|\n|\r|\Z)')


@dataclass(frozen=True)
class ScriptFragment:
    """A piece of a script between two statement terminators.

    Attributes:
        text: Raw text of the fragment, without its terminating semicolon
        offset: Offset of the fragment in the script
        line: 1-based line of the first non-whitespace character of the
            fragment (or of its start when it is blank)
        terminated: True if the fragment ends with a semicolon
    """

    text: str
    offset: int
    line: int
    terminated: bool

    @property
    def is_blank(self) -> bool:
        return not self.text.strip()


@dataclass(frozen=True)
class ScriptStatement:
    """An executable statement and the line it starts on."""

    text: str
    line: int


def _count_line_breaks(text: str) -> int:
    """Count line breaks, treating ``\\r\\n`` as one."""
    return len(re.findall(r'\r\n|\n|\r', text))


def iter_fragments(script: str) -> Iterator[ScriptFragment]:
    """Yield the fragments of a script in order.

    Line numbers are computed by accumulating the line breaks of all
    preceding fragments (and their terminators), so they are absolute
    positions in the script.

    Args:
        script: The SQL script

    Yields:
        ScriptFragment for every terminated statement, followed by the
        dangling tail of the script if it is not empty
    """
    line = 1
    start = 0
    for match in STATEMENT_TERMINATOR.finditer(script):
        text = script[start:match.start()]
        leading = text[:len(text) - len(text.lstrip())]
        yield ScriptFragment(
            text=text,
            offset=start,
            line=line + _count_line_breaks(leading),
            terminated=True
        )
        line += _count_line_breaks(script[start:match.end()])
        start = match.end()

    tail = script[start:]
    if tail:
        leading = tail[:len(tail) - len(tail.lstrip())]
        yield ScriptFragment(
            text=tail,
            offset=start,
            line=line + _count_line_breaks(leading),
            terminated=False
        )


def split_script(script: str) -> List[ScriptStatement]:
    """Split a script into executable statements.

    Blank statements (e.g. a lone semicolon) and the dangling tail of the
    script are skipped.

    Args:
        script: The SQL script

    Returns:
        Statements in script order, stripped of surrounding whitespace

    Example:
        >>> split_script("select 1;\\nselect 2; -- trailing comment")
        [ScriptStatement(text='select 1', line=1), ScriptStatement(text='select 2', line=2)]
    """
    return [
        ScriptStatement(text=fragment.text.strip(), line=fragment.line)
        for fragment in iter_fragments(script)
        if fragment.terminated and not fragment.is_blank
    ]


def split_statements(script: str) -> List[str]:
    """Split a script into executable statement texts."""
    return [statement.text for statement in split_script(script)]
