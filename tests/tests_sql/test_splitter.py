"""
=================================================
Comprehensive pytest suite for sql/splitter.py
=================================================

Sections:
---------
1. Unit tests - Statement boundaries and line numbers
2. Edge case tests - Blank statements, dangling tails, line endings
3. Smoke tests - Basic functionality verification

Available markers:
------------------
unit, edge_case, smoke

Test Coverage:
--------------
- iter_fragments: Fragment offsets, lines and terminated flag
- split_script: Executable statements with 1-based line numbers
- split_statements: Statement texts only

How to Execute:
---------------
All tests:          pytest tests/tests_sql/test_splitter.py -v
By category:        pytest tests/tests_sql/test_splitter.py -m unit
Specific test:      pytest tests/tests_sql/test_splitter.py::test_split_script_trailing_comment

Note: Use 'python -m pytest' (not just 'pytest') to ensure correct Python path resolution.
"""

import pytest

from sql.splitter import ScriptStatement, iter_fragments, split_script, split_statements

# ===============
# 1. UNIT TESTS
# ===============

@pytest.mark.unit
def test_split_script_trailing_comment():
    """
    Test a terminator followed by a line comment.

    Verifies the comment after the last semicolon is never executed.
    """
    statements = split_script("select 1;\nselect 2; -- trailing comment")

    assert statements == [
        ScriptStatement(text='select 1', line=1),
        ScriptStatement(text='select 2', line=2),
    ]


@pytest.mark.unit
def test_split_script_multiline_statements():
    """Line numbers point at the first line of each statement."""
    script = (
        "create table t1 (\n"
        "  id int\n"
        ");\n"
        "\n"
        "create table t2 (\n"
        "  id int\n"
        ");\n"
    )

    statements = split_script(script)

    assert [statement.line for statement in statements] == [1, 5]
    assert statements[0].text == "create table t1 (\n  id int\n)"


@pytest.mark.unit
def test_split_script_semicolon_inside_line():
    """A semicolon followed by more code on the same line does not end a statement."""
    statements = split_statements("select ';' || x; select 1 from t;\n")

    assert statements == ["select ';' || x; select 1 from t"]


@pytest.mark.unit
def test_split_script_trailing_whitespace_after_terminator():
    """Spaces and tabs between the semicolon and the line break are allowed."""
    assert split_statements("select 1; \t\nselect 2;") == ['select 1', 'select 2']


@pytest.mark.unit
def test_iter_fragments_offsets():
    """Each fragment knows its offset and whether it was terminated."""
    script = "select 1;\nselect 2"

    fragments = list(iter_fragments(script))

    assert len(fragments) == 2
    assert fragments[0].offset == 0
    assert fragments[0].terminated is True
    assert fragments[1].offset == len("select 1;\n")
    assert fragments[1].terminated is False
    assert fragments[1].line == 2


# =====================
# 2. EDGE CASE TESTS
# =====================

@pytest.mark.edge_case
def test_split_script_dangling_statement_not_executed():
    """Text after the last terminator is not a statement."""
    assert split_statements("select 1;\nselect 2") == ['select 1']


@pytest.mark.edge_case
def test_split_script_blank_statements_skipped():
    """Lone semicolons give no statements, but still count lines."""
    statements = split_script(";\n;\n\nselect 3;\n")

    assert statements == [ScriptStatement(text='select 3', line=4)]


@pytest.mark.edge_case
def test_split_script_empty():
    """An empty script has no statements."""
    assert split_script('') == []
    assert list(iter_fragments('')) == []


@pytest.mark.edge_case
def test_split_script_crlf_line_endings():
    """Windows line endings count as one line break."""
    statements = split_script("select 1;\r\n\r\nselect 2;\r\n")

    assert statements == [
        ScriptStatement(text='select 1', line=1),
        ScriptStatement(text='select 2', line=3),
    ]


@pytest.mark.edge_case
def test_split_script_leading_comment_lines():
    """The line of a statement is its first non-whitespace line."""
    statements = split_script("select 1;\n\n\n  select 2;")

    assert statements[1].line == 4


@pytest.mark.edge_case
def test_split_script_comment_after_terminator_stays_with_statement():
    """
    Test a line comment after a terminator followed by more statements.

    Verifies the comment is not glued onto the next statement, so the next
    statement reports its own line.
    """
    script = "create table t (id int); -- the table\nbogus statement;\n"

    statements = split_script(script)

    assert statements == [
        ScriptStatement(text='create table t (id int)', line=1),
        ScriptStatement(text='bogus statement', line=2),
    ]


@pytest.mark.edge_case
def test_split_script_comments_on_consecutive_lines():
    """Line numbers keep counting across several commented terminators."""
    script = "select 1; -- one\r\nselect 2;-- two\n\nselect 3; -- three"

    statements = split_script(script)

    assert [statement.line for statement in statements] == [1, 2, 4]
    assert split_statements(script) == ['select 1', 'select 2', 'select 3']


@pytest.mark.edge_case
def test_split_script_comment_marker_inside_string_literal():
    """
    Test a semicolon followed by ``--`` inside a string literal.

    The splitter does not parse SQL: such a literal is cut, and the
    remainder of its line goes with the terminator.
    """
    statements = split_statements("insert into t values ('a;--b');\nselect 1;\n")

    assert statements == ["insert into t values ('a", 'select 1']


# ================
# 3. SMOKE TESTS
# ================

@pytest.mark.smoke
def test_split_statements_smoke():
    """Basic two statement script."""
    assert split_statements("create table t (id int);\ninsert into t values (1);\n") == [
        'create table t (id int)',
        'insert into t values (1)',
    ]
