"""
Shared fixtures and fake collaborators for the loader tests.

Key fixtures:
- sink: FakeSink recording every diagnostic call.
- scratch: FakeScratch quoting literals without a database.
- write_source: writes a pseudo-SQL source below tmp_path and returns its descriptor.
"""

import pytest

from models.routine_models import SourceDescriptor


class FakeSink:
    """Diagnostic sink recording calls as (method, *args) tuples."""
    def __init__(self):
        self.calls = []

    def title(self, text):
        self.calls.append(('title', text))

    def note(self, text):
        self.calls.append(('note', text))

    def text(self, lines):
        self.calls.append(('text', list(lines)))

    def listing(self, items):
        self.calls.append(('listing', list(items)))

    def warning_list(self, title, items):
        self.calls.append(('warning_list', title, list(items)))

    def error_list(self, title, items):
        self.calls.append(('error_list', title, list(items)))

    def of(self, method):
        """Return all recorded calls of one method."""
        return [call for call in self.calls if call[0] == method]


class FakeScratch:
    """Scratch database without a database behind it.

    Quotes literals the way the SQLite implementation does and reports the
    configured tables.
    """
    def __init__(self, tables=None):
        self.tables = tables or {}
        self.statements = []

    def execute_statement(self, statement):
        self.statements.append(statement)

    def fetch_rows(self, query):
        return []

    def quote_literal(self, kind, value):
        if value is None:
            return 'null'
        if kind == 'int':
            return str(int(value))
        if kind == 'string':
            return "'" + value.replace("'", "''") + "'"
        raise ValueError(kind)

    def last_insert_id(self):
        return 0

    def list_tables(self):
        return list(self.tables)

    def describe_columns(self, table):
        return [{'name': name, 'type': type_} for name, type_ in self.tables[table]]


@pytest.fixture
def sink():
    """Provide a recording diagnostic sink."""
    return FakeSink()


@pytest.fixture
def scratch():
    """Provide a scratch database fake."""
    return FakeScratch()


@pytest.fixture
def write_source(write_file):
    """
    Factory writing a source file and returning its SourceDescriptor.

    Args (of the factory):
        name: File name, the stem is the routine name
        text: Source text
        mangler: Optional naming policy
    """
    def factory(name, text, mangler=None):
        path = write_file(name, text)
        return SourceDescriptor.from_path(str(path), mangler)

    return factory
