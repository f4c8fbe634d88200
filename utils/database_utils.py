"""
==================================================
Scratch database utilities for SQLite.
==================================================

Provides the scratch execution capability the routine loader depends on:
an embedded SQLite database (in memory or file backed) that can be seeded
from a multi-statement script and queried for typed rows, literal quoting,
the last generated row id and table column metadata.

The loader only depends on the ScratchDatabase interface, so tests can
substitute an in-memory fake while production code uses
SqliteScratchDatabase, which is built on a SQLAlchemy engine.

Key Features:
    - In-memory or file-backed SQLite through SQLAlchemy
    - Seeding from a script split by sql.splitter with line-accurate errors
    - Row count checked fetch helpers (row0/row1/rows/singleton0/singleton1)
    - Literal quoting for int, float, string and binary values
    - Column metadata through PRAGMA table_info

Example:
    >>> from utils.database_utils import SqliteScratchDatabase
    >>>
    >>> with SqliteScratchDatabase(script='etc/ddl/0100_create_tables.sql') as scratch:
    ...     scratch.execute_statement("insert into t(id) values(1)")
    ...     print(scratch.last_insert_id())
    ...     print(scratch.quote_literal('string', "O'Brien"))
"""

import os
from pathlib import Path
from typing import Any, Dict, List, Optional, Protocol, Union

from sqlalchemy import String, create_engine, inspect
from sqlalchemy.engine import URL, Connection, Engine
from sqlalchemy.exc import DBAPIError
from sqlalchemy.pool import StaticPool

from core.logger import get_logger
from logs.error_handler import ResultCountError, StatementExecutionError
from sql.splitter import split_script

logger = get_logger(__name__)

LITERAL_KINDS = ('int', 'float', 'string', 'binary')


class ScratchDatabase(Protocol):
    """Capabilities of the scratch database used by the routine loader."""

    def execute_statement(self, statement: str) -> None:
        ...

    def fetch_rows(self, query: str) -> List[Dict[str, Any]]:
        ...

    def quote_literal(self, kind: str, value: Any) -> str:
        ...

    def last_insert_id(self) -> int:
        ...

    def describe_columns(self, table: str) -> List[Dict[str, str]]:
        ...

    def list_tables(self) -> List[str]:
        ...


def create_scratch_engine(path: Optional[str] = None, echo: bool = False) -> Engine:
    """
    Create a SQLAlchemy engine for a SQLite scratch database.

    Args:
        path: Path of the database file; None for an in-memory database
        echo: Enable SQL statement logging

    Returns:
        Configured SQLAlchemy Engine

    Example:
        >>> engine = create_scratch_engine()
        >>> with engine.connect() as conn:
        ...     conn.exec_driver_sql("select 1")
    """
    if path is None:
        # A single shared connection keeps the in-memory database alive.
        return create_engine(
            URL.create(drivername='sqlite'),
            echo=echo,
            poolclass=StaticPool,
            connect_args={'check_same_thread': False}
        )

    return create_engine(URL.create(drivername='sqlite', database=str(path)), echo=echo)


def read_script(path: Union[str, Path]) -> str:
    """Read a SQL script as UTF-8 text."""
    return Path(path).read_text(encoding='utf-8')


class SqliteScratchDatabase:
    """SQLite scratch database behind the ScratchDatabase interface.

    Attributes:
        path: Resolved path of the database file, None when in memory
        volatile: If True the database file is deleted before opening and
            when closing
        engine: SQLAlchemy engine of the database

    Example:
        >>> scratch = SqliteScratchDatabase(script='etc/ddl/setup.sql')
        >>> scratch.fetch_rows("select * from sqlite_master")
        >>> scratch.close()
    """

    def __init__(
        self,
        path: Optional[str] = None,
        script: Optional[str] = None,
        volatile: bool = False,
        engine: Optional[Engine] = None
    ):
        """Open the scratch database.

        Args:
            path: Path of the database file; None for an in-memory database
            script: Path of a SQL script initializing the database. Against
                a file-backed database the script only runs when the file
                did not exist yet
            volatile: Only for file-backed databases; delete the file before
                opening and when closing
            engine: Existing SQLite engine to use instead of path

        Raises:
            ValueError: If path is empty or engine is not a SQLite engine
            StatementExecutionError: If a statement of the script fails
        """
        self.path: Optional[Path] = None
        self.volatile = False
        self._connection: Optional[Connection] = None

        if engine is not None:
            if engine.dialect.name != 'sqlite':
                raise ValueError(f"Expecting a SQLite engine. Got a {engine.dialect.name} engine.")
            self.engine = engine
            self._connection = engine.connect()
            return

        if path is None:
            self.volatile = True
            self.engine = create_scratch_engine()
            self._connection = self.engine.connect()
            logger.debug("Opened in-memory scratch database")
            if script is not None:
                self._run_init_script(script)
            return

        if str(path) == '':
            raise ValueError('Expecting a non empty path.')

        db_path = Path(path)
        exists = db_path.is_file()
        if volatile and exists:
            db_path.unlink()
            exists = False

        self.engine = create_scratch_engine(str(db_path))
        self._connection = self.engine.connect()
        self.path = db_path.resolve()
        self.volatile = volatile
        logger.debug(f"Opened scratch database {self.path}")

        if not exists and script is not None:
            self._run_init_script(script)

    def _run_init_script(self, script: str) -> None:
        try:
            self.execute_script(read_script(script))
        except StatementExecutionError:
            self.close()
            raise

    def __enter__(self) -> 'SqliteScratchDatabase':
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    @property
    def connection(self) -> Connection:
        if self._connection is None:
            raise RuntimeError('Scratch database is closed')
        return self._connection

    def close(self) -> None:
        """Close the database, deleting the file of a volatile database."""
        if self._connection is None:
            return

        self._connection.close()
        self._connection = None
        self.engine.dispose()

        if self.volatile and self.path is not None and self.path.exists():
            os.unlink(self.path)
            logger.debug(f"Removed volatile scratch database {self.path}")

    def _execute(self, statement: str):
        try:
            result = self.connection.exec_driver_sql(statement)
        except DBAPIError as e:
            self.connection.rollback()
            raise StatementExecutionError(str(e.orig), statement.strip()) from e
        return result

    def execute_statement(self, statement: str) -> None:
        """
        Execute a statement that does not select rows.

        Args:
            statement: The SQL statement

        Raises:
            StatementExecutionError: If the statement fails
        """
        self._execute(statement)
        self.connection.commit()

    def execute_script(self, script: str) -> int:
        """
        Execute all statements of a script.

        Args:
            script: The SQL script (see sql.splitter for the statement rules)

        Returns:
            Number of executed statements

        Raises:
            StatementExecutionError: If a statement fails; the error carries
                the 1-based line of the statement in the script
        """
        count = 0
        for statement in split_script(script):
            try:
                self._execute(statement.text)
            except StatementExecutionError as e:
                raise StatementExecutionError(
                    str(e), statement.text, line=statement.line
                ) from e.__cause__
            count += 1
        self.connection.commit()

        logger.debug(f"Executed {count} statement(s) against scratch database")
        return count

    def fetch_rows(self, query: str) -> List[Dict[str, Any]]:
        """
        Execute a query and return all selected rows.

        Args:
            query: The SQL query

        Returns:
            Rows as ordered column to value mappings with native values
            (int, float, str, bytes or None)
        """
        result = self._execute(query)
        rows = [dict(row._mapping) for row in result] if result.returns_rows else []
        self.connection.commit()
        return rows

    def execute_rows(self, query: str) -> List[Dict[str, Any]]:
        """Execute a query that selects 0 or more rows."""
        return self.fetch_rows(query)

    def execute_row0(self, query: str) -> Optional[Dict[str, Any]]:
        """Execute a query that selects 0 or 1 row."""
        rows = self.fetch_rows(query)
        if len(rows) > 1:
            raise ResultCountError([0, 1], len(rows), query)
        return rows[0] if rows else None

    def execute_row1(self, query: str) -> Dict[str, Any]:
        """Execute a query that selects exactly 1 row."""
        rows = self.fetch_rows(query)
        if len(rows) != 1:
            raise ResultCountError([1], len(rows), query)
        return rows[0]

    def execute_singleton0(self, query: str) -> Any:
        """Execute a query that selects 0 or 1 row with one column."""
        row = self.execute_row0(query)
        return next(iter(row.values())) if row is not None else None

    def execute_singleton1(self, query: str) -> Any:
        """Execute a query that selects exactly 1 row with one column."""
        row = self.execute_row1(query)
        return next(iter(row.values()))

    def last_insert_id(self) -> int:
        """Return the row id of the last inserted row."""
        return int(self.execute_singleton1('select last_insert_rowid()'))

    def list_tables(self) -> List[str]:
        """Return the names of all tables in the database."""
        return sorted(inspect(self.connection).get_table_names())

    def describe_columns(self, table: str) -> List[Dict[str, str]]:
        """
        Return the column metadata of a table.

        Args:
            table: Name of the table

        Returns:
            Ordered list of {'name', 'type'} with the declared column types
        """
        quoted = self.engine.dialect.identifier_preparer.quote(table)
        rows = self.fetch_rows(f"pragma table_info({quoted})")
        return [{'name': row['name'], 'type': row['type']} for row in rows]

    def quote_literal(self, kind: str, value: Any) -> str:
        """
        Return a SQL literal for a value.

        Args:
            kind: One of 'int', 'float', 'string' or 'binary'
            value: The value; None gives null

        Returns:
            Literal safe for use in SQL statements

        Raises:
            ValueError: If kind is unknown
        """
        if kind == 'int':
            return self.quote_int(value)
        if kind == 'float':
            return self.quote_float(value)
        if kind == 'string':
            return self.quote_string(value)
        if kind == 'binary':
            return self.quote_binary(value)
        raise ValueError(f"Unknown literal kind '{kind}', expecting one of {', '.join(LITERAL_KINDS)}")

    def quote_int(self, value: Optional[int]) -> str:
        if value is None:
            return 'null'
        return str(int(value))

    def quote_float(self, value: Optional[float]) -> str:
        if value is None:
            return 'null'
        return repr(float(value))

    def quote_string(self, value: Optional[str]) -> str:
        """Quote a string; empty and blank strings give null."""
        if value is None or value.strip() == '':
            return 'null'
        return String().literal_processor(dialect=self.engine.dialect)(value)

    def quote_binary(self, value: Optional[bytes]) -> str:
        """Quote binary data as a hexadecimal literal; empty data gives null."""
        if value is None or len(value) == 0:
            return 'null'
        return f"X'{bytes(value).hex()}'"
