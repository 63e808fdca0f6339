"""
Database: the DSL context tying builder, compiler, engine and transactions.

One ``Database`` wraps one adapter (one connection) and is used by one
caller at a time.  Statements built from it are attached to it, so they
can be executed directly (``db.select_from(FILM).fetch()``); statements
built without it are executed by passing them in (``db.fetch(stmt)``).

Examples:
    >>> db = Database.from_url("sqlite:///sakila.db")
    >>> db.select_from(FILM).where(FILM.c.film_id.eq(1)).fetch_one()["title"]
    'ACADEMY DINOSAUR'

Tags:
    context, database, execution, transaction, typedsql

Doc-Types:
    - API Reference
"""

from __future__ import annotations

from collections.abc import Callable, Iterator
from contextlib import contextmanager
from typing import Any, TypeVar

from typedsql.core.adapters import DatabaseAdapter, adapter_from_url
from typedsql.core.dialect import Dialect
from typedsql.core.errors import (
    MappingError,
    NoResultError,
    QueryBuildError,
    TooManyResultsError,
)
from typedsql.core.result import Result
from typedsql.core.settings import TypedSQLSettings
from typedsql.mapping import RecordMapping
from typedsql.model.registry import SchemaRegistry, create_all
from typedsql.model.table import Table
from typedsql.query.compiler import CompiledStatement, StatementCompiler
from typedsql.query.expressions import ColumnRef, Field
from typedsql.query.statements import (
    Delete,
    Insert,
    Select,
    Statement,
    Update,
    delete,
    insert_into,
    select,
    select_from,
    update,
)
from typedsql.records import TableRecord
from typedsql.rows import Row

from .engine import Executor
from .transaction import TransactionCoordinator, TransactionState

T = TypeVar("T")


class Database:
    """Execution context over one :class:`DatabaseAdapter`."""

    def __init__(self, adapter: DatabaseAdapter, *, timeout: float | None = None):
        self.adapter = adapter
        self.compiler = StatementCompiler(adapter.dialect)
        self.executor = Executor(adapter, default_timeout=timeout)
        self.transactions = TransactionCoordinator(adapter)

    @classmethod
    def from_url(cls, url: str, *, timeout: float | None = None, **overrides: Any) -> Database:
        """Connect lazily to ``sqlite:///path.db`` or ``postgresql://...``."""
        return cls(adapter_from_url(url, **overrides), timeout=timeout)

    @classmethod
    def from_settings(cls, settings: TypedSQLSettings | None = None) -> Database:
        settings = settings or TypedSQLSettings()
        return cls.from_url(
            settings.database_url,
            timeout=settings.query_timeout,
            autocommit=settings.autocommit,
        )

    @property
    def dialect(self) -> Dialect:
        return self.adapter.dialect

    # -- Builders ------------------------------------------------------------

    def select(self, *fields: Field) -> Select:
        return select(*fields).attach(self)

    def select_from(self, source: Any) -> Select:
        return select_from(source).attach(self)

    def insert_into(self, table: Table, *columns: ColumnRef | str) -> Insert:
        return insert_into(table, *columns).attach(self)

    def update(self, table: Table) -> Update:
        return update(table).attach(self)

    def delete(self, table: Table) -> Delete:
        return delete(table).attach(self)

    def new_record(self, table: Table) -> TableRecord:
        """An unsaved record of ``table``; ``store()`` inserts it."""
        return TableRecord(self, table)

    # -- Execution -----------------------------------------------------------

    def compile(self, statement: Statement) -> CompiledStatement:
        return self.compiler.compile(statement)

    def fetch(self, statement: Statement, timeout: float | None = None) -> list[Row]:
        compiled = self.compile(statement)
        if not compiled.returns_rows:
            raise QueryBuildError(
                f"{compiled.kind.upper()} returns no rows; add returning() or use execute()"
            )
        return self.executor.fetch(compiled, timeout)

    def fetch_one(self, statement: Statement, timeout: float | None = None) -> Row:
        """Exactly one row."""
        rows = self.fetch(statement, timeout)
        if not rows:
            raise NoResultError()
        if len(rows) > 1:
            raise TooManyResultsError(len(rows))
        return rows[0]

    def fetch_optional(self, statement: Statement, timeout: float | None = None) -> Row | None:
        """Zero or one row."""
        rows = self.fetch(statement, timeout)
        if len(rows) > 1:
            raise TooManyResultsError(len(rows))
        return rows[0] if rows else None

    def fetch_into(
        self, statement: Statement, target: type[T], timeout: float | None = None
    ) -> list[T]:
        """Rows mapped by label onto ``target``'s fields."""
        return RecordMapping.by_name(target).map_rows(self.fetch(statement, timeout))

    def fetch_mapped(
        self, statement: Statement, mapping: RecordMapping[T], timeout: float | None = None
    ) -> list[T]:
        return mapping.map_rows(self.fetch(statement, timeout))

    def fetch_records(self, statement: Select, timeout: float | None = None) -> list[TableRecord]:
        """Rows of a single-table select as :class:`TableRecord` objects."""
        source = statement.source
        if not isinstance(source, Table):
            raise MappingError("fetch_records() needs a select from a table")
        for item in statement.fields:
            if not isinstance(item, ColumnRef) or item.source != source or item.alias:
                raise MappingError(
                    f"fetch_records() can only map plain columns of '{source.name}'",
                    target=source.name,
                )
        names = [item.name for item in statement.fields]
        return [
            TableRecord(self, source, dict(zip(names, row)), persisted=True)
            for row in self.fetch(statement, timeout)
        ]

    def execute(self, statement: Statement, timeout: float | None = None) -> int:
        """Run a statement; returns the affected-row count."""
        return self.executor.execute(self.compile(statement), timeout)

    def execute_script(self, statements: list[str]) -> None:
        """Run raw parameterless SQL (DDL, seed data)."""
        self.adapter.execute_script(statements)

    def create_tables(self, registry: SchemaRegistry) -> None:
        """CREATE every table of ``registry`` (not a migration tool)."""
        self.execute_script(create_all(registry, self.dialect))

    # -- Transactions --------------------------------------------------------

    def transaction(self, body: Callable[[Database], Any]) -> Result[Any]:
        """
        Run ``body(self)`` atomically.

        ``Err`` rolls back and is returned; ``Ok`` or any other value commits
        and is returned as ``Ok``; an exception rolls back and propagates.
        """
        return self.transactions.run(body, self)

    @contextmanager
    def transaction_scope(self) -> Iterator[TransactionState]:
        with self.transactions.scope() as state:
            yield state

    @property
    def in_transaction(self) -> bool:
        return self.transactions.in_transaction

    # -- Lifecycle -----------------------------------------------------------

    def close(self) -> None:
        self.adapter.disconnect()

    def __enter__(self) -> Database:
        return self

    def __exit__(self, *exc: Any) -> None:
        self.close()

    def __repr__(self) -> str:
        return f"Database({self.adapter.config.to_connection_string()})"


__all__ = ["Database"]
