"""
Row store access for MySQL (via SQLAlchemy Core) and an in-memory test implementation.

The schema is owned by the database: tables are reflected, never created here.
"""

from __future__ import annotations

import copy
import logging
from contextlib import contextmanager
from typing import Any, Dict, Iterable, Iterator, Optional, Protocol

from sqlalchemy import MetaData, Table, create_engine, select, text
from sqlalchemy.engine import URL
from sqlalchemy.exc import SQLAlchemyError

logger = logging.getLogger(__name__)

USERS_TABLE = "users"
REPORT_TABLE = "report"
RATING_TABLE = "rating"
ASSIGNMENTS_TABLE = "assignments"

TABLE_NAMES = (USERS_TABLE, REPORT_TABLE, RATING_TABLE, ASSIGNMENTS_TABLE)

Row = Dict[str, Any]


class StoreError(Exception):
    """Raised when the row store rejects or fails an operation."""


class UnknownColumnsError(StoreError):
    """Raised when a row names columns the target table does not have."""

    def __init__(self, table: str, columns: Iterable[str]):
        self.table = table
        self.columns = sorted(columns)
        super().__init__(
            f"Unknown columns for {table}: {', '.join(self.columns)}"
        )


class DbClient(Protocol):
    """Interface for row store access."""

    def ping(self) -> None:
        ...

    def create_user(self, username: str, password_hash: str, role: str) -> None:
        ...

    def get_user(self, username: str) -> Optional[Row]:
        ...

    def insert_row(self, table: str, row: Row) -> None:
        ...

    def list_rows(self, table: str) -> list[Row]:
        ...

    def search_rows(self, table: str, column: str, needle: str) -> list[Row]:
        ...


class InMemoryDbClient:
    """Simple in-memory row store for development and tests.

    Without ``columns`` every table accepts any keys. When ``columns`` maps a
    table name to its column names, inserts are checked the same way the SQL
    client checks them against reflected tables.
    """

    def __init__(self, columns: Optional[Dict[str, Iterable[str]]] = None):
        self.columns = (
            {name: set(cols) for name, cols in columns.items()} if columns else {}
        )
        self.tables: Dict[str, list[Row]] = {name: [] for name in TABLE_NAMES}

    def reset(self) -> None:
        """Clear all stored rows (useful in tests)."""
        for rows in self.tables.values():
            rows.clear()

    def ping(self) -> None:
        return None

    def _check_columns(self, table: str, row: Row) -> None:
        known = self.columns.get(table)
        if known is None:
            return
        unknown = set(row) - known
        if unknown:
            raise UnknownColumnsError(table, unknown)

    def _table(self, table: str) -> list[Row]:
        if table not in self.tables:
            raise StoreError(f"Table {table} does not exist")
        return self.tables[table]

    def create_user(self, username: str, password_hash: str, role: str) -> None:
        users = self._table(USERS_TABLE)
        if any(user["username"] == username for user in users):
            raise StoreError(f"Duplicate entry '{username}' for key 'username'")
        self.insert_row(
            USERS_TABLE,
            {"username": username, "password": password_hash, "role": role},
        )

    def get_user(self, username: str) -> Optional[Row]:
        for user in self._table(USERS_TABLE):
            if user["username"] == username:
                return dict(user)
        return None

    def insert_row(self, table: str, row: Row) -> None:
        rows = self._table(table)
        self._check_columns(table, row)
        stored = {"id": len(rows) + 1}
        stored.update(copy.deepcopy(row))
        rows.append(stored)

    def list_rows(self, table: str) -> list[Row]:
        return [dict(row) for row in self._table(table)]

    def search_rows(self, table: str, column: str, needle: str) -> list[Row]:
        return [
            dict(row)
            for row in self._table(table)
            if isinstance(row.get(column), str) and needle in row[column]
        ]


class SqlDbClient:
    """
    SQLAlchemy Core implementation. Accepts any SQLAlchemy URL (MySQL in
    production, SQLite for tests). The tables must already exist.
    """

    def __init__(self, database_url: URL | str, pool_size: int = 5):
        if not database_url:
            raise ValueError("A database URL is required for SqlDbClient")
        self.engine = create_engine(
            database_url,
            future=True,
            pool_pre_ping=True,
            pool_recycle=1800,
            pool_size=pool_size,
        )
        self.metadata = MetaData()
        with _store_errors("reflect tables"):
            self.metadata.reflect(bind=self.engine, only=list(TABLE_NAMES))

    def close(self) -> None:
        self.engine.dispose()

    def _table(self, name: str) -> Table:
        try:
            return self.metadata.tables[name]
        except KeyError:
            raise StoreError(f"Table {name} does not exist") from None

    def ping(self) -> None:
        with _store_errors("ping"):
            with self.engine.connect() as conn:
                conn.execute(text("SELECT 1"))

    def create_user(self, username: str, password_hash: str, role: str) -> None:
        self.insert_row(
            USERS_TABLE,
            {"username": username, "password": password_hash, "role": role},
        )

    def get_user(self, username: str) -> Optional[Row]:
        users = self._table(USERS_TABLE)
        stmt = select(users).where(users.c.username == username)
        with _store_errors(f"select from {USERS_TABLE}"):
            with self.engine.connect() as conn:
                row = conn.execute(stmt).first()
        return dict(row._mapping) if row else None

    def insert_row(self, table: str, row: Row) -> None:
        target = self._table(table)
        unknown = set(row) - set(target.c.keys())
        if unknown:
            raise UnknownColumnsError(table, unknown)
        stmt = target.insert().values(row) if row else target.insert()
        with _store_errors(f"insert into {table}"):
            with self.engine.begin() as conn:
                conn.execute(stmt)

    def list_rows(self, table: str) -> list[Row]:
        target = self._table(table)
        with _store_errors(f"select from {table}"):
            with self.engine.connect() as conn:
                return [dict(r._mapping) for r in conn.execute(select(target))]

    def search_rows(self, table: str, column: str, needle: str) -> list[Row]:
        target = self._table(table)
        if column not in target.c:
            raise StoreError(f"Unknown column {column} on {table}")
        stmt = select(target).where(target.c[column].like(f"%{needle}%"))
        with _store_errors(f"search {table}"):
            with self.engine.connect() as conn:
                return [dict(r._mapping) for r in conn.execute(stmt)]


@contextmanager
def _store_errors(action: str) -> Iterator[None]:
    try:
        yield
    except SQLAlchemyError as exc:
        raise StoreError(f"Failed to {action}: {exc}") from exc
