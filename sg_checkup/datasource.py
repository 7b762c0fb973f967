"""Read access to the relational store populated by the account importer."""
from __future__ import annotations

import logging
from importlib import resources
from typing import Any, Callable, List, Optional, Protocol, Sequence

import psycopg2

from .errors import (
    DatabaseConnectionError,
    NotFoundError,
    QueryError,
    ScanError,
    SetupError,
)
from .models import ImportRecord, SecurityGroupFact

logger = logging.getLogger(__name__)

QUERY_PACKAGE = "sg_checkup.queries"
FACT_COLUMN_COUNT = 10
_TEXT_COLUMNS = {0: "arn", 1: "name"}
_BOOLEAN_COLUMNS = {3: "in_use", 4: "is_default", 6: "is_large_public_block",
                    7: "large_range_count", 8: "is_restricted", 9: "internal_only"}


class DataSource(Protocol):
    """Read contract the report generator relies on."""

    def ensure_helpers(self) -> None:
        """Install query-time helper functions; safe to call on every run."""
        ...

    def fetch_security_group_facts(self) -> Sequence[SecurityGroupFact]:
        ...

    def fetch_most_recent_import(self) -> ImportRecord:
        ...


def load_query(name: str) -> str:
    """Return the SQL text bundled as ``queries/<name>.sql``."""

    filename = f"{name}.sql"
    try:
        return resources.files(QUERY_PACKAGE).joinpath(filename).read_text(encoding="utf-8")
    except (FileNotFoundError, ModuleNotFoundError) as exc:
        raise QueryError(f"Failed to open query {filename}", cause=exc) from exc


def _string_tuple(value: Any, column: str) -> tuple[str, ...]:
    if value is None:
        return ()
    if isinstance(value, (str, bytes)) or not isinstance(value, (list, tuple)):
        raise ScanError(f"Column {column} is not an array: {value!r}")
    for item in value:
        if not isinstance(item, str):
            raise ScanError(f"Column {column} has a non-text element: {item!r}")
    return tuple(value)


def fact_from_row(row: Sequence[Any]) -> SecurityGroupFact:
    """Convert a ``security_groups`` result row into a :class:`SecurityGroupFact`."""

    if len(row) != FACT_COLUMN_COUNT:
        raise ScanError(
            f"Expected {FACT_COLUMN_COUNT} columns per security group, got {len(row)}"
        )
    for index, column in _TEXT_COLUMNS.items():
        if not isinstance(row[index], str):
            raise ScanError(f"Column {column} is not text: {row[index]!r}")
    for index, column in _BOOLEAN_COLUMNS.items():
        if not isinstance(row[index], bool):
            raise ScanError(f"Column {column} is not a boolean: {row[index]!r}")
    return SecurityGroupFact(
        arn=row[0],
        name=row[1],
        public_ips=_string_tuple(row[2], "public_ips"),
        in_use=row[3],
        is_default=row[4],
        port_range_specs=_string_tuple(row[5], "port_range_specs"),
        is_large_public_block=row[6],
        large_range_count=row[7],
        is_restricted=row[8],
        internal_only=row[9],
    )


class PostgresDataSource:
    """:class:`DataSource` backed by a PostgreSQL database."""

    def __init__(self, dsn: str, *, connect: Callable[..., Any] = psycopg2.connect) -> None:
        self.dsn = dsn
        self._connect = connect
        self._connection: Optional[Any] = None

    def __enter__(self) -> "PostgresDataSource":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    @property
    def connection(self) -> Any:
        if self._connection is None:
            try:
                self._connection = self._connect(self.dsn)
            except psycopg2.Error as exc:
                raise DatabaseConnectionError("Failed to connect to db", cause=exc) from exc
            logger.info("db ready")
        return self._connection

    def close(self) -> None:
        if self._connection is not None:
            self._connection.close()
            self._connection = None

    def ensure_helpers(self) -> None:
        sql = load_query("rfc1918")
        connection = self.connection
        try:
            with connection.cursor() as cursor:
                cursor.execute(sql)
            connection.commit()
        except psycopg2.Error as exc:
            connection.rollback()
            raise SetupError("Failed to install is_rfc1918block function", cause=exc) from exc

    def _fetch(self, name: str, many: bool) -> Any:
        sql = load_query(name)
        try:
            with self.connection.cursor() as cursor:
                cursor.execute(sql)
                return cursor.fetchall() if many else cursor.fetchone()
        except psycopg2.Error as exc:
            raise QueryError(f"Failed to run {name} query", cause=exc) from exc

    def fetch_security_group_facts(self) -> List[SecurityGroupFact]:
        rows = self._fetch("security_groups", many=True)
        facts = [fact_from_row(row) for row in rows]
        logger.info("rows %d", len(facts))
        return facts

    def fetch_most_recent_import(self) -> ImportRecord:
        row = self._fetch("most_recent_import", many=False)
        if row is None:
            raise NotFoundError("Query for most recent import job found no results")
        if len(row) != 2:
            raise ScanError(f"Expected 2 columns for most recent import, got {len(row)}")
        imported_at, organization = row
        return ImportRecord(imported_at=imported_at, organization=organization or "")


__all__ = [
    "DataSource",
    "PostgresDataSource",
    "fact_from_row",
    "load_query",
]
