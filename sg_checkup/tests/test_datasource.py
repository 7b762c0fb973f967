"""Tests for the PostgreSQL backed data source."""

from __future__ import annotations

from unittest.mock import MagicMock

import psycopg2
import pytest

from conftest import IMPORTED_AT
from sg_checkup.datasource import PostgresDataSource, fact_from_row, load_query
from sg_checkup.errors import (
    DatabaseConnectionError,
    NotFoundError,
    QueryError,
    ScanError,
    SetupError,
)

GROUP_ROW = (
    "arn:aws:ec2:us-east-1:123456789012:security-group/sg-1",
    "web",
    ["54.1.2.3"],
    True,
    False,
    ["22,80,3389"],
    False,
    False,
    False,
    False,
)


def _connection(fetchall=None, fetchone=None, execute_error=None) -> tuple[MagicMock, MagicMock]:
    connection = MagicMock()
    cursor = connection.cursor.return_value.__enter__.return_value
    cursor.fetchall.return_value = fetchall or []
    cursor.fetchone.return_value = fetchone
    if execute_error is not None:
        cursor.execute.side_effect = execute_error
    return connection, cursor


def _source(connection: MagicMock) -> tuple[PostgresDataSource, MagicMock]:
    connect = MagicMock(return_value=connection)
    return PostgresDataSource("postgresql://example/db", connect=connect), connect


def test_load_query_reads_bundled_sql() -> None:
    """Bundled SQL files are readable by name."""

    assert "is_rfc1918block" in load_query("rfc1918")
    assert "aws_ec2_securitygroup" in load_query("security_groups")
    assert "end_date" in load_query("most_recent_import")


def test_load_query_missing_file_raises_query_error() -> None:
    """Unknown query names raise a query error."""

    with pytest.raises(QueryError):
        load_query("does_not_exist")


def test_fact_from_row_maps_columns() -> None:
    """Result columns map onto fact fields in order."""

    fact = fact_from_row(GROUP_ROW)

    assert fact.arn == GROUP_ROW[0]
    assert fact.name == "web"
    assert fact.public_ips == ("54.1.2.3",)
    assert fact.in_use is True
    assert fact.is_default is False
    assert fact.port_range_specs == ("22,80,3389",)


def test_fact_from_row_treats_null_arrays_as_empty() -> None:
    """NULL arrays become empty tuples."""

    row = list(GROUP_ROW)
    row[2] = None
    row[5] = None

    fact = fact_from_row(row)

    assert fact.public_ips == ()
    assert fact.port_range_specs == ()


@pytest.mark.parametrize(
    "row",
    [
        GROUP_ROW[:9],
        GROUP_ROW[:3] + ("yes",) + GROUP_ROW[4:],
        GROUP_ROW[:5] + ("22",) + GROUP_ROW[6:],
        (None,) + GROUP_ROW[1:],
        GROUP_ROW[:1] + (None,) + GROUP_ROW[2:],
        GROUP_ROW[:2] + (["1.2.3.4", None],) + GROUP_ROW[3:],
        GROUP_ROW[:5] + ([None],) + GROUP_ROW[6:],
    ],
)
def test_fact_from_row_rejects_wrong_shape(row) -> None:
    """Rows with missing columns, NULL text or wrong types are rejected."""

    with pytest.raises(ScanError):
        fact_from_row(row)


def test_connection_is_opened_once_and_closed_on_exit() -> None:
    """The connection is reused and closed with the context manager."""

    connection, _ = _connection(fetchall=[GROUP_ROW])
    source, connect = _source(connection)

    with source:
        source.fetch_security_group_facts()
        source.fetch_security_group_facts()

    connect.assert_called_once_with("postgresql://example/db")
    connection.close.assert_called_once_with()


def test_connection_failure_raises_database_connection_error() -> None:
    """Driver connection errors are wrapped."""

    connect = MagicMock(side_effect=psycopg2.OperationalError("refused"))
    source = PostgresDataSource("postgresql://example/db", connect=connect)

    with pytest.raises(DatabaseConnectionError, match="refused"):
        source.ensure_helpers()


def test_ensure_helpers_executes_function_sql_and_commits() -> None:
    """Helper SQL is executed and committed."""

    connection, cursor = _connection()
    source, _ = _source(connection)

    source.ensure_helpers()

    executed_sql = cursor.execute.call_args[0][0]
    assert "CREATE OR REPLACE FUNCTION is_rfc1918block" in executed_sql
    connection.commit.assert_called_once_with()


def test_ensure_helpers_failure_rolls_back() -> None:
    """Failed helper installation rolls the transaction back."""

    connection, _ = _connection(execute_error=psycopg2.ProgrammingError("permission denied"))
    source, _ = _source(connection)

    with pytest.raises(SetupError):
        source.ensure_helpers()

    connection.rollback.assert_called_once_with()


def test_fetch_security_group_facts_returns_facts() -> None:
    """Every result row becomes a fact."""

    connection, _ = _connection(fetchall=[GROUP_ROW, GROUP_ROW])
    source, _ = _source(connection)

    facts = source.fetch_security_group_facts()

    assert len(facts) == 2
    assert facts[0].name == "web"


def test_fetch_security_group_facts_wraps_driver_errors() -> None:
    """Driver errors while querying groups are wrapped."""

    connection, _ = _connection(execute_error=psycopg2.ProgrammingError("no such table"))
    source, _ = _source(connection)

    with pytest.raises(QueryError, match="security_groups"):
        source.fetch_security_group_facts()


def test_fetch_most_recent_import() -> None:
    """The import record is read from the single result row."""

    connection, _ = _connection(fetchone=(IMPORTED_AT, "o-abc123"))
    source, _ = _source(connection)

    record = source.fetch_most_recent_import()

    assert record.imported_at == IMPORTED_AT
    assert record.organization == "o-abc123"


def test_fetch_most_recent_import_without_rows_raises_not_found() -> None:
    """No completed import raises a not-found error."""

    connection, _ = _connection(fetchone=None)
    source, _ = _source(connection)

    with pytest.raises(NotFoundError):
        source.fetch_most_recent_import()


def test_fetch_most_recent_import_rejects_wrong_column_count() -> None:
    """An import row without exactly two columns is rejected."""

    connection, _ = _connection(fetchone=(IMPORTED_AT,))
    source, _ = _source(connection)

    with pytest.raises(ScanError):
        source.fetch_most_recent_import()


def test_fetch_most_recent_import_wraps_driver_errors() -> None:
    """Driver errors while reading the import record are wrapped."""

    connection, _ = _connection(execute_error=psycopg2.ProgrammingError("no such table"))
    source, _ = _source(connection)

    with pytest.raises(QueryError, match="most_recent_import"):
        source.fetch_most_recent_import()
