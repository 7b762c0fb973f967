"""Security group risk report built from an imported AWS account snapshot."""

from __future__ import annotations

from .classifier import DEFAULT_SAFE_PORTS, build_row, classify
from .core import generate
from .datasource import DataSource, PostgresDataSource
from .errors import (
    DatabaseConnectionError,
    NotFoundError,
    ParseError,
    QueryError,
    ReportError,
    ScanError,
    SetupError,
)
from .models import (
    ImportRecord,
    Report,
    ReportMetadata,
    ReportRow,
    SecurityGroupFact,
    Status,
)
from .multirange import MultiRange, PortRange

__all__ = [
    "DEFAULT_SAFE_PORTS",
    "DataSource",
    "DatabaseConnectionError",
    "ImportRecord",
    "MultiRange",
    "NotFoundError",
    "ParseError",
    "PortRange",
    "PostgresDataSource",
    "QueryError",
    "Report",
    "ReportError",
    "ReportMetadata",
    "ReportRow",
    "ScanError",
    "SecurityGroupFact",
    "SetupError",
    "Status",
    "build_row",
    "classify",
    "generate",
]
