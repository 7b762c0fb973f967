"""Data models for security group facts and the generated report."""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Dict, Tuple


class Status(str, Enum):
    """Severity of a report row, declared from most to least severe."""

    RED = "red"
    YELLOW = "yellow"
    GREEN = "green"

    @property
    def rank(self) -> int:
        return _STATUS_ORDER.index(self)

    def __str__(self) -> str:
        return self.value


_STATUS_ORDER: Tuple[Status, ...] = tuple(Status)


def arn_field(arn: str, index: int) -> str:
    """Return the colon-delimited field ``index`` of ``arn`` or ``""``."""

    parts = arn.split(":")
    if index < len(parts):
        return parts[index]
    return ""


@dataclass(frozen=True)
class SecurityGroupFact:
    """Facts the importer recorded about a single security group."""

    arn: str
    name: str
    public_ips: Tuple[str, ...] = ()
    in_use: bool = False
    is_default: bool = False
    port_range_specs: Tuple[str, ...] = ()
    is_large_public_block: bool = False
    large_range_count: bool = False
    is_restricted: bool = False
    internal_only: bool = False

    @property
    def is_problematic(self) -> bool:
        return self.large_range_count or self.is_large_public_block


@dataclass(frozen=True)
class ImportRecord:
    """Most recent completed import of account data."""

    imported_at: datetime
    organization: str


@dataclass(frozen=True)
class ReportRow:
    """Risk assessment of one security group."""

    arn: str
    name: str
    status: Status
    public_ips: Tuple[str, ...]
    in_use: bool
    is_default: bool
    notes: Tuple[str, ...] = field(default_factory=tuple)

    @property
    def region(self) -> str:
        return arn_field(self.arn, 3)

    @property
    def account_id(self) -> str:
        return arn_field(self.arn, 4)


@dataclass(frozen=True)
class ReportMetadata:
    """When the data was snapshotted and which account it describes."""

    imported_at: datetime
    generated_at: datetime
    account_id: str
    organization: str


@dataclass(frozen=True)
class Report:
    metadata: ReportMetadata
    rows: Tuple[ReportRow, ...]

    def status_counts(self) -> Dict[Status, int]:
        """Return the number of rows per status, most severe first."""

        counts = {status: 0 for status in _STATUS_ORDER}
        for row in self.rows:
            counts[row.status] += 1
        return counts


__all__ = [
    "ImportRecord",
    "Report",
    "ReportMetadata",
    "ReportRow",
    "SecurityGroupFact",
    "Status",
    "arn_field",
]
