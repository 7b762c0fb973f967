"""Core orchestration for the security group risk report."""
from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Iterable, List, Optional, Sequence

from .classifier import DEFAULT_SAFE_PORTS, build_row
from .datasource import DataSource
from .models import ImportRecord, Report, ReportMetadata, ReportRow, SecurityGroupFact

logger = logging.getLogger(__name__)

DUMMY_ORGANIZATION_PREFIX = "OrgDummy"
NO_ORGANIZATION = "<NONE>"


def _row_sort_key(row: ReportRow) -> tuple[int, str, str]:
    """Order rows by severity, then region, then group name."""

    return (row.status.rank, row.region, row.name)


def analyze_security_groups(
    facts: Iterable[SecurityGroupFact], safe_ports: Sequence[int]
) -> List[ReportRow]:
    """Classify every fact, in input order."""

    rows: List[ReportRow] = []
    for fact in facts:
        row = build_row(fact, safe_ports)
        logger.debug("Classified %s as %s", fact.arn, row.status)
        rows.append(row)
    return rows


def sort_rows(rows: Iterable[ReportRow]) -> List[ReportRow]:
    """Return ``rows`` in report order; ties keep their input order."""

    return sorted(rows, key=_row_sort_key)


def build_metadata(
    record: ImportRecord, rows: Sequence[ReportRow], generated_at: datetime
) -> ReportMetadata:
    """Combine the import record with the account taken from the first row."""

    if rows:
        account_id = rows[0].account_id
    else:
        logger.warning("No security groups found; report has no account id")
        account_id = ""

    organization = record.organization
    if organization.startswith(DUMMY_ORGANIZATION_PREFIX):
        organization = NO_ORGANIZATION

    return ReportMetadata(
        imported_at=record.imported_at,
        generated_at=generated_at,
        account_id=account_id,
        organization=organization,
    )


def generate(
    data_source: DataSource,
    safe_ports: Optional[Sequence[int]] = None,
    *,
    generated_at: Optional[datetime] = None,
) -> Report:
    """Assess every imported security group and return the sorted report.

    ``safe_ports`` defaults to :data:`DEFAULT_SAFE_PORTS`; pass an empty
    sequence to treat every exposed port as unsafe.  Any
    :class:`~sg_checkup.errors.ReportError` raised along the way aborts the
    whole run.
    """

    data_source.ensure_helpers()
    logger.info("Data source ready")

    facts = data_source.fetch_security_group_facts()
    logger.info("Fetched %d security groups", len(facts))

    if safe_ports is None:
        safe_ports = DEFAULT_SAFE_PORTS
    rows = sort_rows(analyze_security_groups(facts, safe_ports))

    record = data_source.fetch_most_recent_import()
    metadata = build_metadata(
        record, rows, generated_at or datetime.now(timezone.utc)
    )
    return Report(metadata=metadata, rows=tuple(rows))


__all__ = [
    "DUMMY_ORGANIZATION_PREFIX",
    "NO_ORGANIZATION",
    "analyze_security_groups",
    "build_metadata",
    "generate",
    "sort_rows",
]
