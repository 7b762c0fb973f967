"""Shared fixtures for the report tests."""

from __future__ import annotations

import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional, Sequence

import pytest


PROJECT_ROOT = Path(__file__).resolve().parents[2]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))


from sg_checkup.errors import NotFoundError
from sg_checkup.models import ImportRecord, SecurityGroupFact


IMPORTED_AT = datetime(2024, 3, 1, 12, 30, tzinfo=timezone.utc)
GENERATED_AT = datetime(2024, 3, 2, 8, 0, tzinfo=timezone.utc)


class FakeDataSource:
    """In-memory data source recording the calls made against it."""

    def __init__(
        self,
        facts: Sequence[SecurityGroupFact] = (),
        record: Optional[ImportRecord] = None,
    ) -> None:
        self.facts = list(facts)
        self.record = record
        self.calls: List[str] = []

    def ensure_helpers(self) -> None:
        self.calls.append("ensure_helpers")

    def fetch_security_group_facts(self) -> List[SecurityGroupFact]:
        self.calls.append("fetch_security_group_facts")
        return list(self.facts)

    def fetch_most_recent_import(self) -> ImportRecord:
        self.calls.append("fetch_most_recent_import")
        if self.record is None:
            raise NotFoundError("Query for most recent import job found no results")
        return self.record


def make_fact(name: str = "web", region: str = "us-east-1", **overrides) -> SecurityGroupFact:
    """Return a fact for an in-use, non-default group with no exposure."""

    values = dict(
        arn=f"arn:aws:ec2:{region}:123456789012:security-group/sg-{name}",
        name=name,
        public_ips=(),
        in_use=True,
        is_default=False,
        port_range_specs=(),
        is_large_public_block=False,
        large_range_count=False,
        is_restricted=False,
        internal_only=False,
    )
    values.update(overrides)
    return SecurityGroupFact(**values)


@pytest.fixture
def import_record() -> ImportRecord:
    return ImportRecord(imported_at=IMPORTED_AT, organization="o-abc123")


@pytest.fixture
def fake_source(import_record: ImportRecord) -> FakeDataSource:
    return FakeDataSource(record=import_record)
