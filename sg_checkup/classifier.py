"""Rule-based risk classification for individual security groups."""
from __future__ import annotations

from typing import Iterable, List, NamedTuple, Tuple

from .errors import ParseError
from .models import ReportRow, SecurityGroupFact, Status
from .multirange import MultiRange

DEFAULT_SAFE_PORTS: Tuple[int, ...] = (22, 80, 443)


class Classification(NamedTuple):
    """Outcome of classifying one security group."""

    status: Status
    unsafe_ports: MultiRange
    notes: Tuple[str, ...]


def unsafe_ports(fact: SecurityGroupFact, safe_ports: Iterable[int]) -> MultiRange:
    """Return the ports ``fact`` exposes that are not listed in ``safe_ports``.

    Groups without port range data report no unsafe ports at all.
    """

    if not fact.port_range_specs:
        return MultiRange()
    try:
        ports = MultiRange.from_string(fact.port_range_specs[0])
    except ParseError as exc:
        raise ParseError(
            f"Failed to parse port range {list(fact.port_range_specs)} for group {fact.arn}",
            cause=exc,
            details={"arn": fact.arn},
        ) from exc
    for port in safe_ports:
        ports.remove_element(port)
    return ports


def decide_status(fact: SecurityGroupFact, unsafe: MultiRange) -> Status:
    """Apply the severity decision table to ``fact``."""

    if fact.is_default:
        if fact.in_use:
            if fact.is_restricted or fact.internal_only or not fact.public_ips:
                return Status.YELLOW
            return Status.RED
        if fact.is_restricted:
            # locked down and unused is the best a default group can do
            return Status.GREEN
        return Status.YELLOW

    if fact.in_use:
        if fact.is_restricted or (not fact.is_problematic and unsafe.size() == 0):
            return Status.GREEN
        if not fact.public_ips:
            return Status.YELLOW
        return Status.RED
    # non-default groups should not exist unless something uses them
    return Status.YELLOW


def build_notes(fact: SecurityGroupFact, unsafe: MultiRange) -> Tuple[str, ...]:
    """Return the explanatory notes for ``fact`` in display order."""

    notes: List[str] = []
    if unsafe.size() > 0 and not fact.internal_only:
        notes.append(f"Allows traffic from anywhere on TCP ports ({unsafe.humanize()})")
    if fact.is_large_public_block:
        notes.append("Has IP restrictions, but they let through large ranges")
    if fact.large_range_count:
        notes.append("Uses a lot of IP Ranges")
    if not fact.in_use:
        notes.append("Not in use")
    if fact.public_ips:
        notes.append(f"Contains {len(fact.public_ips)} public IP address(es)")
    else:
        notes.append("No public IP addresses found")
    return tuple(notes)


def classify(fact: SecurityGroupFact, safe_ports: Iterable[int] = DEFAULT_SAFE_PORTS) -> Classification:
    """Compute status, unsafe ports and notes for ``fact``."""

    unsafe = unsafe_ports(fact, safe_ports)
    return Classification(
        status=decide_status(fact, unsafe),
        unsafe_ports=unsafe,
        notes=build_notes(fact, unsafe),
    )


def build_row(fact: SecurityGroupFact, safe_ports: Iterable[int] = DEFAULT_SAFE_PORTS) -> ReportRow:
    """Return the :class:`ReportRow` describing ``fact``."""

    result = classify(fact, safe_ports)
    return ReportRow(
        arn=fact.arn,
        name=fact.name,
        status=result.status,
        public_ips=tuple(fact.public_ips),
        in_use=fact.in_use,
        is_default=fact.is_default,
        notes=result.notes,
    )


__all__ = [
    "Classification",
    "DEFAULT_SAFE_PORTS",
    "build_notes",
    "build_row",
    "classify",
    "decide_status",
    "unsafe_ports",
]
