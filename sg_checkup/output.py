"""Rendering helpers for a generated :class:`~sg_checkup.models.Report`."""
from __future__ import annotations

import json
from dataclasses import asdict
from typing import TYPE_CHECKING, Iterable, Sequence, TextIO

from .models import Report

if TYPE_CHECKING:
    from openpyxl.worksheet.worksheet import Worksheet


def _datetime_text(value: object) -> str:
    return value.isoformat() if hasattr(value, "isoformat") else str(value)


def print_report(report: Report, stream: TextIO | None = None) -> None:
    """Pretty-print ``report`` as a table."""

    metadata = report.metadata
    print(f"Account:      {metadata.account_id or '-'}", file=stream)
    print(f"Organization: {metadata.organization}", file=stream)
    print(f"Imported:     {_datetime_text(metadata.imported_at)}", file=stream)
    print(f"Generated:    {_datetime_text(metadata.generated_at)}", file=stream)
    summary = ", ".join(
        f"{status.value}={count}" for status, count in report.status_counts().items()
    )
    print(f"Summary:      {summary}", file=stream)
    print(file=stream)

    if not report.rows:
        print("No security groups found.", file=stream)
        return

    header = f"{'Status':<7} {'Region':<15} {'Name':<30} Notes"
    print(header, file=stream)
    print("-" * len(header), file=stream)
    for row in report.rows:
        name = (row.name[:27] + "...") if len(row.name) > 30 else row.name
        print(
            f"{row.status.value:<7} {row.region:<15} {name:<30} {'; '.join(row.notes)}",
            file=stream,
        )


def report_to_dict(report: Report) -> dict:
    """Return ``report`` as JSON-ready primitives."""

    data = asdict(report)
    for row in data["rows"]:
        row["status"] = str(row["status"])
        row["public_ips"] = list(row["public_ips"])
        row["notes"] = list(row["notes"])
    return data


def export_report_to_json(report: Report, path: str) -> str:
    """Write ``report`` to ``path`` as JSON."""

    with open(path, "w", encoding="utf-8") as fh:
        json.dump(report_to_dict(report), fh, indent=2, default=str)
    return path


def export_report_to_excel(report: Report, path: str) -> str:
    """Write ``report`` rows and metadata to an Excel workbook located at ``path``."""

    try:
        from openpyxl import Workbook
    except ImportError as exc:  # pragma: no cover - dependency missing during tests
        raise RuntimeError(
            "The 'openpyxl' package is required to export the report to Excel. "
            "Install it with 'pip install openpyxl'."
        ) from exc

    workbook = Workbook()
    sheet = workbook.active
    sheet.title = "Security Groups"
    headers = ("Status", "Region", "Name", "ARN", "In Use", "Default", "Public IPs", "Notes")
    rows = (
        (
            row.status.value,
            row.region,
            row.name,
            row.arn,
            "yes" if row.in_use else "no",
            "yes" if row.is_default else "no",
            ", ".join(row.public_ips),
            "\n".join(row.notes),
        )
        for row in report.rows
    )
    _fill_sheet(sheet, headers, rows)

    metadata = report.metadata
    info = workbook.create_sheet("Metadata")
    _fill_sheet(
        info,
        ("Field", "Value"),
        (
            ("Account", metadata.account_id),
            ("Organization", metadata.organization),
            ("Imported", _datetime_text(metadata.imported_at)),
            ("Generated", _datetime_text(metadata.generated_at)),
        ),
    )

    workbook.save(path)
    return path


def _fill_sheet(
    sheet: Worksheet, headers: Sequence[str], rows: Iterable[Sequence[object]]
) -> None:
    """Append ``headers`` and ``rows`` to ``sheet`` and size its columns to fit."""

    from openpyxl.utils import get_column_letter

    sheet.append(list(headers))
    column_widths = [len(header) for header in headers]

    for row in rows:
        values = list(row)
        sheet.append(values)
        for idx, value in enumerate(values):
            column_widths[idx] = max(column_widths[idx], len(str(value)))

    for idx, width in enumerate(column_widths, start=1):
        sheet.column_dimensions[get_column_letter(idx)].width = min(width + 2, 60)


__all__ = [
    "export_report_to_excel",
    "export_report_to_json",
    "print_report",
    "report_to_dict",
]
