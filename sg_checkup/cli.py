"""Command line interface for the security group risk report."""
from __future__ import annotations

import argparse
import logging
import sys
from typing import List, Optional

from .config import LOG_LEVELS, Settings
from .core import generate
from .datasource import PostgresDataSource
from .errors import ReportError
from .output import export_report_to_excel, export_report_to_json, print_report

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s - %(levelname)s - %(name)s - %(message)s"


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Return parsed command line arguments."""

    parser = argparse.ArgumentParser(
        description="Assess imported AWS security groups and report their risk."
    )
    parser.add_argument(
        "--db-url",
        default=None,
        help="PostgreSQL connection string (defaults to $SGCHECKUP_DB_URL)",
    )
    parser.add_argument(
        "--safe-ports",
        default=None,
        help="Ports allowed to be open to the internet, e.g. '22,80,443' or '22,8000-8080'",
    )
    parser.add_argument("--json", dest="json_path", help="Optional path to export the report as JSON")
    parser.add_argument(
        "--excel",
        dest="excel_path",
        help="Optional path to export the report as an Excel workbook (.xlsx)",
    )
    parser.add_argument(
        "--log-level",
        type=str.upper,
        choices=LOG_LEVELS,
        default=None,
        help="Logging verbosity (defaults to $SGCHECKUP_LOG_LEVEL or WARNING)",
    )
    return parser.parse_args(argv)


def configure_logging(level: str) -> None:
    logging.basicConfig(level=level, format=LOG_FORMAT, stream=sys.stderr)


def main(argv: Optional[List[str]] = None) -> int:
    """CLI entry point used by ``python -m sg_checkup``."""

    args = parse_args(argv)
    try:
        settings = Settings.from_env().with_overrides(
            db_url=args.db_url,
            safe_ports=args.safe_ports,
            log_level=args.log_level,
        )
    except ValueError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    configure_logging(settings.log_level)

    try:
        with PostgresDataSource(settings.db_url) as data_source:
            report = generate(data_source, settings.safe_ports)
    except ReportError as exc:
        logger.debug("Report generation failed", exc_info=True)
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    print_report(report)

    if args.json_path:
        try:
            path = export_report_to_json(report, args.json_path)
        except OSError as exc:
            print(f"Failed to export JSON report: {exc}", file=sys.stderr)
        else:
            print(f"Report exported to {path}")

    if args.excel_path:
        try:
            path = export_report_to_excel(report, args.excel_path)
        except (RuntimeError, OSError) as exc:
            print(f"Failed to export Excel report: {exc}", file=sys.stderr)
        else:
            print(f"Excel report written to {path}")

    return 0


__all__ = ["configure_logging", "main", "parse_args"]
