"""Exception hierarchy raised while generating a security group report."""
from __future__ import annotations

from typing import Any, Dict, Optional


class ReportError(Exception):
    """Base class for every failure that aborts report generation.

    ``cause`` keeps the lower-level exception (database driver, parser) and
    ``details`` carries structured context such as the offending ARN.
    """

    def __init__(
        self,
        message: str,
        cause: Optional[BaseException] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.cause = cause
        self.details = details or {}

    def __str__(self) -> str:
        if self.cause:
            return f"{self.message}: {self.cause}"
        return self.message

    def to_dict(self) -> Dict[str, Any]:
        """Return the error as a plain dictionary."""

        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "cause": str(self.cause) if self.cause else None,
            "details": self.details,
        }


class DatabaseConnectionError(ReportError):
    """The data source could not be reached."""


class SetupError(ReportError):
    """Installing the query-time helper functions failed."""


class QueryError(ReportError):
    """A query could not be loaded or executed."""


class ScanError(ReportError):
    """A result row did not have the expected shape."""


class ParseError(ReportError, ValueError):
    """Port range text is not a valid multirange."""


class NotFoundError(ReportError):
    """An expected record is missing, e.g. no import has ever completed."""


__all__ = [
    "DatabaseConnectionError",
    "NotFoundError",
    "ParseError",
    "QueryError",
    "ReportError",
    "ScanError",
    "SetupError",
]
