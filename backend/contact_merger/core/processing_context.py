"""
Processing context and result models.

The ProcessingContext holds shared state during a merge run,
including the active profile and diagnostic tracking.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any

logger = logging.getLogger(__name__)


class ErrorSeverity(str, Enum):
    """Severity level for processing diagnostics."""

    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


_LOG_LEVELS = {
    ErrorSeverity.INFO: logging.INFO,
    ErrorSeverity.WARNING: logging.WARNING,
    ErrorSeverity.ERROR: logging.ERROR,
    ErrorSeverity.CRITICAL: logging.CRITICAL,
}


@dataclass
class RowError:
    """Error or warning for a specific row."""

    row_index: int | None
    column: str | None
    message: str
    severity: ErrorSeverity
    original_value: Any = None
    details: dict[str, Any] | None = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "row_index": self.row_index,
            "column": self.column,
            "message": self.message,
            "severity": self.severity.value,
            "original_value": None if self.original_value is None else str(self.original_value),
            "details": self.details,
        }


@dataclass
class ProcessingResult:
    """Complete result from merging one record set."""

    profile_name: str | None
    source_file: str | None
    success: bool
    input_rows: int
    group_count: int
    skipped_rows: list[int] = field(default_factory=list)
    errors: list[RowError] = field(default_factory=list)
    warnings: list[RowError] = field(default_factory=list)
    started_at: datetime | None = None
    completed_at: datetime | None = None
    output_file: str | None = None

    @property
    def duration_ms(self) -> float:
        """Total processing duration in milliseconds."""
        if self.started_at and self.completed_at:
            delta = self.completed_at - self.started_at
            return delta.total_seconds() * 1000
        return 0.0

    @property
    def error_count(self) -> int:
        return len(self.errors)

    @property
    def warning_count(self) -> int:
        return len(self.warnings)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "profile_name": self.profile_name,
            "source_file": self.source_file,
            "success": self.success,
            "input_rows": self.input_rows,
            "group_count": self.group_count,
            "skipped_count": len(self.skipped_rows),
            "error_count": self.error_count,
            "warning_count": self.warning_count,
            "duration_ms": self.duration_ms,
            "started_at": self.started_at.isoformat() if self.started_at else None,
            "completed_at": self.completed_at.isoformat() if self.completed_at else None,
            "output_file": self.output_file,
            "errors": [e.to_dict() for e in self.errors[:100]],  # Limit for response size
            "warnings": [w.to_dict() for w in self.warnings[:100]],
        }


class ProcessingContext:
    """
    Shared context during a merge run.

    Accumulates errors and warnings and mirrors each of them to the
    module logger so operators can trace the offending row.
    """

    def __init__(
        self,
        profile_name: str | None = None,
        source_file: str | None = None,
    ):
        self.profile_name = profile_name
        self.source_file = source_file

        self._errors: list[RowError] = []
        self._warnings: list[RowError] = []
        self._skipped_rows: list[int] = []

    @property
    def errors(self) -> list[RowError]:
        return list(self._errors)

    @property
    def warnings(self) -> list[RowError]:
        return list(self._warnings)

    def add_error(
        self,
        message: str,
        column: str | None = None,
        original_value: Any = None,
        row_index: int | None = None,
        severity: ErrorSeverity = ErrorSeverity.ERROR,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Add an error or warning."""
        error = RowError(
            row_index=row_index,
            column=column,
            message=message,
            severity=severity,
            original_value=original_value,
            details=details,
        )

        if severity in (ErrorSeverity.ERROR, ErrorSeverity.CRITICAL):
            self._errors.append(error)
        else:
            self._warnings.append(error)

        logger.log(
            _LOG_LEVELS[severity],
            "%s (source=%s row=%s column=%s value=%r)",
            message,
            self.source_file,
            row_index,
            column,
            original_value,
        )

    def add_warning(
        self,
        message: str,
        column: str | None = None,
        original_value: Any = None,
        row_index: int | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Convenience method to add a warning."""
        self.add_error(
            message=message,
            column=column,
            original_value=original_value,
            row_index=row_index,
            severity=ErrorSeverity.WARNING,
            details=details,
        )

    def skip_row(self, row_index: int) -> None:
        """Record a row that contributed to no group."""
        self._skipped_rows.append(row_index)

    def get_result(
        self,
        input_rows: int,
        group_count: int,
        success: bool = True,
        started_at: datetime | None = None,
        completed_at: datetime | None = None,
        output_file: str | None = None,
    ) -> ProcessingResult:
        """Build the final processing result."""
        return ProcessingResult(
            profile_name=self.profile_name,
            source_file=self.source_file,
            success=success and len(self._errors) == 0,
            input_rows=input_rows,
            group_count=group_count,
            skipped_rows=list(self._skipped_rows),
            errors=list(self._errors),
            warnings=list(self._warnings),
            started_at=started_at,
            completed_at=completed_at,
            output_file=output_file,
        )
