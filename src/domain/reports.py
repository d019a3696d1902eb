"""Export Run Reports.

Per-record outcomes aggregated into one report per month window and one
report per export run.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Optional, Union

from src.domain.full_composition import EventType
from src.domain.scheduler import MonthWindow

UNKNOWN_COMPOSITION_ID = "<unknown>"


class SkipReason(str, Enum):
    STATUS = "status"
    ERROR = "error"


@dataclass(frozen=True)
class RecordOutcome:
    """Result of processing one root record.

    Attributes:
        composition_id: Identifier of the root Composition
        event: Event type of the written row (written outcomes only)
        reason: Why the record was skipped (skipped outcomes only)
        error: Error message (error skips only)
        error_type: Exception class name (error skips only)
    """
    composition_id: str
    event: Optional[EventType] = None
    reason: Optional[SkipReason] = None
    error: Optional[str] = None
    error_type: Optional[str] = None

    @classmethod
    def written(cls, composition_id: str, event: EventType) -> 'RecordOutcome':
        return cls(composition_id=composition_id, event=event)

    @classmethod
    def skipped(
        cls,
        composition_id: str,
        reason: SkipReason,
        error: Optional[Union[str, Exception]] = None
    ) -> 'RecordOutcome':
        error_type = type(error).__name__ if isinstance(error, Exception) else None
        return cls(
            composition_id=composition_id,
            reason=reason,
            error=str(error) if error is not None else None,
            error_type=error_type,
        )

    @property
    def is_written(self) -> bool:
        return self.reason is None


@dataclass
class WindowReport:
    """Counts for one month window.

    Attributes:
        key: Window key (``YYYY-MM-DD/YYYY-MM-DD``)
        label: Human-readable window label
        total: Records the store reported for the window
        births_written: Birth rows written
        deaths_written: Death rows written
        skipped_status: Records skipped for their business status
        failed: Records skipped because of an error
        failures: ``{composition_id, error_type, error}`` per failed record
        aborted: True if the window stopped before its cursor was exhausted
        abort_reason: Error that aborted the window
        resumed: True if the window was skipped as already completed
    """
    key: str
    label: str
    total: int = 0
    births_written: int = 0
    deaths_written: int = 0
    skipped_status: int = 0
    failed: int = 0
    failures: list[dict] = field(default_factory=list)
    aborted: bool = False
    abort_reason: Optional[str] = None
    resumed: bool = False

    @classmethod
    def for_window(cls, window: MonthWindow) -> 'WindowReport':
        return cls(key=window.key, label=window.label)

    @property
    def processed(self) -> int:
        return self.births_written + self.deaths_written + self.skipped_status + self.failed

    @property
    def completed(self) -> bool:
        return not self.aborted

    def record(self, outcome: RecordOutcome) -> None:
        if outcome.is_written:
            if outcome.event == EventType.BIRTH:
                self.births_written += 1
            else:
                self.deaths_written += 1
        elif outcome.reason == SkipReason.STATUS:
            self.skipped_status += 1
        else:
            self.failed += 1
            self.failures.append({
                "composition_id": outcome.composition_id,
                "error_type": outcome.error_type,
                "error": outcome.error,
            })

    def abort(self, reason: str) -> None:
        self.aborted = True
        self.abort_reason = reason

    def to_dict(self) -> dict:
        return {
            "key": self.key,
            "label": self.label,
            "total": self.total,
            "processed": self.processed,
            "births_written": self.births_written,
            "deaths_written": self.deaths_written,
            "skipped_status": self.skipped_status,
            "failed": self.failed,
            "failures": list(self.failures),
            "aborted": self.aborted,
            "abort_reason": self.abort_reason,
            "resumed": self.resumed,
        }


@dataclass
class ExportReport:
    """Summary of one export run over a date range."""
    start: str
    end: str
    started_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    finished_at: Optional[datetime] = None
    windows: list[WindowReport] = field(default_factory=list)

    def add(self, window_report: WindowReport) -> None:
        self.windows.append(window_report)

    def finish(self) -> None:
        self.finished_at = datetime.now(timezone.utc)

    def _sum(self, attribute: str) -> int:
        return sum(getattr(window, attribute) for window in self.windows)

    @property
    def births_written(self) -> int:
        return self._sum("births_written")

    @property
    def deaths_written(self) -> int:
        return self._sum("deaths_written")

    @property
    def skipped_status(self) -> int:
        return self._sum("skipped_status")

    @property
    def failed(self) -> int:
        return self._sum("failed")

    @property
    def total(self) -> int:
        return self._sum("total")

    @property
    def aborted_windows(self) -> list[str]:
        return [window.key for window in self.windows if window.aborted]

    def to_dict(self) -> dict:
        return {
            "start": self.start,
            "end": self.end,
            "started_at": self.started_at.isoformat(),
            "finished_at": self.finished_at.isoformat() if self.finished_at else None,
            "summary": {
                "windows": len(self.windows),
                "total": self.total,
                "births_written": self.births_written,
                "deaths_written": self.deaths_written,
                "skipped_status": self.skipped_status,
                "failed": self.failed,
                "aborted_windows": self.aborted_windows,
            },
            "windows": [window.to_dict() for window in self.windows],
        }
