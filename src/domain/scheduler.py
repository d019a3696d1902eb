"""Date Range Scheduling.

Splits an inclusive export range into calendar-month windows. The first window
starts on the requested start date, every following window starts the day
after the previous one ended, and the last window ends exactly on the
requested end date.
"""

import re
from dataclasses import dataclass
from datetime import date
from typing import Iterator

import pandas as pd

from src.domain.ports import InvalidDateRangeError

ISO_DATE_PATTERN = re.compile(r"[0-9]{4}-[0-9]{2}-[0-9]{2}")


@dataclass(frozen=True)
class MonthWindow:
    """One calendar-month slice of the export range.

    Attributes:
        index: 1-based position of the window
        total: Total number of windows in the range
        start: First day of the window (inclusive)
        end: Last day of the window (inclusive)
    """
    index: int
    total: int
    start: date
    end: date

    @property
    def start_timestamp(self) -> str:
        """Start of the first day, as used in store range queries."""
        return f"{self.start:%Y-%m-%d}T00:00:00.000Z"

    @property
    def end_timestamp(self) -> str:
        """End of the last day, as used in store range queries."""
        return f"{self.end:%Y-%m-%d}T23:59:59.000Z"

    @property
    def label(self) -> str:
        return f"{self.start:%B} of {self.start:%Y}"

    @property
    def key(self) -> str:
        """Stable identifier of the window (used for checkpoints)."""
        return f"{self.start:%Y-%m-%d}/{self.end:%Y-%m-%d}"


def parse_export_date(value: str) -> date:
    """Parse a calendar date written as YYYY-MM-DD.

    Relative words ("now", "today") and locale formats ("01/02/2022") are
    rejected rather than guessed.

    Raises:
        InvalidDateRangeError: If the value is empty or not a valid date
    """
    if not isinstance(value, str) or not ISO_DATE_PATTERN.fullmatch(value.strip()):
        raise InvalidDateRangeError(f"Invalid date '{value}': expected YYYY-MM-DD", start=value)
    try:
        return date.fromisoformat(value.strip())
    except ValueError as e:
        raise InvalidDateRangeError(f"Invalid date '{value}': {e}", start=value) from e


class DateRangeScheduler:
    """Produces the month windows of an inclusive date range.

    Example Usage:
        ```python
        scheduler = DateRangeScheduler.from_strings("2022-01-01", "2022-03-15")
        for window in scheduler.windows():
            print(window.start_timestamp, window.end_timestamp)
        ```
    """

    def __init__(self, start: date, end: date):
        if end < start:
            raise InvalidDateRangeError(
                f"End date {end.isoformat()} is before start date {start.isoformat()}",
                start=start.isoformat(),
                end=end.isoformat()
            )
        self.start = start
        self.end = end

    @classmethod
    def from_strings(cls, start: str, end: str) -> 'DateRangeScheduler':
        return cls(parse_export_date(start), parse_export_date(end))

    def _periods(self) -> pd.PeriodIndex:
        return pd.period_range(start=pd.Timestamp(self.start), end=pd.Timestamp(self.end), freq="M")

    @property
    def total_months(self) -> int:
        """Calendar-month span of the range plus one."""
        return len(self._periods())

    def windows(self) -> Iterator[MonthWindow]:
        periods = self._periods()
        total = len(periods)
        for index, period in enumerate(periods, start=1):
            yield MonthWindow(
                index=index,
                total=total,
                start=max(self.start, period.start_time.date()),
                end=min(self.end, period.end_time.date()),
            )
