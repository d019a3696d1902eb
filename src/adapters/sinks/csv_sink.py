"""CSV Report Sink.

Appends export rows to one CSV report per event type. The file is opened in
append mode; the upper-case header labels are written once when the sink is
opened, so each run starts with its own header line.
"""

import csv
import logging
from pathlib import Path

from src.domain.full_composition import EventType
from src.domain.ports import RowSinkPort
from src.domain.rows import BIRTH_COLUMNS, BIRTH_HEADER_LABELS, DEATH_COLUMNS, DEATH_HEADER_LABELS

logger = logging.getLogger(__name__)

REPORT_FILE_NAMES = {
    EventType.BIRTH: "Birth_Report.csv",
    EventType.DEATH: "Death_Report.csv",
}


class CSVSink(RowSinkPort):
    """Append-only CSV writer with a fixed column order.

    Parameters:
        path: Report file path
        columns: Column keys in output order
        header_labels: Column key to header label
    """

    def __init__(self, path: Path, columns: list[str], header_labels: dict[str, str]):
        self.path = Path(path)
        self.columns = columns
        self.rows_written = 0

        self.path.parent.mkdir(parents=True, exist_ok=True)
        self._file = open(self.path, "a", newline="", encoding="utf-8")
        self._writer = csv.DictWriter(self._file, fieldnames=columns, extrasaction="raise")
        self._writer.writerow({column: header_labels.get(column, column) for column in columns})
        self._file.flush()
        logger.debug(f"Opened report {self.path}")

    def append(self, row: dict) -> None:
        self._writer.writerow(row)
        self._file.flush()
        self.rows_written += 1

    def close(self) -> None:
        if not self._file.closed:
            self._file.close()
            logger.info(f"Wrote {self.rows_written} row(s) to {self.path}")

    def __enter__(self) -> 'CSVSink':
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


def open_report_sinks(output_dir: str) -> dict[EventType, CSVSink]:
    """Open the birth and death report sinks under ``output_dir``."""
    directory = Path(output_dir)
    birth = CSVSink(directory / REPORT_FILE_NAMES[EventType.BIRTH], BIRTH_COLUMNS, BIRTH_HEADER_LABELS)
    try:
        death = CSVSink(directory / REPORT_FILE_NAMES[EventType.DEATH], DEATH_COLUMNS, DEATH_HEADER_LABELS)
    except OSError:
        birth.close()
        raise
    return {EventType.BIRTH: birth, EventType.DEATH: death}
