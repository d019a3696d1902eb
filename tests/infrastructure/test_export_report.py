"""Tests for saving and printing export reports."""

import json

from src.domain.full_composition import EventType
from src.domain.reports import ExportReport, RecordOutcome, SkipReason, WindowReport
from src.infrastructure.export_report import (
    WINDOW_COLUMNS,
    print_export_report_summary,
    save_export_report,
    windows_frame,
)


def _report() -> ExportReport:
    report = ExportReport(start="2022-01-01", end="2022-02-28")

    january = WindowReport(key="2022-01-01/2022-01-31", label="January of 2022", total=3)
    january.record(RecordOutcome.written("c-1", EventType.BIRTH))
    january.record(RecordOutcome.written("c-2", EventType.DEATH))
    january.record(RecordOutcome.skipped("c-3", SkipReason.ERROR, error=KeyError("section")))
    report.add(january)

    february = WindowReport(key="2022-02-01/2022-02-28", label="February of 2022")
    february.abort("connection reset")
    report.add(february)

    report.finish()
    return report


class TestSaveExportReport:
    """Test suite for the JSON run report."""

    def test_saves_default_file_name(self, tmp_path):
        result = save_export_report(_report(), str(tmp_path))

        assert result.is_success()
        assert result.value.endswith("export_report_2022-01-01_2022-02-28.json")
        data = json.loads(open(result.value, encoding="utf-8").read())
        assert data["summary"]["births_written"] == 1
        assert data["summary"]["failed"] == 1
        assert data["summary"]["aborted_windows"] == ["2022-02-01/2022-02-28"]
        assert data["windows"][0]["failures"] == [
            {"composition_id": "c-3", "error_type": "KeyError", "error": "'section'"}
        ]

    def test_unwritable_directory_is_a_failure_result(self, tmp_path):
        blocker = tmp_path / "blocker"
        blocker.write_text("file, not a directory")

        result = save_export_report(_report(), str(blocker / "reports"))

        assert result.is_failure()
        assert "output_file" in result.error_details


class TestWindowsFrame:
    def test_one_row_per_window(self):
        frame = windows_frame(_report())

        assert list(frame.columns) == WINDOW_COLUMNS
        assert frame["total"].tolist() == [3, 0]
        assert frame["aborted"].tolist() == [False, True]

    def test_summary_prints_aborted_windows(self, capsys):
        print_export_report_summary(_report())

        output = capsys.readouterr().out
        assert "EXPORT REPORT - 2022-01-01 to 2022-02-28" in output
        assert "January of 2022" in output
        assert "2022-02-01/2022-02-28" in output
