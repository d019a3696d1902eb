"""Export Report Generator.

Saves the run report of an export as JSON and prints a human-readable
summary of it, one line per month window.
"""

import json
from pathlib import Path
from typing import Optional

import pandas as pd

from src.domain.ports import Result
from src.domain.reports import ExportReport

WINDOW_COLUMNS = ["label", "total", "births_written", "deaths_written", "skipped_status", "failed", "aborted"]


def windows_frame(report: ExportReport) -> pd.DataFrame:
    """One row per window with the per-window counts."""
    return pd.DataFrame([window.to_dict() for window in report.windows], columns=WINDOW_COLUMNS)


def save_export_report(report: ExportReport, output_dir: str, file_name: Optional[str] = None) -> Result[str]:
    """Save the run report as JSON.

    Parameters:
        report: Finished export report
        output_dir: Directory receiving the report
        file_name: File name (defaults to ``export_report_<start>_<end>.json``)

    Returns:
        Result[str]: Path of the saved file, or the error
    """
    output_file = Path(output_dir) / (file_name or f"export_report_{report.start}_{report.end}.json")
    try:
        output_file.parent.mkdir(parents=True, exist_ok=True)
        with open(output_file, "w", encoding="utf-8") as f:
            json.dump(report.to_dict(), f, indent=2, default=str)
    except OSError as e:
        return Result.failure_result(
            e,
            error_details={"output_file": str(output_file)}
        )
    return Result.success_result(str(output_file))


def print_export_report_summary(report: ExportReport) -> None:
    """Print a human-readable summary of the run report."""
    print("=" * 70)
    print(f"EXPORT REPORT - {report.start} to {report.end}")
    print("=" * 70)

    print(f"\nRecords found: {report.total}")
    print(f"Birth rows written: {report.births_written}")
    print(f"Death rows written: {report.deaths_written}")
    print(f"Skipped (status): {report.skipped_status}")
    print(f"Failed: {report.failed}")

    frame = windows_frame(report)
    if not frame.empty:
        print("\nWindows:")
        print(frame.to_string(index=False))

    if report.aborted_windows:
        print("\nWARNING: Aborted windows:")
        for key in report.aborted_windows:
            print(f"  {key}")

    print("\n" + "=" * 70)
