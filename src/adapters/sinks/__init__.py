"""Output sinks for export rows."""

from src.adapters.sinks.csv_sink import CSVSink, open_report_sinks

__all__ = ["CSVSink", "open_report_sinks"]
