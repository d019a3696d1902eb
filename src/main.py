"""Main entry point for the VS-Export vital statistics export.

This module runs the export of birth and death records over an inclusive date
range, month by month, from the Hearth document store into the birth and
death CSV reports.

Usage:
    python -m src.main 2022-01-01 2022-03-15

Architecture:
    - Follows Hexagonal Architecture principles
    - The document store is created once, passed down, and closed on every exit path
    - Each root record is isolated: a failure skips that record only
    - A store failure while advancing the cursor aborts that window only
"""

import argparse
import logging
import sys
from typing import Optional

from src.adapters.sinks import open_report_sinks
from src.adapters.storage import InMemoryDocumentStore, MongoDocumentStore
from src.domain.documents import COLLECTION_NAMES, Composition, Location, Task
from src.domain.full_composition import EventType
from src.domain.ports import (
    DocumentStorePort,
    DocumentValidationError,
    ExportError,
    InvalidDateRangeError,
    ResolutionError,
    RowSinkPort,
    StoreError,
)
from src.domain.reports import (
    UNKNOWN_COMPOSITION_ID,
    ExportReport,
    RecordOutcome,
    SkipReason,
    WindowReport,
)
from src.domain.scheduler import DateRangeScheduler, MonthWindow
from src.domain.services import CompositionResolver, LocationHierarchyResolver, build_row
from src.infrastructure.checkpoint import ExportCheckpoint, load_checkpoint
from src.infrastructure.export_report import print_export_report_summary, save_export_report
from src.infrastructure.logging_config import setup_logging
from src.infrastructure.settings import settings

logger = logging.getLogger(__name__)

# Business statuses of records that are exported
EXPORTABLE_STATUSES = frozenset({"CERTIFIED", "REGISTERED"})


def create_document_store() -> DocumentStorePort:
    """Create and connect the document store selected by configuration.

    Returns:
        DocumentStorePort: Connected store

    Raises:
        StoreError: If the store cannot be reached or loaded
    """
    db_config = settings.db_config

    if db_config.db_type == "mongodb":
        logger.info(f"Connecting to MongoDB database '{db_config.database}'")
        store = MongoDocumentStore(db_config=db_config)
        store.connect()
        return store
    elif db_config.db_type == "memory":
        if not db_config.db_path:
            logger.info("Using empty in-memory store")
            return InMemoryDocumentStore()
        logger.info(f"Loading in-memory store from {db_config.db_path}")
        return InMemoryDocumentStore.from_directory(db_config.db_path)
    else:
        raise StoreError(f"Unsupported database type: {db_config.db_type}", operation="connect")


def find_task(store: DocumentStorePort, composition_id: str) -> Task:
    """Fetch the Task whose focus is the composition (the first one returned).

    Raises:
        ResolutionError: If no Task references the composition
    """
    reference = f"Composition/{composition_id}"
    tasks = store.find_by_field(COLLECTION_NAMES.TASK, "focus.reference", reference)
    if not tasks:
        raise ResolutionError(f"Task for composition {composition_id} not found", reference=reference)
    return tasks[0]


def process_record(
    composition: Composition,
    store: DocumentStorePort,
    resolver: CompositionResolver,
    sinks: dict[EventType, RowSinkPort]
) -> RecordOutcome:
    """Export one root record.

    Parameters:
        composition: Root event record
        store: Document store (for the Task lookup)
        resolver: Resolver bound to the window's Location set
        sinks: Output sink per event type

    Returns:
        RecordOutcome: Written, or skipped for its business status

    Raises:
        Exception: Any failure to resolve, build or write this record
    """
    task = find_task(store, composition.id)
    status = task.business_status_code
    if status not in EXPORTABLE_STATUSES:
        logger.debug(f"Skipping composition {composition.id} with business status {status}")
        return RecordOutcome.skipped(composition.id, SkipReason.STATUS)

    full_composition = resolver.resolve(composition, task)
    row = build_row(full_composition)
    sinks[full_composition.event].append(row.to_record())
    return RecordOutcome.written(composition.id, full_composition.event)


def process_window(
    window: MonthWindow,
    store: DocumentStorePort,
    sinks: dict[EventType, RowSinkPort]
) -> WindowReport:
    """Export every root record of one month window.

    Per-record failures are recorded and skipped. A store failure while
    opening or advancing the cursor aborts the window.

    Returns:
        WindowReport: Counts for the window
    """
    report = WindowReport.for_window(window)
    logger.info(
        f"Processing {window.label} ({window.index}/{window.total}): "
        f"{window.start_timestamp} to {window.end_timestamp}"
    )

    try:
        cursor = store.find_compositions(window.start_timestamp, window.end_timestamp)
        report.total = cursor.count()
    except ExportError as e:
        logger.error(f"Failed to open records for {window.label}: {str(e)}")
        report.abort(str(e))
        return report

    if report.total == 0:
        logger.info(f"No record found for {window.label}")
        cursor.close()
        return report

    try:
        locations: list[Location] = store.find_by_ids(COLLECTION_NAMES.LOCATION, [], skip_invalid=True)
        resolver = CompositionResolver(store, LocationHierarchyResolver(locations))
        logger.info(f"Found {report.total} record(s) and {len(locations)} location(s) for {window.label}")

        while True:
            try:
                composition = next(cursor)
            except StopIteration:
                break
            except DocumentValidationError as e:
                logger.error(f"Skipping malformed composition {e.document_id}: {str(e)}")
                report.record(RecordOutcome.skipped(
                    e.document_id or UNKNOWN_COMPOSITION_ID, SkipReason.ERROR, error=e
                ))
                continue

            try:
                outcome = process_record(composition, store, resolver, sinks)
            except Exception as e:
                logger.error(
                    f"Skipping composition {composition.id}: {type(e).__name__}: {str(e)}",
                    extra={"composition_id": composition.id, "window": window.key}
                )
                outcome = RecordOutcome.skipped(composition.id, SkipReason.ERROR, error=e)
            report.record(outcome)

            percent = min(100, report.processed * 100 // report.total)
            logger.info(f"{window.label}: {percent}% ({report.processed}/{report.total})")
    except ExportError as e:
        logger.error(f"Aborting {window.label} after {report.processed} record(s): {str(e)}")
        report.abort(str(e))
    finally:
        cursor.close()

    return report


def run_export(
    scheduler: DateRangeScheduler,
    store: DocumentStorePort,
    sinks: dict[EventType, RowSinkPort],
    checkpoint: Optional[ExportCheckpoint] = None
) -> ExportReport:
    """Export every window of the range.

    The store and the sinks are closed when the run ends, on every exit path.

    Parameters:
        scheduler: Month windows of the requested range
        store: Connected document store
        sinks: Output sink per event type
        checkpoint: Completed-window checkpoint (optional)

    Returns:
        ExportReport: Per-window counts of the run
    """
    report = ExportReport(start=scheduler.start.isoformat(), end=scheduler.end.isoformat())
    logger.info(f"Exporting {report.start} to {report.end} in {scheduler.total_months} window(s)")

    try:
        for window in scheduler.windows():
            if checkpoint is not None and checkpoint.is_completed(window.key):
                logger.info(f"Skipping {window.label}: already completed")
                window_report = WindowReport.for_window(window)
                window_report.resumed = True
                report.add(window_report)
                continue

            window_report = process_window(window, store, sinks)
            report.add(window_report)
            if checkpoint is not None and window_report.completed:
                checkpoint.mark_completed(window.key)
    finally:
        for sink in sinks.values():
            sink.close()
        store.close()
        report.finish()

    logger.info(
        f"Export finished: {report.births_written} birth row(s), {report.deaths_written} death row(s), "
        f"{report.skipped_status} skipped for status, {report.failed} failed"
    )
    return report


def main(argv: Optional[list[str]] = None) -> int:
    """Main entry point for the export.

    Returns:
        int: 0 on completion (including zero records), 1 on a startup error
    """
    parser = argparse.ArgumentParser(
        description=f"{settings.app_name} - Birth and death report export",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Export the first quarter of 2022
  python -m src.main 2022-01-01 2022-03-31

  # Export from a JSON dump instead of MongoDB
  export VS_DB_TYPE=memory
  export VS_DB_PATH=dump/
  python -m src.main 2022-01-01 2022-03-31
        """
    )
    parser.add_argument("start", type=str, help="Start date, inclusive (YYYY-MM-DD)")
    parser.add_argument("end", type=str, help="End date, inclusive (YYYY-MM-DD)")
    args = parser.parse_args(argv)

    setup_logging(use_json=settings.log_json, log_level=settings.log_level)

    try:
        scheduler = DateRangeScheduler.from_strings(args.start, args.end)
    except InvalidDateRangeError as e:
        logger.error(f"Invalid date range: {str(e)}")
        return 1

    logger.info(f"Starting {settings.app_name}...")
    logger.info(f"Output directory: {settings.output_dir}")

    try:
        logger.info(f"Database type: {settings.db_config.db_type}")
        checkpoint = load_checkpoint(settings.checkpoint_path)
        store = create_document_store()
    except (StoreError, ValueError) as e:
        logger.error(f"Failed to initialize: {str(e)}")
        return 1

    try:
        sinks = open_report_sinks(settings.output_dir)
    except OSError as e:
        logger.error(f"Failed to open reports in {settings.output_dir}: {str(e)}")
        store.close()
        return 1

    report = run_export(scheduler, store, sinks, checkpoint=checkpoint)
    print_export_report_summary(report)

    if settings.save_export_report:
        save_result = save_export_report(report, settings.export_report_dir)
        if save_result.is_success():
            logger.info(f"Export report saved to: {save_result.value}")
        else:
            logger.warning(f"Failed to save export report: {save_result.error}")
    else:
        logger.info("Export report file saving is disabled (VS_SAVE_EXPORT_REPORT=false)")

    return 0


if __name__ == "__main__":
    sys.exit(main())
