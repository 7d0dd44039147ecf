"""Reconciliation driver — one full pass over a root folder.

Streams every file from the walker through the matcher and hands each
classification to the sink. Per-file failures (link query, upsert) are logged
and counted; only fatal errors from the walker or sink escape ``run``.
"""

from collections import Counter
from collections.abc import Iterable
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError

from .config import OrphanScanConfig
from .core.matcher import Matcher
from .core.records import ClassificationResult, FileDescriptor, ScanSummary
from .database import open_databases
from .errors import ConfigurationError
from .scanner.walker import DirectoryWalker
from .sink import ResultSink
from .sources.loader import RecordSourceLoader
from .utils.logging import get_logger

logger = get_logger("reconciler")


class Reconciler:
    def __init__(self, matcher: Matcher, sink: ResultSink, exclusion_patterns: Optional[list[str]] = None):
        self._matcher = matcher
        self._sink = sink
        self._exclusion_patterns = exclusion_patterns or []

    def classify(self, descriptor: FileDescriptor) -> ClassificationResult:
        match = self._matcher.classify(descriptor.path)
        return ClassificationResult.from_match(descriptor, match)

    def run(self, root_folder: str) -> ScanSummary:
        """Reconcile every file under ``root_folder``."""
        walker = DirectoryWalker(root_folder, self._exclusion_patterns)
        summary = self.reconcile(walker, root_folder=walker.root_folder)
        if walker.errors:
            logger.warning("traversal_errors", count=walker.errors)
        return summary

    def reconcile(self, files: Iterable[FileDescriptor], root_folder: str = "") -> ScanSummary:
        """Classify and persist each descriptor from ``files``."""
        summary = ScanSummary(root_folder=root_folder)
        by_source: Counter[str] = Counter()

        logger.info("scan_started", root=root_folder)
        for descriptor in files:
            summary.files_processed += 1
            logger.debug("file_processing", path=descriptor.path)

            try:
                result = self.classify(descriptor)
            except SQLAlchemyError as exc:
                summary.files_failed += 1
                logger.error("file_link_query_failed", path=descriptor.path, error=str(exc))
                continue

            by_source[result.source_kind.value] += 1
            if result.is_orphaned:
                summary.files_orphaned += 1
                logger.debug("file_orphaned", path=result.path)
            else:
                logger.debug(
                    "file_classified",
                    path=result.path,
                    table=result.table_name,
                    record_id=result.record_id,
                    module=result.module,
                )

            if not self._sink.write(result):
                summary.files_failed += 1

        summary.by_source = dict(by_source)
        logger.info(
            "scan_completed",
            processed=summary.files_processed,
            orphaned=summary.files_orphaned,
            failed=summary.files_failed,
        )
        return summary


def run_scan(config: OrphanScanConfig, root_folder: Optional[str] = None) -> ScanSummary:
    """Open both databases, load the record sources, and reconcile one root.

    Raises an ``OrphanScanError`` subclass on any fatal condition; the
    databases are released either way.
    """
    root = root_folder or config.root_folder
    if not root:
        raise ConfigurationError("A root folder to search is required")

    with open_databases(config) as dbs:
        loader = RecordSourceLoader(dbs.source, config)
        records = loader.load_all()
        link_lookup = loader.lookup_link if records.links is None else None
        matcher = Matcher(records, link_lookup=link_lookup)

        with ResultSink(dbs.results, commit_interval=config.commit_interval) as sink:
            reconciler = Reconciler(matcher, sink, config.exclusion_patterns)
            summary = reconciler.run(root)

    summary.results_path = config.results_db_path
    return summary
