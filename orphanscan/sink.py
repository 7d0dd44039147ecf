"""Result sink — upserts one classification per file into the results database."""

from sqlalchemy import Engine
from sqlalchemy.dialects.sqlite import insert
from sqlalchemy.exc import SQLAlchemyError

from .core.records import ClassificationResult
from .errors import PersistenceError
from .models.file_search_result import FileSearchResult
from .utils.logging import get_logger

logger = get_logger("sink")

_UPDATE_COLUMNS = ("size", "last_modified", "table_name", "record_id", "module", "is_orphaned")


def _upsert_statement():
    stmt = insert(FileSearchResult)
    return stmt.on_conflict_do_update(
        index_elements=[FileSearchResult.path],
        set_={col: stmt.excluded[col] for col in _UPDATE_COLUMNS},
    )


class ResultSink:
    """Holds one results connection open for the whole run.

    Rows are keyed by path, so writing the same tree twice leaves the table
    unchanged. A failed row is logged and reported to the caller; it does not
    stop the run. Use as a context manager so the pending batch is committed
    and the connection released on every exit path.
    """

    def __init__(self, engine: Engine, commit_interval: int = 500):
        self._engine = engine
        self._commit_interval = commit_interval
        self._stmt = _upsert_statement()
        self._conn = None
        self._pending = 0
        self.written = 0
        self.failed = 0

    def open(self) -> "ResultSink":
        try:
            self._conn = self._engine.connect()
        except SQLAlchemyError as exc:
            raise PersistenceError(f"Error opening results database: {exc}") from exc
        return self

    def write(self, result: ClassificationResult) -> bool:
        """Upsert one result. Returns False when the row could not be written."""
        if self._conn is None:
            raise PersistenceError("ResultSink.write called before open()")
        try:
            self._conn.execute(self._stmt, result.to_row())
        except (SQLAlchemyError, UnicodeError) as exc:
            self.failed += 1
            logger.error("result_upsert_failed", path=result.path, error=str(exc))
            return False

        self.written += 1
        self._pending += 1
        if self._pending >= self._commit_interval:
            self.commit()
        return True

    def commit(self) -> None:
        if self._conn is None or not self._pending:
            return
        try:
            self._conn.commit()
        except SQLAlchemyError as exc:
            raise PersistenceError(f"Error committing results: {exc}") from exc
        logger.debug("results_committed", rows=self._pending)
        self._pending = 0

    def close(self) -> None:
        if self._conn is None:
            return
        try:
            self.commit()
        finally:
            self._conn.close()
            self._conn = None

    def __enter__(self) -> "ResultSink":
        return self.open()

    def __exit__(self, exc_type, exc, tb) -> None:
        if exc_type is None:
            self.close()
            return
        # Keep the in-flight error; a failed final commit is only logged.
        try:
            self.close()
        except PersistenceError as commit_exc:
            logger.error("results_commit_failed", error=str(commit_exc))
