"""Database engines, table creation, and the scoped lifetime of a scan's connections."""

from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass

from sqlalchemy import Engine, create_engine, text
from sqlalchemy.exc import SQLAlchemyError

from .config import OrphanScanConfig
from .errors import PersistenceError, RecordSourceError
from .models.base import Base
from .utils.logging import get_logger

logger = get_logger("database")


def create_source_engine(config: OrphanScanConfig) -> Engine:
    """Create the engine for the SQL Server holding the record sources."""
    return create_engine(
        config.source_url(),
        echo=False,
        pool_pre_ping=True,
    )


def create_results_engine(config: OrphanScanConfig) -> Engine:
    """Create the engine for the local SQLite results database."""
    return create_engine(
        config.results_url,
        echo=False,
        connect_args={"timeout": 30},
    )


def _enable_wal_mode(engine: Engine, config: OrphanScanConfig) -> None:
    """Enable WAL journal mode and performance PRAGMAs for SQLite."""
    if not config.db_wal_mode:
        return
    with engine.begin() as conn:
        conn.execute(text("PRAGMA journal_mode=WAL"))
        conn.execute(text(f"PRAGMA busy_timeout={config.db_busy_timeout}"))
        conn.execute(text(f"PRAGMA synchronous={config.db_synchronous}"))
    logger.debug(
        "sqlite_pragmas_applied",
        busy_timeout=config.db_busy_timeout,
        synchronous=config.db_synchronous,
    )


def create_tables(engine: Engine, config: OrphanScanConfig) -> None:
    """Create the results table if missing and apply performance PRAGMAs."""
    Base.metadata.create_all(engine)
    _enable_wal_mode(engine, config)


@dataclass
class ScanDatabases:
    """The two engines a scan holds for its whole duration."""

    source: Engine
    results: Engine


@contextmanager
def open_databases(config: OrphanScanConfig) -> Iterator[ScanDatabases]:
    """Acquire both engines for one run and dispose them on every exit path."""
    try:
        source = create_source_engine(config)
    except SQLAlchemyError as exc:
        raise RecordSourceError("source database", str(exc)) from exc

    results = None
    try:
        try:
            results = create_results_engine(config)
            create_tables(results, config)
        except SQLAlchemyError as exc:
            raise PersistenceError(
                f"Error creating SQLite database {config.results_db_path}: {exc}"
            ) from exc

        logger.info("databases_opened", results_db=config.results_db_path)
        yield ScanDatabases(source=source, results=results)
    finally:
        if results is not None:
            results.dispose()
        source.dispose()
        logger.debug("databases_closed")
