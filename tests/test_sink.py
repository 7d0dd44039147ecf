"""Tests for ResultSink upsert persistence."""

from datetime import datetime
from unittest.mock import MagicMock, patch

import pytest
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from orphanscan.core.records import ClassificationResult, SourceKind
from orphanscan.database import create_results_engine, create_tables
from orphanscan.errors import PersistenceError, TraversalError
from orphanscan.models.file_search_result import FileSearchResult
from orphanscan.sink import ResultSink


@pytest.fixture
def results_engine(make_config):
    config = make_config()
    engine = create_results_engine(config)
    create_tables(engine, config)
    yield engine
    engine.dispose()


def _result(path="/srv/a.txt", kind=SourceKind.NONE, record_id=0, module="", size=10):
    return ClassificationResult(
        path=path,
        size=size,
        last_modified=datetime(2024, 5, 1, 12, 30),
        source_kind=kind,
        record_id=record_id,
        module=module,
    )


def _rows(engine):
    with Session(engine) as session:
        return session.scalars(select(FileSearchResult).order_by(FileSearchResult.path)).all()


class TestResultSink:
    def test_writes_all_columns(self, results_engine):
        with ResultSink(results_engine) as sink:
            assert sink.write(_result(kind=SourceKind.LINKED, record_id=7, module="Contracts"))

        [row] = _rows(results_engine)
        assert row.path == "/srv/a.txt"
        assert row.size == 10
        assert row.last_modified == datetime(2024, 5, 1, 12, 30)
        assert row.table_name == "file_link"
        assert row.record_id == 7
        assert row.module == "Contracts"
        assert row.is_orphaned is False

    def test_orphan_row(self, results_engine):
        with ResultSink(results_engine) as sink:
            sink.write(_result())

        [row] = _rows(results_engine)
        assert (row.table_name, row.record_id, row.module, row.is_orphaned) == ("", 0, "", True)

    def test_upsert_keyed_by_path(self, results_engine):
        with ResultSink(results_engine) as sink:
            sink.write(_result())
        with ResultSink(results_engine) as sink:
            sink.write(_result(kind=SourceKind.ROOTED, record_id=2, size=99))

        [row] = _rows(results_engine)
        assert (row.table_name, row.record_id, row.size, row.is_orphaned) == ("tree_report", 2, 99, False)

    def test_commit_interval_batches(self, results_engine):
        sink = ResultSink(results_engine, commit_interval=2).open()
        try:
            with patch.object(sink, "commit", wraps=sink.commit) as commit:
                for i in range(5):
                    sink.write(_result(path=f"/srv/{i}.txt"))
                assert commit.call_count == 2
        finally:
            sink.close()
        assert len(_rows(results_engine)) == 5
        assert sink.written == 5

    def test_failed_row_is_not_fatal(self, results_engine):
        with ResultSink(results_engine) as sink:
            real_conn = sink._conn
            calls = {"n": 0}

            def _execute(stmt, params):
                calls["n"] += 1
                if calls["n"] == 1:
                    raise IntegrityError("INSERT", params, Exception("constraint failed"))
                return real_conn.execute(stmt, params)

            sink._conn = MagicMock(wraps=real_conn)
            sink._conn.execute.side_effect = _execute
            try:
                assert sink.write(_result(path="/srv/bad.txt")) is False
                assert sink.write(_result(path="/srv/good.txt")) is True
            finally:
                sink._conn = real_conn

        assert [r.path for r in _rows(results_engine)] == ["/srv/good.txt"]
        assert sink.failed == 1

    def test_write_before_open(self, results_engine):
        with pytest.raises(PersistenceError):
            ResultSink(results_engine).write(_result())

    def test_unencodable_path_is_not_fatal(self, results_engine):
        with ResultSink(results_engine) as sink:
            assert sink.write(_result(path="/srv/bad\udcff.txt")) is False
            assert sink.write(_result(path="/srv/good.txt")) is True

        assert [r.path for r in _rows(results_engine)] == ["/srv/good.txt"]
        assert (sink.written, sink.failed) == (1, 1)

    def test_commit_failure_does_not_mask_fatal_error(self, results_engine):
        """The error that stopped the run is the one the caller sees."""
        sink = ResultSink(results_engine)
        with pytest.raises(TraversalError):
            with sink:
                sink.write(_result())
                sink.commit = MagicMock(side_effect=PersistenceError("commit failed"))
                raise TraversalError("/srv", "Permission denied")
        assert sink._conn is None

    def test_commit_failure_raised_on_clean_exit(self, results_engine):
        sink = ResultSink(results_engine)
        with pytest.raises(PersistenceError):
            with sink:
                sink.write(_result())
                sink.commit = MagicMock(side_effect=PersistenceError("commit failed"))
