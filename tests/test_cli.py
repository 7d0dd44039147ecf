"""Tests for the orphanscan command line."""

import json

import pytest

from orphanscan.cli import build_parser, main


@pytest.fixture
def isolated_env(tmp_path, monkeypatch):
    """Run from an empty directory with no connection settings in the environment."""
    monkeypatch.chdir(tmp_path)
    for var in (
        "MSSQL_SERVER", "MSSQL_USERNAME", "MSSQL_PASSWORD", "MSSQL_DATABASE",
        "SOURCE_DATABASE_URL", "ROOT_FOLDER", "RESULTS_DB_PATH", "VERBOSE",
    ):
        monkeypatch.delenv(var, raising=False)
    monkeypatch.setenv("SETTINGS_VALUE_MARKER", "portal")
    return tmp_path


class TestParser:
    def test_scan_flags_map_to_config_fields(self):
        args = build_parser().parse_args([
            "scan", "--root", "/srv", "--server", "db01", "--username", "u",
            "--password", "p", "--database", "docs", "--exclude", "*.tmp",
            "--exclude", ".git",
        ])
        assert args.root_folder == "/srv"
        assert args.mssql_server == "db01"
        assert args.mssql_database == "docs"
        assert args.exclusion_patterns == ["*.tmp", ".git"]
        assert args.verbose is None

    def test_command_required(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args([])


class TestScanCommand:
    def test_scan_prints_summary(self, isolated_env, temp_tree, source_db, capsys):
        results = str(isolated_env / "out.db")
        code = main([
            "scan", "--root", temp_tree, "--source-url", source_db,
            "--results-db", results, "--log-dir", str(isolated_env / "logs"),
        ])

        out = capsys.readouterr().out
        assert code == 0
        assert (
            "File search completed. Processed 4 files, found 1 orphaned files. "
            f"Results stored in {results}"
        ) in out

    def test_missing_connection_settings(self, isolated_env, temp_tree, capsys):
        code = main(["scan", "--root", temp_tree, "--log-dir", str(isolated_env / "logs")])

        captured = capsys.readouterr()
        assert code == 1
        assert "File search completed" not in captured.out
        assert "mssql_server" in captured.err

    def test_fatal_source_error_prints_no_summary(self, isolated_env, temp_tree, capsys):
        empty = f"sqlite:///{isolated_env / 'empty.db'}"
        code = main([
            "scan", "--root", temp_tree, "--source-url", empty,
            "--log-dir", str(isolated_env / "logs"),
        ])

        captured = capsys.readouterr()
        assert code == 1
        assert "File search completed" not in captured.out
        assert "tree_report" in captured.err or "file_link" in captured.err

    def test_invalid_link_lookup_rejected(self, isolated_env):
        with pytest.raises(SystemExit):
            main(["scan", "--root", "/srv", "--link-lookup", "sometimes"])


class TestReportCommand:
    def test_report_after_scan(self, isolated_env, temp_tree, source_db, capsys):
        results = str(isolated_env / "out.db")
        log_dir = str(isolated_env / "logs")
        main(["scan", "--root", temp_tree, "--source-url", source_db, "--results-db", results, "--log-dir", log_dir])
        capsys.readouterr()

        assert main(["report", "--results-db", results, "--log-dir", log_dir]) == 0
        summary = json.loads(capsys.readouterr().out)
        assert summary["total"] == 4
        assert summary["orphaned"] == 1

        assert main(["report", "--results-db", results, "--orphans", "--log-dir", log_dir]) == 0
        assert capsys.readouterr().out.strip().endswith("stray/lost.doc")

    def test_report_export(self, isolated_env, temp_tree, source_db, capsys):
        results = str(isolated_env / "out.db")
        log_dir = str(isolated_env / "logs")
        main(["scan", "--root", temp_tree, "--source-url", source_db, "--results-db", results, "--log-dir", log_dir])

        export = isolated_env / "orphans.json"
        code = main([
            "report", "--results-db", results, "--orphans",
            "--export", str(export), "--format", "json", "--log-dir", log_dir,
        ])

        assert code == 0
        assert len(json.loads(export.read_text(encoding="utf-8"))) == 1

    def test_report_missing_database(self, isolated_env, capsys):
        code = main(["report", "--results-db", str(isolated_env / "nope.db"), "--log-dir", str(isolated_env / "logs")])
        assert code == 1
        assert "Results database not found" in capsys.readouterr().err
