"""Command-line entry point.

Usage:
    orphanscan scan --root D:\\Files --server db01 --username u --password p --database docs
    orphanscan scan --root /srv/files --verbose
    orphanscan report --orphans --limit 50
    orphanscan report --export orphans.csv --format csv --orphans

Connection settings not given as flags are read from the environment or a
.env file (MSSQL_SERVER, MSSQL_USERNAME, ..., SOURCE_DATABASE_URL).

Exit codes:
    0 — run completed
    1 — fatal error (no summary printed)
"""

import argparse
import json
import os
import sys
from typing import Optional

from pydantic import ValidationError

from .config import OrphanScanConfig, get_config
from .database import create_results_engine
from .errors import OrphanScanError
from .reconciler import run_scan
from .report import ResultReporter
from .utils.logging import get_logger, setup_logging

logger = get_logger("cli")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="orphanscan",
        description="Find files that no database record refers to",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    scan = sub.add_parser("scan", help="Reconcile a folder against the database")
    scan.add_argument("--root", dest="root_folder", help="Root folder to search")
    scan.add_argument("--server", dest="mssql_server", help="MS SQL Server address")
    scan.add_argument("--username", dest="mssql_username", help="MS SQL Server username")
    scan.add_argument("--password", dest="mssql_password", help="MS SQL Server password")
    scan.add_argument("--database", dest="mssql_database", help="MS SQL Server database name")
    scan.add_argument("--source-url", dest="source_database_url", help="SQLAlchemy URL of the source database")
    scan.add_argument("--results-db", dest="results_db_path", help="SQLite results file")
    scan.add_argument(
        "--link-lookup",
        choices=["preload", "query"],
        help="Preload file_link rows or query them per file",
    )
    scan.add_argument(
        "--exclude",
        dest="exclusion_patterns",
        action="append",
        help="fnmatch pattern of file/dir names to skip (repeatable)",
    )
    scan.add_argument("--log-dir", help="Directory for the rotating log file")
    scan.add_argument("--verbose", action="store_true", default=None, help="Enable verbose output")

    report = sub.add_parser("report", help="Inspect the results of a previous scan")
    report.add_argument("--results-db", dest="results_db_path", help="SQLite results file")
    report.add_argument("--orphans", action="store_true", help="List orphaned files only")
    report.add_argument("--limit", type=int, default=None, help="Maximum rows to list")
    report.add_argument("--export", dest="export_path", help="Write results to this file")
    report.add_argument("--format", dest="export_format", choices=["csv", "json"], default="csv")
    report.add_argument("--log-dir", help="Directory for the rotating log file")
    report.add_argument("--verbose", action="store_true", default=None, help="Enable verbose output")

    return parser


def _config_from_args(args: argparse.Namespace) -> OrphanScanConfig:
    overrides = {
        key: getattr(args, key, None)
        for key in (
            "root_folder",
            "mssql_server",
            "mssql_username",
            "mssql_password",
            "mssql_database",
            "source_database_url",
            "results_db_path",
            "link_lookup",
            "exclusion_patterns",
            "log_dir",
            "verbose",
        )
    }
    return get_config(**overrides)


def cmd_scan(config: OrphanScanConfig) -> int:
    summary = run_scan(config)
    logger.info("scan_summary", **summary.as_dict())
    print(
        f"File search completed. Processed {summary.files_processed} files, "
        f"found {summary.files_orphaned} orphaned files. "
        f"Results stored in {summary.results_path}"
    )
    if summary.files_failed:
        print(f"{summary.files_failed} files could not be classified or stored; see the log.")
    return 0


def cmd_report(config: OrphanScanConfig, args: argparse.Namespace) -> int:
    if not os.path.exists(config.results_db_path):
        raise OrphanScanError(f"Results database not found: {config.results_db_path}")

    engine = create_results_engine(config)
    try:
        reporter = ResultReporter(engine)
        if args.export_path:
            count = reporter.export(args.export_path, args.export_format, orphaned_only=args.orphans)
            print(f"Exported {count} results to {args.export_path}")
        elif args.orphans:
            for row in reporter.orphans(limit=args.limit):
                print(row["path"])
        else:
            print(json.dumps(reporter.summary(), indent=2))
    finally:
        engine.dispose()
    return 0


def main(argv: Optional[list[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        config = _config_from_args(args)
    except ValidationError as exc:
        print(f"Invalid configuration: {exc}", file=sys.stderr)
        return 1

    setup_logging(
        debug=config.verbose,
        log_dir=config.log_dir,
        log_max_bytes=config.log_max_bytes,
        log_backup_count=config.log_backup_count,
    )

    try:
        if args.command == "scan":
            return cmd_scan(config)
        return cmd_report(config, args)
    except OrphanScanError as exc:
        logger.error("run_aborted", command=args.command, error=str(exc))
        print(f"Error: {exc}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
