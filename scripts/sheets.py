"""CLI entry point for the sheet registry.

Usage:
    python -m scripts.sheets [--db-url sqlite:///sheets.db] add URL FILE [--comment TEXT]
    python -m scripts.sheets remove URL
    python -m scripts.sheets list
    python -m scripts.sheets download [--base-dir DIR] [--mock]
    python -m scripts.sheets dump FILE [--keep-header]

--db-url defaults to $SHEETMAP_DB_URL, then sqlite:///sheets.db.
"""

import argparse
import logging
import os
import sys
from pathlib import Path

from sheetmap import SheetMapError, format_line, read_raw
from sheetmap.db import DatabaseService, create_service
from sheetmap.sheets import (
    GoogleSheetsClient,
    MockSheetClient,
    Sheet,
    add_sheet,
    download_all,
    ensure_sheet_schema,
    list_sheets,
    remove_sheet,
)

DEFAULT_DB_URL = "sqlite:///sheets.db"

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Manage and download Google Sheets CSV exports")
    parser.add_argument(
        "--db-url",
        default=os.environ.get("SHEETMAP_DB_URL", DEFAULT_DB_URL),
        help="Database URL (sqlite:/// or postgresql://)",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    sub = parser.add_subparsers(dest="command", required=True)

    add = sub.add_parser("add", help="Register a sheet")
    add.add_argument("url", help="Google Sheets URL")
    add.add_argument("file", help="Local CSV filename")
    add.add_argument("--comment", default="", help="Free-form note")

    remove = sub.add_parser("remove", help="Unregister a sheet")
    remove.add_argument("url", help="Google Sheets URL")

    sub.add_parser("list", help="List registered sheets")

    download = sub.add_parser("download", help="Download every registered sheet")
    download.add_argument("--base-dir", default=".", help="Directory filenames are relative to")
    download.add_argument("--mock", action="store_true", help="Use mock client (for testing)")

    dump = sub.add_parser("dump", help="Print a CSV file as parsed rows")
    dump.add_argument("file", help="Path to CSV file")
    dump.add_argument("--keep-header", action="store_true", help="Include the first line")
    return parser


def run(args: argparse.Namespace, service: DatabaseService) -> int:
    if args.command == "add":
        add_sheet(service, Sheet.from_url(args.url, args.file, args.comment))
    elif args.command == "remove":
        sheet = Sheet.from_url(args.url, "")
        if not remove_sheet(service, sheet):
            logger.error("Sheet not registered: %s", args.url)
            return 1
    elif args.command == "list":
        for sheet in list_sheets(service):
            print(format_line([sheet.comment, sheet.local_filename, sheet.url]))
    elif args.command == "download":
        client = MockSheetClient() if args.mock else GoogleSheetsClient()
        sheets = list_sheets(service)
        done = download_all(
            client,
            sheets,
            args.base_dir,
            on_progress=lambda cur, count: logger.info("Syncing %d / %d", cur, count),
        )
        if len(done) < len(sheets):
            return 1
    elif args.command == "dump":
        for row in read_raw(Path(args.file), skip_header=not args.keep_header):
            print(" | ".join(row))
    return 0


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

    service = create_service(args.db_url)
    service.connect()
    try:
        ensure_sheet_schema(service)
        return run(args, service)
    except SheetMapError as e:
        logger.error("%s", e)
        return 1
    finally:
        service.close()


if __name__ == "__main__":
    sys.exit(main())
