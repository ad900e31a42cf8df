"""Persisted list of registered sheets."""

import logging

from sheetmap.db import DatabaseService
from sheetmap.sheets.sheet import Sheet

logger = logging.getLogger(__name__)

SHEETS_DDL = """
CREATE TABLE IF NOT EXISTS sheets (
    sheet_id       VARCHAR(128) NOT NULL,
    sheet_gid      VARCHAR(32)  NOT NULL,
    local_filename VARCHAR(1024) NOT NULL,
    comment        VARCHAR(1024) NOT NULL DEFAULT '',
    position       INTEGER      NOT NULL,
    PRIMARY KEY (sheet_id, sheet_gid)
);
"""

SHEETS_TABLE = "sheets"
SHEETS_COLUMNS = ["sheet_id", "sheet_gid", "local_filename", "comment", "position"]
SHEETS_CONFLICT_COLUMNS = ["sheet_id", "sheet_gid"]
SHEETS_UPDATE_COLUMNS = ["local_filename", "comment"]


def ensure_sheet_schema(service: DatabaseService) -> None:
    """Create the sheets table if it doesn't exist."""
    service.execute_ddl(SHEETS_DDL)


def add_sheet(service: DatabaseService, sheet: Sheet) -> None:
    """Register a sheet.

    Idempotent: re-adding a sheet updates its filename and comment and keeps
    its place in the list.
    """
    with service.transaction():
        rows = service.execute(f"SELECT COALESCE(MAX(position), 0) AS max_position FROM {SHEETS_TABLE}")
        position = rows[0]["max_position"] + 1
        service.upsert(
            SHEETS_TABLE,
            SHEETS_COLUMNS,
            (sheet.sheet_id, sheet.sheet_gid, sheet.local_filename, sheet.comment, position),
            SHEETS_CONFLICT_COLUMNS,
            SHEETS_UPDATE_COLUMNS,
        )
    logger.info("Registered sheet %s/%s -> %s", sheet.sheet_id, sheet.sheet_gid, sheet.local_filename)


def remove_sheet(service: DatabaseService, sheet: Sheet) -> bool:
    """Unregister a sheet. Returns False if it was not registered."""
    p = service.placeholder
    with service.transaction():
        found = service.execute(
            f"SELECT sheet_id FROM {SHEETS_TABLE} WHERE sheet_id = {p} AND sheet_gid = {p}",
            (sheet.sheet_id, sheet.sheet_gid),
        )
        if found:
            service.execute(
                f"DELETE FROM {SHEETS_TABLE} WHERE sheet_id = {p} AND sheet_gid = {p}",
                (sheet.sheet_id, sheet.sheet_gid),
            )
    if found:
        logger.info("Removed sheet %s/%s", sheet.sheet_id, sheet.sheet_gid)
    return bool(found)


def list_sheets(service: DatabaseService) -> list[Sheet]:
    """Return registered sheets in the order they were added."""
    with service.transaction():
        rows = service.execute(
            f"SELECT sheet_id, sheet_gid, local_filename, comment FROM {SHEETS_TABLE} "
            "ORDER BY position"
        )
    return [
        Sheet(row["sheet_id"], row["sheet_gid"], row["local_filename"], row["comment"])
        for row in rows
    ]
