"""Sheet registry — Google Sheets URLs, persisted sheet list and CSV downloads."""

from sheetmap.sheets.client import GoogleSheetsClient, MockSheetClient, SheetClient
from sheetmap.sheets.downloader import download_all, download_sheet
from sheetmap.sheets.sheet import Sheet, parse_url
from sheetmap.sheets.store import add_sheet, ensure_sheet_schema, list_sheets, remove_sheet

__all__ = [
    "Sheet",
    "parse_url",
    "SheetClient",
    "GoogleSheetsClient",
    "MockSheetClient",
    "download_sheet",
    "download_all",
    "ensure_sheet_schema",
    "add_sheet",
    "remove_sheet",
    "list_sheets",
]
