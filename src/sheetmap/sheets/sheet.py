"""Registered Google spreadsheet tabs and their URLs."""

import re
from dataclasses import dataclass, field

from sheetmap.errors import SheetURLError

SHEETS_URL_PREFIX = "https://docs.google.com/spreadsheets/d/"
EDIT_URL = SHEETS_URL_PREFIX + "{id}/edit#gid={gid}"
EXPORT_URL = SHEETS_URL_PREFIX + "{id}/export?gid={gid}&format=csv"

_SHEET_ID = re.compile(r"[^/?#]+")
_GID = re.compile(r"gid=([0-9]+)")


def parse_url(url: str) -> tuple[str, str]:
    """Extract (sheet_id, gid) from a Google Sheets URL.

    The gid is "" when the URL does not name a tab.

    Raises:
        SheetURLError: The URL is not a Google Sheets URL or has no sheet id.
    """
    if not url.lower().startswith(SHEETS_URL_PREFIX):
        raise SheetURLError(f"Not a Google Sheets URL: {url!r}")

    rest = url[len(SHEETS_URL_PREFIX):]
    match = _SHEET_ID.match(rest)
    if match is None:
        raise SheetURLError(f"No sheet id in URL: {url!r}")
    sheet_id = match.group(0)

    gid = _GID.search(rest[match.end():])
    return sheet_id, gid.group(1) if gid else ""


@dataclass(frozen=True)
class Sheet:
    """One spreadsheet tab and the local file its CSV export is written to.

    Two sheets are the same sheet when id and gid match; filename and
    comment are not compared.
    """

    sheet_id: str
    sheet_gid: str = ""
    local_filename: str = field(default="", compare=False)
    comment: str = field(default="", compare=False)

    @classmethod
    def from_url(cls, url: str, local_filename: str, comment: str = "") -> "Sheet":
        sheet_id, gid = parse_url(url)
        return cls(sheet_id, gid, local_filename, comment)

    @property
    def url(self) -> str:
        return EDIT_URL.format(id=self.sheet_id, gid=self.sheet_gid)

    @property
    def csv_url(self) -> str:
        return EXPORT_URL.format(id=self.sheet_id, gid=self.sheet_gid)
