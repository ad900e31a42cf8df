"""Download every registered sheet to its local file."""

import logging
from pathlib import Path
from typing import Callable, Iterable

from sheetmap.errors import DownloadError
from sheetmap.sheets.client import SheetClient
from sheetmap.sheets.sheet import Sheet

logger = logging.getLogger(__name__)

# (sheets done, sheets total)
ProgressCallback = Callable[[int, int], None]


def download_sheet(client: SheetClient, sheet: Sheet, base_dir: str | Path = ".") -> Path:
    """Fetch one sheet and write its CSV text to base_dir / local_filename."""
    text = client.fetch_csv(sheet)
    path = Path(base_dir) / sheet.local_filename
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8", newline="")
    return path


def download_all(
    client: SheetClient,
    sheets: Iterable[Sheet],
    base_dir: str | Path = ".",
    on_progress: ProgressCallback | None = None,
) -> list[Sheet]:
    """Download sheets one after another.

    A sheet that fails to download or write is logged and skipped; the rest
    are still processed.

    Returns the sheets that were written.
    """
    sheets = list(sheets)
    done: list[Sheet] = []
    for i, sheet in enumerate(sheets):
        try:
            path = download_sheet(client, sheet, base_dir)
        except DownloadError as e:
            logger.error("%s", e)
        except OSError as e:
            logger.error("Unable to write to file %r: %s", sheet.local_filename, e)
        else:
            logger.info("Downloaded %s -> %s", sheet.sheet_id, path)
            done.append(sheet)

        if on_progress is not None:
            on_progress(i + 1, len(sheets))

    logger.info("Download complete: %d of %d sheets", len(done), len(sheets))
    return done
