"""Google Sheets CSV export client with retry and mock support."""

import logging
import time
from abc import ABC, abstractmethod

import requests

from sheetmap.errors import DownloadError
from sheetmap.sheets.sheet import Sheet

logger = logging.getLogger(__name__)


class SheetClient(ABC):
    """Abstract interface for fetching a sheet's CSV export."""

    @abstractmethod
    def fetch_csv(self, sheet: Sheet) -> str:
        """Fetch the CSV text of one sheet tab.

        Raises:
            DownloadError: The sheet could not be fetched.
        """


class GoogleSheetsClient(SheetClient):
    """Fetches CSV exports over HTTP with exponential backoff retry.

    Redirects are limited to one: the export endpoint redirects once to the
    file host, while a sheet that is not shared publicly keeps redirecting
    to the sign-in page.
    """

    def __init__(
        self,
        session: requests.Session | None = None,
        max_retries: int = 3,
        base_delay: float = 1.0,
        timeout: float = 10,
    ):
        self._session = session or requests.Session()
        self._session.max_redirects = 1
        self._max_retries = max_retries
        self._base_delay = base_delay
        self._timeout = timeout

    def fetch_csv(self, sheet: Sheet) -> str:
        url = sheet.csv_url
        for attempt in range(self._max_retries):
            try:
                resp = self._session.get(url, timeout=self._timeout)
                resp.raise_for_status()
                # Google omits the charset; requests would fall back to latin-1
                resp.encoding = "utf-8"
                return resp.text

            except requests.TooManyRedirects as e:
                raise DownloadError(
                    sheet, f"Unable to download {url}. Are sheet permissions set correctly? ({e})"
                ) from e
            except requests.RequestException as e:
                if attempt < self._max_retries - 1:
                    delay = self._base_delay * (2**attempt)
                    logger.warning(
                        "Attempt %d for %s failed: %s. Retrying in %.1fs...",
                        attempt + 1,
                        url,
                        e,
                        delay,
                    )
                    time.sleep(delay)
                else:
                    raise DownloadError(sheet, f"Unable to download {url}: {e}") from e
        raise DownloadError(sheet, f"Unable to download {url}: no attempts made")


class MockSheetClient(SheetClient):
    """Mock client serving fixed CSV text for testing."""

    DEFAULT_CSV = "Name,Age\nAlice,30\nBob,25\n"

    def __init__(self, responses: dict[str, str] | None = None, failing: set[str] | None = None):
        self._responses = responses or {}
        self._failing = failing or set()
        self.requested: list[Sheet] = []

    def fetch_csv(self, sheet: Sheet) -> str:
        self.requested.append(sheet)
        if sheet.sheet_id in self._failing:
            raise DownloadError(sheet, f"Mock failure for {sheet.sheet_id}")
        return self._responses.get(sheet.sheet_id, self.DEFAULT_CSV)
