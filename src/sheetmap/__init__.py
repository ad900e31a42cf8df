"""sheetmap — read CSV text into raw rows or typed records."""

from sheetmap.errors import (
    ConfigurationError,
    ConversionError,
    DownloadError,
    SheetMapError,
    SheetURLError,
)
from sheetmap.reader import ErrorPolicy, read_raw, read_records
from sheetmap.tokenizer import format_line, tokenize

__all__ = [
    "read_raw",
    "read_records",
    "ErrorPolicy",
    "tokenize",
    "format_line",
    "SheetMapError",
    "ConfigurationError",
    "ConversionError",
    "SheetURLError",
    "DownloadError",
]
