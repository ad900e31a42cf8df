"""Exception hierarchy for sheetmap."""


class SheetMapError(Exception):
    """Base class for all sheetmap errors."""


class ConfigurationError(SheetMapError, ValueError):
    """Invalid read options or a record type that cannot be bound."""


class ConversionError(SheetMapError, ValueError):
    """A single CSV field could not be converted to its member's type."""

    def __init__(self, member: str, value: str, target_type=None, line_number: int | None = None):
        self.member = member
        self.value = value
        self.target_type = target_type
        self.line_number = line_number
        type_name = getattr(target_type, "__name__", None) or repr(target_type)
        where = f" on line {line_number}" if line_number is not None else ""
        super().__init__(f"Cannot convert {value!r} for member {member!r} to {type_name}{where}")


class SheetURLError(SheetMapError, ValueError):
    """The given URL is not a Google Sheets URL."""


class DownloadError(SheetMapError):
    """A sheet could not be fetched."""

    def __init__(self, sheet, message: str):
        self.sheet = sheet
        super().__init__(message)
