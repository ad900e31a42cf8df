"""Read CSV text into raw rows or typed records."""

import enum
import io
import logging
import os
import re
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, TextIO, TypeVar

from sheetmap.binding import Member, RecordBinder
from sheetmap.conversion import convert_value
from sheetmap.errors import ConfigurationError, ConversionError
from sheetmap.tokenizer import tokenize
from sheetmap.types import Converter, Header, Row

logger = logging.getLogger(__name__)

T = TypeVar("T")

Source = str | TextIO | os.PathLike

_LINE_BREAK = re.compile(r"\r\n|\r|\n")


class ErrorPolicy(enum.Enum):
    """What happens when a field cannot be converted.

    THROW raises ConversionError and aborts the whole read. SKIP_RECORD drops
    the record being built and continues with the next line. SKIP_FIELD
    leaves the member at its default value and keeps the record.
    """

    THROW = "throw"
    SKIP_RECORD = "skip_record"
    SKIP_FIELD = "skip_field"


@contextmanager
def _open_source(source: Source) -> Iterator[TextIO]:
    """Yield a readable stream for source.

    Strings and paths are opened here and closed on exit; a caller's stream
    is left open.
    """
    if isinstance(source, str):
        with io.StringIO(source) as stream:
            yield stream
    elif isinstance(source, os.PathLike):
        with open(Path(source), encoding="utf-8", newline="") as stream:
            yield stream
    else:
        yield source


def _read_lines(stream: TextIO) -> list[str]:
    """Read the whole stream and split it on \\n, \\r\\n or \\r."""
    lines = _LINE_BREAK.split(stream.read())
    if lines and lines[-1] == "":
        lines.pop()
    return lines


def read_raw(source: Source, skip_header: bool = True) -> list[Row]:
    """Tokenize every line of source.

    Args:
        source: CSV text, an open text stream, or a path to a UTF-8 file.
        skip_header: Discard the first line.

    Returns:
        One list of field strings per line, in input order.
    """
    with _open_source(source) as stream:
        lines = _read_lines(stream)
    if skip_header:
        lines = lines[1:]
    return [tokenize(line) for line in lines]


def _convert(
    member: Member,
    token: str,
    raw: str,
    converter: Converter | None,
    line_number: int,
):
    if converter is not None:
        try:
            accepted, value = converter(token, raw)
        except Exception as e:
            raise ConversionError(member.name, raw, member.type, line_number) from e
        if accepted:
            return value
    try:
        return convert_value(raw, member.type)
    except Exception as e:
        raise ConversionError(member.name, raw, member.type, line_number) from e


def read_records(
    record_type: type[T],
    source: Source,
    read_first_line_as_header: bool = True,
    header_override: Header | None = None,
    include_non_public: bool = False,
    case_insensitive: bool = True,
    on_conversion_error: ErrorPolicy = ErrorPolicy.SKIP_RECORD,
    converter: Converter | None = None,
) -> list[T]:
    """Read CSV data into instances of record_type, one per data line.

    Args:
        record_type: Class constructible without arguments.
        source: CSV text, an open text stream, or a path to a UTF-8 file.
        read_first_line_as_header: Consume the first line as the header. If
            header_override is also set, the first line is still consumed
            but the override is used.
        header_override: Positional member names. Required when
            read_first_line_as_header is False. Empty names skip a column.
        include_non_public: Also bind underscore-prefixed members.
        case_insensitive: Match header names to members ignoring case.
        on_conversion_error: Policy for fields that fail to convert.
        converter: Called as converter(name, raw) for every bound field;
            return (True, value) to supply the value, (False, None) to fall
            back to the generic conversion.

    Returns:
        The populated records, in input order.

    Raises:
        ConfigurationError: No header source, ambiguous header name, or a
            record type that cannot be default-constructed.
        ConversionError: A field failed to convert under ErrorPolicy.THROW.
    """
    if not read_first_line_as_header and not header_override:
        raise ConfigurationError("Either read_first_line_as_header or header_override must be set")

    with _open_source(source) as stream:
        lines = _read_lines(stream)

    first_data_line = 1
    if read_first_line_as_header:
        if not lines:
            return []
        header = list(header_override) if header_override is not None else tokenize(lines[0])
        lines = lines[1:]
        first_data_line = 2
    else:
        header = list(header_override)

    binder = RecordBinder(record_type, include_non_public, case_insensitive)
    bindings = binder.bind(header)

    records: list[T] = []
    for line_number, line in enumerate(lines, start=first_data_line):
        fields = tokenize(line)
        record = binder.new_record()
        keep = True

        for position, raw in enumerate(fields[: len(bindings)]):
            member = bindings[position]
            if member is None:
                continue
            try:
                value = _convert(member, header[position], raw, converter, line_number)
                try:
                    record = binder.assign(record, member, value)
                except Exception as e:
                    raise ConversionError(member.name, raw, member.type, line_number) from e
            except ConversionError as e:
                if on_conversion_error is ErrorPolicy.THROW:
                    raise
                if on_conversion_error is ErrorPolicy.SKIP_RECORD:
                    logger.warning("Skipping record on line %d: %s", line_number, e)
                    keep = False
                    break
                logger.debug("Leaving %s unchanged on line %d: %s", member.name, line_number, e)

        if keep:
            records.append(record)

    logger.debug(
        "Read %d %s records from %d data lines", len(records), record_type.__name__, len(lines)
    )
    return records
