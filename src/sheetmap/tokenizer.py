"""Quote-aware splitting of single CSV lines."""

from typing import Iterable

from sheetmap.types import Row

QUOTE = '"'
DELIMITER = ","


def _unquote(field: str) -> str:
    """Strip enclosing quotes and collapse doubled quotes.

    Fields shorter than two characters are never treated as quoted, so a lone
    quote stays a lone quote.
    """
    if len(field) >= 2 and field[0] == QUOTE and field[-1] == QUOTE:
        return field[1:-1].replace(QUOTE * 2, QUOTE)
    return field


def tokenize(line: str) -> Row:
    """Split one CSV line into its fields.

    Commas inside double quotes do not end a field. Unbalanced quotes are
    tolerated: the line is split using whatever quote state was last seen.
    Never raises; an empty line yields a single empty field.
    """
    fields: Row = []
    start = 0
    in_quotes = False
    for i, ch in enumerate(line):
        if ch == DELIMITER:
            if not in_quotes:
                fields.append(_unquote(line[start:i]))
                start = i + 1
        elif ch == QUOTE:
            in_quotes = not in_quotes

    fields.append(_unquote(line[start:]))
    return fields


def format_line(values: Iterable[object]) -> str:
    """Join values into a CSV line that tokenize() splits back into the same strings."""
    out = []
    for value in values:
        text = "" if value is None else str(value)
        if DELIMITER in text or QUOTE in text:
            text = QUOTE + text.replace(QUOTE, QUOTE * 2) + QUOTE
        out.append(text)
    return DELIMITER.join(out)
