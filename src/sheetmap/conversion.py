"""Generic string-to-type conversion for CSV field values."""

import enum
import types
import typing
from datetime import date, datetime, time
from decimal import Decimal, InvalidOperation
from typing import Any

_TRUE = "true"
_FALSE = "false"
# str(raw) would split into characters
_CONTAINERS = (list, tuple, set, frozenset, dict)


def _is_union(target_type) -> bool:
    origin = typing.get_origin(target_type)
    return origin is typing.Union or origin is types.UnionType


def _to_bool(raw: str) -> bool:
    text = raw.strip().lower()
    if text == _TRUE:
        return True
    if text == _FALSE:
        return False
    raise ValueError(f"Not a boolean: {raw!r}")


def _to_decimal(raw: str) -> Decimal:
    try:
        return Decimal(raw.strip())
    except InvalidOperation as e:
        raise ValueError(f"Not a decimal: {raw!r}") from e


def _to_enum(raw: str, enum_type: type[enum.Enum]) -> enum.Enum:
    text = raw.strip()
    for member in enum_type:
        if member.name.lower() == text.lower():
            return member
    for member in enum_type:
        if str(member.value) == text:
            return member
    raise ValueError(f"{raw!r} is not a member of {enum_type.__name__}")


def _convert_union(raw: str, target_type) -> Any:
    args = typing.get_args(target_type)
    if type(None) in args and raw == "":
        return None

    errors = []
    for arg in args:
        if arg is type(None):
            continue
        try:
            return convert_value(raw, arg)
        except (ValueError, TypeError) as e:
            errors.append(e)
    raise ValueError(f"{raw!r} matches none of {args}: {errors}")


def convert_value(raw: str, target_type) -> Any:
    """Convert a raw CSV string to target_type.

    Raises ValueError or TypeError when the string cannot be converted.
    """
    if target_type is None or target_type is Any or target_type is str:
        return raw

    if _is_union(target_type):
        return _convert_union(raw, target_type)

    if typing.get_origin(target_type) is typing.Literal:
        for literal in typing.get_args(target_type):
            if str(literal) == raw:
                return literal
        raise ValueError(f"{raw!r} is not one of {typing.get_args(target_type)}")

    # bool before int: bool is an int subclass
    if target_type is bool:
        return _to_bool(raw)
    if target_type is int:
        return int(raw.strip())
    if target_type is float:
        return float(raw.strip())
    if target_type is Decimal:
        return _to_decimal(raw)
    if isinstance(target_type, type) and issubclass(target_type, enum.Enum):
        return _to_enum(raw, target_type)
    # datetime before date: datetime is a date subclass
    if target_type is datetime:
        return datetime.fromisoformat(raw.strip())
    if target_type is date:
        return date.fromisoformat(raw.strip())
    if target_type is time:
        return time.fromisoformat(raw.strip())

    base = typing.get_origin(target_type) or target_type
    if isinstance(base, type) and issubclass(base, _CONTAINERS):
        raise TypeError(f"Cannot convert a single CSV field to container {target_type!r}")
    if not callable(target_type):
        raise TypeError(f"Cannot convert to {target_type!r}")
    return target_type(raw)
