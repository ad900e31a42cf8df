"""Shared types for the sheetmap package."""

from typing import Any, Callable

Row = list[str]
Header = list[str]
# (member name, raw value) -> (accepted, value)
Converter = Callable[[str, str], tuple[bool, Any]]
