"""Resolve CSV header tokens to settable members of a record type.

A record type is any class that can be instantiated without arguments.
Members are discovered from class annotations (dataclass and NamedTuple
fields included), ``__slots__``, the attributes of a default instance and
properties that define a setter. Frozen dataclasses and named tuples are
populated by building a new instance per assignment, so callers must always
keep the record returned by :meth:`RecordBinder.assign`.
"""

import dataclasses
import inspect
import logging
import sys
import typing
from dataclasses import dataclass
from typing import Any

from sheetmap.errors import ConfigurationError
from sheetmap.types import Header

logger = logging.getLogger(__name__)

FIELD = "field"
PROPERTY = "property"


@dataclass(frozen=True)
class Member:
    """A settable member of a record type."""

    name: str
    type: Any
    kind: str


def _is_public(name: str) -> bool:
    return not name.startswith("_")


def _is_frozen_dataclass(record_type: type) -> bool:
    params = getattr(record_type, "__dataclass_params__", None)
    return dataclasses.is_dataclass(record_type) and params is not None and params.frozen


def _is_named_tuple(record_type: type) -> bool:
    return issubclass(record_type, tuple) and hasattr(record_type, "_fields")


def _type_hints(obj) -> dict[str, Any]:
    try:
        return typing.get_type_hints(obj)
    except (NameError, TypeError) as e:
        logger.debug("Unresolvable annotations on %r (%s); resolving one at a time", obj, e)

    hints: dict[str, Any] = {}
    for owner in reversed(getattr(obj, "__mro__", (obj,))):
        module = sys.modules.get(getattr(owner, "__module__", None))
        globalns = getattr(owner, "__globals__", None) or (vars(module) if module else {})
        localns = dict(vars(owner)) if isinstance(owner, type) else None
        for name, annotation in inspect.get_annotations(owner).items():
            if not isinstance(annotation, str):
                hints[name] = annotation
                continue
            try:
                hints[name] = eval(annotation, globalns, localns)
            except (NameError, AttributeError, SyntaxError, TypeError):
                # unknown type: the raw string is assigned
                hints[name] = None
    return hints



def _property_type(prop: property) -> Any:
    hints = _type_hints(prop.fset)
    params = list(inspect.signature(prop.fset).parameters)
    if len(params) >= 2 and params[1] in hints:
        return hints[params[1]]
    if prop.fget is not None:
        return _type_hints(prop.fget).get("return")
    return None


class RecordBinder:
    """Binds header tokens to members of ``record_type``.

    Built per read call; holds no state shared between calls.
    """

    def __init__(self, record_type: type, include_non_public: bool = False, case_insensitive: bool = True):
        self.record_type = record_type
        self.include_non_public = include_non_public
        self.case_insensitive = case_insensitive
        self.immutable = _is_frozen_dataclass(record_type) or _is_named_tuple(record_type)
        prototype = self.new_record()
        self._members = {
            name: member
            for name, member in self._discover(prototype).items()
            if include_non_public or _is_public(name)
        }

    def new_record(self) -> Any:
        """Return a default-constructed instance of the record type."""
        try:
            return self.record_type()
        except TypeError as e:
            raise ConfigurationError(
                f"{self.record_type.__name__} must be constructible without arguments: {e}"
            ) from e

    def _discover(self, prototype) -> dict[str, Member]:
        record_type = self.record_type
        hints = _type_hints(record_type)
        members: dict[str, Member] = {}

        if _is_frozen_dataclass(record_type):
            for field in dataclasses.fields(record_type):
                if field.init:
                    members[field.name] = Member(field.name, hints.get(field.name), FIELD)
            return members
        if _is_named_tuple(record_type):
            for name in record_type._fields:
                members[name] = Member(name, hints.get(name), FIELD)
            return members

        for name, hint in hints.items():
            if typing.get_origin(hint) is typing.ClassVar or hint is typing.ClassVar:
                continue
            members[name] = Member(name, hint, FIELD)

        for klass in reversed(record_type.__mro__):
            slots = klass.__dict__.get("__slots__", ())
            if isinstance(slots, str):
                slots = (slots,)
            for name in slots:
                if name not in ("__dict__", "__weakref__") and name not in members:
                    members[name] = Member(name, hints.get(name), FIELD)

        for name, value in getattr(prototype, "__dict__", {}).items():
            if name not in members:
                declared = type(value) if value is not None else None
                members[name] = Member(name, declared, FIELD)

        # Properties take precedence over fields: as data descriptors they
        # intercept the assignment anyway.
        for klass in reversed(record_type.__mro__):
            for name, attr in vars(klass).items():
                if isinstance(attr, property) and attr.fset is not None:
                    members[name] = Member(name, _property_type(attr), PROPERTY)

        return {name: m for name, m in members.items() if not name.startswith("__")}

    def resolve(self, token: str) -> Member | None:
        """Return the member a header token names, or None if it names nothing."""
        if not token:
            return None
        member = self._members.get(token)
        if member is not None or not self.case_insensitive:
            return member

        folded = token.casefold()
        matches = [m for name, m in self._members.items() if name.casefold() == folded]
        if len(matches) > 1:
            names = ", ".join(sorted(m.name for m in matches))
            raise ConfigurationError(
                f"Header {token!r} is ambiguous on {self.record_type.__name__}: matches {names}"
            )
        return matches[0] if matches else None

    def bind(self, header: Header) -> list[Member | None]:
        """Resolve every header position once; unmatched positions bind to None."""
        bindings = [self.resolve(token) for token in header]
        unbound = [token for token, member in zip(header, bindings) if token and member is None]
        if unbound:
            logger.debug("Ignoring columns with no member on %s: %s", self.record_type.__name__, unbound)
        return bindings

    def assign(self, record: Any, member: Member, value: Any) -> Any:
        """Set one member and return the record holding the new value.

        For immutable records this is a new instance; the caller must carry
        it into the next assignment.
        """
        if not self.immutable:
            setattr(record, member.name, value)
            return record
        if _is_named_tuple(self.record_type):
            return record._replace(**{member.name: value})
        return dataclasses.replace(record, **{member.name: value})
