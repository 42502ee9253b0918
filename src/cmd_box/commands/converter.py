"""String-to-type conversion for command arguments.

Command arguments usually arrive as strings and must be converted to the
type each parameter declares. Conversions are registered per type as
functions taking (value, type); defaults cover text, numbers, booleans,
dates, paths, enums, and sequences of any of those.
"""

import collections.abc
import re
import types
from collections.abc import Callable
from datetime import date, datetime
from enum import Enum
from pathlib import Path
from typing import Any, Union, get_args, get_origin

from cmd_box.exceptions import ConversionError

Conversion = Callable[[str, Any], Any]

_TRUE = re.compile(r"^(t(rue)?|y(es)?)$", re.IGNORECASE)
_FALSE = re.compile(r"^(f(alse)?|no?)$", re.IGNORECASE)

# Container origins accepted as "sequence of" types, mapped to the
# concrete class the converted elements are collected into
_SEQUENCE_ORIGINS: dict[Any, type] = {
    list: list,
    tuple: tuple,
    set: set,
    frozenset: frozenset,
    collections.abc.Sequence: list,
    collections.abc.MutableSequence: list,
    collections.abc.Iterable: list,
    collections.abc.Collection: list,
    collections.abc.Set: set,
}


def unwrap_optional(type_: Any) -> Any:
    """Strip None from an Optional[X] / X | None annotation."""
    origin = get_origin(type_)
    if origin is Union or origin is types.UnionType:
        args = [a for a in get_args(type_) if a is not type(None)]
        if len(args) == 1:
            return args[0]
    return type_


def runtime_class(type_: Any) -> type | None:
    """Return the class usable with isinstance() for an annotation, if any."""
    type_ = unwrap_optional(type_)
    if type_ is Any:
        return None
    if isinstance(type_, type):
        return type_
    origin = get_origin(type_)
    if isinstance(origin, type):
        return origin
    return None


def _parse_bool(value: str, type_: Any) -> bool:
    value = value.strip()
    if _TRUE.match(value):
        return True
    if _FALSE.match(value):
        return False
    raise ConversionError(value, bool, valid_values=["true", "false", "yes", "no"])


def _parse_number(value: str, type_: Any) -> Any:
    try:
        return type_(value.strip())
    except ValueError as e:
        raise ConversionError(value, type_) from e


def _parse_date(value: str, type_: Any) -> Any:
    try:
        return type_.fromisoformat(value.strip())
    except ValueError as e:
        raise ConversionError(
            value, type_, f"Unable to parse {value!r} as a {type_.__name__}"
        ) from e


class TypeConverter:
    """Pluggable converter from strings to target types.

    Usage:
        converter = TypeConverter()
        converter.register(Decimal, lambda value, type_: Decimal(value))
        converter.convert("1,2,3", list[int])  # [1, 2, 3]
    """

    def __init__(self, include_defaults: bool = True) -> None:
        self._maps: dict[Any, Conversion] = {}

        if include_defaults:
            self._maps[str] = lambda value, type_: value
            self._maps[int] = _parse_number
            self._maps[float] = _parse_number
            self._maps[bool] = _parse_bool
            self._maps[date] = _parse_date
            self._maps[datetime] = _parse_date
            self._maps[Path] = lambda value, type_: Path(value)

    def register(self, type_: Any, conversion: Conversion) -> None:
        """Register (or replace) the conversion for a type."""
        self._maps[type_] = conversion

    def remove(self, type_: Any) -> None:
        """Remove the conversion for a type."""
        self._maps.pop(type_, None)

    def __getitem__(self, type_: Any) -> Conversion:
        return self._maps[type_]

    def __setitem__(self, type_: Any, conversion: Conversion) -> None:
        self.register(type_, conversion)

    def _element_type(self, type_: Any) -> tuple[Any, type] | None:
        """Return (element type, container class) for a sequence annotation."""
        origin = get_origin(type_)
        if origin in _SEQUENCE_ORIGINS:
            args = [a for a in get_args(type_) if a is not Ellipsis]
            element = args[0] if args else str
            return element, _SEQUENCE_ORIGINS[origin]
        if type_ in (list, tuple, set, frozenset):
            return str, type_
        return None

    def can_convert(self, type_: Any) -> bool:
        """Return True if strings can be converted to type_."""
        type_ = unwrap_optional(type_)
        sequence = self._element_type(type_)
        if sequence is not None:
            element = sequence[0]
            return self._is_enum(element) or element in self._maps
        if self._is_enum(type_):
            return True
        return type_ in self._maps

    def convert(self, value: str, type_: Any) -> Any:
        """Convert a string value to type_.

        Raises:
            ConversionError: If no conversion exists or the value is malformed.
        """
        type_ = unwrap_optional(type_)
        if self.can_convert(type_):
            if type_ in self._maps:
                return self._maps[type_](value, type_)
            if self._is_enum(type_):
                return self.convert_enum(value, type_)
            sequence = self._element_type(type_)
            if sequence is not None:
                element, container = sequence
                return self.convert_sequence(value, element, container)
        type_name = getattr(type_, "__name__", str(type_))
        raise ConversionError(
            value, type_, f"No conversion is registered for type {type_name}"
        )

    @staticmethod
    def _is_enum(type_: Any) -> bool:
        return isinstance(type_, type) and issubclass(type_, Enum)

    def convert_enum(self, value: str, type_: type[Enum]) -> Enum:
        """Convert a string to an enum member.

        An exact (case-insensitive) name match wins; failing that, exactly
        one member name must end with the supplied value.
        """
        names = [member.name for member in type_]
        wanted = value.strip().casefold()

        for member in type_:
            if member.name.casefold() == wanted:
                return member

        candidates = [m for m in type_ if m.name.casefold().endswith(wanted)]
        if wanted and len(candidates) == 1:
            return candidates[0]

        raise ConversionError(
            value,
            type_,
            f"Invalid value {value!r} specified for {type_.__name__}. "
            f"Valid values are: {', '.join(names)}",
            valid_values=names,
        )

    def convert_sequence(self, value: str, element: Any, container: type = list) -> Any:
        """Split a comma-separated string and convert each element."""
        # TODO: support quoted values containing commas
        items = [self.convert(item.strip(), element) for item in value.split(",")]
        return container(items)
