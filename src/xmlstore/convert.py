"""Closed conversion table between scalar field values and leaf text.

Every field type a record may declare has exactly one entry here: a function
producing the canonical text form, and a function parsing it back.  Lookups
are keyed by the field's declared type, never by the runtime value, so a
stored "1" is parsed as ``int`` or ``bool`` or ``str`` depending on the
field it belongs to.

    to_text(42)                      -> "42"
    to_text(now, date)               -> "2024-01-31"
    from_text("2024-01-31", date)    -> date(2024, 1, 31)
    register_converter(Money, str, Money.parse)
"""

from __future__ import annotations

import enum
import typing
import uuid
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from collections.abc import Callable

_TRUE = frozenset({"true", "1", "yes", "on"})
_FALSE = frozenset({"false", "0", "no", "off"})


@dataclass(frozen=True)
class Converter:
    to_text: Callable[[Any], str]
    from_text: Callable[[str], Any]


def _parse_bool(text: str) -> bool:
    lowered = text.strip().lower()
    if lowered in _TRUE:
        return True
    if lowered in _FALSE:
        return False
    msg = f"not a boolean: {text!r}"
    raise ValueError(msg)


def _timedelta_text(value: timedelta) -> str:
    """Exact seconds: whole part plus up to six fractional digits."""
    micros = value // timedelta(microseconds=1)
    whole, frac = divmod(abs(micros), 1_000_000)
    text = f"{'-' if micros < 0 else ''}{whole}"
    return f"{text}.{frac:06d}".rstrip("0") if frac else text


def _timedelta_parse(text: str) -> timedelta:
    try:
        micros = Decimal(text.strip()) * 1_000_000
    except InvalidOperation as exc:
        raise ValueError(f"not a number of seconds: {text!r}") from exc
    if not micros.is_finite() or micros != micros.to_integral_value():
        msg = f"not a whole number of microseconds: {text!r}"
        raise ValueError(msg)
    try:
        return timedelta(microseconds=int(micros))
    except OverflowError as exc:
        raise ValueError(str(exc)) from exc


# Subclass fallback walks this in order: bool before int, datetime before date.
_CONVERTERS: dict[type, Converter] = {
    str: Converter(str, str),
    bool: Converter(str, _parse_bool),
    int: Converter(lambda v: str(int(v)), lambda t: int(t.strip())),
    float: Converter(lambda v: repr(float(v)), lambda t: float(t.strip())),
    Decimal: Converter(str, lambda t: Decimal(t.strip())),
    datetime: Converter(datetime.isoformat, lambda t: datetime.fromisoformat(t.strip())),
    date: Converter(date.isoformat, lambda t: date.fromisoformat(t.strip())),
    time: Converter(time.isoformat, lambda t: time.fromisoformat(t.strip())),
    timedelta: Converter(_timedelta_text, _timedelta_parse),
    uuid.UUID: Converter(str, lambda t: uuid.UUID(t.strip())),
    Path: Converter(str, Path),
}


def register_converter(
    target: type,
    to_text: Callable[[Any], str],
    from_text: Callable[[str], Any],
) -> None:
    """Add (or replace) the conversion pair for ``target``."""
    _CONVERTERS[target] = Converter(to_text, from_text)


def is_supported(target: Any) -> bool:
    # Parameterized generics such as list[str] are never scalar
    if not isinstance(target, type) or typing.get_origin(target) is not None:
        return False
    if issubclass(target, enum.Enum):
        return True
    return _lookup(target) is not None


def _lookup(target: type) -> Converter | None:
    conv = _CONVERTERS.get(target)
    if conv is not None:
        return conv
    # Subclasses such as pathlib.PosixPath or a str subclass
    for base, candidate in _CONVERTERS.items():
        if issubclass(target, base):
            return candidate
    return None


def _enum_from_text(target: type[enum.Enum], text: str) -> enum.Enum:
    try:
        return target[text]
    except KeyError:
        pass
    for member in target:
        if str(member.value) == text:
            return member
    msg = f"{text!r} is not a member of {target.__name__}"
    raise ValueError(msg)


def to_text(value: Any, target: type | None = None) -> str:
    """Return the canonical text form of ``value``; ``None`` becomes ``""``.

    With ``target`` (the field's declared type) the converter is chosen by
    that type, so a datetime stored in a date field is written as a date.
    A value that is not an instance of ``target`` raises TypeError; ints are
    accepted for float fields.
    """
    if value is None:
        return ""
    if target is None:
        target = type(value)
    elif not _accepts(target, value):
        msg = f"expected {target.__name__}, got {type(value).__name__}"
        raise TypeError(msg)
    if issubclass(target, enum.Enum):
        return value.name
    conv = _lookup(target)
    if conv is None:
        msg = f"no text conversion for {target.__name__}"
        raise TypeError(msg)
    return conv.to_text(value)


def _accepts(target: type, value: Any) -> bool:
    if isinstance(value, target):
        return True
    return target is float and isinstance(value, int) and not isinstance(value, bool)


def from_text(text: str, target: type) -> Any:
    """Parse ``text`` into ``target``.

    Raises ValueError (or TypeError for unsupported targets); the mapper
    wraps these into FieldConversionError with the field name attached.
    """
    if isinstance(target, type) and issubclass(target, enum.Enum):
        return _enum_from_text(target, text)
    conv = _lookup(target)
    if conv is None:
        msg = f"no text conversion for {getattr(target, '__name__', target)!r}"
        raise TypeError(msg)
    try:
        return conv.from_text(text)
    except InvalidOperation as exc:
        raise ValueError(str(exc)) from exc
