"""Field tables for record types.

A record type's field table is the ordered list of its public, settable,
scalar fields.  The mapper reads and writes leaves in exactly this order, so
``reflect`` caches its result: the same type always yields the same tuple.

Sources, in priority order:
    1. an explicit table from ``register_schema``
    2. ``dataclasses.fields`` for dataclasses
    3. public class annotations (bases first), then public properties that
       have a setter
"""

from __future__ import annotations

import dataclasses
import functools
import types
import typing
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, ClassVar, TypeVar, Union

from xmlstore import convert
from xmlstore.errors import UnconstructibleType, UnsupportedFieldType

if TYPE_CHECKING:
    from collections.abc import Iterable

T = TypeVar("T")

_REGISTERED: dict[type, tuple[FieldSpec, ...]] = {}


@dataclass(frozen=True)
class FieldSpec:
    """One reflected field: name, scalar type, and whether None is allowed."""

    name: str
    type: type
    optional: bool = False


def type_name(record_type: type) -> str:
    return record_type.__name__


def root_name(record_type: type) -> str:
    """Root element tag: the pluralized type name."""
    return record_type.__name__ + "s"


def _unwrap(record_type: type, name: str, annotation: Any) -> FieldSpec:
    """Turn an annotation into a FieldSpec, unwrapping Optional[X] / X | None."""
    optional = False
    origin = typing.get_origin(annotation)
    if origin is Union or origin is types.UnionType:
        args = [a for a in typing.get_args(annotation) if a is not type(None)]
        if len(args) != 1:
            raise UnsupportedFieldType(record_type, name, annotation)
        optional = True
        annotation = args[0]
    if not convert.is_supported(annotation):
        raise UnsupportedFieldType(record_type, name, annotation)
    return FieldSpec(name=name, type=annotation, optional=optional)


def _hints(record_type: type) -> dict[str, Any]:
    try:
        return typing.get_type_hints(record_type)
    except (NameError, TypeError):
        # Unresolvable forward references: fall back to the raw annotations
        raw: dict[str, Any] = {}
        for klass in reversed(record_type.__mro__):
            raw.update(getattr(klass, "__annotations__", {}))
        return raw


def _is_classvar(annotation: Any) -> bool:
    return annotation is ClassVar or typing.get_origin(annotation) is ClassVar


def _reflect_dataclass(record_type: type) -> tuple[FieldSpec, ...]:
    hints = _hints(record_type)
    return tuple(
        _unwrap(record_type, f.name, hints.get(f.name, f.type))
        for f in dataclasses.fields(record_type)
        if not f.name.startswith("_")
    )


def _reflect_class(record_type: type) -> tuple[FieldSpec, ...]:
    specs: list[FieldSpec] = []
    seen: set[str] = set()
    for name, annotation in _hints(record_type).items():
        if name.startswith("_") or _is_classvar(annotation):
            continue
        specs.append(_unwrap(record_type, name, annotation))
        seen.add(name)

    for klass in reversed(record_type.__mro__):
        for name, attr in vars(klass).items():
            if name.startswith("_") or name in seen:
                continue
            if isinstance(attr, property) and attr.fset is not None:
                ret = typing.get_type_hints(attr.fget).get("return") if attr.fget else None
                if ret is None:
                    raise UnsupportedFieldType(record_type, name, None)
                specs.append(_unwrap(record_type, name, ret))
                seen.add(name)
    return tuple(specs)


@functools.cache
def reflect(record_type: type) -> tuple[FieldSpec, ...]:
    """Return the ordered field table for ``record_type``."""
    registered = _REGISTERED.get(record_type)
    if registered is not None:
        return registered
    if dataclasses.is_dataclass(record_type):
        return _reflect_dataclass(record_type)
    return _reflect_class(record_type)


def register_schema(
    record_type: type,
    fields: Iterable[FieldSpec | tuple[str, Any]],
) -> tuple[FieldSpec, ...]:
    """Use an explicit field table for ``record_type`` instead of reflection.

    Entries are FieldSpecs or ``(name, annotation)`` pairs; annotations may
    be ``Optional[X]``.
    """
    specs = tuple(
        f if isinstance(f, FieldSpec) else _unwrap(record_type, f[0], f[1])
        for f in fields
    )
    for spec in specs:
        if not convert.is_supported(spec.type):
            raise UnsupportedFieldType(record_type, spec.name, spec.type)
    _REGISTERED[record_type] = specs
    reflect.cache_clear()
    return specs


def unregister_schema(record_type: type) -> None:
    _REGISTERED.pop(record_type, None)
    reflect.cache_clear()


def zero_value(record_type: type[T]) -> T:
    """Build a default instance of ``record_type`` with no arguments."""
    try:
        return record_type()
    except Exception as exc:
        raise UnconstructibleType(record_type, str(exc)) from exc


def is_frozen(record_type: type) -> bool:
    if not dataclasses.is_dataclass(record_type):
        return False
    params = getattr(record_type, "__dataclass_params__", None)
    return bool(params and params.frozen)
