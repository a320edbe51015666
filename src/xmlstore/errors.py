"""Error types raised by the record store."""

from __future__ import annotations

from typing import Any


class StoreError(Exception):
    """Base class for every error raised by xmlstore."""


class StoreNotFound(StoreError, FileNotFoundError):
    def __init__(self, path: Any) -> None:
        self.path = path
        super().__init__(f"Store file not found: {path}")


class MalformedDocument(StoreError):
    def __init__(self, path: Any, reason: str) -> None:
        self.path = path
        super().__init__(f"Cannot parse store file {path}: {reason}")


class StoreNotReady(StoreError):
    """Operation attempted on a store that has been closed."""


class UnconstructibleType(StoreError, TypeError):
    def __init__(self, record_type: type, reason: str = "") -> None:
        self.record_type = record_type
        msg = f"{record_type.__name__} cannot be constructed without arguments"
        if reason:
            msg += f": {reason}"
        super().__init__(msg)


class UnsupportedFieldType(StoreError, TypeError):
    def __init__(self, record_type: type, field: str, annotation: Any) -> None:
        self.record_type = record_type
        self.field = field
        self.annotation = annotation
        super().__init__(
            f"{record_type.__name__}.{field}: unsupported field type {annotation!r}"
        )


class FieldConversionError(StoreError, ValueError):
    """A persisted leaf's text could not be parsed into its field's type."""

    def __init__(
        self,
        field: str,
        text: str,
        target: type,
        identifier: str | None = None,
    ) -> None:
        self.field = field
        self.text = text
        self.target = target
        self.identifier = identifier
        where = f" (record {identifier!r})" if identifier is not None else ""
        super().__init__(
            f"Cannot convert {text!r} to {target.__name__} for field {field!r}{where}"
        )


class MissingFieldNode(StoreError, KeyError):
    def __init__(self, field: str, tag: str) -> None:
        self.field = field
        self.tag = tag
        super().__init__(f"<{tag}> has no <{field}> leaf")

    def __str__(self) -> str:
        return str(self.args[0])


class NotFound(StoreError, KeyError):
    def __init__(self, identifier: str, type_name: str = "") -> None:
        self.identifier = identifier
        what = type_name or "record"
        super().__init__(f"No {what} with ID {identifier!r}")

    def __str__(self) -> str:
        return str(self.args[0])


class DuplicateIdentifier(StoreError, ValueError):
    def __init__(self, identifier: str, type_name: str = "") -> None:
        self.identifier = identifier
        what = type_name or "record"
        super().__init__(f"A {what} with ID {identifier!r} already exists")


class InvalidFieldValue(StoreError, ValueError):
    """A value cannot be stored: wrong type for its field, or not representable in XML."""

    def __init__(self, field: str, value: Any, reason: str) -> None:
        self.field = field
        self.value = value
        self.reason = reason
        super().__init__(f"Cannot store {value!r} in field {field!r}: {reason}")
