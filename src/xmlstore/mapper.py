"""Convert records to and from XML elements.

    <Person ID="p-1">
      <name>Ada</name>
      <born>1815-12-10</born>
      <email />
    </Person>

Element tag is the record's type name, the identifier lives in one attribute,
and every reflected field is a child leaf holding its text form.  Absent
(None) values are written as empty leaves so every element of a type has the
same shape.  An empty leaf reads back as "" for string fields, so None in
an optional string field becomes "" after a round trip.
"""

from __future__ import annotations

import dataclasses
import logging
import re
import xml.etree.ElementTree as ET
from typing import Any, TypeVar

from xmlstore import convert
from xmlstore.errors import FieldConversionError, InvalidFieldValue, MissingFieldNode
from xmlstore.schema import FieldSpec, is_frozen, reflect, type_name, zero_value

logger = logging.getLogger("xmlstore.mapper")

T = TypeVar("T")

DEFAULT_ID_ATTRIBUTE = "ID"

# Characters outside the XML 1.0 Char production cannot appear in a document,
# not even as character references.
_ILLEGAL_XML_CHARS = re.compile("[^\x09\x0A\x0D\x20-\uD7FF\uE000-\uFFFD\U00010000-\U0010FFFF]")


def leaf_text(record: Any, spec: FieldSpec) -> str:
    """Text form of one field of ``record``, checked against its declared type.

    Raises InvalidFieldValue when the value is not an instance of the field's
    type or its text holds characters XML cannot represent.
    """
    value = getattr(record, spec.name, None)
    try:
        text = convert.to_text(value, spec.type)
    except TypeError as exc:
        raise InvalidFieldValue(spec.name, value, str(exc)) from exc
    check_text(spec.name, text)
    return text


def check_text(field: str, text: str) -> None:
    bad = _ILLEGAL_XML_CHARS.search(text)
    if bad is not None:
        raise InvalidFieldValue(field, text, f"character {bad.group()!r} is not allowed in XML")


def encode(record: Any, identifier: str, *, id_attribute: str = DEFAULT_ID_ATTRIBUTE) -> ET.Element:
    """Build the element for ``record`` under ``identifier``."""
    record_type = type(record)
    check_text(id_attribute, identifier)
    texts = [(spec.name, leaf_text(record, spec)) for spec in reflect(record_type)]
    node = ET.Element(type_name(record_type), {id_attribute: identifier})
    for name, text in texts:
        ET.SubElement(node, name).text = text
    return node


def decode(
    node: ET.Element,
    record_type: type[T],
    *,
    id_attribute: str = DEFAULT_ID_ATTRIBUTE,
) -> T:
    """Build a ``record_type`` instance from ``node``.

    A node whose tag is not the type name yields the zero value.  Fields with
    no matching leaf keep their default.  Unparseable text raises
    FieldConversionError.
    """
    record = zero_value(record_type)
    if node.tag != type_name(record_type):
        logger.warning(
            "decode: <%s> does not match type %s, returning default",
            node.tag, type_name(record_type),
        )
        return record

    identifier = node.get(id_attribute)
    values: dict[str, Any] = {}
    for spec in reflect(record_type):
        leaf = node.find(spec.name)
        if leaf is None:
            continue
        text = leaf.text or ""
        if text == "":
            # Empty leaf: "" for str (optional or not), None for other optional
            # fields, otherwise keep the default
            if issubclass(spec.type, str):
                values[spec.name] = ""
            elif spec.optional:
                values[spec.name] = None
            continue
        try:
            values[spec.name] = convert.from_text(text, spec.type)
        except (ValueError, TypeError) as exc:
            raise FieldConversionError(spec.name, text, spec.type, identifier) from exc

    if is_frozen(record_type):
        return dataclasses.replace(record, **values)  # type: ignore[type-var]
    for name, value in values.items():
        setattr(record, name, value)
    return record


def update_in_place(node: ET.Element, record: Any) -> None:
    """Overwrite ``node``'s leaves with ``record``'s present (non-None) values.

    The node's shape and every new value are checked before anything is
    written, so a MissingFieldNode or InvalidFieldValue leaves the node
    untouched.
    """
    pending: list[tuple[ET.Element, str]] = []
    for spec in reflect(type(record)):
        leaf = node.find(spec.name)
        if leaf is None:
            raise MissingFieldNode(spec.name, node.tag)
        if getattr(record, spec.name, None) is not None:
            pending.append((leaf, leaf_text(record, spec)))
    for leaf, text in pending:
        leaf.text = text


def leaf_values(node: ET.Element) -> dict[str, str]:
    """Raw text of every child leaf, in document order."""
    return {child.tag: child.text or "" for child in node}
