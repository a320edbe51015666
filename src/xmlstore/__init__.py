"""Typed record store backed by a single XML file.

Layout of a store file for ``class Person``:

    <Persons>
      <Person ID="p-1">
        <name>Ada</name>
        <born>1815-12-10</born>
      </Person>
    </Persons>

Root tag is the pluralized type name, each record is one element with an ID
attribute, and each reflected field is one child leaf holding its text form.

The file is loaded wholly into memory; insert/update/delete change the
in-memory tree and commit() rewrites the file (temp file + rename).
"""

from xmlstore.config import StoreConfig, init_config, load_config
from xmlstore.convert import register_converter
from xmlstore.errors import (
    DuplicateIdentifier,
    FieldConversionError,
    InvalidFieldValue,
    MalformedDocument,
    MissingFieldNode,
    NotFound,
    StoreError,
    StoreNotFound,
    StoreNotReady,
    UnconstructibleType,
    UnsupportedFieldType,
)
from xmlstore.mapper import decode, encode, update_in_place
from xmlstore.query import Query
from xmlstore.schema import FieldSpec, reflect, register_schema
from xmlstore.store import RecordStore, load_document

__all__ = [
    "DuplicateIdentifier",
    "FieldConversionError",
    "FieldSpec",
    "InvalidFieldValue",
    "MalformedDocument",
    "MissingFieldNode",
    "NotFound",
    "Query",
    "RecordStore",
    "StoreConfig",
    "StoreError",
    "StoreNotFound",
    "StoreNotReady",
    "UnconstructibleType",
    "UnsupportedFieldType",
    "decode",
    "encode",
    "init_config",
    "load_config",
    "load_document",
    "reflect",
    "register_converter",
    "register_schema",
    "update_in_place",
]
