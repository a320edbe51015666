"""File-backed record store: one XML document per record type.

RecordStore is the public API:
    store = RecordStore.create(Person, "people.xml")
    store.insert("p-1", Person(name="Ada", born=date(1815, 12, 10)))
    store.commit()

    store = RecordStore.load(Person, "people.xml")
    ada = store.read("p-1")
    adults = store.query().where(lambda p: p.age >= 18).to_list()

The whole document lives in memory.  insert/update/delete only touch the
in-memory tree; nothing reaches disk until commit(), which rewrites the file
atomically (temp file + rename).  Closing a store never writes.

One store per file per process.  Mutations and commit on a single store are
serialized with a lock, but two stores over the same path overwrite each
other: the last commit wins.
"""

from __future__ import annotations

import fcntl
import logging
import threading
import xml.etree.ElementTree as ET
from pathlib import Path
from typing import TYPE_CHECKING, Generic, TypeVar

from xmlstore import mapper
from xmlstore.config import StoreConfig
from xmlstore.errors import (
    DuplicateIdentifier,
    FieldConversionError,
    MalformedDocument,
    NotFound,
    StoreNotFound,
    StoreNotReady,
)
from xmlstore.query import Query
from xmlstore.schema import reflect, root_name, type_name, zero_value

if TYPE_CHECKING:
    from collections.abc import Iterator

logger = logging.getLogger("xmlstore.store")

T = TypeVar("T")


def load_document(path: Path | str) -> ET.Element:
    """Parse a store file and return its root element, verbatim."""
    path = Path(path)
    if not path.is_file():
        raise StoreNotFound(path)
    try:
        return ET.parse(path).getroot()
    except ET.ParseError as exc:
        raise MalformedDocument(path, str(exc)) from exc


class RecordStore(Generic[T]):
    """XML-backed store of ``record_type`` instances keyed by string ID."""

    def __init__(
        self,
        record_type: type[T],
        path: Path | str,
        root: ET.Element,
        *,
        config: StoreConfig | None = None,
    ) -> None:
        # Fails fast on types without a no-argument constructor or with
        # unsupported field annotations.
        zero_value(record_type)
        reflect(record_type)

        self.record_type = record_type
        self.path = Path(path)
        self.config = config or StoreConfig()
        self.decode_errors: list[FieldConversionError] = []
        self._root = root
        self._tag = type_name(record_type)
        self._index: dict[str, ET.Element] = {}
        self._lock = threading.RLock()
        self._closed = False
        self._build_index()

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    @classmethod
    def create(
        cls,
        record_type: type[T],
        path: Path | str,
        *,
        config: StoreConfig | None = None,
    ) -> RecordStore[T]:
        """Start an empty store at path, overwriting any existing file."""
        store = cls(record_type, path, ET.Element(root_name(record_type)), config=config)
        store.commit()
        logger.info("created %s store at %s", store._tag, store.path)
        return store

    @classmethod
    def load(
        cls,
        record_type: type[T],
        path: Path | str,
        *,
        config: StoreConfig | None = None,
    ) -> RecordStore[T]:
        """Open an existing store file. Raises StoreNotFound if path is absent."""
        root = load_document(path)
        expected = root_name(record_type)
        if root.tag != expected:
            logger.warning("load: root <%s> in %s, expected <%s>", root.tag, path, expected)
        store = cls(record_type, path, root, config=config)
        logger.info("loaded %d %s records from %s", len(store._index), store._tag, store.path)
        return store

    def close(self) -> None:
        """Mark the store unusable. Uncommitted changes are discarded."""
        self._closed = True

    @property
    def closed(self) -> bool:
        return self._closed

    def __enter__(self) -> RecordStore[T]:
        self._check_open()
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def __repr__(self) -> str:
        state = "closed" if self._closed else f"{len(self._index)} ids"
        return f"<RecordStore {self._tag} {self.path} ({state})>"

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    def read(self, identifier: str) -> T | None:
        """Decode the first record with identifier, or None."""
        self._check_open()
        node = self._index.get(identifier)
        if node is None:
            return None
        return self._decode(node)

    def require(self, identifier: str) -> T:
        record = self.read(identifier)
        if record is None:
            raise NotFound(identifier, self._tag)
        return record

    def items(self, *, errors: str | None = None) -> Iterator[tuple[str, T]]:
        """Yield (identifier, record) pairs in document order.

        With errors="skip" a record whose leaves cannot be parsed is logged,
        appended to ``decode_errors`` and left out; with errors="raise" the
        FieldConversionError propagates.
        """
        self._check_open()
        policy = errors or self.config.on_decode_error
        if policy not in ("skip", "raise"):
            msg = f"errors must be 'skip' or 'raise', got {policy!r}"
            raise ValueError(msg)
        self.decode_errors = []
        for node in self._root.findall(self._tag):
            identifier = node.get(self.config.id_attribute, "")
            try:
                record = self._decode(node)
            except FieldConversionError as exc:
                if policy == "raise":
                    raise
                logger.warning("skipping %s %r: %s", self._tag, identifier, exc)
                self.decode_errors.append(exc)
                continue
            yield identifier, record

    def read_all(self, *, errors: str | None = None) -> list[T]:
        """Decode every record in document order. Empty list when there are none."""
        with self._lock:
            return [record for _, record in self.items(errors=errors)]

    def query(self) -> Query[T]:
        """A Query over a snapshot of read_all()."""
        return Query(self.read_all())

    def ids(self) -> list[str]:
        """Identifiers in first-occurrence document order."""
        self._check_open()
        return list(self._index)

    def duplicate_ids(self) -> list[str]:
        """Identifiers that appear on more than one element, in document order.

        Elements without an ID attribute are not duplicates of anything.
        """
        self._check_open()
        seen: set[str] = set()
        duplicates: list[str] = []
        for node in self._root.findall(self._tag):
            identifier = node.get(self.config.id_attribute)
            if identifier is None:
                continue
            if identifier in seen and identifier not in duplicates:
                duplicates.append(identifier)
            seen.add(identifier)
        return duplicates

    def __len__(self) -> int:
        self._check_open()
        return len(self._root.findall(self._tag))

    def __contains__(self, identifier: object) -> bool:
        self._check_open()
        return identifier in self._index

    # ------------------------------------------------------------------
    # Write (in memory until commit)
    # ------------------------------------------------------------------

    def insert(self, identifier: str, record: T) -> None:
        self._check_open()
        self._check_record(record)
        if not isinstance(identifier, str):
            msg = f"identifier must be a str, got {type(identifier).__name__}"
            raise TypeError(msg)
        with self._lock:
            if identifier in self._index and self.config.reject_duplicate_ids:
                raise DuplicateIdentifier(identifier, self._tag)
            node = mapper.encode(record, identifier, id_attribute=self.config.id_attribute)
            self._root.append(node)
            self._index.setdefault(identifier, node)
        logger.debug("insert %s %r", self._tag, identifier)

    def update(self, identifier: str, record: T) -> None:
        """Overwrite the stored fields of identifier with record's non-None values."""
        self._check_open()
        self._check_record(record)
        with self._lock:
            node = self._index.get(identifier)
            if node is None:
                raise NotFound(identifier, self._tag)
            mapper.update_in_place(node, record)
        logger.debug("update %s %r", self._tag, identifier)

    def delete(self, identifier: str, *, missing_ok: bool = False) -> bool:
        """Remove the first record with identifier.

        Returns True when a record was removed.  A missing identifier raises
        NotFound, or returns False when missing_ok is set.
        """
        self._check_open()
        with self._lock:
            node = self._index.pop(identifier, None)
            if node is None:
                if missing_ok:
                    return False
                raise NotFound(identifier, self._tag)
            self._root.remove(node)
            # A later duplicate (hand-edited file) becomes the first match
            for candidate in self._root.findall(self._tag):
                if candidate.get(self.config.id_attribute) == identifier:
                    self._index[identifier] = candidate
                    break
        logger.debug("delete %s %r", self._tag, identifier)
        return True

    def commit(self) -> Path:
        """Write the in-memory document to path, replacing the file."""
        self._check_open()
        with self._lock:
            self._write(self._root)
        logger.info("committed %d %s records to %s", len(self._index), self._tag, self.path)
        return self.path

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _check_open(self) -> None:
        if self._closed:
            msg = f"{self._tag} store at {self.path} is closed"
            raise StoreNotReady(msg)

    def _check_record(self, record: object) -> None:
        if type(record) is not self.record_type:
            msg = f"expected {self._tag}, got {type(record).__name__}"
            raise TypeError(msg)

    def _decode(self, node: ET.Element) -> T:
        return mapper.decode(node, self.record_type, id_attribute=self.config.id_attribute)

    def _build_index(self) -> None:
        """Map each identifier to its first element in document order."""
        self._index.clear()
        for node in self._root.findall(self._tag):
            identifier = node.get(self.config.id_attribute)
            if identifier is None:
                logger.warning("%s element without %s attribute in %s",
                               self._tag, self.config.id_attribute, self.path)
                continue
            if identifier in self._index:
                logger.warning("duplicate %s ID %r in %s; first one wins",
                               self._tag, identifier, self.path)
                continue
            self._index[identifier] = node

    def _write(self, root: ET.Element) -> None:
        """Atomically write the document under exclusive flock."""
        cfg = self.config
        if cfg.indent:
            ET.indent(root, space=" " * cfg.indent)
        # The parser folds a raw CR into LF; a character reference survives
        text = ET.tostring(root, encoding="unicode").replace("\r", "&#13;")
        if cfg.xml_declaration:
            text = f"<?xml version='1.0' encoding='{cfg.encoding}'?>\n{text}"
        data = text.encode(cfg.encoding, "xmlcharrefreplace")
        self.path.parent.mkdir(parents=True, exist_ok=True)
        # Write to tmp then rename for atomicity
        tmp = self.path.with_name(self.path.name + ".tmp")
        with tmp.open("wb") as f:
            fcntl.flock(f, fcntl.LOCK_EX)
            f.write(data)
        tmp.replace(self.path)
