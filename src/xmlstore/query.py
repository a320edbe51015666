"""Thin in-memory query view over a snapshot of records.

    store.query().where(lambda p: p.age > 30).order_by(lambda p: p.name).to_list()

Each step returns a new Query; nothing runs until the view is iterated.
There is no planning or indexing: predicates see every record.
"""

from __future__ import annotations

import itertools
from typing import TYPE_CHECKING, Any, Generic, TypeVar

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable, Iterator

T = TypeVar("T")


class Query(Generic[T]):
    def __init__(self, source: Iterable[T]) -> None:
        self._source = source

    def __iter__(self) -> Iterator[T]:
        return iter(self._source)

    def __len__(self) -> int:
        return self.count()

    def __repr__(self) -> str:
        return f"Query({self.to_list()!r})"

    def where(self, predicate: Callable[[T], bool]) -> Query[T]:
        source = self._source
        return Query(_Deferred(lambda: (r for r in source if predicate(r))))

    def order_by(self, key: Callable[[T], Any], *, reverse: bool = False) -> Query[T]:
        source = self._source
        return Query(_Deferred(lambda: iter(sorted(source, key=key, reverse=reverse))))

    def limit(self, n: int) -> Query[T]:
        if n < 0:
            msg = f"limit must be >= 0, got {n}"
            raise ValueError(msg)
        source = self._source
        return Query(_Deferred(lambda: itertools.islice(source, n)))

    def first(self, predicate: Callable[[T], bool] | None = None) -> T | None:
        """First record (optionally matching predicate), or None."""
        view = self.where(predicate) if predicate is not None else self
        return next(iter(view), None)

    def count(self) -> int:
        return sum(1 for _ in self)

    def exists(self) -> bool:
        return any(True for _ in self)

    def to_list(self) -> list[T]:
        return list(self)


class _Deferred(Generic[T]):
    """Re-iterable wrapper: calls the factory on every iteration."""

    def __init__(self, factory: Callable[[], Iterator[T]]) -> None:
        self._factory = factory

    def __iter__(self) -> Iterator[T]:
        return self._factory()
