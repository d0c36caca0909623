"""
Keyed Aggregates
================

Immutable snapshots of one query's result, keyed by a natural key.

A health check extracts aggregates first (I/O) and compares them second
(pure), so the comparison logic never needs a database:

    with entry.connect() as db:
        current = extract_counts(db, SPECIES_SET_NAMES_SQL)

Typical query shape is a GROUP BY on the key:

    SELECT value, COUNT(*) FROM species_set_tag WHERE tag = 'name' GROUP BY value
"""

from types import MappingProxyType
from typing import Any, Generic, Hashable, Iterable, Iterator, Mapping, Optional, Tuple, TypeVar

from database.connection import QueryExecutor

V = TypeVar("V")


class KeyedAggregate(Mapping[Hashable, V], Generic[V]):
    """
    Read-only mapping from a natural key to a count or scalar value.

    Keys are unique; a duplicate key in the input rows overwrites the earlier
    value (last write wins).
    """

    __slots__ = ("_data",)

    def __init__(self, data: Optional[Mapping[Hashable, V]] = None):
        self._data = MappingProxyType(dict(data or {}))

    @classmethod
    def build(cls, rows: Iterable[Tuple[Hashable, V]]) -> "KeyedAggregate[V]":
        data = {}
        for key, value in rows:
            data[key] = value
        return cls(data)

    def __getitem__(self, key: Hashable) -> V:
        return self._data[key]

    def __iter__(self) -> Iterator[Hashable]:
        return iter(self._data)

    def __len__(self) -> int:
        return len(self._data)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({dict(self._data)!r})"


class CountAggregate(KeyedAggregate[int]):
    """Aggregate whose values are integer counts."""

    __slots__ = ()

    @classmethod
    def build(cls, rows: Iterable[Tuple[Hashable, Any]]) -> "CountAggregate":
        # int() raises ValueError on a non-numeric count, which is a query bug
        return cls({key: int(value) for key, value in rows})


class ValueAggregate(KeyedAggregate[str]):
    """Aggregate whose values are strings (names, tag values)."""

    __slots__ = ()

    @classmethod
    def build(cls, rows: Iterable[Tuple[Hashable, Any]]) -> "ValueAggregate":
        return cls({key: (None if value is None else str(value)) for key, value in rows})


def extract_counts(db: QueryExecutor, sql: str, params: Optional[Mapping[str, Any]] = None) -> CountAggregate:
    """Run a two-column (key, count) query and build a CountAggregate."""
    return CountAggregate.build(db.execute(sql, params))


def extract_values(db: QueryExecutor, sql: str, params: Optional[Mapping[str, Any]] = None) -> ValueAggregate:
    """Run a two-column (key, value) query and build a ValueAggregate."""
    return ValueAggregate.build(db.execute(sql, params))
