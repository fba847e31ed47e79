"""
In-memory relation handles over plain Python records.

Records may be mappings or attribute objects. Query customizers receive a
``RecordQuery`` and refine it in place (or return a replacement), the same
way a caller would scope an ORM query.
"""

from __future__ import annotations

import logging
from abc import abstractmethod
from typing import Any, Callable, Iterable, List, Optional, Sequence

from formlets.relations.binding import QueryCustomizer, Relation, RelationKind
from formlets.utils import MISSING, get_segment, loose_equals

logger = logging.getLogger(__name__)


class RecordQuery:
    """Chainable filter/order/limit over a list of records."""

    def __init__(self, records: Iterable[Any]):
        self._records: List[Any] = list(records)
        self._filters: List[Callable[[Any], bool]] = []
        self._ordering: List[tuple] = []
        self._limit: Optional[int] = None

    def where(self, predicate: Optional[Callable[[Any], bool]] = None, **equals: Any) -> "RecordQuery":
        if predicate is not None:
            self._filters.append(predicate)
        for attribute, expected in equals.items():
            self._filters.append(
                lambda record, a=attribute, e=expected: loose_equals(get_segment(record, a), e)
            )
        return self

    def order_by(self, attribute: str, descending: bool = False) -> "RecordQuery":
        self._ordering.append((attribute, descending))
        return self

    def limit(self, count: int) -> "RecordQuery":
        self._limit = count
        return self

    def get(self) -> List[Any]:
        records = [r for r in self._records if all(f(r) for f in self._filters)]
        # Apply the last ordering first so earlier order_by calls take priority
        for attribute, descending in reversed(self._ordering):
            records.sort(key=lambda r: _sort_key(get_segment(r, attribute)), reverse=descending)
        if self._limit is not None:
            records = records[: self._limit]
        return records


def _sort_key(value: Any) -> tuple:
    if value is MISSING or value is None:
        return (1, "")
    return (0, value)


def apply_customizer(query: RecordQuery, customizer: Optional[QueryCustomizer]) -> RecordQuery:
    if customizer is None:
        return query
    customized = customizer(query)
    return customized if isinstance(customized, RecordQuery) else query


class _InMemoryRelation(Relation):
    def __init__(self, owner_exists: bool = True, key_attribute: str = "id"):
        self._owner_exists = owner_exists
        self.key_attribute = key_attribute

    @property
    def owner_exists(self) -> bool:
        return self._owner_exists

    def is_associated(self, candidate: Any) -> bool:
        candidate_key = self.key_of(candidate)
        return any(
            loose_equals(self.key_of(record), candidate_key)
            for record in self._associated_records()
        )

    @abstractmethod
    def _associated_records(self) -> Sequence[Any]:
        """Records currently associated with the owner."""


class HasOne(_InMemoryRelation):
    kind = RelationKind.ONE_TO_ONE

    def __init__(self, record: Any = None, owner_exists: bool = True, key_attribute: str = "id"):
        super().__init__(owner_exists, key_attribute)
        self.record = record

    def fetch_related(self, customizer: Optional[QueryCustomizer] = None) -> Any:
        return self.record

    def fetch_candidates(self, customizer: Optional[QueryCustomizer] = None) -> Sequence[Any]:
        return self._associated_records()

    def _associated_records(self) -> Sequence[Any]:
        return [] if self.record is None else [self.record]


class HasMany(_InMemoryRelation):
    kind = RelationKind.ONE_TO_MANY

    def __init__(self, records: Iterable[Any] = (), owner_exists: bool = True, key_attribute: str = "id"):
        super().__init__(owner_exists, key_attribute)
        self.records = list(records)

    def fetch_related(self, customizer: Optional[QueryCustomizer] = None) -> List[Any]:
        results = apply_customizer(RecordQuery(self.records), customizer).get()
        logger.debug(f"HasMany query returned {len(results)} of {len(self.records)} records")
        return results

    def fetch_candidates(self, customizer: Optional[QueryCustomizer] = None) -> List[Any]:
        return self.fetch_related(customizer)

    def _associated_records(self) -> Sequence[Any]:
        return self.records


class BelongsToMany(_InMemoryRelation):
    """Many-to-many relation: ``candidates`` is every option, ``associated`` the current subset."""

    kind = RelationKind.MANY_TO_MANY

    def __init__(
        self,
        candidates: Iterable[Any] = (),
        associated: Iterable[Any] = (),
        owner_exists: bool = True,
        key_attribute: str = "id",
    ):
        super().__init__(owner_exists, key_attribute)
        self.candidates = list(candidates)
        self.associated = list(associated)

    def fetch_related(self, customizer: Optional[QueryCustomizer] = None) -> List[Any]:
        return apply_customizer(RecordQuery(self.associated), customizer).get()

    def fetch_candidates(self, customizer: Optional[QueryCustomizer] = None) -> List[Any]:
        results = apply_customizer(RecordQuery(self.candidates), customizer).get()
        logger.debug(f"BelongsToMany candidate query returned {len(results)} records")
        return results

    def _associated_records(self) -> Sequence[Any]:
        return self.associated
