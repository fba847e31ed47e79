"""
Relationship contract and the binding descriptor attached to materialized formlets.

The engine never queries a data source itself. It talks to a ``Relation``
handle exposing a kind, whether the owning record is persisted, and three
capabilities: fetch the related record(s), fetch the candidate set, and test
whether a candidate is currently associated.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Optional, Sequence

from formlets.utils import get_segment, loose_equals

QueryCustomizer = Callable[[Any], Any]


class RelationKind(str, Enum):
    ONE_TO_ONE = "one_to_one"
    ONE_TO_MANY = "one_to_many"
    MANY_TO_MANY = "many_to_many"


class Relation(ABC):
    """Opaque handle to a relationship of a bound record."""

    key_attribute: str = "id"

    @property
    @abstractmethod
    def kind(self) -> RelationKind:
        """Cardinality of the relationship."""

    @property
    @abstractmethod
    def owner_exists(self) -> bool:
        """Whether the owning record is persisted."""

    @abstractmethod
    def fetch_related(self, customizer: Optional[QueryCustomizer] = None) -> Any:
        """The related record (one-to-one) or records (one-to-many, many-to-many)."""

    @abstractmethod
    def fetch_candidates(
        self, customizer: Optional[QueryCustomizer] = None
    ) -> Sequence[Any]:
        """Every record that could be associated (many-to-many)."""

    @abstractmethod
    def is_associated(self, candidate: Any) -> bool:
        """Whether ``candidate`` is currently associated with the owner."""

    def key_of(self, record: Any) -> Any:
        return get_segment(record, self.key_attribute)


@dataclass(frozen=True)
class RelationBinding:
    """Links a materialized formlet to the relationship it mirrors.

    ``associated`` is only set for many-to-many relations on a persisted
    owner; it is fetched once and shared by every sibling.
    """

    kind: RelationKind
    relation: Relation
    associated: Optional[Sequence[Any]] = None

    def is_selected(self, candidate: Any) -> bool:
        if self.kind is not RelationKind.MANY_TO_MANY or self.associated is None:
            return False
        return self.relation.is_associated(candidate)

    def association_for(self, candidate: Any) -> Any:
        """The associated record matching ``candidate``, carrying pivot columns."""
        if not self.associated:
            return None
        candidate_key = self.relation.key_of(candidate)
        for record in self.associated:
            if loose_equals(self.relation.key_of(record), candidate_key):
                return record
        return None
