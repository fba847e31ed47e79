"""
Expansion of declared relations into child formlets.

Given a formlet bound to a record and a relation name, the materializer looks
up the relationship on the record and replicates the target formlet type to
mirror it:

- one-to-one: a single child, bound to the related record when the owner is
  persisted, unbound otherwise;
- one-to-many: one child per related record when persisted, ``count`` blank
  children otherwise;
- many-to-many: one child per candidate record, each exposing the candidate
  as ``related``; when persisted, the currently associated records are
  fetched once and shared through every child's ``RelationBinding``.

Children are only attached once the whole relation has been expanded, so a
failure leaves the group empty.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, List, Optional, Type

from formlets.errors import InvalidRelationError, UnknownRelationError
from formlets.relations.binding import (
    QueryCustomizer,
    Relation,
    RelationBinding,
    RelationKind,
)
from formlets.utils import MISSING, get_segment

if TYPE_CHECKING:
    from formlets.formlet import Formlet

logger = logging.getLogger(__name__)


class RelationMaterializer:
    """Turns relation declarations into concrete child formlets."""

    def materialize(
        self,
        formlet: "Formlet",
        relation_name: str,
        formlet_type: Type["Formlet"],
        configurator: Optional[QueryCustomizer] = None,
        count: int = 1,
    ) -> List["Formlet"]:
        owner = formlet.bound_data
        if owner is None:
            logger.debug(
                f"{type(formlet).__name__} has no bound record; "
                f"skipping relation '{relation_name}'"
            )
            return []

        relation = self.relation_for(formlet, owner, relation_name)
        kind = relation.kind

        if kind is RelationKind.ONE_TO_ONE:
            children = self._one_to_one(relation, formlet_type)
        elif kind is RelationKind.ONE_TO_MANY:
            children = self._one_to_many(relation, formlet_type, configurator, count)
        elif kind is RelationKind.MANY_TO_MANY:
            children = self._many_to_many(relation, formlet_type, configurator)
        else:
            raise InvalidRelationError(
                f"{type(formlet).__name__}.{relation_name} has unsupported kind {kind!r}",
                relation_name,
            )

        for child in children:
            formlet.attach_child(relation_name, child)

        logger.debug(
            f"Materialized {len(children)} '{relation_name}' formlet(s) "
            f"for {kind.value} relation (owner exists: {relation.owner_exists})"
        )
        return children

    @staticmethod
    def relation_for(formlet: "Formlet", owner: Any, relation_name: str) -> Relation:
        """Resolve the relationship handle named ``relation_name`` on ``owner``."""
        accessor = get_segment(owner, relation_name)
        if accessor is MISSING:
            raise UnknownRelationError(
                f"{type(formlet).__name__}.{relation_name} accessor does not exist "
                f"on the bound record",
                relation_name,
            )

        relation = accessor() if callable(accessor) else accessor
        if not isinstance(relation, Relation):
            raise InvalidRelationError(
                f"{type(formlet).__name__}.{relation_name} must return a relationship instance",
                relation_name,
            )
        if not isinstance(relation.kind, RelationKind):
            raise InvalidRelationError(
                f"{type(formlet).__name__}.{relation_name} has unsupported kind {relation.kind!r}",
                relation_name,
            )
        return relation

    @staticmethod
    def _one_to_one(relation: Relation, formlet_type: Type["Formlet"]) -> List["Formlet"]:
        child = formlet_type()
        child.relation_binding = RelationBinding(RelationKind.ONE_TO_ONE, relation)
        if relation.owner_exists:
            related = relation.fetch_related()
            if related is not None:
                child.model(related)
        return [child]

    @staticmethod
    def _one_to_many(
        relation: Relation,
        formlet_type: Type["Formlet"],
        configurator: Optional[QueryCustomizer],
        count: int,
    ) -> List["Formlet"]:
        binding = RelationBinding(RelationKind.ONE_TO_MANY, relation)

        if not relation.owner_exists:
            children = [formlet_type() for _ in range(count)]
            for child in children:
                child.relation_binding = binding
            return children

        children = []
        for record in relation.fetch_related(configurator):
            child = formlet_type()
            child.relation_binding = binding
            child.model(record)
            children.append(child)
        return children

    @staticmethod
    def _many_to_many(
        relation: Relation,
        formlet_type: Type["Formlet"],
        configurator: Optional[QueryCustomizer],
    ) -> List["Formlet"]:
        associated = list(relation.fetch_related()) if relation.owner_exists else None
        binding = RelationBinding(RelationKind.MANY_TO_MANY, relation, associated)

        children = []
        for candidate in relation.fetch_candidates(configurator):
            child = formlet_type()
            child.relation_binding = binding
            child.related = candidate

            # Selected children are bound to the associated record so pivot
            # columns populate their fields
            record = binding.association_for(candidate)
            if record is not None:
                child.model(record)
            children.append(child)
        return children
