"""
Value resolution policy.

For every field the first source that yields a value wins:

1. Prior submission, looked up by the field's instance name. A present key
   wins even over an explicit value ("the user's last attempt wins").
2. Explicit value assigned with ``set_value()``.
3. Nearest bound data, traversed with the field's local name.
4. Static default.

The raw value is then post-processed according to the field kind.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Optional, Tuple

from formlets.fields import BaseField, FieldKind, ValueSource
from formlets.population.stores import PriorSubmissionStore
from formlets.population.traversal import traverse
from formlets.utils import MISSING

if TYPE_CHECKING:
    from formlets.formlet import Formlet

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ProvenanceRecord:
    """Source of a resolved field value."""

    source: ValueSource
    path: str

    def is_default(self) -> bool:
        return self.source is ValueSource.DEFAULT

    def format(self) -> str:
        return self.source.value


class ValueResolutionPolicy:
    """Resolve field values against the configured sources."""

    def __init__(self, store: Optional[PriorSubmissionStore] = None):
        self.store = store or PriorSubmissionStore()

    def raw_value(self, field: BaseField, formlet: "Formlet") -> Tuple[Any, ValueSource]:
        instance_name = field.instance_name or field.name

        submitted = self.store.lookup(instance_name)
        if submitted is not MISSING:
            return submitted, ValueSource.PRIOR_SUBMISSION

        if field.has_explicit_value:
            return field.value, ValueSource.EXPLICIT

        bound = formlet.nearest_bound_data()
        if bound is not None:
            found = traverse(bound, field.name)
            if found is not MISSING:
                return found, ValueSource.BOUND_DATA

        return field.default, ValueSource.DEFAULT

    def resolve(self, field: BaseField, formlet: "Formlet") -> ProvenanceRecord:
        """Populate ``field`` in place and return where its value came from.

        A field that is already resolved keeps its value.
        """
        instance_name = field.instance_name or field.name
        if field.is_resolved:
            return ProvenanceRecord(field.source, instance_name)

        raw, source = self.raw_value(field, formlet)
        field.mark_resolved(self.finalize(field, raw), source)

        logger.debug(
            f"Resolved '{instance_name}' from {source.value}: {field.value!r}"
        )
        return ProvenanceRecord(source, instance_name)

    @staticmethod
    def finalize(field: BaseField, raw: Any) -> Any:
        """Apply kind-specific rules to a raw value."""
        if field.kind is FieldKind.CHECKBOX:
            return field.checked_value if field.matches(raw) else field.unchecked_value
        # Choice kinds keep the scalar or sequence they were given
        return raw
