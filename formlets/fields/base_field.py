"""
Base field node shared by every field variant.

A field is a leaf of the formlet tree. It carries a local ``name``, the
resolved ``value``, a static ``default`` and presentation ``attributes``.
Which source produced the value is recorded in ``source`` once the field
has been populated during ``Formlet.build()``.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field


class FieldKind(str, Enum):
    """Closed set of field variants."""

    INPUT = "input"
    TEXTAREA = "textarea"
    HIDDEN = "hidden"
    CHECKBOX = "checkbox"
    SELECT = "select"
    RADIO = "radio"
    CHECKBOX_GROUP = "checkbox_group"


class ValueSource(str, Enum):
    """Where a field's resolved value came from, highest precedence first."""

    PRIOR_SUBMISSION = "prior_submission"
    EXPLICIT = "explicit"
    BOUND_DATA = "bound_data"
    DEFAULT = "default"
    SYSTEM = "system"


class BaseField(BaseModel):
    """Common contract of all field variants."""

    kind: FieldKind
    name: str
    value: Any = None
    has_explicit_value: bool = False
    default: Any = None
    label: Optional[str] = None
    attributes: Dict[str, Any] = Field(default_factory=dict)

    # Populated during build
    instance_name: Optional[str] = None
    source: Optional[ValueSource] = None

    model_config = ConfigDict(
        arbitrary_types_allowed=True,
        validate_assignment=True,
    )

    def set_value(self, value: Any) -> "BaseField":
        """Assign a value programmatically; it outranks bound data and defaults."""
        self.value = value
        self.has_explicit_value = True
        return self

    def set_default(self, value: Any) -> "BaseField":
        self.default = value
        return self

    def set_label(self, label: str) -> "BaseField":
        self.label = label
        return self

    def set_attribute(self, key: str, value: Any = True) -> "BaseField":
        self.attributes[key] = value
        return self

    def remove_attribute(self, key: str) -> "BaseField":
        self.attributes.pop(key, None)
        return self

    def get_attribute(self, key: str, default: Any = None) -> Any:
        return self.attributes.get(key, default)

    @property
    def is_hidden(self) -> bool:
        return self.kind is FieldKind.HIDDEN

    @property
    def is_resolved(self) -> bool:
        return self.source is not None

    def mark_resolved(self, value: Any, source: ValueSource) -> None:
        self.value = value
        self.source = source
