"""
Field variants that select among options.

The resolved value of a choice field is either a single scalar or a sequence
of scalars (or of records, when it was populated from a bound relation).
Option selection is a containment test against that value.
"""

from typing import Any, Dict, Literal, Optional

from pydantic import Field

from formlets.fields.base_field import BaseField, FieldKind
from formlets.utils import MISSING, get_segment, is_record, is_sequence, loose_equals


class Checkbox(BaseField):
    """Single checkbox.

    Resolves to ``checked_value`` when the raw value matches it and to
    ``unchecked_value`` otherwise, so a checkbox with no source is simply off.
    """

    kind: Literal[FieldKind.CHECKBOX] = FieldKind.CHECKBOX
    checked_value: Any = 1
    unchecked_value: Any = False

    def __init__(
        self,
        name: str,
        checked_value: Any = 1,
        unchecked_value: Any = False,
        **data: Any,
    ):
        super().__init__(
            name=name,
            checked_value=checked_value,
            unchecked_value=unchecked_value,
            **data,
        )

    def matches(self, raw: Any) -> bool:
        """Whether a raw submitted or bound value turns the checkbox on."""
        if is_sequence(raw):
            return any(loose_equals(item, self.checked_value) for item in raw)
        return loose_equals(raw, self.checked_value)

    @property
    def is_checked(self) -> bool:
        return self.is_resolved and loose_equals(self.value, self.checked_value)


class ChoiceField(BaseField):
    """Shared behaviour of option-based variants."""

    options: Dict[Any, Any] = Field(default_factory=dict)
    key_attribute: str = "id"

    def __init__(self, name: str, options: Optional[Dict[Any, Any]] = None, **data: Any):
        super().__init__(name=name, options=dict(options or {}), **data)

    @property
    def is_multiple(self) -> bool:
        return bool(self.attributes.get("multiple"))

    def _option_key_of(self, item: Any) -> Any:
        if is_record(item):
            return get_segment(item, self.key_attribute)
        return item

    def is_selected(self, option_key: Any) -> bool:
        """Containment check of ``option_key`` against the resolved value."""
        value = self.value
        if value is None or value is MISSING:
            return False
        if is_sequence(value):
            return any(
                loose_equals(self._option_key_of(item), option_key) for item in value
            )
        return loose_equals(self._option_key_of(value), option_key)

    def selected_options(self) -> Dict[Any, Any]:
        return {
            key: label for key, label in self.options.items() if self.is_selected(key)
        }


class Select(ChoiceField):
    kind: Literal[FieldKind.SELECT] = FieldKind.SELECT

    def placeholder(self, text: str) -> "Select":
        """Prepend an empty option carrying the placeholder text."""
        self.options = {"": text, **self.options}
        return self

    def multiple(self, multiple: bool = True) -> "Select":
        if multiple:
            self.set_attribute("multiple")
        else:
            self.remove_attribute("multiple")
        return self


class Radio(ChoiceField):
    kind: Literal[FieldKind.RADIO] = FieldKind.RADIO


class CheckboxGroup(ChoiceField):
    kind: Literal[FieldKind.CHECKBOX_GROUP] = FieldKind.CHECKBOX_GROUP

    @property
    def is_multiple(self) -> bool:
        return True
