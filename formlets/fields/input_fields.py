"""Free-text field variants."""

from typing import Any, Literal

from formlets.fields.base_field import BaseField, FieldKind


class Input(BaseField):
    kind: Literal[FieldKind.INPUT] = FieldKind.INPUT
    input_type: str = "text"

    def __init__(self, name: str, input_type: str = "text", **data: Any):
        super().__init__(name=name, input_type=input_type, **data)


class TextArea(BaseField):
    kind: Literal[FieldKind.TEXTAREA] = FieldKind.TEXTAREA

    def __init__(self, name: str, **data: Any):
        super().__init__(name=name, **data)


class Hidden(BaseField):
    """Hidden input. Collected in the formlet's hidden namespace, never among visible fields."""

    kind: Literal[FieldKind.HIDDEN] = FieldKind.HIDDEN

    def __init__(self, name: str, value: Any = None, **data: Any):
        super().__init__(name=name, **data)
        if value is not None:
            self.set_value(value)
