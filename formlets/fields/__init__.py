from typing import Annotated, Union

from pydantic import Field

from .base_field import BaseField, FieldKind, ValueSource
from .input_fields import Input, TextArea, Hidden
from .choice_fields import Checkbox, ChoiceField, Select, Radio, CheckboxGroup

AnyField = Annotated[
    Union[Input, TextArea, Hidden, Checkbox, Select, Radio, CheckboxGroup],
    Field(discriminator="kind"),
]
