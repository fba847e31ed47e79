"""
# Form Composition Strategy

1. Tree Shape → Formlet Classes

- Fields and named groups of child formlets registered in ``prepare()``
- Relations of a bound record replicated into child formlets at build time
- Key paths derived from prefix, group names and indexes

2. Field Values → Resolution Policy

- Prior submission, explicit value, bound record, static default
- Kind-specific post-processing (checkbox on/off, option containment)
- Provenance of every resolved value

3. Cross-cutting Fields → System Field Injector

- Method override, anti-forgery token, spam traps in the hidden namespace

4. Settings → Pydantic Model

- Verb, prefix, field names, logging level from defaults, config files and overrides
"""

from .errors import (
    FormletError,
    DuplicateFieldError,
    RelationError,
    UnknownRelationError,
    InvalidRelationError,
    StaleBindingError,
    BuildStateError,
    ReentrantBuildError,
    FormletConfigError,
)
from .settings import FormSettings
from .fields import (
    AnyField,
    BaseField,
    FieldKind,
    ValueSource,
    Input,
    TextArea,
    Hidden,
    Checkbox,
    Select,
    Radio,
    CheckboxGroup,
)
from .population import DictSession, PriorSubmissionStore, ProvenanceRecord
from .relations import (
    BelongsToMany,
    HasMany,
    HasOne,
    RecordQuery,
    Relation,
    RelationBinding,
    RelationKind,
)
from .result import BuildResult, FormletSnapshot
from .formlet import BuildState, Formlet
