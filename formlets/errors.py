"""Error taxonomy for formlet composition, population and relation expansion."""

from typing import Any, Dict, Optional


class FormletError(Exception):
    """Base class for every error raised by formlets."""


class DuplicateFieldError(FormletError):
    """A field with the same local name is already registered on the formlet."""

    def __init__(self, field_name: str, owner: Optional[str] = None):
        self.field_name = field_name
        self.owner = owner
        where = f" on {owner}" if owner else ""
        super().__init__(f"Field '{field_name}' is already registered{where}")


class RelationError(FormletError):
    """A declared relation could not be expanded into child formlets."""

    def __init__(self, message: str, relation_name: Optional[str] = None):
        self.relation_name = relation_name
        super().__init__(message)


class UnknownRelationError(RelationError):
    """The bound record has no accessor with the declared relation name."""


class InvalidRelationError(RelationError):
    """The accessor exists but does not yield a relationship."""


class StaleBindingError(FormletError):
    """Data was bound to a formlet after it had already been built."""


class BuildStateError(FormletError):
    """``build()`` was invoked from a state that does not allow it."""


class ReentrantBuildError(BuildStateError):
    """``build()`` was invoked on a formlet that is currently building."""


class FormletConfigError(FormletError):
    """Configuration-specific error with context information."""

    def __init__(self, message: str, context: Optional[Dict[str, Any]] = None):
        self.context = context or {}
        super().__init__(f"{message}\nContext: {self.context}")
