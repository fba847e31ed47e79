"""
Composite form node.

A ``Formlet`` owns an ordered set of fields and an ordered set of named
groups of child formlets. Concrete formlets implement ``prepare()`` to
register fields, groups and relations; ``build()`` then runs, exactly once
per node:

1. ``prepare()``
2. expansion of declared relations into child formlets
3. ``build()`` of every child, group by group, in append order
4. value resolution of the formlet's own fields, in registration order
5. on the root only, injection of the system hidden fields

Example:
    class AddressFormlet(Formlet):
        def prepare(self):
            self.add_field(Input("street"))

    class PersonFormlet(Formlet):
        def prepare(self):
            self.add_field(Input("name"))
            self.add_group("address", AddressFormlet)
            self.declare_relation("phones", PhoneFormlet)

    form = PersonFormlet(prefix="person").model(person).old_input(flashed)
    result = form.build()
    result.form.formlets["address"][0].fields["street"].value
"""

from __future__ import annotations

import logging
import weakref
from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Tuple, Type, Union

from formlets.errors import (
    BuildStateError,
    DuplicateFieldError,
    FormletError,
    ReentrantBuildError,
    StaleBindingError,
)
from formlets.fields import BaseField, Hidden, ValueSource
from formlets.paths import field_instance_name, resolve_path
from formlets.population import (
    PriorSubmissionStore,
    ProvenanceRecord,
    SessionStore,
    ValueResolutionPolicy,
)
from formlets.relations import QueryCustomizer, RelationBinding, RelationMaterializer
from formlets.result import BuildResult, FormletSnapshot, freeze_fields
from formlets.settings import FormSettings
from formlets.system_fields import SystemFieldInjector

logger = logging.getLogger(__name__)

Configurator = Callable[["Formlet"], Any]


class BuildState(str, Enum):
    UNBUILT = "unbuilt"
    BUILDING = "building"
    BUILT = "built"
    FAILED = "failed"


@dataclass(frozen=True)
class RelationDeclaration:
    relation_name: str
    formlet_type: Type["Formlet"]
    configurator: Optional[QueryCustomizer] = None
    count: int = 1


class Formlet:
    """Node of the form composition tree."""

    materializer: RelationMaterializer = RelationMaterializer()

    def __init__(self, settings: Optional[FormSettings] = None, **overrides: Any):
        if settings is None:
            settings = (
                FormSettings.from_config(override_kwargs=overrides)
                if overrides
                else FormSettings()
            )
        elif overrides:
            settings = FormSettings.from_config(
                override_kwargs={**settings.model_dump(), **overrides}
            )
        else:
            settings = settings.model_copy()
        self.settings = settings

        self._fields: Dict[str, BaseField] = {}
        self._groups: Dict[str, List[Formlet]] = {}
        self._relations: List[RelationDeclaration] = []
        self._system_fields: Dict[str, Hidden] = {}
        self._attributes: Dict[str, Any] = {}

        # Non-owning back reference; ownership runs strictly top-down
        self._parent_ref: Optional[weakref.ReferenceType] = None
        self._position: Optional[Tuple[str, int]] = None

        self._bound_data: Any = None
        self._session: Optional[SessionStore] = None
        self._old_input: Optional[Mapping[str, Any]] = None
        self._request_input: Optional[Mapping[str, Any]] = None
        self._policy: Optional[ValueResolutionPolicy] = None
        self._provenance: Dict[str, ProvenanceRecord] = {}
        self._result: Optional[BuildResult] = None

        self.relation_binding: Optional[RelationBinding] = None
        self.related: Any = None
        self.state = BuildState.UNBUILT

    def __repr__(self) -> str:
        return f"<{type(self).__name__} path={self.path!r} state={self.state.value}>"

    # ------------------------------------------------------------------
    # Declarative surface
    # ------------------------------------------------------------------

    def prepare(self) -> None:
        """Register fields, groups and relations. Called once per build."""
        raise NotImplementedError(
            f"{type(self).__name__} must implement prepare() to register its fields"
        )

    def add_field(self, field: BaseField) -> BaseField:
        if self.state is BuildState.BUILT:
            raise BuildStateError(
                f"Cannot add field '{field.name}' to {type(self).__name__} after build"
            )
        if field.name in self._fields:
            raise DuplicateFieldError(field.name, type(self).__name__)
        self._fields[field.name] = field
        return field

    def add_group(
        self,
        group_name: str,
        formlet_type: Type["Formlet"],
        count: int = 1,
        configurator: Optional[Configurator] = None,
    ) -> List["Formlet"]:
        """Append ``count`` new children of ``formlet_type`` to ``group_name``."""
        if self.state is BuildState.BUILT:
            raise BuildStateError(
                f"Cannot add group '{group_name}' to {type(self).__name__} after build"
            )
        children = []
        for _ in range(count):
            child = formlet_type()
            self.attach_child(group_name, child)
            if configurator is not None:
                configurator(child)
            children.append(child)
        return children

    def declare_relation(
        self,
        relation_name: str,
        formlet_type: Type["Formlet"],
        configurator: Optional[QueryCustomizer] = None,
        count: int = 1,
    ) -> RelationDeclaration:
        """Expand ``relation_name`` of the bound record into children at build time.

        ``configurator`` customizes the relationship query; ``count`` is the
        number of blank children for a one-to-many relation on an unsaved record.
        """
        declaration = RelationDeclaration(relation_name, formlet_type, configurator, count)
        self._relations.append(declaration)
        return declaration

    def attach_child(self, group_name: str, child: "Formlet") -> "Formlet":
        if child._parent_ref is not None:
            raise FormletError(f"{child!r} is already attached to a parent formlet")
        group = self._groups.setdefault(group_name, [])
        child._parent_ref = weakref.ref(self)
        child._position = (group_name, len(group))
        group.append(child)
        return child

    def add_system_field(self, key: str, field: Hidden) -> None:
        if key in self._system_fields or key in self._user_hidden_fields():
            raise DuplicateFieldError(key, type(self).__name__)
        self._system_fields[key] = field

    # ------------------------------------------------------------------
    # Root configuration
    # ------------------------------------------------------------------

    @property
    def prefix(self) -> Optional[str]:
        return self.settings.prefix

    @prefix.setter
    def prefix(self, prefix: Optional[str]) -> None:
        self.settings.prefix = prefix

    def set_prefix(self, prefix: Optional[str]) -> "Formlet":
        self.prefix = prefix
        return self

    def method(self, verb: str) -> "Formlet":
        self.settings.method = verb
        return self

    def honeypot(self, enabled: bool = True) -> "Formlet":
        self.settings.honeypot = enabled
        return self

    def action(self, url: Optional[str]) -> "Formlet":
        self.settings.action = url
        return self

    def session(self, session: Optional[SessionStore]) -> "Formlet":
        self._session = session
        return self

    def old_input(self, data: Optional[Mapping[str, Any]]) -> "Formlet":
        """Previous submission, taking precedence over the session's flashed input."""
        self._old_input = data
        return self

    def request_input(self, data: Optional[Mapping[str, Any]]) -> "Formlet":
        self._request_input = data
        return self

    def model(self, data: Any) -> "Formlet":
        """Bind a record whose values populate the fields."""
        if self.state in (BuildState.BUILT, BuildState.FAILED):
            raise StaleBindingError(
                f"Cannot bind data to {type(self).__name__} after it has been built"
            )
        self._bound_data = data
        return self

    @property
    def attributes(self) -> Dict[str, Any]:
        if self.parent is not None:
            return dict(self._attributes)
        attributes = {
            "method": self.settings.transport_method,
            "action": self.settings.action,
            "enctype": self.settings.enctype,
            "accept-charset": self.settings.accept_charset,
        }
        attributes.update(self._attributes)
        return attributes

    def set_attribute(self, key: str, value: Any = True) -> "Formlet":
        self._attributes[key] = value
        return self

    def get_attribute(self, key: str, default: Any = None) -> Any:
        return self.attributes.get(key, default)

    # ------------------------------------------------------------------
    # Tree navigation
    # ------------------------------------------------------------------

    @property
    def parent(self) -> Optional["Formlet"]:
        return self._parent_ref() if self._parent_ref is not None else None

    @property
    def root(self) -> "Formlet":
        node = self
        while node.parent is not None:
            node = node.parent
        return node

    @property
    def position(self) -> Optional[Tuple[str, int]]:
        """``(group_name, index)`` under the parent, ``None`` for the root."""
        return self._position

    @property
    def instance_key(self) -> str:
        if self._position is None:
            return ""
        group_name, index = self._position
        return f"{group_name}[{index}]"

    @property
    def path(self) -> str:
        return resolve_path(self)

    @property
    def bound_data(self) -> Any:
        return self._bound_data

    def nearest_bound_data(self) -> Any:
        """Bound record of this formlet or its closest bound ancestor.

        The walk stops at a formlet materialized from a relation: an unbound
        relation child has no data of its own and never sees the owner's.
        """
        node: Optional[Formlet] = self
        while node is not None:
            if node._bound_data is not None:
                return node._bound_data
            if node.relation_binding is not None:
                return None
            node = node.parent
        return None

    def parent_model(self) -> Any:
        """Bound record of the nearest ancestor that has one."""
        parent = self.parent
        return parent.nearest_bound_data() if parent is not None else None

    @property
    def selected(self) -> bool:
        """Whether this many-to-many option is currently associated with the owner."""
        if self.relation_binding is None or self.related is None:
            return False
        return self.relation_binding.is_selected(self.related)

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------

    def field(self, name: str) -> Optional[BaseField]:
        return self._fields.get(name)

    def fields(self, names: Union[str, Sequence[str], None] = None) -> Dict[str, BaseField]:
        """Fields in registration order, or only ``names`` in the given order."""
        if names is None:
            return dict(self._fields)
        if isinstance(names, str):
            names = [names]
        return {name: self._fields[name] for name in names if name in self._fields}

    def visible_fields(self) -> Dict[str, BaseField]:
        return {name: f for name, f in self._fields.items() if not f.is_hidden}

    def _user_hidden_fields(self) -> Dict[str, BaseField]:
        return {name: f for name, f in self._fields.items() if f.is_hidden}

    def hidden_fields(self) -> Dict[str, BaseField]:
        """User hidden fields followed by system fields."""
        hidden = self._user_hidden_fields()
        hidden.update(self._system_fields)
        return hidden

    def formlet(self, group_name: str) -> Optional["Formlet"]:
        group = self._groups.get(group_name)
        return group[0] if group else None

    def formlets(self, group_name: Optional[str] = None) -> List["Formlet"]:
        """Children of ``group_name``, or of every group flattened in group order."""
        if group_name is not None:
            return list(self._groups.get(group_name, ()))
        return [child for group in self._groups.values() for child in group]

    def groups(self) -> Dict[str, Tuple["Formlet", ...]]:
        return {name: tuple(group) for name, group in self._groups.items()}

    # ------------------------------------------------------------------
    # Build
    # ------------------------------------------------------------------

    def build(self) -> BuildResult:
        if self.state is BuildState.BUILT:
            return self._result
        if self.state is BuildState.BUILDING:
            raise ReentrantBuildError(
                f"{type(self).__name__}.build() called while it is already building"
            )
        if self.state is BuildState.FAILED:
            raise BuildStateError(
                f"{type(self).__name__} failed to build earlier and must be discarded"
            )

        self.state = BuildState.BUILDING
        try:
            self.prepare()
            self._materialize_relations()
            for child in self.formlets():
                child.build()
            self._populate_fields()
            if self.parent is None:
                SystemFieldInjector(self.settings, self._session).inject(self)
        except Exception:
            self.state = BuildState.FAILED
            logger.debug(f"Build of {type(self).__name__} failed", exc_info=True)
            raise

        self.state = BuildState.BUILT
        self._result = BuildResult(
            form=self.snapshot(),
            provenance=MappingProxyType(self.collect_provenance()),
        )
        logger.debug(
            f"Built {type(self).__name__} at '{self.path}' with {len(self._fields)} "
            f"field(s) and {len(self.formlets())} child formlet(s)"
        )
        return self._result

    def _materialize_relations(self) -> None:
        for declaration in self._relations:
            self.materializer.materialize(
                self,
                declaration.relation_name,
                declaration.formlet_type,
                declaration.configurator,
                declaration.count,
            )

    def _population_policy(self) -> ValueResolutionPolicy:
        root = self.root
        if root._policy is None:
            store = PriorSubmissionStore.from_sources(
                session=root._session,
                request_input=root._request_input,
                old_input=root._old_input,
            )
            root._policy = ValueResolutionPolicy(store)
        return root._policy

    def _populate_fields(self) -> None:
        policy = self._population_policy()
        path = self.path
        for field in self._fields.values():
            field.instance_name = field_instance_name(path, field.name)
            record = policy.resolve(field, self)
            self._provenance[record.path] = record

    def collect_provenance(self) -> Dict[str, ProvenanceRecord]:
        provenance = dict(self._provenance)
        for child in self.formlets():
            provenance.update(child.collect_provenance())
        for field in self._system_fields.values():
            provenance[field.instance_name] = ProvenanceRecord(
                ValueSource.SYSTEM, field.instance_name
            )
        return provenance

    def snapshot(self) -> FormletSnapshot:
        return FormletSnapshot(
            path=self.path,
            instance_key=self.instance_key,
            attributes=MappingProxyType(self.attributes),
            fields=freeze_fields(self.visible_fields()),
            hidden=freeze_fields(self.hidden_fields()),
            formlets=MappingProxyType(
                {
                    name: tuple(child.snapshot() for child in group)
                    for name, group in self._groups.items()
                }
            ),
            related=self.related,
            selected=self.selected,
        )
