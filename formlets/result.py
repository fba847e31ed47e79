"""
Read-only build output.

``Formlet.build()`` returns a ``BuildResult`` whose ``form`` is a snapshot of
the tree organised as nested named groups: visible ``fields``, the ``hidden``
namespace (user hidden fields plus system fields on the root) and child
``formlets`` per group. Fields in a snapshot are copies; mutating them does
not affect the live tree.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Dict, Iterator, Mapping, Optional, Tuple

from formlets.fields import BaseField
from formlets.population import ProvenanceRecord
from formlets.utils import format_value, log_section

logger = logging.getLogger(__name__)


def _empty() -> Mapping[str, Any]:
    return MappingProxyType({})


@dataclass(frozen=True)
class FormletSnapshot:
    path: str
    instance_key: str
    attributes: Mapping[str, Any] = field(default_factory=_empty)
    fields: Mapping[str, BaseField] = field(default_factory=_empty)
    hidden: Mapping[str, BaseField] = field(default_factory=_empty)
    formlets: Mapping[str, Tuple["FormletSnapshot", ...]] = field(default_factory=_empty)
    related: Any = None
    selected: bool = False

    def get(self, key: str, default: Any = None) -> Any:
        """Mapping-style access to the named sections."""
        if key in ("attributes", "fields", "hidden", "formlets"):
            return getattr(self, key)
        return default

    def iter_fields(self) -> Iterator[BaseField]:
        """Every field of this snapshot and its descendants, depth first."""
        yield from self.fields.values()
        yield from self.hidden.values()
        for group in self.formlets.values():
            for child in group:
                yield from child.iter_fields()


def freeze_fields(fields: Mapping[str, BaseField]) -> Mapping[str, BaseField]:
    return MappingProxyType(
        {
            key: f.model_copy(update={"attributes": dict(f.attributes)})
            for key, f in fields.items()
        }
    )


@dataclass(frozen=True)
class BuildResult:
    form: FormletSnapshot
    provenance: Mapping[str, ProvenanceRecord] = field(default_factory=dict)

    def get(self, key: str, default: Any = None) -> Any:
        if key == "form":
            return self.form
        return default

    @property
    def hidden(self) -> Mapping[str, BaseField]:
        return self.form.hidden

    def values(self) -> Dict[str, Any]:
        """Flat mapping of instance name to resolved value."""
        return {
            f.instance_name or f.name: f.value for f in self.form.iter_fields()
        }

    def log_summary(
        self,
        *,
        logger: Optional[logging.Logger] = None,
        include_defaults: bool = True,
        level: int = logging.INFO,
    ) -> None:
        """Log every resolved field with the source it was populated from."""
        logger = logger or logging.getLogger(__name__)
        entries = []
        for f in self.form.iter_fields():
            name = f.instance_name or f.name
            record = self.provenance.get(name)
            if record is not None and record.is_default() and not include_defaults:
                continue
            marker = record.format() if record is not None else None
            entries.append((name, format_value(f.value), marker))

        title = f"Formlet {self.form.path or '<root>'} values"
        log_section(logger, title, entries, level=level)
