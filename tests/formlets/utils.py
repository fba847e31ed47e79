"""Shared formlets and record stubs for formlet tests."""

from __future__ import annotations

from typing import Any, Callable, Dict, Optional

from formlets import Checkbox, Formlet, Input


class ClosureFormlet(Formlet):
    """Root formlet whose ``prepare()`` delegates to a callable."""

    def __init__(self, closure: Optional[Callable[[Formlet], Any]] = None, **kwargs: Any):
        super().__init__(**kwargs)
        self.closure = closure
        self.prepare_calls = 0

    def prepare(self) -> None:
        self.prepare_calls += 1
        if self.closure is not None:
            self.closure(self)


class GrandChildFormlet(Formlet):
    def prepare(self) -> None:
        self.add_field(Input("name"))


class ChildFormlet(Formlet):
    def prepare(self) -> None:
        self.add_field(Input("name"))
        self.add_group("grandchild", GrandChildFormlet)


class LeafFormlet(Formlet):
    """Child with a single ``name`` field and no nested groups."""

    def prepare(self) -> None:
        self.add_field(Input("name"))


class SubscriptionFormlet(Formlet):
    """Many-to-many option row: selection checkbox plus a pivot column."""

    def prepare(self) -> None:
        self.add_field(Checkbox("id", checked_value=self.related["id"]))
        self.add_field(Input("pivot[frequency]"))


class RecordStub:
    """Attribute record with an ``exists`` flag and arbitrary accessors."""

    def __init__(self, data: Optional[Dict[str, Any]] = None, exists: bool = True):
        self.exists = exists
        for key, value in (data or {}).items():
            if isinstance(value, dict):
                value = RecordStub(value, exists=exists)
            setattr(self, key, value)

    def relation(self):
        return None
