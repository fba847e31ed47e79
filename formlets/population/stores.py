"""
Read-only collaborators consulted while populating fields.

``PriorSubmissionStore`` answers "what did the user submit last time for this
key path", layering the session's old input over the current request input.
``SessionStore`` is the narrow contract for anything that can hand out the
current anti-forgery token.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Mapping, Optional, Protocol, runtime_checkable

from formlets.population.traversal import traverse
from formlets.utils import MISSING

logger = logging.getLogger(__name__)


@runtime_checkable
class SessionStore(Protocol):
    """Anti-forgery/session collaborator."""

    def current_token(self) -> Optional[str]: ...

    def old_input(self) -> Mapping[str, Any]: ...


class DictSession:
    """In-memory session holding a token and the previous submission."""

    TOKEN_KEY = "_token"
    OLD_INPUT_KEY = "_old_input"

    def __init__(self, data: Optional[Dict[str, Any]] = None):
        self._data: Dict[str, Any] = dict(data or {})

    def current_token(self) -> Optional[str]:
        return self._data.get(self.TOKEN_KEY)

    def old_input(self) -> Mapping[str, Any]:
        return self._data.get(self.OLD_INPUT_KEY) or {}

    def put(self, key: str, value: Any) -> None:
        self._data[key] = value

    def flash_input(self, data: Mapping[str, Any]) -> None:
        """Store a submission so the next form build repopulates from it."""
        self._data[self.OLD_INPUT_KEY] = dict(data)


class PriorSubmissionStore:
    """Layered, key-path addressable view over previous submissions.

    Layers are consulted in order and the first one that contains the path
    wins, even when the stored value is empty or false.
    """

    def __init__(self, *layers: Mapping[str, Any]):
        self._layers: List[Mapping[str, Any]] = [layer for layer in layers if layer]

    @classmethod
    def from_sources(
        cls,
        session: Optional[SessionStore] = None,
        request_input: Optional[Mapping[str, Any]] = None,
        old_input: Optional[Mapping[str, Any]] = None,
    ) -> "PriorSubmissionStore":
        """Old input (explicit, else from the session) first, request input second."""
        if old_input is None and session is not None:
            old_input = session.old_input()
        return cls(old_input or {}, request_input or {})

    def __bool__(self) -> bool:
        return bool(self._layers)

    def lookup(self, path: str) -> Any:
        """Return the stored value at ``path`` or ``MISSING``.

        A layer keyed by full instance names (``prefix:child[0][name]``) is
        matched on the exact key before the path is walked as nested data.
        """
        for depth, layer in enumerate(self._layers):
            value = layer[path] if path in layer else traverse(layer, path)
            if value is not MISSING:
                logger.debug(f"Prior submission hit for '{path}' in layer {depth}")
                return value
        return MISSING

    def has(self, path: str) -> bool:
        return self.lookup(path) is not MISSING
