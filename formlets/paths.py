"""
Key path resolution.

Every formlet and field has a fully qualified instance name that encodes its
position in the tree, e.g. ``prefix:child[0][grandchild][1][name]``. The same
string addresses the field in a prior submission. Resolution is pure: the
same tree shape and names always produce the same paths.
"""

from __future__ import annotations

import re
from typing import TYPE_CHECKING, List, Optional

if TYPE_CHECKING:
    from formlets.formlet import Formlet

PREFIX_SEPARATOR = ":"

_SEGMENT_SPLIT = re.compile(r"[\[\].]")


def root_path(prefix: Optional[str]) -> str:
    return f"{prefix}{PREFIX_SEPARATOR}" if prefix else ""


def child_path(parent_path: str, group_name: str, index: int) -> str:
    """Path of the child at ``index`` in ``group_name`` under ``parent_path``."""
    if not parent_path or parent_path.endswith(PREFIX_SEPARATOR):
        return f"{parent_path}{group_name}[{index}]"
    return f"{parent_path}{bracketed(group_name)}[{index}]"


def bracketed(name: str) -> str:
    """Rewrite a local name as bracket segments: ``person[name]`` -> ``[person][name]``."""
    head, sep, tail = name.partition("[")
    return f"[{head}]{sep}{tail}"


def field_instance_name(path: str, name: str) -> str:
    """Public instance name of a field with local ``name`` under a formlet at ``path``."""
    if not path:
        return name
    if path.endswith(PREFIX_SEPARATOR):
        return f"{path}{name}"
    return f"{path}{bracketed(name)}"


def resolve_path(formlet: "Formlet") -> str:
    """Compute the key path of ``formlet`` by walking up to the root."""
    parent = formlet.parent
    if parent is None:
        return root_path(formlet.prefix)
    group_name, index = formlet.position
    return child_path(resolve_path(parent), group_name, index)


def split_key_path(path: str) -> List[str]:
    """Split an instance name into lookup segments.

    ``prefix:child[0][name]`` -> ``["prefix:child", "0", "name"]``
    ``name.with.dots`` -> ``["name", "with", "dots"]``
    """
    return [segment for segment in _SEGMENT_SPLIT.split(path) if segment != ""]
