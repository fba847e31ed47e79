"""Nested lookup over mappings, sequences and attribute objects."""

from typing import Any, Iterable, Union

from formlets.paths import split_key_path
from formlets.utils import MISSING, get_segment


def traverse(target: Any, path: Union[str, Iterable[str]]) -> Any:
    """Follow ``path`` through ``target``.

    ``path`` is either a key path string (``user[address][0]``,
    ``name.with.dots``) or an iterable of segments. Bracket segments are
    nested lookups, numeric segments index into sequences and everything
    else falls back to attribute access. A segment that does not exist
    yields ``MISSING``; a stored ``None``, ``False`` or ``0`` is returned as is.
    """
    segments = split_key_path(path) if isinstance(path, str) else list(path)
    if not segments:
        return MISSING

    current = target
    for segment in segments:
        current = get_segment(current, segment)
        if current is MISSING:
            return MISSING
    return current
