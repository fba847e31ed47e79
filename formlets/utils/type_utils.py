"""Type utility functions for formlets.

This module provides type-related utilities:
- Boolean parsing of string flags
- Sequence and record detection used during value population
- Loose scalar comparison for option selection
"""

from collections.abc import Mapping, Sequence
from typing import Any, Optional, Union


class _Missing:
    """Sentinel type distinguishing an absent key from a stored falsy value."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "MISSING"


MISSING: Any = _Missing()

# Type conversion sets
_true_set = {"yes", "true", "t", "y", "1", "on"}
_false_set = {"no", "false", "f", "n", "0", "off"}

_scalar_types = (str, bytes, int, float, bool)


def str_to_bool(value: Union[str, bool], raise_exc: bool = False) -> Optional[bool]:
    """Convert string to boolean value.

    Handles common boolean string representations:
    - True: 'yes', 'true', 't', 'y', '1', 'on'
    - False: 'no', 'false', 'f', 'n', '0', 'off'

    Args:
        value: String or boolean value to convert
        raise_exc: Whether to raise exception for invalid values

    Returns:
        Boolean value or None if invalid and not raising

    Raises:
        ValueError: If value is invalid and raise_exc is True
    """
    if isinstance(value, str):
        value = value.lower()
        if value in _true_set:
            return True
        if value in _false_set:
            return False
    elif isinstance(value, bool):
        return value
    if raise_exc:
        raise ValueError('Expected "%s"' % '", "'.join(sorted(_true_set | _false_set)))
    return None


def is_sequence(value: Any) -> bool:
    """True for list-like containers, never for strings or mappings."""
    if isinstance(value, (str, bytes, Mapping)):
        return False
    return isinstance(value, (list, tuple, set, frozenset))


def is_record(value: Any) -> bool:
    """True for mappings and attribute objects, i.e. anything that is not a scalar or sequence."""
    if value is None or isinstance(value, _scalar_types):
        return False
    return not is_sequence(value)


def get_segment(target: Any, segment: Union[str, int]) -> Any:
    """Read one path segment from a mapping, a sequence or an attribute object.

    Returns ``MISSING`` instead of raising when the segment does not exist.
    Numeric segments index into sequences; mappings are tried with the string
    key first and then with its integer form.
    """
    if target is None or target is MISSING:
        return MISSING

    key = str(segment)

    if isinstance(target, Mapping):
        if key in target:
            return target[key]
        if key.isdigit() and int(key) in target:
            return target[int(key)]
        return MISSING

    if isinstance(target, Sequence) and not isinstance(target, (str, bytes)):
        if not key.isdigit():
            return MISSING
        index = int(key)
        if index < len(target):
            return target[index]
        return MISSING

    if isinstance(target, (str, bytes, int, float, bool)):
        return MISSING

    if key.isidentifier():
        return getattr(target, key, MISSING)
    return MISSING


def loose_equals(left: Any, right: Any) -> bool:
    """Compare two submitted scalars the way an HTML form round-trip does.

    ``"1"`` equals ``1`` because submitted values arrive as strings, but
    booleans only ever equal booleans so that ``False`` never matches ``"0"``
    or ``0``.
    """
    if isinstance(left, bool) or isinstance(right, bool):
        return isinstance(left, bool) and isinstance(right, bool) and left is right
    if left == right:
        return True
    if left is None or right is None:
        return False
    return str(left) == str(right)
