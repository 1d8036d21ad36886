"""
structshare.paths — Key paths into nested containers.

A path is an ordered list of keys.  It may be written either as a
list/tuple of keys or as a single dotted string:

    normalize_path(["a", "b", 0])   → ["a", "b", 0]
    normalize_path("a.b.c")         → ["a", "b", "c"]
    normalize_path("plain")         → ["plain"]

There is no escaping: a key that itself contains "." can only be
reached with the list form.

Reading along a path never fails.  A scalar in the middle of the path,
a missing key or an out-of-range index all resolve to the caller's
default, unlike writing (see maps.set_in), where a scalar in the way is
a TraversalError.
"""

from typing import Any, Hashable, Union

from .values import MISSING, Kind, kind_of

PATH_SEPARATOR = "."

PathLike = Union[str, list, tuple, Hashable]


def normalize_path(path: PathLike, sep: str = PATH_SEPARATOR) -> list:
    """Turn a path argument into a list of keys."""
    if isinstance(path, str):
        if sep not in path:
            return [path]
        return path.split(sep)
    if isinstance(path, (list, tuple)):
        return list(path)
    return [path]


def as_index(key: Any) -> Union[int, None]:
    """
    Interpret a path key as a sequence index, or None.

    Digit strings such as "0" (what a dotted path produces) count as
    indices.  Booleans do not.
    """
    if isinstance(key, bool):
        return None
    if isinstance(key, str):
        digits = key[1:] if key.startswith("-") else key
        return int(key) if digits.isascii() and digits.isdigit() else None
    if isinstance(key, int):
        return key
    return None


def sequence_index(seq: Any, key: Any) -> Union[int, None]:
    """
    Resolve `key` to a valid position in `seq`, or None.

    Negative indices count from the end, as in Python.
    """
    key = as_index(key)
    if key is None:
        return None
    length = len(seq)
    if key < 0:
        key += length
    if 0 <= key < length:
        return key
    return None


def lookup(container: Any, key: Any, default: Any = MISSING) -> Any:
    """Read one key from a mapping or sequence, returning `default` on a miss."""
    kind = kind_of(container)
    if kind is Kind.MAPPING:
        try:
            return container.get(key, default)
        except TypeError:
            return default
    if kind is Kind.SEQUENCE:
        index = sequence_index(container, key)
        return default if index is None else container[index]
    return default


def get_in(path: PathLike, container: Any, default: Any = None,
           sep: str = PATH_SEPARATOR) -> Any:
    """
    Read the value at `path` inside `container`.

    Returns `default` when any segment is missing or when a non-final
    segment holds a scalar.  The final value is returned whatever its
    type.
    """
    keys = normalize_path(path, sep)
    current = container
    for key in keys:
        if kind_of(current) is Kind.SCALAR:
            return default
        current = lookup(current, key)
        if current is MISSING:
            return default
    return current


def has_in(path: PathLike, container: Any, sep: str = PATH_SEPARATOR) -> bool:
    """True when the final key of `path` exists (even if its value is None)."""
    return get_in(path, container, MISSING, sep) is not MISSING
