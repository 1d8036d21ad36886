"""
structshare.ops — The public operation table.

`set` is the one operation shared by both container kinds; it dispatches
on Kind.  The tables map operation names to callables so composition
helpers can look operations up by name and bind everything but the
container (and a shared token) themselves:

    step = partial(OPERATIONS["set_in"], "a.b", 1, token=token)
"""

from typing import Any, Optional

from . import maps, mutable, sequences
from .ownership import Token
from .values import Kind, kind_of


def set(key: Any, value: Any, container: Any, *, token: Optional[Token] = None) -> Any:
    """
    Return `container` with `key` (a mapping key or a sequence index) set
    to `value`; `container` itself when nothing changes.
    """
    kind = kind_of(container)
    if kind is Kind.MAPPING:
        return maps.set(key, value, container, token=token)
    if kind is Kind.SEQUENCE:
        return sequences.set(key, value, container, token=token)
    raise TypeError(f"Cannot set a key on non-container value: {type(container).__name__}")


OPERATIONS = {
    # mapping operations
    "merge": maps.merge,
    "deep_merge": maps.deep_merge,
    "omit": maps.omit,
    "set_in": maps.set_in,
    # sequence operations
    "insert": sequences.insert,
    "push": sequences.push,
    "filter": sequences.filter,
    "splice": sequences.splice,
    # both
    "set": set,
}

MUTABLE_OPERATIONS = {
    "merge": mutable.merge,
    "deep_merge": mutable.deep_merge,
    "omit": mutable.omit,
    "set_in": mutable.set_in,
    "insert": mutable.insert,
    "push": mutable.push,
    "filter": mutable.filter,
    "splice": mutable.splice,
    "set": mutable.set,
}
