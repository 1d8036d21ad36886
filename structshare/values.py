"""
structshare.values — Container kinds, value sameness and copying.

Every primitive needs the same three answers about a value:

    • What KIND is it?   mapping, sequence, or scalar
    • Is it the SAME as another value?   (the no-op test)
    • How do I get a private SHALLOW COPY of it?

Kinds are decided by the abstract collection types, so any Mapping or
Sequence works as input, including read-only ones like
MappingProxyType and tuple.  Strings and byte strings are Sequences to
Python but scalars here.
"""

import copy
from collections.abc import Mapping, MutableMapping, MutableSequence, Sequence
from enum import Enum, auto
from typing import Any


class Kind(Enum):
    """The three shapes a value can take."""
    MAPPING = auto()
    SEQUENCE = auto()
    SCALAR = auto()


class _Missing:
    """Marker for "no value at this key" (distinct from None)."""
    __slots__ = ()

    def __repr__(self) -> str:
        return "MISSING"

    def __bool__(self) -> bool:
        return False


MISSING = _Missing()

# Scalars that are compared by value rather than identity.
_VALUE_TYPES = (str, bytes, int, float, complex, bool, type(None))

_SCALAR_SEQUENCES = (str, bytes, bytearray)


def kind_of(value: Any) -> Kind:
    """Classify a value as MAPPING, SEQUENCE or SCALAR."""
    if isinstance(value, Mapping):
        return Kind.MAPPING
    if isinstance(value, Sequence) and not isinstance(value, _SCALAR_SEQUENCES):
        return Kind.SEQUENCE
    return Kind.SCALAR


def is_mapping(value: Any) -> bool:
    return kind_of(value) is Kind.MAPPING


def is_sequence(value: Any) -> bool:
    return kind_of(value) is Kind.SEQUENCE


def is_container(value: Any) -> bool:
    return kind_of(value) is not Kind.SCALAR


def same_value(a: Any, b: Any) -> bool:
    """
    True when replacing `a` with `b` would not change anything observable.

    Identical objects are always the same.  Plain scalars of exactly the
    same type are the same when they compare equal.  Containers are only
    ever the same by identity: an equal-but-distinct dict is a change.
    """
    if a is b:
        return True

    # bool is a subclass of int (True == 1), so the types must match
    # exactly or True/1 would be conflated.
    if type(a) is not type(b) or not isinstance(a, _VALUE_TYPES):
        return False
    return a == b


def force_list(value: Any) -> list:
    """
    Coerce an argument to a list.

    Lists and tuples are taken element-wise; anything else (including a
    string) becomes a one-element list.
    """
    if isinstance(value, (list, tuple)):
        return list(value)
    return [value]


def shallow_copy(container: Any) -> Any:
    """
    Return a new, writable, one-level copy of a container.

    Mutable containers keep their concrete type (OrderedDict stays an
    OrderedDict); read-only ones become a dict or list.
    """
    if isinstance(container, (MutableMapping, MutableSequence)):
        return copy.copy(container)
    if isinstance(container, Mapping):
        return dict(container)
    if is_sequence(container):
        return list(container)
    raise TypeError(f"Cannot copy non-container value: {type(container).__name__}")


def is_writable(container: Any) -> bool:
    """True when the container supports in-place item assignment."""
    return isinstance(container, (MutableMapping, MutableSequence))
