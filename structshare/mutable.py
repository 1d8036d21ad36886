"""
structshare.mutable — Unconditional in-place variants.

For callers that already hold the only reference to a container: these
change the container they are given and return it, without consulting
ownership.  Signatures match the copy-on-write operations.

Containers these functions have to CREATE (empty dicts along a set_in
path) are still handed to the active token, and nested mappings reached
by deep_merge are still treated copy-on-write unless owned. Exclusive
access to the top level says nothing about what it points to.
"""

from typing import Any, Callable, Optional

from . import maps, sequences
from .ownership import Token
from .paths import PATH_SEPARATOR, PathLike
from .sessions import resolve_token
from .values import Kind, kind_of


def set(key: Any, value: Any, container: Any, *, token: Optional[Token] = None) -> Any:
    if kind_of(container) is Kind.SEQUENCE:
        return sequences.place(container, sequences.require_index(key), value)
    container[key] = value
    return container


def omit(keys: Any, container: Any, *, token: Optional[Token] = None) -> Any:
    return maps.omit_in_place(keys, container)


def merge(sources: Any, container: Any, *, token: Optional[Token] = None) -> Any:
    return maps._merge(sources, container, resolve_token(token), deep=False, in_place=True)


def deep_merge(sources: Any, container: Any, *, token: Optional[Token] = None) -> Any:
    return maps._merge(sources, container, resolve_token(token), deep=True, in_place=True)


def set_in(path: PathLike, value: Any, container: Any, *,
           token: Optional[Token] = None, sep: str = PATH_SEPARATOR) -> Any:
    return maps._set_in(path, value, container, resolve_token(token), in_place=True, sep=sep)


def splice(index: int, delete_count: int, values: Any, seq: Any, *,
           token: Optional[Token] = None) -> Any:
    return sequences.splice_in_place(index, delete_count, values, seq)


def insert(index: int, values: Any, seq: Any, *, token: Optional[Token] = None) -> Any:
    return sequences.splice_in_place(index, 0, values, seq)


def push(values: Any, seq: Any, *, token: Optional[Token] = None) -> Any:
    return sequences.splice_in_place(len(seq), 0, values, seq)


def filter(predicate: Callable[[Any, int], bool], seq: Any, *,
           token: Optional[Token] = None) -> Any:
    return sequences.filter_in_place(predicate, seq)
