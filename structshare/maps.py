"""
structshare.maps — Copy-on-write updates for mappings.

Every operation takes the target mapping LAST and returns the updated
mapping.  The input is never changed unless the token owns it, and an
update that would not change anything returns the input itself:

    state = {"user": {"name": "Ada", "age": 36}, "flags": {...}}

    set_in("user.age", 37, state)
        → new root, new "user"; state["flags"] is shared by reference

    set_in("user.age", 36, state)  is  state
    omit("missing", state)          is  state

MERGE ALGORITHM
═══════════════

All four merge flavours (shallow/deep × copy-on-write/in-place) are one
function, _merge, parameterized by `deep` and `in_place`.  For every key
of every source, in order:

    1. If deep, and both the current and incoming values are mappings,
       the incoming value becomes _merge(incoming, current), which is
       `current` itself when the nested merge changed nothing.
    2. If the (possibly merged) incoming value is the same as the current
       one, skip the key.
    3. Otherwise copy the target once (unless it may be changed in place)
       and assign.

Because step 1 returns the untouched subtree when nothing below changed,
a parent only copies itself for changes at its own level, and unrelated
subtrees keep their identity however deep the merge goes.  Sequences
are atomic values here: they are replaced, never merged element-wise.
"""

from collections.abc import Mapping
from typing import Any, Optional

from .errors import TraversalError
from .ownership import TRACKER, Token, adopt, owned_copy
from .paths import PATH_SEPARATOR, PathLike, as_index, lookup, normalize_path
from .sequences import item_at, place
from .sessions import resolve_token
from .values import MISSING, force_list, is_container, is_mapping, is_sequence, is_writable, same_value


def set(key: Any, value: Any, container: Any, *, token: Optional[Token] = None) -> Any:
    """Return `container` with `key` set to `value`."""
    token = resolve_token(token)
    if TRACKER.can_mutate(container, token):
        container[key] = value
        return container

    if same_value(lookup(container, key), value):
        return container
    result = owned_copy(container, token)
    result[key] = value
    return result


def _present(keys: Any, container: Any) -> list:
    present = []
    for key in force_list(keys):
        try:
            if key in container:
                present.append(key)
        except TypeError:
            # unhashable keys can never be present
            continue
    return present


def omit_in_place(keys: Any, container: Any) -> Any:
    for key in _present(keys, container):
        container.pop(key, None)
    return container


def omit(keys: Any, container: Any, *, token: Optional[Token] = None) -> Any:
    """
    Return `container` without `keys` (one key, or a list/tuple of keys).

    Keys that are not present are ignored; if none are present the input
    is returned unchanged.
    """
    token = resolve_token(token)
    if TRACKER.can_mutate(container, token):
        return omit_in_place(keys, container)

    present = _present(keys, container)
    if not present:
        return container
    return omit_in_place(present, owned_copy(container, token))


# ═══════════════════════════════════════════════════════════════════
#  MERGE
# ═══════════════════════════════════════════════════════════════════

def _sources(sources: Any) -> list:
    if isinstance(sources, Mapping):
        return [sources]
    return list(sources)


def _merge(sources: Any, container: Any, token: Optional[Token], *,
           deep: bool, in_place: bool) -> Any:
    result = container
    writable = in_place or TRACKER.can_mutate(container, token)

    for source in _sources(sources):
        for key, incoming in source.items():
            current = lookup(result, key)
            if deep and incoming is not current and is_mapping(incoming) and is_mapping(current):
                # Nested levels are never forced in place: only the
                # target itself is known to be exclusively held.
                incoming = _merge(incoming, current, token, deep=True, in_place=False)

            if same_value(current, incoming):
                continue
            if not writable:
                result = owned_copy(container, token)
                writable = True
            result[key] = incoming

    return result


def merge(sources: Any, container: Any, *, token: Optional[Token] = None) -> Any:
    """
    Shallow-merge one mapping, or a list of mappings in order, into
    `container`.  Returns `container` itself when no key changes.
    """
    return _merge(sources, container, resolve_token(token), deep=False, in_place=False)


def deep_merge(sources: Any, container: Any, *, token: Optional[Token] = None) -> Any:
    """
    Recursively merge one mapping, or a list of mappings in order, into
    `container`.

    Where both sides hold a mapping under the same key, the two are merged
    rather than replaced.  Subtrees the sources do not actually change keep
    their identity.
    """
    return _merge(sources, container, resolve_token(token), deep=True, in_place=False)


# ═══════════════════════════════════════════════════════════════════
#  SET IN PATH
# ═══════════════════════════════════════════════════════════════════

def _child(node: Any, key: Any) -> Any:
    """The value a write through `key` would replace, or MISSING."""
    if is_sequence(node):
        index = as_index(key)
        return MISSING if index is None else item_at(node, index)
    return lookup(node, key)


def _current(keys: list, container: Any) -> Any:
    node = container
    for key in keys:
        if not is_container(node):
            return MISSING
        node = _child(node, key)
        if node is MISSING:
            return MISSING
    return node


def _assign(node: Any, key: Any, value: Any, prefix: list) -> None:
    if is_sequence(node):
        index = as_index(key)
        if index is None:
            raise TraversalError(prefix, key, node)
        place(node, index, value)
    else:
        node[key] = value


def _set_in(path: PathLike, value: Any, container: Any, token: Optional[Token], *,
            in_place: bool, sep: str = PATH_SEPARATOR) -> Any:
    keys = normalize_path(path, sep)
    if not keys:
        return value
    if not is_container(container):
        raise TraversalError(keys[:1], keys[0], container)
    if not in_place and same_value(_current(keys, container), value):
        return container

    if (in_place and is_writable(container)) or TRACKER.can_mutate(container, token):
        root = container
    else:
        root = owned_copy(container, token)

    node = root
    for depth, key in enumerate(keys[:-1]):
        prefix = keys[:depth + 1]
        child = _child(node, key)

        if child is MISSING:
            if is_sequence(node) and as_index(key) is None:
                raise TraversalError(prefix, key, node)
            child = adopt({}, token)
        elif not is_container(child):
            raise TraversalError(prefix, key, child)
        elif (in_place and is_writable(child)) or TRACKER.can_mutate(child, token):
            node = child
            continue
        else:
            child = owned_copy(child, token)

        _assign(node, key, child, prefix)
        node = child

    _assign(node, keys[-1], value, keys)
    return root


def set_in(path: PathLike, value: Any, container: Any, *,
           token: Optional[Token] = None, sep: str = PATH_SEPARATOR) -> Any:
    """
    Return `container` with the value at `path` replaced by `value`.

    Every container on the path is copied (or changed in place when the
    token owns it); everything off the path is shared.  Missing segments
    along the way are created as empty dicts; a missing sequence index is
    filled in the same way as a final one, padding the gap with None.

    Raises TraversalError when a non-final segment holds a scalar, or a
    sequence on the path is given a key that is not an integer.
    """
    return _set_in(path, value, container, resolve_token(token), in_place=False, sep=sep)
