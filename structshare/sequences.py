"""
structshare.sequences — Copy-on-write updates for ordered sequences.

Every operation takes the sequence LAST, so binding the leading
arguments with functools.partial yields a reusable one-argument
transformer:

    append_total = partial(push, [total])
    rows = append_total(rows)

The branching is the same everywhere:

    • sequence owned by the token  → change it in place, return it
    • otherwise                     → copy once, hand the copy to the
                                      token, change the copy, return it

`values` arguments that are not a list or tuple are treated as a single
element.  Index handling never raises:

    set      negative counts from the end (clamped to 0), past the end
             pads with None
    splice   negative start counts from the end, start and count are
             clamped to the sequence
"""

from typing import Any, Callable, Optional

from .ownership import TRACKER, Token, owned_copy
from .paths import as_index
from .sessions import resolve_token
from .values import MISSING, force_list, same_value


def _clamp_start(index: int, length: int) -> int:
    if index < 0:
        return max(length + index, 0)
    return min(index, length)


def require_index(key: Any) -> int:
    """Accept an int or a digit string as a sequence index."""
    index = as_index(key)
    if index is None:
        raise TypeError(f"Sequence index must be an integer, got {key!r}")
    return index


def _write_position(seq: Any, index: int) -> int:
    # Negative counts from the end, clamped to 0.
    if index < 0:
        return max(len(seq) + index, 0)
    return index


def place(seq: Any, index: int, value: Any) -> Any:
    """Assign `value` at `index` in place, padding with None past the end."""
    index = _write_position(seq, index)
    length = len(seq)
    if index >= length:
        seq.extend([None] * (index - length))
        seq.append(value)
    else:
        seq[index] = value
    return seq


def item_at(seq: Any, index: int) -> Any:
    """The element a write at `index` would replace, or MISSING."""
    index = _write_position(seq, index)
    if index >= len(seq):
        return MISSING
    return seq[index]


def set(index: int, value: Any, seq: Any, *, token: Optional[Token] = None) -> Any:
    """
    Return `seq` with `value` at `index`.

    `index` may be an int or a digit string.  Returns `seq` itself when
    the element there is already the same value.
    """
    index = require_index(index)
    token = resolve_token(token)
    if TRACKER.can_mutate(seq, token):
        return place(seq, index, value)

    if same_value(item_at(seq, index), value):
        return seq
    return place(owned_copy(seq, token), index, value)


def splice_in_place(index: int, delete_count: int, values: Any, seq: Any) -> Any:
    start = _clamp_start(index, len(seq))
    stop = start + max(min(delete_count, len(seq) - start), 0)
    seq[start:stop] = force_list(values)
    return seq


def splice(index: int, delete_count: int, values: Any, seq: Any, *,
           token: Optional[Token] = None) -> Any:
    """
    Remove `delete_count` elements at `index`, then insert `values` there.

    Always produces a change (the result is never the input unless the
    input is owned by the token).
    """
    token = resolve_token(token)
    if TRACKER.can_mutate(seq, token):
        return splice_in_place(index, delete_count, values, seq)
    return splice_in_place(index, delete_count, values, owned_copy(seq, token))


def insert(index: int, values: Any, seq: Any, *, token: Optional[Token] = None) -> Any:
    """Insert `values`, in order, starting at `index`."""
    return splice(index, 0, values, seq, token=token)


def push(values: Any, seq: Any, *, token: Optional[Token] = None) -> Any:
    """Append `values`, in order, to the end of `seq`."""
    return insert(len(seq), values, seq, token=token)


def filter_in_place(predicate: Callable[[Any, int], bool], seq: Any) -> Any:
    """
    Drop failing elements from `seq` in a single pass.

    The predicate sees each element's index in the ORIGINAL sequence,
    not its shifted position.
    """
    position = 0
    original_index = 0
    while position < len(seq):
        if predicate(seq[position], original_index):
            position += 1
        else:
            del seq[position]
        original_index += 1
    return seq


def filter(predicate: Callable[[Any, int], bool], seq: Any, *,
           token: Optional[Token] = None) -> Any:
    """
    Keep the elements for which `predicate(element, index)` is true.

    Returns `seq` itself when nothing is removed.
    """
    token = resolve_token(token)
    if TRACKER.can_mutate(seq, token):
        return filter_in_place(predicate, seq)

    kept = [item for i, item in enumerate(seq) if predicate(item, i)]
    if len(kept) == len(seq):
        return seq

    result = owned_copy(seq, token)
    result[:] = kept
    return result
