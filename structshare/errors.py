"""
structshare.errors — Exceptions raised by the update engine.

Only path writes can fail: every other primitive is total over the
shapes it documents (missing keys, out-of-range indices and absent
paths are ordinary outcomes, not errors).
"""

from typing import Any

from .values import is_sequence


class StructShareError(Exception):
    """Base class for structshare errors."""


class TraversalError(StructShareError, TypeError):
    """
    Raised when a path write runs into a value it cannot descend into.

    Attributes:
        path:     the path prefix ending at the blocking segment
        segment:  the key that could not be followed
        value:    the non-container value found there, or the sequence
                  that rejected a non-integer key
    """

    def __init__(self, path: tuple, segment: Any, value: Any):
        self.path = tuple(path)
        self.segment = segment
        self.value = value
        path_str = ".".join(str(p) for p in self.path) or "(root)"
        if is_sequence(value):
            message = (
                f"A sequence on set_in path at {path_str} cannot be "
                f"indexed by non-integer key {segment!r}."
            )
        else:
            message = (
                f"A non-container value was encountered when traversing "
                f"set_in path at {path_str}: {type(value).__name__} "
                f"cannot hold key {segment!r}."
            )
        super().__init__(message)
