"""
Structural Sharing Updates
==========================

Update nested dicts and lists as if they were persistent values.

    state = {"user": {"name": "Ada", "age": 36}, "tags": ["x"]}

    set_in("user.age", 37, state)       → new root, new "user"
                                          state["tags"] shared by reference
    set_in("user.age", 36, state)       → state itself (nothing changed)
    deep_merge({"user": {"age": 36}}, state)
                                        → state itself

Every update copies only the containers on the way to the change; every
untouched subtree is reused by reference, and an update that changes
nothing returns its input.  Inputs are never mutated.

To build a value in several steps without re-copying at each one, open a
mutation window.  Containers created inside it are owned by its token
and later updates with the same token change them in place; closing the
window makes them ordinary values again:

    with Session() as token:
        draft = set_in("a.b", 1, state, token=token)   # copies
        draft = set_in("a.c", 2, draft, token=token)   # in place
"""

import logging

from structshare.errors import StructShareError, TraversalError
from structshare.values import MISSING, Kind, kind_of, same_value
from structshare.paths import PATH_SEPARATOR, get_in, has_in, normalize_path
from structshare.ownership import OwnershipTracker, Token, issue_token, release
from structshare.sessions import (
    Session,
    SessionController,
    active_token,
    batch,
    batched,
    can_mutate,
    close_session,
    open_session,
    session,
    use_controller,
)
from structshare.maps import deep_merge, merge, omit, set_in
from structshare.sequences import filter, insert, push, splice
from structshare.ops import MUTABLE_OPERATIONS, OPERATIONS, set
from structshare import mutable

logging.getLogger(__name__).addHandler(logging.NullHandler())

__version__ = "0.1.0"
# `set` and `filter` stay off __all__ so a star import cannot shadow the
# builtins; use them as structshare.set / structshare.filter.
__all__ = [
    "StructShareError", "TraversalError",
    "MISSING", "Kind", "kind_of", "same_value",
    "PATH_SEPARATOR", "get_in", "has_in", "normalize_path",
    "OwnershipTracker", "Token", "issue_token", "release",
    "Session", "SessionController", "active_token", "batch", "batched",
    "can_mutate", "close_session", "open_session", "session", "use_controller",
    "merge", "deep_merge", "omit", "set_in",
    "insert", "push", "splice",
    "OPERATIONS", "MUTABLE_OPERATIONS", "mutable",
]
