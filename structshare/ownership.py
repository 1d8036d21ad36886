"""
structshare.ownership — Tokens and the ownership side table.

A container produced by an update inside a mutation window is OWNED by
that window's token.  While it is owned, further updates presented with
the same token may change it in place instead of copying it again.

Ownership is recorded in a side table keyed by object identity rather
than on the container itself, so tagged dicts and lists are
indistinguishable from untagged ones to equality, iteration, pickling
and JSON.  The table keeps a strong reference to each tagged container:
its id() cannot be recycled while the tag is alive.  Tags last until the
token is released (sessions.Session.close does this); a token that is
never released keeps its containers alive.
"""

import itertools
import logging
import threading
from typing import Any, Optional

from .values import is_writable, shallow_copy

logger = logging.getLogger(__name__)

_serials = itertools.count(1)


class Token:
    """
    An opaque mutation-session identifier.

    Tokens compare by identity: no two tokens are ever equal.  The serial
    number exists only to make reprs readable.
    """
    __slots__ = ("_serial",)

    def __init__(self):
        self._serial = next(_serials)

    def __repr__(self) -> str:
        return f"<Token #{self._serial}>"


def issue_token() -> Token:
    """Issue a fresh, globally unique token."""
    return Token()


class OwnershipTracker:
    """
    Identity-keyed table of which token owns which container.

    Each container has at most one owner.  Tagging a container that is
    already owned moves it to the new token.
    """

    def __init__(self):
        self._owners: dict[int, tuple[Token, Any]] = {}
        self._by_token: dict[Token, dict[int, Any]] = {}
        self._lock = threading.RLock()

    def __len__(self) -> int:
        return len(self._owners)

    def __repr__(self) -> str:
        return f"OwnershipTracker(tagged={len(self._owners)}, tokens={len(self._by_token)})"

    def tag(self, container: Any, token: Token) -> Any:
        """Mark `container` as owned by `token`.  Returns the container."""
        if not is_writable(container):
            raise TypeError(
                f"Only mutable containers can be owned, got {type(container).__name__}"
            )
        key = id(container)
        with self._lock:
            previous = self._owners.get(key)
            if previous is not None and previous[0] is not token:
                self._drop(previous[0], key)
            self._owners[key] = (token, container)
            self._by_token.setdefault(token, {})[key] = container
        return container

    def untag(self, container: Any) -> bool:
        """Clear the tag on `container`.  Returns False if it had none."""
        key = id(container)
        with self._lock:
            entry = self._owners.get(key)
            if entry is None or entry[1] is not container:
                return False
            del self._owners[key]
            self._drop(entry[0], key)
        return True

    def _drop(self, token: Token, key: int) -> None:
        # Caller holds the lock.  Tokens owning nothing leave the table.
        owned = self._by_token.get(token)
        if owned is not None:
            owned.pop(key, None)
            if not owned:
                del self._by_token[token]

    def owner(self, container: Any) -> Optional[Token]:
        """The token owning `container`, or None."""
        entry = self._owners.get(id(container))
        if entry is None or entry[1] is not container:
            return None
        return entry[0]

    def can_mutate(self, container: Any, token: Optional[Token]) -> bool:
        """True iff `container` is owned by exactly this `token`."""
        if token is None:
            return False
        return self.owner(container) is token

    def owned(self, token: Token) -> list:
        """Every container currently owned by `token`."""
        with self._lock:
            return list(self._by_token.get(token, {}).values())

    def release(self, token: Token) -> int:
        """Untag everything `token` owns.  Returns how many were released."""
        with self._lock:
            owned = self._by_token.pop(token, {})
            for key in owned:
                del self._owners[key]
        if owned:
            logger.debug("released %d container(s) owned by %r", len(owned), token)
        return len(owned)

    def transfer(self, token: Token, heir: Token) -> int:
        """Move everything `token` owns to `heir`.  Returns how many moved."""
        if token is heir:
            return len(self.owned(token))
        with self._lock:
            owned = self._by_token.pop(token, {})
            if owned:
                inherited = self._by_token.setdefault(heir, {})
                for key, container in owned.items():
                    self._owners[key] = (heir, container)
                    inherited[key] = container
        if owned:
            logger.debug("transferred %d container(s) from %r to %r", len(owned), token, heir)
        return len(owned)


# ═══════════════════════════════════════════════════════════════════
#  PROCESS-WIDE TABLE
# ═══════════════════════════════════════════════════════════════════

TRACKER = OwnershipTracker()


def tag(container: Any, token: Token) -> Any:
    return TRACKER.tag(container, token)


def untag(container: Any) -> bool:
    return TRACKER.untag(container)


def owner(container: Any) -> Optional[Token]:
    return TRACKER.owner(container)


def release(token: Token) -> int:
    """Untag every container owned by `token` in the process-wide table."""
    return TRACKER.release(token)


def adopt(container: Any, token: Optional[Token]) -> Any:
    """Tag a freshly created container with `token`, when there is one."""
    if token is not None:
        TRACKER.tag(container, token)
    return container


def owned_copy(container: Any, token: Optional[Token]) -> Any:
    """Shallow-copy `container` and hand the copy to `token`."""
    return adopt(shallow_copy(container), token)
