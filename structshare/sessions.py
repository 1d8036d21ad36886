"""
structshare.sessions — Mutation windows.

A session binds one token for a bounded stretch of code.  Containers
created by updates made with that token are owned by it and may be
changed in place by later updates with the same token.  Closing the
session releases them: from then on they are ordinary values that any
further update copies.

Two ways to use them:

    EXPLICIT (the default, safe to use from independent call sites):

        with Session() as token:
            draft = set_in("a.b", 1, state, token=token)
            draft = set_in("a.c", 2, draft, token=token)   # in place
        # draft is now an ordinary value

    IMPLICIT (convenience, process-wide):

        with session():
            draft = set_in("a.b", 1, state)   # token picked up from the stack
            draft = set_in("a.c", 2, draft)

The implicit stack is shared by the whole process.  Two logical flows
interleaving on it (threads, or coroutines on one event loop) can end up
mutating each other's drafts; use explicit tokens there.

Nested implicit sessions: when an inner session closes, what it owned is
handed to the enclosing session's token and stays mutable there.  Only
closing the outermost session makes the results immutable.
"""

import functools
import logging
from contextlib import contextmanager
from typing import Any, Callable, Iterator, Optional

from .ownership import TRACKER, Token, issue_token

logger = logging.getLogger(__name__)


class Session:
    """
    An explicit mutation window for one token.

    `close()` releases every container the token owns, including any
    tagged before the session was opened.  Closing twice is harmless.
    """

    def __init__(self, token: Optional[Token] = None):
        self.token = token if token is not None else issue_token()
        self.active = False
        self._released = 0

    def __repr__(self) -> str:
        state = "active" if self.active else "closed"
        return f"Session({self.token!r}, {state})"

    def open(self) -> Token:
        self.active = True
        logger.debug("session opened for %r", self.token)
        return self.token

    def close(self) -> None:
        if not self.active:
            return
        self.active = False
        self._released += TRACKER.release(self.token)
        logger.debug("session closed for %r", self.token)

    @property
    def created(self) -> list:
        """Containers currently owned by this session's token."""
        return TRACKER.owned(self.token)

    @property
    def created_count(self) -> int:
        """Containers this session has owned so far (released or not)."""
        return self._released + len(TRACKER.owned(self.token))

    def __enter__(self) -> Token:
        return self.open()

    def __exit__(self, *exc_info) -> None:
        self.close()


class SessionController:
    """
    A stack of implicit sessions.

    States: idle (empty stack) and active (top of stack holds the active
    token).  Updates called without an explicit token use the active one.
    """

    def __init__(self):
        self._stack: list[Session] = []

    def __repr__(self) -> str:
        return f"SessionController(depth={len(self._stack)})"

    @property
    def depth(self) -> int:
        return len(self._stack)

    @property
    def active_token(self) -> Optional[Token]:
        return self._stack[-1].token if self._stack else None

    @property
    def current(self) -> Optional[Session]:
        return self._stack[-1] if self._stack else None

    def open(self, token: Optional[Token] = None) -> Token:
        """Start a (possibly nested) session and make its token active."""
        current = Session(token)
        current.open()
        self._stack.append(current)
        return current.token

    def close(self) -> None:
        """
        End the innermost session.

        What it owned moves to the enclosing session, or is released when
        there is none.  A no-op while idle.
        """
        if not self._stack:
            return
        inner = self._stack.pop()
        if self._stack:
            heir = self._stack[-1].token
            TRACKER.transfer(inner.token, heir)
            inner.active = False
        else:
            inner.close()

    def close_all(self) -> None:
        while self._stack:
            self.close()

    @contextmanager
    def session(self, token: Optional[Token] = None) -> Iterator[Token]:
        token = self.open(token)
        try:
            yield token
        finally:
            self.close()

    def batch(self, fn: Callable[..., Any], *args, **kwargs) -> Any:
        """
        Run `fn(token, *args, **kwargs)` inside a fresh session.

        The session is closed before the result is returned, so nothing
        produced inside can be mutated in place by code outside.
        """
        with self.session() as token:
            return fn(token, *args, **kwargs)


# ═══════════════════════════════════════════════════════════════════
#  PROCESS-WIDE CONTROLLER
# ═══════════════════════════════════════════════════════════════════

CONTROLLER = SessionController()


def use_controller(controller: SessionController) -> SessionController:
    """
    Install `controller` as the implicit session stack.

    Sessions still open on the previous controller are closed first.
    Returns the previous controller.
    """
    global CONTROLLER
    previous = CONTROLLER
    previous.close_all()
    CONTROLLER = controller
    return previous


def open_session(token: Optional[Token] = None) -> Token:
    return CONTROLLER.open(token)


def close_session() -> None:
    CONTROLLER.close()


def active_token() -> Optional[Token]:
    return CONTROLLER.active_token


def resolve_token(token: Optional[Token]) -> Optional[Token]:
    """An explicit token wins; otherwise the implicit session's, if any."""
    if token is not None:
        return token
    return CONTROLLER.active_token


def session(token: Optional[Token] = None):
    """Context manager for an implicit session on the process-wide stack."""
    return CONTROLLER.session(token)


def batch(fn: Callable[..., Any], *args, **kwargs) -> Any:
    return CONTROLLER.batch(fn, *args, **kwargs)


def batched(fn: Callable[..., Any]) -> Callable[..., Any]:
    """Decorator: every call of `fn` runs in its own session (see batch)."""
    @functools.wraps(fn)
    def wrapper(*args, **kwargs):
        return CONTROLLER.batch(fn, *args, **kwargs)
    return wrapper


def can_mutate(container: Any, token: Optional[Token] = None) -> bool:
    """
    True when an update with `token` may change `container` in place.

    Without a token, the implicit session's active token is used; with no
    session open the answer is always False.
    """
    token = resolve_token(token)
    return TRACKER.can_mutate(container, token)
