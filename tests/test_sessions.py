"""
Tests for mutation windows — explicit Session objects and the implicit
process-wide session stack.

    §1  Explicit sessions
    §2  Implicit sessions
    §3  Nested implicit sessions
    §4  batch / batched
    §5  Swapping the controller
    §6  Independent tokens across threads
"""

import logging
import sys
import os
import threading
from types import MappingProxyType

import pytest

# Add parent to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import structshare
from structshare import sessions
from structshare.maps import deep_merge, omit, set_in
from structshare.ownership import TRACKER, issue_token
from structshare.sequences import push
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

set_ = structshare.set


@pytest.fixture(autouse=True)
def idle_controller():
    """Leave the process-wide session stack empty after every test."""
    yield
    sessions.CONTROLLER.close_all()


# ═══════════════════════════════════════════════════════════════════
#  §1  EXPLICIT SESSIONS
# ═══════════════════════════════════════════════════════════════════

class TestExplicitSession:

    def test_consecutive_updates_share_one_container(self):
        with Session() as token:
            first = set_("a", 1, MappingProxyType({}), token=token)
            second = set_("b", 2, first, token=token)
            assert second is first
            assert can_mutate(first, token)

        assert not can_mutate(first, token)
        third = set_("c", 3, first)
        assert third is not first
        assert first == {"a": 1, "b": 2}

    def test_close_is_idempotent(self):
        current = Session()
        current.open()
        current.close()
        current.close()
        assert not current.active

    def test_created_tracks_owned_containers(self):
        current = Session()
        token = current.open()
        result = set_in("a.b", 1, {}, token=token)
        assert sorted(map(id, current.created)) == sorted([id(result), id(result["a"])])
        assert current.created_count == 2

        current.close()
        assert current.created == []
        assert current.created_count == 2

    def test_wraps_an_existing_token(self):
        token = issue_token()
        result = push([1], [], token=token)
        assert can_mutate(result, token)

        with Session(token) as same:
            assert same is token
        assert not can_mutate(result, token)

    def test_tokens_are_exclusive(self):
        with Session() as mine, Session() as theirs:
            result = set_("a", 1, {}, token=mine)
            assert set_("a", 2, result, token=theirs) is not result
            assert result == {"a": 1}

    def test_closing_does_not_touch_inputs(self):
        base = {"keep": {"x": 1}}
        with Session() as token:
            result = deep_merge({"add": 1}, base, token=token)
        assert base == {"keep": {"x": 1}}
        assert result["keep"] is base["keep"]
        assert TRACKER.owner(base) is None

    def test_close_logs_release(self, caplog):
        caplog.set_level(logging.DEBUG, logger="structshare")
        with Session() as token:
            set_("a", 1, {}, token=token)
        assert "released 1 container(s)" in caplog.text
        assert "session closed" in caplog.text


# ═══════════════════════════════════════════════════════════════════
#  §2  IMPLICIT SESSIONS
# ═══════════════════════════════════════════════════════════════════

class TestImplicitSession:

    def test_updates_pick_up_the_active_token(self):
        with session() as token:
            assert active_token() is token
            first = set_in("a.b", 1, {})
            assert set_in("a.c", 2, first) is first
            assert can_mutate(first)
            assert can_mutate(first["a"])

        assert active_token() is None
        assert not can_mutate(first)
        assert set_in("a.d", 3, first) is not first

    def test_open_and_close(self):
        token = open_session()
        assert sessions.CONTROLLER.depth == 1
        result = omit("a", {"a": 1})
        assert can_mutate(result, token)
        close_session()
        assert sessions.CONTROLLER.depth == 0
        assert not can_mutate(result, token)

    def test_close_while_idle_is_a_no_op(self):
        close_session()
        close_session()
        assert active_token() is None

    def test_open_with_given_token(self):
        token = issue_token()
        assert open_session(token) is token
        assert active_token() is token

    def test_explicit_token_wins(self):
        other = issue_token()
        with session() as implicit:
            result = set_("a", 1, {}, token=other)
            assert can_mutate(result, other)
            assert not can_mutate(result, implicit)
        structshare.release(other)

    def test_can_mutate_outside_any_session(self):
        assert not can_mutate({})


# ═══════════════════════════════════════════════════════════════════
#  §3  NESTED IMPLICIT SESSIONS
# ═══════════════════════════════════════════════════════════════════

class TestNestedSessions:

    def test_inner_results_pass_to_outer_session(self):
        with session() as outer:
            with session() as inner:
                assert inner is not outer
                result = set_("a", 1, {})
                assert can_mutate(result, inner)

            assert active_token() is outer
            assert can_mutate(result, outer)
            assert not can_mutate(result, inner)
            assert set_("b", 2, result) is result

        assert not can_mutate(result, outer)
        assert result == {"a": 1, "b": 2}

    def test_outer_results_are_copied_in_inner_session(self):
        with session():
            outer_result = set_("a", 1, {})
            with session():
                inner_result = set_("a", 2, outer_result)
                assert inner_result is not outer_result
            assert outer_result == {"a": 1}

    def test_depth(self):
        with session():
            with session():
                assert sessions.CONTROLLER.depth == 2
            assert sessions.CONTROLLER.depth == 1
        assert sessions.CONTROLLER.depth == 0


# ═══════════════════════════════════════════════════════════════════
#  §4  BATCH / BATCHED
# ═══════════════════════════════════════════════════════════════════

class TestBatch:

    def test_batch(self):
        def build(token):
            obj = {}
            result = set_("a", 1, obj)
            assert result == {"a": 1}
            assert result is not obj
            assert can_mutate(result, token)

            result2 = omit("a", result)
            assert result2 is result
            assert result2 == {}
            return result2

        res = batch(build)
        assert res == {}
        assert not can_mutate(res)
        assert active_token() is None

    def test_batch_passes_arguments(self):
        def build(token, key, value=None):
            return set_(key, value, {}, token=token)

        assert batch(build, "k", value="v") == {"k": "v"}

    def test_batch_closes_on_error(self):
        def explode(token):
            raise ValueError("boom")

        with pytest.raises(ValueError):
            batch(explode)
        assert sessions.CONTROLLER.depth == 0

    def test_batched_decorator(self):
        @batched
        def add_user(token, users, name):
            users = push([name], users)
            return push(["admin"], users)

        original = ("root",)
        result = add_user(original, "ada")
        assert result == ["root", "ada", "admin"]
        assert original == ("root",)
        assert not can_mutate(result)
        assert add_user.__name__ == "add_user"

    def test_results_match_copy_on_write(self):
        base = {"cfg": {"a": 1}, "rows": [1]}

        def build(token):
            value = deep_merge({"cfg": {"b": 2}}, base)
            value = set_in("rows", push([2], value["rows"]), value)
            return set_in("cfg.c", 3, value)

        batched_result = batch(build)
        plain = set_in(
            "cfg.c", 3,
            set_in("rows", push([2], base["rows"]), deep_merge({"cfg": {"b": 2}}, base)),
        )
        assert batched_result == plain
        assert base == {"cfg": {"a": 1}, "rows": [1]}


# ═══════════════════════════════════════════════════════════════════
#  §5  SWAPPING THE CONTROLLER
# ═══════════════════════════════════════════════════════════════════

class TestUseController:

    def test_replaces_and_closes_previous(self):
        replacement = SessionController()
        open_session()
        previous = use_controller(replacement)
        try:
            assert previous.depth == 0
            assert sessions.CONTROLLER is replacement
            token = open_session()
            assert replacement.active_token is token
            assert can_mutate(set_("a", 1, {}))
        finally:
            use_controller(previous)
        assert replacement.depth == 0


# ═══════════════════════════════════════════════════════════════════
#  §6  INDEPENDENT TOKENS ACROSS THREADS
# ═══════════════════════════════════════════════════════════════════

class TestThreads:

    def test_explicit_tokens_do_not_interfere(self):
        shared = MappingProxyType({"count": 0, "items": ()})
        results = {}

        def worker(n):
            with Session() as token:
                value = shared
                for i in range(50):
                    value = set_("count", i, value, token=token)
                    value = set_in(["items"], push([i], value["items"], token=token), value, token=token)
                results[n] = value

        threads = [threading.Thread(target=worker, args=(n,)) for n in range(4)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert shared["count"] == 0
        for value in results.values():
            assert value["count"] == 49
            assert value["items"] == list(range(50))
        assert len({id(v) for v in results.values()}) == 4
