from __future__ import annotations

import pytest

from treewarden.engine.scope import ScopeError, ScopeTracker


def test_enter_and_leave_toggle_activity() -> None:
    scopes = ScopeTracker()
    assert not scopes.is_active("describe")

    token = scopes.enter("describe")
    assert scopes.is_active("describe")
    assert scopes.depth == 1

    scopes.leave(token)
    assert not scopes.is_active("describe")
    assert scopes.depth == 0


def test_nested_entries_stay_active_until_outermost_leave() -> None:
    scopes = ScopeTracker()
    outer = scopes.enter("describe")
    inner = scopes.enter("describe")

    scopes.leave(inner)
    assert scopes.is_active("describe")

    scopes.leave(outer)
    assert not scopes.is_active("describe")


def test_leaving_twice_raises() -> None:
    scopes = ScopeTracker()
    token = scopes.enter("describe")
    scopes.leave(token)
    with pytest.raises(ScopeError):
        scopes.leave(token)


def test_leaving_outer_token_closes_inner_scopes() -> None:
    scopes = ScopeTracker()
    outer = scopes.enter("suite")
    scopes.enter("describe")

    scopes.leave(outer)
    assert scopes.depth == 0
    assert not scopes.is_active("describe")
    assert not scopes.is_active("suite")


def test_entered_leaves_on_exception() -> None:
    scopes = ScopeTracker()
    with pytest.raises(RuntimeError):
        with scopes.entered("describe"):
            assert scopes.is_active("describe")
            raise RuntimeError("boom")
    assert not scopes.is_active("describe")
    assert scopes.depth == 0


def test_unwind_to_mark() -> None:
    scopes = ScopeTracker()
    scopes.enter("a")
    mark = scopes.mark()
    scopes.enter("b")
    scopes.enter("b")

    scopes.unwind(mark)
    assert scopes.is_active("a")
    assert not scopes.is_active("b")
    assert scopes.depth == 1


def test_stale_token_cannot_close_a_later_entry() -> None:
    scopes = ScopeTracker()
    stale = scopes.enter("describe")
    scopes.leave(stale)
    fresh = scopes.enter("describe")
    assert (fresh.name, fresh.depth) == (stale.name, stale.depth)

    with pytest.raises(ScopeError):
        scopes.leave(stale)
    assert scopes.is_active("describe")

    scopes.leave(fresh)
    assert not scopes.is_active("describe")
