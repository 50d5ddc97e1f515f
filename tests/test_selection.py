import math

import pytest

from mandelview.geometry import Region, Vec2
from mandelview.selection import RegionHistory, SelectionState, locked_corner


def test_history_is_a_stack():
    history = RegionHistory()
    a = Region(Vec2(0, 0), Vec2(1, 1))
    b = Region(Vec2(0, 0), Vec2(2, 2))
    history.push(a)
    history.push(b)
    assert len(history) == 2
    assert list(history) == [a, b]
    assert history.pop() == b
    assert history.pop() == a
    assert history.pop() is None
    assert not history


def test_history_clear():
    history = RegionHistory()
    history.push(Region.default())
    history.clear()
    assert len(history) == 0


@pytest.mark.parametrize("cursor", [Vec2(1, -3), Vec2(-4, 0.5), Vec2(-2, -2), Vec2(0.1, 7)])
def test_locked_corner_matches_aspect(cursor):
    anchor = Vec2(0.5, 0.5)
    corner = locked_corner(anchor, cursor, 2.0)
    region = Region(anchor, corner).normalized()
    assert region.width / region.height == pytest.approx(2.0)


def test_locked_corner_follows_cursor_direction():
    anchor = Vec2(0, 0)
    corner = locked_corner(anchor, Vec2(1, -3), 2.0)
    dist = math.sqrt(10) / math.sqrt(2)
    assert corner.x == pytest.approx(2 * dist)
    assert corner.y == pytest.approx(-dist)


def test_idle_tracking_moves_anchor():
    selection = SelectionState()
    selection.track(Vec2(0.25, -0.5), 1.0)
    assert selection.select_region.top_left == Vec2(0.25, -0.5)
    assert not selection.dragging


def test_begin_collapses_to_anchor():
    selection = SelectionState()
    selection.track(Vec2(0.25, -0.5), 1.0)
    selection.begin()
    assert selection.dragging
    assert selection.select_region == Region(Vec2(0.25, -0.5), Vec2(0.25, -0.5))


def test_drag_then_commit_normalizes():
    selection = SelectionState()
    selection.track(Vec2(1.0, 1.0), 1.0)
    selection.begin()
    selection.track(Vec2(-1.0, 0.5), 1.0)
    assert selection.select_region.bottom_right == Vec2(-1.0, 0.5)

    region = selection.commit()
    assert not selection.dragging
    assert region == Region(Vec2(-1.0, 0.5), Vec2(1.0, 1.0))


def test_modifier_engages_lock_by_default():
    selection = SelectionState()
    assert not selection.aspect_locked
    selection.shifting = True
    assert selection.aspect_locked


def test_modifier_frees_lock_when_inverted():
    selection = SelectionState(lock_while_shifting=False)
    assert selection.aspect_locked
    selection.shifting = True
    assert not selection.aspect_locked


def test_locked_drag_keeps_aspect():
    selection = SelectionState(shifting=True)
    selection.track(Vec2(0, 0), 1.5)
    selection.begin()
    selection.track(Vec2(3, 1), 1.5)
    region = selection.commit()
    assert region.width / region.height == pytest.approx(1.5)
