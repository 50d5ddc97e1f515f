import pygame
import pytest

from mandelview.config import ExplorerConfig
from mandelview.geometry import Vec2
from mandelview.viewer import Explorer


@pytest.fixture
def deep_explorer():
    config = ExplorerConfig(deep=True, orbit_capacity=32, precision_bits=128)
    return Explorer(config)


def test_lag_with_pan_key_held_applies_one_tick(deep_explorer):
    deep_explorer.router.held.add(pygame.K_RIGHT)
    before = deep_explorer.state.deep_snapshot().orbit_version

    deep_explorer._handle_continuous_input(0.5)

    assert deep_explorer.state.deep_snapshot().orbit_version == before + 1
    assert deep_explorer.update_accumulator < deep_explorer.config.update_interval


def test_short_frames_accumulate_to_a_tick(deep_explorer):
    deep_explorer.router.held.add(pygame.K_RIGHT)
    before = deep_explorer.state.deep_snapshot().orbit_version
    interval = deep_explorer.config.update_interval

    deep_explorer._handle_continuous_input(interval * 0.6)
    assert deep_explorer.state.deep_snapshot().orbit_version == before

    deep_explorer._handle_continuous_input(interval * 0.6)
    assert deep_explorer.state.deep_snapshot().orbit_version == before + 1


def test_reset_key_restores_view_and_reports(capsys):
    explorer = Explorer(ExplorerConfig())
    original = explorer.state.draw_region
    explorer.state.pointer_pressed(Vec2(100, 100))
    explorer.state.pointer_released(Vec2(300, 300))
    assert explorer.state.draw_region != original

    explorer._dispatch(pygame.event.Event(pygame.KEYUP, key=pygame.K_r))

    assert explorer.state.draw_region == original
    assert explorer.state.history == []
    assert "Reset to default view" in capsys.readouterr().out


def test_quit_key_stops_the_loop():
    explorer = Explorer(ExplorerConfig())
    explorer._dispatch(pygame.event.Event(pygame.KEYDOWN, key=pygame.K_q))
    assert not explorer.running
