"""Translate pygame events into ViewState commands.

Controls:
    Select area to zoom in to with cursor and LMB (or touch)
    RMB or Backspace to return to the last zoom
    R to reset
    F to fix aspect ratio
    Hold shift while selecting to toggle the aspect ratio lock
    Scroll up/down to change the iteration count by 10
    Scroll left/right to change the iteration count by 1
    Arrows to pan and =/- to zoom the deep zoom point
"""

import pygame

from .geometry import Vec2
from .view_state import ViewState

SHIFT_KEYS = (pygame.K_LSHIFT, pygame.K_RSHIFT)

# Held keys: key -> (pan x steps, pan y steps)
PAN_KEYS = {
    pygame.K_LEFT: (-1, 0),
    pygame.K_RIGHT: (1, 0),
    pygame.K_UP: (0, -1),
    pygame.K_DOWN: (0, 1),
}
ZOOM_IN_KEYS = (pygame.K_EQUALS, pygame.K_KP_PLUS)
ZOOM_OUT_KEYS = (pygame.K_MINUS, pygame.K_KP_MINUS)
HELD_KEYS = set(PAN_KEYS) | set(ZOOM_IN_KEYS) | set(ZOOM_OUT_KEYS)

FINGER_PHASES = {
    pygame.FINGERDOWN: "down",
    pygame.FINGERMOTION: "move",
    pygame.FINGERUP: "up",
}
MOUSE_EVENTS = (pygame.MOUSEMOTION, pygame.MOUSEBUTTONDOWN, pygame.MOUSEBUTTONUP)


class InputRouter:
    """Routes window events to the shared ViewState.

    Released keys trigger the discrete commands, matching the original
    controls; keys that act continuously are only recorded here and applied
    once per update tick by apply_held_keys().
    """

    def __init__(self, state: ViewState, zoom_step: float):
        self.state = state
        self.zoom_step = zoom_step
        self.held: set = set()

    def handle(self, event) -> bool:
        """Apply one event. Returns True if the event was consumed."""
        if event.type in MOUSE_EVENTS and getattr(event, "touch", False):
            # SDL mirrors touches as mouse events; the finger events drive them
            return False
        if event.type == pygame.MOUSEMOTION:
            self.state.pointer_moved(Vec2(*event.pos))
        elif event.type == pygame.MOUSEBUTTONDOWN and event.button == 1:
            self.state.pointer_pressed(Vec2(*event.pos))
        elif event.type == pygame.MOUSEBUTTONUP and event.button == 1:
            self.state.pointer_released(Vec2(*event.pos))
        elif event.type == pygame.MOUSEBUTTONUP and event.button == 3:
            self.state.back()
        elif event.type in FINGER_PHASES:
            width, height = self.state.viewport_size
            self.state.touch(FINGER_PHASES[event.type], Vec2(event.x * width, event.y * height))
        elif event.type == pygame.MOUSEWHEEL:
            self.state.scroll(event.x, event.y)
        elif event.type == pygame.VIDEORESIZE:
            self.state.resize(event.size)
        elif event.type == pygame.WINDOWRESIZED:
            self.state.resize((event.x, event.y))
        elif event.type == pygame.KEYDOWN:
            return self._on_keydown(event.key)
        elif event.type == pygame.KEYUP:
            return self._on_keyup(event.key)
        else:
            return False
        return True

    def _on_keydown(self, key) -> bool:
        if key in SHIFT_KEYS:
            self.state.set_shifting(True)
        elif key in HELD_KEYS:
            self.held.add(key)
        else:
            return False
        return True

    def _on_keyup(self, key) -> bool:
        if key in SHIFT_KEYS:
            self.state.set_shifting(False)
        elif key in HELD_KEYS:
            self.held.discard(key)
        elif key == pygame.K_r:
            self.state.reset()
        elif key == pygame.K_BACKSPACE:
            self.state.back()
        elif key == pygame.K_f:
            self.state.fix_aspect()
        else:
            return False
        return True

    def apply_held_keys(self) -> bool:
        """Apply one update tick of the held pan/zoom keys. Returns True if anything moved."""
        steps_x = sum(PAN_KEYS[key][0] for key in self.held if key in PAN_KEYS)
        steps_y = sum(PAN_KEYS[key][1] for key in self.held if key in PAN_KEYS)
        zoom_in = any(key in self.held for key in ZOOM_IN_KEYS)
        zoom_out = any(key in self.held for key in ZOOM_OUT_KEYS)

        moved = False
        if steps_x or steps_y:
            self.state.pan(steps_x, steps_y)
            moved = True
        if zoom_in != zoom_out:
            self.state.zoom_by(self.zoom_step if zoom_in else 1.0 / self.zoom_step)
            moved = True
        return moved
