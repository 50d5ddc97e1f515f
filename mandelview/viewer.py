"""Interactive Mandelbrot explorer window.

Controls:
    LMB drag        Select the area to zoom in to
    RMB / Backspace Return to the last zoom
    Shift           Toggle the aspect ratio lock while selecting
    Scroll          Iteration count (vertical +/-10, horizontal +/-1)
    R               Reset to default view
    F               Fix aspect ratio
    Arrows, =/-     Pan and zoom the deep zoom point (--deep)
    C               Randomize colors
    P               Save screenshot
    I               Toggle info display
    H/F1            Toggle help
    Q/ESC           Quit
"""

from typing import Optional
import gc
import random
import time

import numpy as np
import pygame

from .config import MIN_WINDOW_SIZE, ExplorerConfig
from .controls import InputRouter
from .renderer import render_perturbation, render_region, save_png
from .view_state import ViewState


# =============================================================================
# Constants
# =============================================================================

FONT_SIZE = 14
INFO_WIDTH = 48
PADDING = 10
HELP_OVERLAY_ALPHA = 200
SCREENSHOT_PATTERN = "mandelview_{:03d}.png"


# =============================================================================
# Help Text
# =============================================================================

HELP_LINES = [
    "Mandelbrot Explorer",
    "",
    "Navigation:",
    "  Left drag      Select area to zoom in to",
    "  Shift          Toggle aspect ratio lock",
    "  Right click    Back to last zoom",
    "  Backspace      Back to last zoom",
    "  R              Reset to default view",
    "  F              Fix aspect ratio",
    "",
    "Deep zoom:",
    "  Arrows         Pan",
    "  = / -          Zoom in/out",
    "",
    "Parameters:",
    "  Scroll         Iterations (+/- 10)",
    "  Side scroll    Iterations (+/- 1)",
    "  C              Randomize colors",
    "",
    "Display:",
    "  I              Toggle info display",
    "  P              Save screenshot",
    "  H/F1           Toggle help",
    "  Q/ESC          Quit",
]


# =============================================================================
# Main Explorer Class
# =============================================================================

class Explorer:
    """Pygame front end around a shared ViewState."""

    def __init__(self, config: ExplorerConfig, state: Optional[ViewState] = None):
        self.config = config
        self.state = state or ViewState.from_config(config)
        self.router = InputRouter(self.state, config.zoom_step)
        self.float_dtype = np.float64 if config.fp64 else np.float32
        self.color_seed = config.color_seed

        # UI state
        self.show_info = True
        self.show_help = False
        self.running = True
        self.rendered_key = None
        self.screenshots = 0

        # Timing
        self.frame_times: list[float] = []
        self.last_render_ms = 0.0
        self.last_fps = 0.0
        self.update_accumulator = 0.0

        # Pygame objects
        self.screen: Optional[pygame.Surface] = None
        self.clock: Optional[pygame.time.Clock] = None
        self.font: Optional[pygame.font.Font] = None
        self.frame: Optional[np.ndarray] = None

    def run(self):
        """Main entry point."""
        self._init_pygame()
        last = time.perf_counter()

        while self.running:
            now = time.perf_counter()
            self._handle_events()
            self._handle_continuous_input(now - last)
            self._render_if_needed()
            last = now
            self.clock.tick(self.config.update_rate)

        self._print_stats()
        pygame.quit()

    def _init_pygame(self):
        pygame.init()
        self.screen = pygame.display.set_mode(self.config.window_size, pygame.RESIZABLE)
        pygame.display.set_caption("Mandelbrot Explorer")
        self.clock = pygame.time.Clock()
        self.font = pygame.font.SysFont("monospace", FONT_SIZE)

    def _print_stats(self):
        """Print rendering statistics on exit."""
        if self.frame_times:
            avg_ms = sum(self.frame_times) / len(self.frame_times)
            print(f"\nRendered {len(self.frame_times)} frames")
            print(f"Average frame time: {avg_ms:.1f}ms ({1000/avg_ms:.0f} FPS)")

    # =========================================================================
    # Event Handling
    # =========================================================================

    def _handle_events(self):
        for event in pygame.event.get():
            self._dispatch(event)

    def _dispatch(self, event):
        if event.type == pygame.QUIT:
            self.running = False
        elif event.type == pygame.KEYDOWN and self._on_viewer_key(event.key):
            return
        elif event.type == pygame.KEYUP and event.key == pygame.K_r:
            self.router.handle(event)
            print("Reset to default view")
        elif event.type in (pygame.VIDEORESIZE, pygame.WINDOWRESIZED):
            self.router.handle(event)
            self.screen = pygame.display.get_surface()
        else:
            self.router.handle(event)

    def _on_viewer_key(self, key) -> bool:
        """Keys owned by the window rather than the view state."""
        if key in (pygame.K_ESCAPE, pygame.K_q):
            self.running = False
        elif key in (pygame.K_h, pygame.K_F1):
            self.show_help = not self.show_help
        elif key == pygame.K_i:
            self.show_info = not self.show_info
        elif key == pygame.K_c:
            self.color_seed = random.random()
        elif key == pygame.K_p:
            self._save_screenshot()
        else:
            return False
        self.rendered_key = None
        return True

    def _handle_continuous_input(self, elapsed: float):
        """Apply held keys at a fixed timestep, dropping ticks missed while busy."""
        interval = self.config.update_interval
        self.update_accumulator = min(self.update_accumulator + elapsed, interval)
        if self.update_accumulator >= interval:
            self.router.apply_held_keys()
            self.update_accumulator -= interval

    def _save_screenshot(self):
        if self.frame is None:
            return
        path = SCREENSHOT_PATTERN.format(self.screenshots)
        save_png(self.frame, path)
        self.screenshots += 1
        print(f"Saved {path}")

    # =========================================================================
    # Rendering
    # =========================================================================

    def snapshot(self):
        if self.config.deep:
            return self.state.deep_snapshot()
        return self.state.uniform_snapshot()

    def _frame_key(self, snapshot) -> tuple:
        """What a frame depends on; the orbit array is identified by its version."""
        if self.config.deep:
            return (snapshot.aspect, snapshot.zoom, snapshot.iterations,
                    snapshot.orbit_version, self.color_seed)
        return (snapshot, self.color_seed)

    def compose_frame(self, snapshot, width: int, height: int) -> np.ndarray:
        """Render an RGB frame from a view state snapshot."""
        if self.config.deep:
            return render_perturbation(
                snapshot.as_record(), snapshot.orbit, snapshot.iterations,
                width, height, self.color_seed,
            )
        record = snapshot.as_record(self.float_dtype)
        return render_region(record, width, height, self.color_seed)

    def _render_if_needed(self):
        snapshot = self.snapshot()
        width, height = self.screen.get_size()
        width, height = max(width, MIN_WINDOW_SIZE[0]), max(height, MIN_WINDOW_SIZE[1])
        key = (self._frame_key(snapshot), width, height, self.show_info, self.show_help)
        if key == self.rendered_key:
            return

        t0 = time.perf_counter()
        self.frame = self.compose_frame(snapshot, width, height)
        self.last_render_ms = (time.perf_counter() - t0) * 1000

        surface = pygame.surfarray.make_surface(self.frame.swapaxes(0, 1))
        self.screen.blit(surface, (0, 0))

        total_ms = (time.perf_counter() - t0) * 1000
        self.last_fps = 1000 / total_ms if total_ms > 0 else 0

        if self.show_info:
            self._draw_info_overlay()
        if self.show_help:
            self._draw_help_overlay()

        pygame.display.flip()

        self.frame_times.append(total_ms)
        self.rendered_key = key
        gc.collect()

    def _draw_info_overlay(self):
        stats = {
            "Render": f"{self.last_render_ms:.0f}ms | {self.last_fps:.0f} FPS",
        }
        y = PADDING // 2
        for line in self.state.debug_lines(stats, width=INFO_WIDTH):
            self._draw_text(line, PADDING, y)
            y += self.font.get_linesize()

    def _draw_text(self, text: str, x: int, y: int, color=(255, 255, 255)):
        """Render text with background."""
        surf = self.font.render(text, True, color, (0, 0, 0))
        self.screen.blit(surf, (x, y))

    def _draw_help_overlay(self):
        line_height = self.font.get_linesize()
        help_width = max(self.font.size(line)[0] for line in HELP_LINES) + PADDING * 2
        help_height = len(HELP_LINES) * line_height + PADDING * 2

        # Semi-transparent background
        help_bg = pygame.Surface((help_width, help_height))
        help_bg.set_alpha(HELP_OVERLAY_ALPHA)
        help_bg.fill((0, 0, 0))
        help_y = line_height * 3 + PADDING
        self.screen.blit(help_bg, (PADDING, help_y))

        for i, line in enumerate(HELP_LINES):
            text_surface = self.font.render(line, True, (255, 255, 255))
            self.screen.blit(text_surface, (PADDING * 2, help_y + PADDING + i * line_height))
