"""Shared explorer state: regions, history, selection, iterations and deep zoom.

ViewState is the one mutable object shared by the input-handling path and the
rendering path. Every input operation mutates it under a single lock
acquisition, and every snapshot reads it under a single lock acquisition, so
the renderer never sees a half-applied update (for example a history push
without the matching region replacement). No collaborator call (event
dispatch, rendering, file I/O) ever happens while the lock is held.
"""

from dataclasses import dataclass
from typing import Optional
import logging
import threading
import time

import numpy as np

from .config import (
    DEFAULT_CENTER_IM,
    DEFAULT_CENTER_RE,
    DEFAULT_ITERATIONS,
    DEFAULT_WINDOW_SIZE,
    DEFAULT_ZOOM,
    ORBIT_CAPACITY,
    PAN_FRACTION,
    SCROLL_STEP_X,
    SCROLL_STEP_Y,
    ExplorerConfig,
)
from .deep_zoom import DeepZoomPoint, OrbitBuffer, OrbitGenerator, required_precision_bits
from .geometry import Region, Vec2, aspect_ratio, map_to_plane
from .selection import RegionHistory, SelectionState

logger = logging.getLogger(__name__)
logger.addHandler(logging.NullHandler())

TOUCH_PHASES = ("down", "move", "up", "cancel")
DEBUG_WIDTH = 80

DEEP_UNIFORM_DTYPE = np.dtype([
    ("aspect", np.float32),
    ("zoom", np.float32),
    ("points", np.uint32),
])


def uniform_dtype(float_dtype=np.float64) -> np.dtype:
    """Fixed layout of the region uniform, in float64 or float32."""
    return np.dtype([
        ("draw_top_left", float_dtype, (2,)),
        ("draw_bottom_right", float_dtype, (2,)),
        ("select_top_left", float_dtype, (2,)),
        ("select_bottom_right", float_dtype, (2,)),
        ("iterations", np.uint32),
    ])


# =============================================================================
# Snapshots
# =============================================================================

@dataclass(frozen=True)
class UniformSnapshot:
    """Consistent copy of everything the region shader needs for one frame."""
    draw_top_left: Vec2
    draw_bottom_right: Vec2
    select_top_left: Vec2
    select_bottom_right: Vec2
    iterations: int

    @property
    def draw_region(self) -> Region:
        return Region(self.draw_top_left, self.draw_bottom_right)

    @property
    def select_region(self) -> Region:
        return Region(self.select_top_left, self.select_bottom_right)

    def as_record(self, float_dtype=np.float64) -> np.ndarray:
        record = np.zeros((), dtype=uniform_dtype(float_dtype))
        record["draw_top_left"] = self.draw_top_left.as_tuple()
        record["draw_bottom_right"] = self.draw_bottom_right.as_tuple()
        record["select_top_left"] = self.select_top_left.as_tuple()
        record["select_bottom_right"] = self.select_bottom_right.as_tuple()
        record["iterations"] = self.iterations
        return record


@dataclass(frozen=True)
class DeepSnapshot:
    """Consistent copy of the deep zoom uniform and its orbit buffer."""
    aspect: float
    zoom: float
    points: int
    iterations: int
    orbit_version: int
    orbit: np.ndarray
    center: tuple

    def as_record(self) -> np.ndarray:
        record = np.zeros((), dtype=DEEP_UNIFORM_DTYPE)
        record["aspect"] = self.aspect
        record["zoom"] = self.zoom
        record["points"] = self.points
        return record


# =============================================================================
# View State
# =============================================================================

class ViewState:
    """Lock-guarded aggregate of the explorer's mutable state."""

    def __init__(
        self,
        viewport_size: tuple = DEFAULT_WINDOW_SIZE,
        iterations: int = DEFAULT_ITERATIONS,
        center: Optional[DeepZoomPoint] = None,
        zoom: float = DEFAULT_ZOOM,
        *,
        generator: Optional[OrbitGenerator] = None,
        orbit_capacity: int = ORBIT_CAPACITY,
        lock_while_shifting: bool = True,
        pan_fraction: float = PAN_FRACTION,
        deep: bool = False,
    ):
        self._lock = threading.RLock()
        self._generator = generator or OrbitGenerator()
        self._orbit_capacity = orbit_capacity
        self._pan_fraction = pan_fraction
        self._deep = deep

        self._viewport_size = tuple(viewport_size)
        self._draw_region = Region.default().with_aspect(aspect_ratio(self._viewport_size))
        self._history = RegionHistory()
        self._selection = SelectionState(lock_while_shifting=lock_while_shifting)
        self._iterations = iterations

        if center is None:
            center = DeepZoomPoint.parse(
                DEFAULT_CENTER_RE, DEFAULT_CENTER_IM, self._generator.precision_bits
            )
        self._start_point = center
        self._start_zoom = zoom
        self._deep_point = center
        self._zoom = zoom
        self._orbit = OrbitBuffer.empty(orbit_capacity)
        self._orbit_version = 0
        self._last_orbit_ms = 0.0
        self._precision_warned = False

        if deep:
            self._install_orbit(center)

    @classmethod
    def from_config(cls, config: ExplorerConfig) -> "ViewState":
        generator = OrbitGenerator(config.precision_bits, config.escape_bound)
        center = DeepZoomPoint.parse(config.center[0], config.center[1], config.precision_bits)
        return cls(
            config.window_size,
            config.iterations,
            center,
            config.zoom,
            generator=generator,
            orbit_capacity=config.orbit_capacity,
            lock_while_shifting=config.lock_while_shifting,
            pan_fraction=config.pan_fraction,
            deep=config.deep,
        )

    # =========================================================================
    # Selection and history
    # =========================================================================

    def _track(self, pixel: Vec2):
        cursor = map_to_plane(pixel, self._viewport_size, self._draw_region)
        self._selection.track(cursor, aspect_ratio(self._viewport_size))

    def _commit(self):
        region = self._selection.commit()
        self._history.push(self._draw_region)
        self._draw_region = region

    def pointer_moved(self, pixel: Vec2):
        with self._lock:
            self._track(pixel)

    def pointer_pressed(self, pixel: Optional[Vec2] = None):
        with self._lock:
            if pixel is not None:
                self._track(pixel)
            self._selection.begin()

    def pointer_released(self, pixel: Optional[Vec2] = None):
        with self._lock:
            if not self._selection.dragging:
                return
            if pixel is not None:
                self._track(pixel)
            self._commit()

    def touch(self, phase: str, pixel: Vec2):
        """Touch input drives the same drag machine as the primary button."""
        if phase not in TOUCH_PHASES:
            raise ValueError(f"Unknown touch phase: {phase}")
        with self._lock:
            self._track(pixel)
            if phase == "down":
                self._selection.begin()
            elif phase in ("up", "cancel") and self._selection.dragging:
                self._commit()

    def set_shifting(self, held: bool):
        with self._lock:
            self._selection.shifting = held

    def back(self):
        with self._lock:
            last = self._history.pop()
            if last is not None:
                self._draw_region = last

    def reset(self):
        with self._lock:
            self._history.clear()
            self._draw_region = Region.default().with_aspect(aspect_ratio(self._viewport_size))
            point_moved = self._deep and self._deep_point != self._start_point
            if not point_moved:
                self._zoom = self._start_zoom
        if point_moved:
            self._install_orbit(self._start_point, self._start_zoom)

    def fix_aspect(self):
        with self._lock:
            self._draw_region = self._draw_region.with_aspect(aspect_ratio(self._viewport_size))

    def resize(self, size: tuple):
        with self._lock:
            self._viewport_size = tuple(size)
            self._draw_region = self._draw_region.with_aspect(aspect_ratio(self._viewport_size))

    def scroll(self, dx: int, dy: int):
        with self._lock:
            self._iterations += int(dx) * SCROLL_STEP_X + int(dy) * SCROLL_STEP_Y

    # =========================================================================
    # Deep zoom
    # =========================================================================

    def _install_orbit(self, point: DeepZoomPoint, zoom: Optional[float] = None):
        """Regenerate the orbit outside the lock, then install it with its point (and zoom)."""
        t0 = time.perf_counter()
        orbit = OrbitBuffer.from_orbit(
            self._generator.generate(point, self._orbit_capacity),
            self._orbit_capacity,
        )
        elapsed_ms = (time.perf_counter() - t0) * 1000
        with self._lock:
            self._deep_point = point
            if zoom is not None:
                self._zoom = zoom
            self._orbit = orbit
            self._orbit_version += 1
            self._last_orbit_ms = elapsed_ms
        logger.debug("Orbit regenerated: %d points in %.1fms", orbit.length, elapsed_ms)

    def pan(self, steps_x: float, steps_y: float):
        """Move the deep zoom point by a number of pan steps along each axis."""
        if not steps_x and not steps_y:
            return
        with self._lock:
            step = self._pan_fraction * Region.default().height / self._zoom
            point = self._deep_point.shifted(steps_x * step, steps_y * step)
        self._install_orbit(point)

    def zoom_by(self, factor: float):
        with self._lock:
            self._zoom *= factor
            zoom = self._zoom
            needed = required_precision_bits(zoom)
            exhausted = needed > self._generator.precision_bits and not self._precision_warned
            if exhausted:
                self._precision_warned = True
        if exhausted:
            logger.warning(
                "Zoom %.3g needs ~%d bits but the orbit uses %d; detail will degrade",
                zoom, needed, self._generator.precision_bits,
            )

    # =========================================================================
    # Reads
    # =========================================================================

    @property
    def draw_region(self) -> Region:
        with self._lock:
            return self._draw_region

    @property
    def history(self) -> list[Region]:
        with self._lock:
            return list(self._history)

    @property
    def dragging(self) -> bool:
        with self._lock:
            return self._selection.dragging

    @property
    def iterations(self) -> int:
        """Raw iteration count; may be negative."""
        with self._lock:
            return self._iterations

    @property
    def viewport_size(self) -> tuple:
        with self._lock:
            return self._viewport_size

    @property
    def deep_point(self) -> DeepZoomPoint:
        with self._lock:
            return self._deep_point

    @property
    def zoom(self) -> float:
        with self._lock:
            return self._zoom

    def current_display_region(self) -> Region:
        with self._lock:
            if self._selection.dragging:
                return self._selection.select_region
            return self._draw_region

    def uniform_snapshot(self) -> UniformSnapshot:
        with self._lock:
            draw = self._draw_region
            select = self._selection.select_region if self._selection.dragging else draw
            return UniformSnapshot(
                draw_top_left=draw.top_left,
                draw_bottom_right=draw.bottom_right,
                select_top_left=select.top_left,
                select_bottom_right=select.bottom_right,
                iterations=max(self._iterations, 0),
            )

    def deep_snapshot(self) -> DeepSnapshot:
        with self._lock:
            return DeepSnapshot(
                aspect=aspect_ratio(self._viewport_size),
                zoom=self._zoom,
                points=self._orbit.length,
                iterations=max(self._iterations, 0),
                orbit_version=self._orbit_version,
                orbit=self._orbit.data,
                center=self._deep_point.as_strings(),
            )

    def debug_lines(self, stats: Optional[dict] = None, width: int = DEBUG_WIDTH) -> list[str]:
        """Human-readable dump of the current state for a text overlay."""
        with self._lock:
            draw = self._draw_region
            dragging = self._selection.dragging
            select = self._selection.select_region
            iterations = self._iterations
            orbit_length = self._orbit.length
            orbit_ms = self._last_orbit_ms
            center = self._deep_point.as_strings(20)
            zoom = self._zoom

        w = width
        blank = f"|{'':^{w}}|"
        lines = [
            f"|{str(draw.top_left):<{w}}|",
            f"|  {str(select.top_left):<{w - 2}}|" if dragging else blank,
            blank,
            f"|{f'{iterations} iters':^{w}}|",
            blank,
            f"|{str(select.bottom_right):>{w - 2}}  |" if dragging else blank,
            f"|{str(draw.bottom_right):>{w}}|",
        ]
        if self._deep:
            lines.append(f"Center: {center[0]} + {center[1]}i | Zoom: {zoom:.3g}")
            lines.append(f"Orbit: {orbit_length} pts ({orbit_ms:.0f}ms)")
        for name, value in (stats or {}).items():
            lines.append(f"{name}: {value}")
        return lines
