"""Interactive Mandelbrot explorer with a deep zoom reference orbit."""

from .config import ExplorerConfig
from .deep_zoom import DeepZoomPoint, OrbitBuffer, OrbitGenerator
from .geometry import Region, Vec2, aspect_ratio, map_to_pixel, map_to_plane
from .selection import RegionHistory, SelectionState, locked_corner
from .view_state import DeepSnapshot, UniformSnapshot, ViewState

__all__ = [
    "DeepSnapshot",
    "DeepZoomPoint",
    "ExplorerConfig",
    "OrbitBuffer",
    "OrbitGenerator",
    "Region",
    "RegionHistory",
    "SelectionState",
    "UniformSnapshot",
    "Vec2",
    "ViewState",
    "aspect_ratio",
    "locked_corner",
    "map_to_pixel",
    "map_to_plane",
]
