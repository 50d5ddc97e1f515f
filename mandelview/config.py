"""Constants and runtime configuration for the explorer."""

from dataclasses import dataclass, field
from typing import Optional

# =============================================================================
# Constants
# =============================================================================

# Default draw region, centred to show the whole set
DEFAULT_TOP_LEFT = (-2.2, -1.4)
DEFAULT_BOTTOM_RIGHT = (-2.2 + 2.8, 1.4)

DEFAULT_ITERATIONS = 512
DEFAULT_WINDOW_SIZE = (600, 600)
MIN_WINDOW_SIZE = (64, 64)

# Scroll steps applied to the iteration count
SCROLL_STEP_X = 1
SCROLL_STEP_Y = 10

# Deep zoom
PRECISION_BITS = 512
ORBIT_CAPACITY = 2048
ESCAPE_BOUND = 1024.0 * 4
DEFAULT_CENTER_RE = "-0.75"
DEFAULT_CENTER_IM = "0.0"
DEFAULT_ZOOM = 1.0
PAN_FRACTION = 0.01  # As fraction of view height per update tick
ZOOM_STEP = 1.02  # Per update tick while a zoom key is held

UPDATE_RATE = 60  # Fixed-timestep updates per second


@dataclass(frozen=True)
class ExplorerConfig:
    """Everything the explorer needs to know before it opens a window."""

    window_size: tuple = DEFAULT_WINDOW_SIZE
    iterations: int = DEFAULT_ITERATIONS
    precision_bits: int = PRECISION_BITS
    orbit_capacity: int = ORBIT_CAPACITY
    escape_bound: float = ESCAPE_BOUND
    fp64: bool = True
    deep: bool = False
    lock_while_shifting: bool = True
    center: tuple = field(default=(DEFAULT_CENTER_RE, DEFAULT_CENTER_IM))
    zoom: float = DEFAULT_ZOOM
    pan_fraction: float = PAN_FRACTION
    zoom_step: float = ZOOM_STEP
    update_rate: int = UPDATE_RATE
    color_seed: float = 0.0
    render_path: Optional[str] = None

    def __post_init__(self):
        width, height = self.window_size
        if width <= 0 or height <= 0:
            raise ValueError(f"Window size must be positive, got {self.window_size}")
        if self.precision_bits <= 0:
            raise ValueError(f"precision_bits must be positive, got {self.precision_bits}")
        if self.orbit_capacity <= 0:
            raise ValueError(f"orbit_capacity must be positive, got {self.orbit_capacity}")
        if self.escape_bound <= 0:
            raise ValueError(f"escape_bound must be positive, got {self.escape_bound}")
        if self.update_rate <= 0:
            raise ValueError(f"update_rate must be positive, got {self.update_rate}")
        if self.zoom <= 0 or self.zoom_step <= 1.0:
            raise ValueError("zoom must be positive and zoom_step greater than 1")

    @property
    def update_interval(self) -> float:
        return 1.0 / self.update_rate

    @classmethod
    def from_args(cls, args) -> "ExplorerConfig":
        """Build a config from an argparse namespace."""
        return cls(
            window_size=tuple(args.size),
            iterations=args.iterations,
            precision_bits=args.precision_bits,
            orbit_capacity=args.orbit_capacity,
            escape_bound=args.escape_bound,
            fp64=not args.fp32,
            deep=args.deep,
            lock_while_shifting=not args.lock_select,
            center=tuple(args.center),
            zoom=args.zoom,
            color_seed=args.color_seed,
            render_path=args.render,
        )
