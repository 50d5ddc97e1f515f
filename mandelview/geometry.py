"""Plane geometry: points, regions and the pixel <-> plane mapping."""

from dataclasses import dataclass
import math

from .config import DEFAULT_BOTTOM_RIGHT, DEFAULT_TOP_LEFT


@dataclass(frozen=True)
class Vec2:
    """A point or offset in pixel or plane coordinates."""
    x: float
    y: float

    def __add__(self, other: "Vec2") -> "Vec2":
        return Vec2(self.x + other.x, self.y + other.y)

    def __sub__(self, other: "Vec2") -> "Vec2":
        return Vec2(self.x - other.x, self.y - other.y)

    def __mul__(self, other) -> "Vec2":
        if isinstance(other, Vec2):
            return Vec2(self.x * other.x, self.y * other.y)
        return Vec2(self.x * other, self.y * other)

    __rmul__ = __mul__

    def length(self) -> float:
        return math.hypot(self.x, self.y)

    def signum(self) -> "Vec2":
        """Sign of each component, +1.0 for positive zero."""
        return Vec2(math.copysign(1.0, self.x), math.copysign(1.0, self.y))

    def min(self, other: "Vec2") -> "Vec2":
        return Vec2(min(self.x, other.x), min(self.y, other.y))

    def max(self, other: "Vec2") -> "Vec2":
        return Vec2(max(self.x, other.x), max(self.y, other.y))

    def as_tuple(self) -> tuple:
        return (self.x, self.y)

    def __str__(self) -> str:
        return f"[{self.x}, {self.y}]"


@dataclass(frozen=True)
class Region:
    """Axis-aligned rectangle in plane coordinates.

    Corners are not ordered while a selection is being dragged; a committed
    region is always normalized so that top_left <= bottom_right.
    """
    top_left: Vec2
    bottom_right: Vec2

    @classmethod
    def default(cls) -> "Region":
        return cls(Vec2(*DEFAULT_TOP_LEFT), Vec2(*DEFAULT_BOTTOM_RIGHT))

    @property
    def width(self) -> float:
        return self.bottom_right.x - self.top_left.x

    @property
    def height(self) -> float:
        return self.bottom_right.y - self.top_left.y

    def normalized(self) -> "Region":
        return Region(
            self.top_left.min(self.bottom_right),
            self.top_left.max(self.bottom_right),
        )

    def with_aspect(self, aspect: float) -> "Region":
        """Derive the width from the height; top-left and height are kept."""
        right = self.top_left.x + self.height * aspect
        return Region(self.top_left, Vec2(right, self.bottom_right.y))

    def __str__(self) -> str:
        return f"{self.top_left} -> {self.bottom_right}"


def map_to_plane(pixel: Vec2, viewport_size: tuple, region: Region) -> Vec2:
    """Map a pixel position inside the viewport onto the plane.

    The caller guarantees a non-zero viewport.
    """
    width, height = viewport_size
    return Vec2(
        region.top_left.x + pixel.x / width * (region.bottom_right.x - region.top_left.x),
        region.top_left.y + pixel.y / height * (region.bottom_right.y - region.top_left.y),
    )


def map_to_pixel(point: Vec2, viewport_size: tuple, region: Region) -> Vec2:
    """Inverse of map_to_plane. The caller guarantees a non-degenerate region."""
    width, height = viewport_size
    return Vec2(
        (point.x - region.top_left.x) / (region.bottom_right.x - region.top_left.x) * width,
        (point.y - region.top_left.y) / (region.bottom_right.y - region.top_left.y) * height,
    )


def aspect_ratio(viewport_size: tuple) -> float:
    width, height = viewport_size
    return width / height
