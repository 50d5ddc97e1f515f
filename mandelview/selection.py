"""Drag-selection state machine and the undo history of draw regions."""

from dataclasses import dataclass, field
from typing import Iterator, Optional
import logging
import math

from .geometry import Region, Vec2

logger = logging.getLogger(__name__)
logger.addHandler(logging.NullHandler())


class RegionHistory:
    """Stack of previously displayed regions, newest last."""

    def __init__(self):
        self._regions: list[Region] = []

    def push(self, region: Region):
        self._regions.append(region)

    def pop(self) -> Optional[Region]:
        """Remove and return the newest region, or None when empty."""
        if not self._regions:
            return None
        return self._regions.pop()

    def clear(self):
        self._regions.clear()

    def __len__(self) -> int:
        return len(self._regions)

    def __bool__(self) -> bool:
        return bool(self._regions)

    def __iter__(self) -> Iterator[Region]:
        return iter(list(self._regions))


def locked_corner(anchor: Vec2, cursor: Vec2, aspect: float) -> Vec2:
    """Corner opposite the anchor with the proportions of the viewport.

    The anchor-to-cursor distance is spread over both axes (divided by
    sqrt(2)), then scaled by (aspect, 1), keeping the direction of the cursor.
    """
    dist = (cursor - anchor).length() / math.sqrt(2)
    sign = (cursor - anchor).signum()
    return anchor + dist * sign * Vec2(aspect, 1.0)


@dataclass
class SelectionState:
    """Live selection rectangle and the modifier state driving it.

    While idle, the anchor (select_region.top_left) follows the pointer so a
    press starts the selection where the pointer is. While dragging, the
    opposite corner follows the pointer, optionally aspect-locked.
    """
    dragging: bool = False
    shifting: bool = False
    select_region: Region = field(default_factory=Region.default)
    lock_while_shifting: bool = True

    @property
    def aspect_locked(self) -> bool:
        if self.lock_while_shifting:
            return self.shifting
        return not self.shifting

    def track(self, cursor: Vec2, aspect: float):
        """Follow the pointer, already mapped onto the plane."""
        anchor = self.select_region.top_left
        if not self.dragging:
            self.select_region = Region(cursor, self.select_region.bottom_right)
        elif self.aspect_locked:
            self.select_region = Region(anchor, locked_corner(anchor, cursor, aspect))
        else:
            self.select_region = Region(anchor, cursor)

    def begin(self):
        """Start (or restart) a drag with a zero-size rectangle at the anchor."""
        anchor = self.select_region.top_left
        self.dragging = True
        self.select_region = Region(anchor, anchor)

    def commit(self) -> Region:
        """Finish the drag and return the normalized selection."""
        self.dragging = False
        region = self.select_region.normalized()
        logger.debug("Selection committed: %s", region)
        return region
