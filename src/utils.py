"""Shared geometry helpers for the EvoArena simulation."""

from dataclasses import dataclass
from typing import Iterable, Optional, Tuple

import numpy as np


@dataclass(frozen=True)
class Rectangle:
    """Axis-aligned rectangle, anchored at its top-left corner."""
    x: float
    y: float
    width: float
    height: float

    @property
    def right(self) -> float:
        return self.x + self.width

    @property
    def bottom(self) -> float:
        return self.y + self.height

    @property
    def center(self) -> Tuple[float, float]:
        return (self.x + self.width / 2, self.y + self.height / 2)

    def intersects(self, other: 'Rectangle') -> bool:
        """Strict AABB overlap (touching edges do not count)."""
        return rectangles_intersect(self, other)

    def contains_point(self, px: float, py: float) -> bool:
        """Inclusive point containment, edges count as inside."""
        return self.x <= px <= self.right and self.y <= py <= self.bottom


def rectangles_intersect(rect1: Rectangle, rect2: Rectangle) -> bool:
    """Check whether two rectangles overlap."""
    return (
        rect1.x < rect2.x + rect2.width and
        rect1.x + rect1.width > rect2.x and
        rect1.y < rect2.y + rect2.height and
        rect1.y + rect1.height > rect2.y
    )


def centered_rectangle(cx: float, cy: float, size: float) -> Rectangle:
    """Square of side ``size`` centred on (cx, cy)."""
    return Rectangle(cx - size / 2, cy - size / 2, size, size)


def as_bounds_array(rects: Iterable[Rectangle]) -> np.ndarray:
    """Pack rectangles into an (N, 4) array of [min_x, min_y, max_x, max_y].

    Args:
        rects: Rectangles to pack

    Returns:
        float64 array, shape (0, 4) when no rectangles are given
    """
    rows = [(r.x, r.y, r.x + r.width, r.y + r.height) for r in rects]
    if not rows:
        return np.empty((0, 4), dtype=np.float64)
    return np.array(rows, dtype=np.float64)


def distance(p1, p2) -> float:
    """Euclidean distance between two 2-D points."""
    return float(np.hypot(p1[0] - p2[0], p1[1] - p2[1]))


def ensure_rng(rng: Optional[np.random.Generator] = None) -> np.random.Generator:
    """Return ``rng`` or a fresh, unseeded generator."""
    if rng is None:
        return np.random.default_rng()
    return rng
