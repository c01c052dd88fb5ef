"""Ray-cast vision for creatures.

Each creature sees the arena through a fan of rays spread across its field
of view. Every ray is intersected with every rectangle in sight (walls,
obstacles and the bounding boxes of other creatures) using the slab method,
and the nearest hit becomes a normalized distance reading in [0, 1].
"""

from dataclasses import dataclass
from typing import Iterable, List, Optional, Sequence, Tuple
import math

import numpy as np

from config import VisionConfig
from utils import Rectangle, as_bounds_array

# Below this magnitude a direction component is treated as parallel to the slab
PARALLEL_EPSILON = 1e-10


@dataclass(frozen=True)
class Ray:
    """One line-of-sight probe in world coordinates."""
    origin: Tuple[float, float]
    direction: Tuple[float, float]
    angle: float
    length: float

    @property
    def end_point(self) -> Tuple[float, float]:
        return (self.origin[0] + self.direction[0] * self.length,
                self.origin[1] + self.direction[1] * self.length)


@dataclass(frozen=True)
class VisionData:
    """A single perception sample: rays plus their normalized distances."""
    rays: Tuple[Ray, ...]
    distances: Tuple[float, ...]

    @property
    def quality(self) -> float:
        """Mean normalized distance; low values mean the view is crowded."""
        if not self.distances:
            return 1.0
        return float(np.mean(self.distances))

    def as_array(self) -> np.ndarray:
        return np.array(self.distances, dtype=np.float64)


def _slab(origin, direction, lo, hi):
    """Entry/exit parameters of rays against one axis of many slabs.

    Args:
        origin: Ray origin coordinate on this axis (scalar)
        direction: Ray direction components on this axis, shape (R, 1)
        lo: Slab minimum per rectangle, shape (1, N)
        hi: Slab maximum per rectangle, shape (1, N)

    Returns:
        (t_min, t_max) arrays of shape (R, N). Parallel rays get (-inf, inf)
        when the origin lies within the slab and (inf, -inf) otherwise.
    """
    parallel = np.abs(direction) < PARALLEL_EPSILON
    safe = np.where(parallel, 1.0, direction)

    t1 = (lo - origin) / safe
    t2 = (hi - origin) / safe
    t_min = np.minimum(t1, t2)
    t_max = np.maximum(t1, t2)

    inside = (lo <= origin) & (origin <= hi)
    t_min = np.where(parallel, np.where(inside, -np.inf, np.inf), t_min)
    t_max = np.where(parallel, np.where(inside, np.inf, -np.inf), t_max)
    return t_min, t_max


def ray_rectangle_distances(origin, directions: np.ndarray, bounds: np.ndarray,
                            max_distance: float) -> np.ndarray:
    """Nearest hit distance of every ray against every rectangle.

    Args:
        origin: Ray origin (x, y), shared by all rays
        directions: Unit direction vectors, shape (R, 2)
        bounds: Rectangles as [min_x, min_y, max_x, max_y], shape (N, 4)
        max_distance: Hits beyond this distance are ignored

    Returns:
        Array of shape (R,) holding the nearest hit distance per ray,
        or max_distance where a ray hits nothing in range
    """
    directions = np.asarray(directions, dtype=np.float64).reshape(-1, 2)
    num_rays = directions.shape[0]
    if len(bounds) == 0:
        return np.full(num_rays, float(max_distance))

    ox, oy = float(origin[0]), float(origin[1])
    dx = directions[:, 0:1]
    dy = directions[:, 1:2]

    tx_min, tx_max = _slab(ox, dx, bounds[None, :, 0], bounds[None, :, 2])
    ty_min, ty_max = _slab(oy, dy, bounds[None, :, 1], bounds[None, :, 3])

    t_near = np.maximum(tx_min, ty_min)
    t_far = np.minimum(tx_max, ty_max)

    # A ray starting inside a rectangle reports where it leaves it
    t = np.where(t_near >= 0, t_near, t_far)
    hit = (t_near <= t_far) & (t_far >= 0) & (t <= max_distance)

    degenerate = (np.abs(dx) < PARALLEL_EPSILON) & (np.abs(dy) < PARALLEL_EPSILON)
    hit &= ~degenerate

    nearest = np.where(hit, t, np.inf).min(axis=1)
    return np.where(np.isfinite(nearest), nearest, float(max_distance))


def ray_segments(vision_data: VisionData) -> List[Tuple[Tuple[float, float], Tuple[float, float]]]:
    """(start, end) line segments for drawing a vision sample."""
    return [(ray.origin, ray.end_point) for ray in vision_data.rays]


class VisionSystem:
    """Casts a fan of rays centred on a heading."""

    def __init__(self, config: Optional[VisionConfig] = None):
        self.config = config or VisionConfig()

    @property
    def ray_count(self) -> int:
        return self.config.ray_count

    @property
    def max_distance(self) -> float:
        return self.config.max_distance

    def ray_angles(self, rotation: float) -> np.ndarray:
        """World-space angle of every ray, evenly spread across the field of view."""
        count = self.config.ray_count
        if count == 1:
            return np.array([rotation], dtype=np.float64)
        fov = self.config.fov_angle
        step = fov / (count - 1)
        return rotation - fov / 2 + np.arange(count) * step

    def cast_vision(self, position, rotation: float,
                    obstacles: Iterable[Rectangle],
                    other_agents: Iterable[Rectangle] = ()) -> VisionData:
        """Cast all rays and measure the nearest obstacle along each.

        Args:
            position: Eye position (x, y)
            rotation: Heading in radians
            obstacles: Wall and obstacle rectangles
            other_agents: Bounding rectangles of other creatures

        Returns:
            VisionData with exactly ray_count rays and distances in [0, 1]
        """
        origin = (float(position[0]), float(position[1]))
        angles = self.ray_angles(rotation)
        directions = np.stack([np.cos(angles), np.sin(angles)], axis=1)

        bounds = as_bounds_array(list(obstacles) + list(other_agents))
        max_distance = self.config.max_distance
        lengths = np.minimum(
            ray_rectangle_distances(origin, directions, bounds, max_distance),
            max_distance,
        )
        normalized = np.minimum(lengths / max_distance, 1.0)

        rays = tuple(
            Ray(origin=origin,
                direction=(float(d[0]), float(d[1])),
                angle=float(a),
                length=float(l))
            for a, d, l in zip(angles, directions, lengths)
        )
        return VisionData(rays=rays, distances=tuple(float(v) for v in normalized))

    def visualization_rays(self, position, rotation: float) -> List[Ray]:
        """Full-length rays without intersection tests, for overlays."""
        origin = (float(position[0]), float(position[1]))
        return [
            Ray(origin=origin, direction=(math.cos(a), math.sin(a)),
                angle=float(a), length=self.config.max_distance)
            for a in self.ray_angles(rotation)
        ]

    def is_in_vision_cone(self, position, rotation: float, point: Sequence[float]) -> bool:
        """Whether a point lies inside the field of view, ignoring range."""
        angle_to_point = math.atan2(point[1] - position[1], point[0] - position[0])
        diff = abs(angle_to_point - rotation) % (2 * math.pi)
        if diff > math.pi:
            diff = 2 * math.pi - diff
        return diff <= self.config.fov_angle / 2
