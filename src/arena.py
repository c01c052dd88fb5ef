"""Arena geometry: walls, layouts and spawn placement.

Only the reference "main" layout lives here. Other themes are supplied by
callers as ArenaLayout values.
"""

from dataclasses import dataclass, replace
from typing import List, Optional, Sequence, Tuple
import logging

import numpy as np

from utils import Rectangle, centered_rectangle, ensure_rng, rectangles_intersect

logger = logging.getLogger(__name__)

REFERENCE_WIDTH = 800.0
REFERENCE_HEIGHT = 600.0
WALL_THICKNESS = 20.0

WALL_KINDS = ('wall', 'obstacle', 'barrier')


@dataclass(frozen=True)
class ArenaWall(Rectangle):
    """A rectangle tagged with an id and kind."""
    id: str = ''
    kind: str = 'wall'

    def __post_init__(self):
        assert self.kind in WALL_KINDS, f"unknown wall kind {self.kind!r}"


@dataclass(frozen=True)
class ArenaLayout:
    id: str
    name: str
    description: str = ''
    walls: Tuple[ArenaWall, ...] = ()
    spawn_zones: Tuple[Rectangle, ...] = ()


def create_arena_bounds(width: float, height: float, thickness: float = 10.0) -> List[ArenaWall]:
    """Four border walls enclosing a width x height arena."""
    return [
        ArenaWall(0, 0, width, thickness, id='top-border'),
        ArenaWall(0, height - thickness, width, thickness, id='bottom-border'),
        ArenaWall(0, 0, thickness, height, id='left-border'),
        ArenaWall(width - thickness, 0, thickness, height, id='right-border'),
    ]


def default_layout(width: float = REFERENCE_WIDTH, height: float = REFERENCE_HEIGHT) -> ArenaLayout:
    """The open main arena: border walls and a central pillar.

    The pillar covers the arena centre, which is also where
    find_spawn_position falls back to. A creature placed there is pushed
    out of the pillar by the wall resolution of its first tick.
    """
    walls = create_arena_bounds(REFERENCE_WIDTH, REFERENCE_HEIGHT, WALL_THICKNESS)
    walls.append(ArenaWall(REFERENCE_WIDTH / 2 - 30, REFERENCE_HEIGHT / 2 - 30, 60, 60,
                           id='center-pillar', kind='obstacle'))
    zones = (
        Rectangle(50, 50, 150, 150),
        Rectangle(REFERENCE_WIDTH - 200, 50, 150, 150),
        Rectangle(50, REFERENCE_HEIGHT - 200, 150, 150),
        Rectangle(REFERENCE_WIDTH - 200, REFERENCE_HEIGHT - 200, 150, 150),
    )
    layout = ArenaLayout(id='main', name='Main Arena',
                         description='Open arena with minimal obstacles',
                         walls=tuple(walls), spawn_zones=zones)
    return scale_layout(layout, width, height)


def scale_layout(layout: ArenaLayout, width: float, height: float) -> ArenaLayout:
    """Rescale a layout authored at 800x600 to the given viewport."""
    sx = width / REFERENCE_WIDTH
    sy = height / REFERENCE_HEIGHT

    def scale(rect):
        return replace(rect, x=rect.x * sx, y=rect.y * sy,
                       width=rect.width * sx, height=rect.height * sy)

    return replace(layout,
                   walls=tuple(scale(w) for w in layout.walls),
                   spawn_zones=tuple(scale(z) for z in layout.spawn_zones))


def is_valid_position(position, size: float, walls: Sequence[Rectangle]) -> bool:
    """True if a creature of this size centred here touches no wall."""
    bounds = centered_rectangle(position[0], position[1], size)
    return not any(rectangles_intersect(bounds, wall) for wall in walls)


def find_spawn_position(width: float, height: float, walls: Sequence[Rectangle],
                        existing_positions: Sequence = (),
                        rng: Optional[np.random.Generator] = None,
                        size: float = 24.0, attempts: int = 100,
                        separation: float = 1.5) -> Tuple[float, float]:
    """
    Sample a spawn point clear of walls and away from other creatures.

    Args:
        width, height: Arena dimensions
        walls: Rectangles to avoid
        existing_positions: Centres already taken
        rng: Random generator
        size: Creature size
        attempts: Samples to try before giving up
        separation: Minimum distance to existing positions, in creature sizes

    Returns:
        (x, y); the arena centre when no sample succeeds
    """
    rng = ensure_rng(rng)
    padding = size / 2 + 5
    min_distance = size * separation
    taken = np.array(existing_positions, dtype=np.float64).reshape(-1, 2)

    for _ in range(attempts):
        x = padding + rng.random() * (width - 2 * padding)
        y = padding + rng.random() * (height - 2 * padding)

        if not is_valid_position((x, y), size, walls):
            continue
        if len(taken) and np.any(np.hypot(taken[:, 0] - x, taken[:, 1] - y) < min_distance):
            continue
        return (float(x), float(y))

    logger.warning("No safe spawn position after %d attempts, using arena centre", attempts)
    return (width / 2, height / 2)
