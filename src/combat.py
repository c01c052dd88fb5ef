"""
Collision and combat resolution, applied by the orchestrator every tick.

All functions here are stateless: they read and update the creatures and
projectiles handed to them and keep nothing between calls.
"""

from dataclasses import dataclass
from typing import Dict, Iterable, List, Sequence, Tuple
import logging

import numpy as np

from config import CreatureConfig, FitnessConfig
from creature import CreatureAgent, Projectile
from utils import Rectangle, rectangles_intersect

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class KillEvent:
    """A projectile hit that killed its target."""
    shooter_id: str
    victim_id: str
    tick: int


def agent_overlaps_wall(agent: CreatureAgent, walls: Iterable[Rectangle]) -> bool:
    bounds = agent.bounding_rect()
    return any(rectangles_intersect(bounds, wall) for wall in walls)


def resolve_wall_collision(agent: CreatureAgent, walls: Iterable[Rectangle]) -> bool:
    """Push a creature out of the first wall it overlaps.

    The push is along the axis of smaller overlap, away from the wall's
    centre. Only one wall is resolved per call.

    Returns:
        True if the creature was moved
    """
    bounds = agent.bounding_rect()
    half_w = bounds.width / 2
    half_h = bounds.height / 2

    for wall in walls:
        if not rectangles_intersect(bounds, wall):
            continue

        overlap_x = min(bounds.right - wall.x, wall.right - bounds.x)
        overlap_y = min(bounds.bottom - wall.y, wall.bottom - bounds.y)

        if overlap_x < overlap_y:
            if agent.pos[0] < wall.x + wall.width / 2:
                agent.pos[0] = wall.x - half_w
            else:
                agent.pos[0] = wall.right + half_w
        else:
            if agent.pos[1] < wall.y + wall.height / 2:
                agent.pos[1] = wall.y - half_h
            else:
                agent.pos[1] = wall.bottom + half_h
        return True

    return False


def projectile_hits_wall(projectile: Projectile, obstacles: Iterable[Rectangle]) -> bool:
    """Inclusive point-in-rectangle test against every obstacle."""
    px, py = projectile.pos
    return any(rect.contains_point(px, py) for rect in obstacles)


def projectile_hits_agent(projectile: Projectile, agent: CreatureAgent, hit_radius: float) -> bool:
    """A living creature other than the shooter, strictly within hit_radius."""
    if not agent.is_alive or agent.id == projectile.owner_id:
        return False
    dx, dy = projectile.pos - agent.pos
    return float(np.hypot(dx, dy)) < hit_radius


def projectile_out_of_bounds(projectile: Projectile, width: float, height: float) -> bool:
    px, py = projectile.pos
    return px < 0 or px > width or py < 0 or py > height


def update_projectiles(projectiles: Sequence[Projectile],
                       population: Sequence[CreatureAgent],
                       obstacles: Sequence[Rectangle],
                       width: float, height: float,
                       fitness_config: FitnessConfig,
                       creature_config: CreatureConfig,
                       current_tick: int = 0) -> Tuple[List[Projectile], List[KillEvent]]:
    """
    Advance every projectile one tick and resolve what it runs into.

    Order per projectile: move, age, walls, creatures, lifetime, bounds.
    A hit that kills credits the shooter with the kill reward and heals it.

    Args:
        projectiles: Live projectiles
        population: All creatures, in population order
        obstacles: Wall and obstacle rectangles
        width, height: Arena bounds
        fitness_config: Supplies the kill reward
        creature_config: Supplies the hit radius
        current_tick: Recorded on kill events

    Returns:
        (surviving projectiles, kill events)
    """
    by_id: Dict[str, CreatureAgent] = {agent.id: agent for agent in population}
    hit_radius = creature_config.hit_radius

    survivors = []
    kills = []

    for projectile in projectiles:
        projectile.pos = projectile.pos + projectile.vel
        projectile.lifetime += 1

        if projectile_hits_wall(projectile, obstacles):
            continue

        target = next((agent for agent in population
                       if projectile_hits_agent(projectile, agent, hit_radius)), None)
        if target is not None:
            died = target.take_damage(projectile.damage)
            if died:
                shooter = by_id.get(projectile.owner_id)
                if shooter is not None:
                    shooter.award_kill(fitness_config.kill_reward)
                    shooter.restore_full_health()
                    kills.append(KillEvent(shooter.id, target.id, current_tick))
                    logger.debug("Tick %d: %s killed %s", current_tick, shooter.id, target.id)
            continue

        if projectile.lifetime >= projectile.max_lifetime:
            continue

        if projectile_out_of_bounds(projectile, width, height):
            continue

        survivors.append(projectile)

    return survivors, kills
