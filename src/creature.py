"""
Creature agents: perception, decision, movement and combat for one participant.
"""

from dataclasses import dataclass
from typing import Iterable, Optional, Sequence, Tuple
import logging

import numpy as np

from brain import Brain
from config import BrainConfig, CreatureConfig, FitnessConfig, VisionConfig
from errors import IncompatibleShapeError
from genome import Genome, GenomeMetadata
from utils import Rectangle, centered_rectangle, ensure_rng
from vision import VisionData, VisionSystem

logger = logging.getLogger(__name__)


@dataclass
class Projectile:
    """A fired shot. Owned and advanced by the orchestrator."""
    id: str
    pos: np.ndarray
    vel: np.ndarray
    owner_id: str
    damage: float
    lifetime: int = 0
    max_lifetime: int = 120


@dataclass(frozen=True)
class ActionResult:
    """What a creature asks the orchestrator to do after its tick."""
    should_shoot: bool = False


class CreatureAgent:
    """One creature in the arena.

    Alive until energy reaches zero, then dead for the rest of the
    generation; dead creatures stay in the population for fitness ranking.
    """

    def __init__(self, agent_id: str, name: str, position, generation: int = 1,
                 arena: str = 'main', genome: Optional[Genome] = None,
                 config: Optional[CreatureConfig] = None,
                 brain_config: Optional[BrainConfig] = None,
                 vision_config: Optional[VisionConfig] = None,
                 rng: Optional[np.random.Generator] = None,
                 birth_tick: int = 0,
                 rotation: Optional[float] = None):
        """
        Initialize a creature.

        Args:
            agent_id: Unique identifier
            name: Display name
            position: Initial centre (x, y)
            generation: Generation number this creature belongs to
            arena: Arena identifier
            genome: Optional genome to decode; a random brain is used when
                it is missing, invalid or shaped for a different network
            config: Physics, energy and weapon parameters
            brain_config: Expected network shape
            vision_config: Ray-cast parameters
            rng: Random generator for the brain and the initial heading
            birth_tick: Tick at which this creature entered the arena
            rotation: Initial heading in radians; random when omitted
        """
        rng = ensure_rng(rng)

        self.id = agent_id
        self.name = name
        self.generation = generation
        self.arena = arena
        self.birth_tick = birth_tick
        self.parent_ids: Tuple[str, ...] = ()

        self.config = config or CreatureConfig()
        self.brain_config = brain_config or BrainConfig()

        self.pos = np.array(position, dtype=np.float64)
        self.vel = np.zeros(2, dtype=np.float64)
        self.rotation = float(rng.uniform(0, 2 * np.pi)) if rotation is None else float(rotation)

        self.energy = self.config.max_energy
        self.fitness = 0.0
        self.kill_bonus = 0.0
        self.kill_count = 0
        self.age = 0
        self.is_alive = True
        self.shoot_cooldown = 0

        self.is_pinned = False
        self.is_saved = False

        self.brain = self._initialize_brain(genome, rng)
        self.vision = VisionSystem(vision_config)
        self.last_vision: Optional[VisionData] = None

    def _initialize_brain(self, genome: Optional[Genome], rng) -> Brain:
        if genome is None:
            return Brain(self.brain_config, rng=rng)

        if tuple(genome.layer_sizes) != tuple(self.brain_config.layer_sizes):
            logger.warning("Creature %s: genome layer sizes %s do not match %s, using a random brain",
                           self.id, genome.layer_sizes, self.brain_config.layer_sizes)
            return Brain(self.brain_config, rng=rng)

        if not genome.validate():
            logger.warning("Creature %s: invalid genome, using a random brain", self.id)
            return Brain(self.brain_config, rng=rng)

        return genome.to_brain()

    def act(self, obstacles: Sequence[Rectangle], other_agents: Iterable[Rectangle],
            fitness_config: Optional[FitnessConfig], current_tick: int) -> ActionResult:
        """
        Run one tick: see, think, move, pay energy and score.

        Args:
            obstacles: Wall and obstacle rectangles
            other_agents: Bounding rectangles of the other living creatures
            fitness_config: Fitness weights
            current_tick: Global tick counter

        Returns:
            ActionResult telling the caller whether to fire a projectile
        """
        if not self.is_alive:
            return ActionResult(should_shoot=False)

        fitness_config = fitness_config or FitnessConfig()
        cfg = self.config

        # 1. Look
        vision = self.vision.cast_vision(self.pos, self.rotation, obstacles, other_agents)
        self.last_vision = vision

        # 2. Build inputs: rays, energy, |vx|, |vy|, mean ray distance
        distances = vision.as_array()
        quality = vision.quality
        inputs = np.concatenate([
            distances,
            [
                self.energy / cfg.max_energy,
                min(abs(self.vel[0]) / cfg.max_speed, 1.0),
                min(abs(self.vel[1]) / cfg.max_speed, 1.0),
                quality,
            ],
        ])

        # 3. Think
        left_turn, right_turn, forward, shoot = self.brain.process(inputs)
        forward = max(0.0, float(forward))

        # 4. Turn
        self.rotation += (right_turn - left_turn) * cfg.turn_speed

        # 5. Blend velocity toward the heading
        target = np.array([np.cos(self.rotation), np.sin(self.rotation)]) * forward * cfg.max_speed
        self.vel = self.vel * cfg.inertia + target * (1 - cfg.inertia)

        # 6. Move
        self.pos += self.vel

        # 7. Age and pay for living and moving
        self.age += 1
        self._drain(cfg.base_energy_cost + abs(forward) * cfg.movement_energy_cost)

        # 8. Weapon cooldown
        if self.shoot_cooldown > 0:
            self.shoot_cooldown -= 1

        # 9. Alive/dead is settled inside _drain

        # 10. Score
        collision_proxy = (1.0 - quality) * fitness_config.collision_proxy_scale
        self.update_fitness(forward, collision_proxy, fitness_config, current_tick)

        # 11. Ask to shoot
        return ActionResult(should_shoot=bool(shoot > 0.5 and self.can_shoot()))

    def _drain(self, amount: float):
        """Subtract energy, floor at zero and settle the alive flag."""
        self.energy = max(0.0, self.energy - amount)
        if self.energy <= 0:
            self.is_alive = False

    def update_fitness(self, forward_speed: float, collision_proxy: float,
                       fitness_config: FitnessConfig, current_tick: int):
        """Recompute fitness from survival time, movement, crowding and kills."""
        elapsed = current_tick - self.birth_tick
        fitness = (elapsed * fitness_config.survival_reward
                   + forward_speed * fitness_config.forward_movement_reward
                   - min(collision_proxy, fitness_config.collision_proxy_cap) * fitness_config.collision_penalty
                   + self.kill_bonus)
        self.fitness = max(0.0, fitness)
        assert self.fitness >= 0

    def can_shoot(self) -> bool:
        return (self.is_alive
                and self.shoot_cooldown <= 0
                and self.energy >= self.config.shoot_energy_cost)

    def create_projectile(self, current_tick: int = 0) -> Optional[Projectile]:
        """Fire straight ahead. Returns None when the weapon is not ready."""
        if not self.can_shoot():
            return None

        cfg = self.config
        self.shoot_cooldown = cfg.shoot_cooldown
        self._drain(cfg.shoot_energy_cost)

        heading = np.array([np.cos(self.rotation), np.sin(self.rotation)])
        return Projectile(
            id=f"projectile-{self.id}-{current_tick}",
            pos=self.pos + heading * cfg.size * cfg.projectile_offset,
            vel=heading * cfg.projectile_speed,
            owner_id=self.id,
            damage=cfg.projectile_damage,
            max_lifetime=cfg.projectile_lifetime,
        )

    def take_damage(self, amount: float) -> bool:
        """Apply damage. Returns True only if this hit killed the creature."""
        if not self.is_alive:
            return False
        self._drain(amount)
        return not self.is_alive

    def award_kill(self, reward: float):
        """Credit a kill; the bonus survives later fitness recomputation."""
        self.kill_count += 1
        self.kill_bonus += reward
        self.fitness += reward

    def restore_full_health(self):
        if self.is_alive:
            self.energy = self.config.max_energy

    def bounding_rect(self) -> Rectangle:
        return centered_rectangle(self.pos[0], self.pos[1], self.config.size)

    def genome(self) -> Genome:
        """Encode the current brain."""
        return Genome.from_brain(self.brain, GenomeMetadata(parent_ids=self.parent_ids,
                                                            generation=self.generation))

    def load_genome(self, genome: Genome):
        """Replace the brain with one decoded from ``genome``.

        Raises:
            IncompatibleShapeError: if the genome does not fit this creature's network
        """
        if tuple(genome.layer_sizes) != tuple(self.brain_config.layer_sizes) or not genome.validate():
            raise IncompatibleShapeError(
                f"genome with layer sizes {genome.layer_sizes} cannot be loaded into {self.brain_config.layer_sizes}"
            )
        self.brain = genome.to_brain()

    def clone(self, new_id: str, name: Optional[str] = None, position=None,
              rng: Optional[np.random.Generator] = None, birth_tick: int = 0,
              generation: Optional[int] = None) -> 'CreatureAgent':
        """Fresh creature with the same brain, flags and lineage, and zero fitness."""
        clone = CreatureAgent(
            new_id,
            self.name if name is None else name,
            self.pos if position is None else position,
            generation=self.generation if generation is None else generation,
            arena=self.arena,
            genome=self.genome(),
            config=self.config,
            brain_config=self.brain_config,
            vision_config=self.vision.config,
            rng=rng,
            birth_tick=birth_tick,
        )
        clone.parent_ids = self.parent_ids
        clone.is_pinned = self.is_pinned
        clone.is_saved = self.is_saved
        return clone

    @staticmethod
    def create_offspring(parent1: 'CreatureAgent', parent2: 'CreatureAgent',
                         agent_id: str, name: str, position,
                         mutation_rate: Optional[float] = None,
                         mutation_strength: Optional[float] = None,
                         rng: Optional[np.random.Generator] = None,
                         birth_tick: int = 0) -> 'CreatureAgent':
        """Cross two parents' genomes, mutate, and decode into a new creature."""
        rng = ensure_rng(rng)
        generation = max(parent1.generation, parent2.generation) + 1
        metadata = GenomeMetadata(parent_ids=(parent1.id, parent2.id), generation=generation)

        child_genome = Genome.crossover(parent1.genome(), parent2.genome(), metadata, rng=rng)
        child_genome = child_genome.mutate(mutation_rate, mutation_strength, rng=rng)

        child = CreatureAgent(
            agent_id, name, position,
            generation=generation,
            arena=parent1.arena,
            genome=child_genome,
            config=parent1.config,
            brain_config=parent1.brain_config,
            vision_config=parent1.vision.config,
            rng=rng,
            birth_tick=birth_tick,
        )
        child.parent_ids = metadata.parent_ids
        return child

    def __repr__(self):
        state = 'alive' if self.is_alive else 'dead'
        return (f"CreatureAgent(id={self.id!r}, name={self.name!r}, gen={self.generation}, "
                f"{state}, energy={self.energy:.1f}, fitness={self.fitness:.2f})")
