"""
Generation orchestrator: owns the population and drives the simulation.

One tick runs every living creature in population order, turns shoot
requests into projectiles, pushes creatures out of walls and then resolves
projectiles. Frames batch several ticks under a wall-clock budget, and the
end of a generation is checked once per frame.
"""

from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Callable, Dict, List, Mapping, Optional, Sequence, Tuple
import logging
import time

import numpy as np

from arena import ArenaLayout, default_layout
from combat import resolve_wall_collision, update_projectiles
from config import SimulationConfig
from creature import CreatureAgent
from evolution import PopulationBuilder, next_generation, select_top_performers
from genome import Genome
from vision import VisionData

logger = logging.getLogger(__name__)


class GenerationState(Enum):
    IDLE = 'idle'
    RUNNING = 'running'
    ENDED = 'ended'


@dataclass(frozen=True)
class AgentSnapshot:
    id: str
    name: str
    generation: int
    arena: str
    position: Tuple[float, float]
    rotation: float
    energy: float
    fitness: float
    is_alive: bool
    is_pinned: bool
    is_saved: bool
    kill_count: int
    vision: Optional[VisionData] = None

    @classmethod
    def of(cls, agent: CreatureAgent) -> 'AgentSnapshot':
        return cls(
            id=agent.id, name=agent.name, generation=agent.generation, arena=agent.arena,
            position=(float(agent.pos[0]), float(agent.pos[1])),
            rotation=float(agent.rotation), energy=float(agent.energy),
            fitness=float(agent.fitness), is_alive=agent.is_alive,
            is_pinned=agent.is_pinned, is_saved=agent.is_saved,
            kill_count=agent.kill_count, vision=agent.last_vision,
        )


@dataclass(frozen=True)
class ProjectileSnapshot:
    id: str
    position: Tuple[float, float]
    velocity: Tuple[float, float]
    owner_id: str
    lifetime: int


@dataclass(frozen=True)
class WorldSnapshot:
    """Read-only view of one frame, for renderers and UIs."""
    generation: int
    tick: int
    state: GenerationState
    width: float
    height: float
    agents: Tuple[AgentSnapshot, ...]
    projectiles: Tuple[ProjectileSnapshot, ...]

    @property
    def alive_count(self) -> int:
        return sum(1 for a in self.agents if a.is_alive)


@dataclass(frozen=True)
class GenerationResult:
    generation: int
    ticks: int
    survivors: Tuple[AgentSnapshot, ...]
    top_performers: Tuple[AgentSnapshot, ...]
    top_genomes: Tuple[Genome, ...] = ()
    stats: Mapping[str, float] = field(default_factory=lambda: MappingProxyType({}))


class GenerationOrchestrator:
    """Runs generations of creatures in one arena."""

    def __init__(self, config: Optional[SimulationConfig] = None,
                 layout: Optional[ArenaLayout] = None,
                 rng: Optional[np.random.Generator] = None,
                 clock: Callable[[], float] = time.perf_counter,
                 on_population_updated: Optional[Callable[[WorldSnapshot], None]] = None,
                 on_generation_ended: Optional[Callable[[GenerationResult], None]] = None):
        """
        Initialize the orchestrator.

        Args:
            config: Simulation configuration; validated here
            layout: Arena walls; the main layout scaled to the arena size by default
            rng: Random generator; seeded from config.seed when omitted
            clock: Monotonic clock in seconds, used for the frame budget
            on_population_updated: Called with a snapshot after every frame
            on_generation_ended: Called once with the result when a generation ends
        """
        self.config = config or SimulationConfig()
        self.config.validate()

        self.rng = rng if rng is not None else np.random.default_rng(self.config.seed)
        self.clock = clock
        self.on_population_updated = on_population_updated
        self.on_generation_ended = on_generation_ended

        arena = self.config.arena
        self.width = arena.width
        self.height = arena.height
        self.layout = layout or default_layout(self.width, self.height)
        self.walls = list(self.layout.walls)

        self.builder = PopulationBuilder(self.config, self.walls, rng=self.rng)

        self.population: List[CreatureAgent] = []
        self.projectiles = []
        self.tick = 0
        self.generation = 0
        self.state = GenerationState.IDLE
        self.generation_start_tick = 0
        self.top_performers: List[CreatureAgent] = []
        self.last_result: Optional[GenerationResult] = None
        self._kills = 0

        # Statistics, one entry per generation
        self.stats = {
            'generation': [],
            'ticks': [],
            'alive': [],
            'max_fitness': [],
            'mean_fitness': [],
            'min_fitness': [],
            'kills': [],
        }

    # Generation lifecycle

    def start_generation(self, carried: Optional[Sequence[CreatureAgent]] = None):
        """Start the first generation, or restart fresh with carried creatures.

        Args:
            carried: Creatures whose pinned/saved members are cloned in;
                defaults to the current population
        """
        carried = self.population if carried is None else carried
        self._begin(self.generation + 1, carried, top_performers=())

    def next_generation(self):
        """Breed the last generation's top performers into a new population."""
        assert self.state is GenerationState.ENDED, "next_generation requires an ended generation"
        self._begin(self.generation + 1, self.population, self.top_performers)

    def _begin(self, generation: int, carried, top_performers):
        self.generation = generation
        self.population = next_generation(top_performers, carried, self.builder,
                                          generation, birth_tick=self.tick)
        self.projectiles = []
        self.top_performers = []
        self.generation_start_tick = self.tick
        self._kills = 0
        self.state = GenerationState.RUNNING
        logger.info("Generation %d started with %d creatures", generation, len(self.population))

    def step(self):
        """Simulate one tick."""
        assert self.state is GenerationState.RUNNING
        self.tick += 1
        fitness = self.config.fitness

        # 1. Creatures act in population order
        for agent in self.population:
            if not agent.is_alive:
                continue

            others = [other.bounding_rect() for other in self.population
                      if other is not agent and other.is_alive]
            result = agent.act(self.walls, others, fitness, self.tick)

            # 2. Turn shoot requests into projectiles
            if result.should_shoot:
                projectile = agent.create_projectile(self.tick)
                if projectile is not None:
                    self.projectiles.append(projectile)

            # 3. Keep creatures out of walls
            resolve_wall_collision(agent, self.walls)

        # 4. Projectiles
        self.projectiles, kills = update_projectiles(
            self.projectiles, self.population, self.walls,
            self.width, self.height, fitness, self.config.creature, self.tick,
        )
        self._kills += len(kills)

    def run_frame(self, ticks: Optional[int] = None, max_speed: Optional[bool] = None) -> int:
        """
        Run one frame: a batch of ticks, then the end-of-generation check.

        Args:
            ticks: Requested ticks; defaults to speed.ticks_per_frame
            max_speed: Request speed.max_ticks_per_frame instead

        Returns:
            Number of ticks actually run
        """
        if self.state is not GenerationState.RUNNING:
            return 0

        speed = self.config.speed
        if max_speed is None:
            max_speed = speed.max_speed
        if max_speed:
            requested = speed.max_ticks_per_frame
        else:
            requested = min(ticks or speed.ticks_per_frame, speed.max_ticks_per_frame)

        budget = speed.frame_budget_ms / 1000.0
        start = self.clock()
        ran = 0
        for i in range(requested):
            if i > 0 and i % speed.budget_check_interval == 0 and self.clock() - start > budget:
                logger.debug("Frame cut short after %d of %d ticks", ran, requested)
                break
            self.step()
            ran += 1

        # Once per frame, never per tick
        self._check_generation_end()

        if self.on_population_updated is not None:
            self.on_population_updated(self.snapshot())
        return ran

    def _check_generation_end(self):
        if self.state is not GenerationState.RUNNING or not self.population:
            return

        limit = self.config.evolution.max_generation_ticks
        timed_out = limit is not None and self.tick - self.generation_start_tick >= limit
        if self.alive_count > 1 and not timed_out:
            return

        self.end_generation()

    def end_generation(self) -> GenerationResult:
        """Rank the population and report the result. Fires once per generation."""
        assert self.state is GenerationState.RUNNING, "generation already ended"
        self.state = GenerationState.ENDED

        survivors = [a for a in self.population if a.is_alive]
        self.top_performers = select_top_performers(self.population,
                                                    self.config.evolution.top_performers)
        ticks = self.tick - self.generation_start_tick
        stats = self.record_stats(ticks, len(survivors))

        result = GenerationResult(
            generation=self.generation,
            ticks=ticks,
            survivors=tuple(AgentSnapshot.of(a) for a in survivors),
            top_performers=tuple(AgentSnapshot.of(a) for a in self.top_performers),
            top_genomes=tuple(a.genome() for a in self.top_performers),
            stats=MappingProxyType(dict(stats)),
        )
        self.last_result = result

        logger.info("Generation %d ended after %d ticks: %d survivors, best fitness %.2f",
                    self.generation, ticks, len(survivors), stats['max_fitness'])

        if self.on_generation_ended is not None:
            self.on_generation_ended(result)
        return result

    def run_generation(self, max_frames: Optional[int] = None) -> GenerationResult:
        """Run frames until the generation ends, forcing the end after max_frames."""
        if self.state is GenerationState.IDLE:
            self.start_generation()

        frames = 0
        while self.state is GenerationState.RUNNING:
            self.run_frame()
            frames += 1
            if max_frames is not None and frames >= max_frames and self.state is GenerationState.RUNNING:
                self.end_generation()
        return self.last_result

    def run(self, generations: int, max_frames: Optional[int] = None) -> List[GenerationResult]:
        """Run several generations back to back, breeding between them."""
        results = []
        for _ in range(generations):
            if self.state is GenerationState.ENDED:
                self.next_generation()
            results.append(self.run_generation(max_frames))
        return results

    # Roster controls

    def find(self, agent_id: str) -> CreatureAgent:
        for agent in self.population:
            if agent.id == agent_id:
                return agent
        raise KeyError(agent_id)

    def pin(self, agent_id: str):
        self.find(agent_id).is_pinned = True

    def unpin(self, agent_id: str):
        self.find(agent_id).is_pinned = False

    def save(self, agent_id: str):
        self.find(agent_id).is_saved = True

    def unsave(self, agent_id: str):
        self.find(agent_id).is_saved = False

    def transfer(self, agent_id: str, arena_id: str):
        """Move a creature to another arena; it is no longer carried over here."""
        self.find(agent_id).arena = arena_id

    def set_viewport(self, width: float, height: float):
        """New viewport dimensions; only affects where future creatures spawn."""
        self.builder.set_bounds(width, height)

    # Views and statistics

    @property
    def alive_count(self) -> int:
        return sum(1 for a in self.population if a.is_alive)

    def snapshot(self) -> WorldSnapshot:
        return WorldSnapshot(
            generation=self.generation,
            tick=self.tick,
            state=self.state,
            width=self.width,
            height=self.height,
            agents=tuple(AgentSnapshot.of(a) for a in self.population),
            projectiles=tuple(
                ProjectileSnapshot(p.id, (float(p.pos[0]), float(p.pos[1])),
                                   (float(p.vel[0]), float(p.vel[1])), p.owner_id, p.lifetime)
                for p in self.projectiles
            ),
        )

    def record_stats(self, ticks: int, alive: int) -> Dict[str, float]:
        """Record statistics about the generation that just ended."""
        fitness = np.array([a.fitness for a in self.population], dtype=np.float64)
        row = {
            'generation': self.generation,
            'ticks': ticks,
            'alive': alive,
            'max_fitness': float(fitness.max()) if len(fitness) else 0.0,
            'mean_fitness': float(fitness.mean()) if len(fitness) else 0.0,
            'min_fitness': float(fitness.min()) if len(fitness) else 0.0,
            'kills': self._kills,
        }
        for key, value in row.items():
            self.stats[key].append(value)
        return row

    def save_stats(self, filename: str = 'evolution_stats.npz'):
        """Save per-generation statistics to file."""
        np.savez(filename, **{key: np.array(values) for key, values in self.stats.items()})
        logger.info("Statistics saved to %s", filename)
