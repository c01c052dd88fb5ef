"""
Genetic algorithm step: ranking, pairing and population assembly.
"""

from typing import List, Optional, Sequence, Tuple
import itertools
import logging
import re

import numpy as np

from arena import find_spawn_position
from config import SimulationConfig
from creature import CreatureAgent
from names import generate_name
from utils import Rectangle, ensure_rng

logger = logging.getLogger(__name__)

# Carry-over suffix added to cloned ids
_GENERATION_SUFFIX = re.compile(r'-gen\d+$')


def select_top_performers(population: Sequence[CreatureAgent], count: int) -> List[CreatureAgent]:
    """Best ``count`` creatures by fitness, alive or dead.

    Ties keep population order.
    """
    return sorted(population, key=lambda agent: agent.fitness, reverse=True)[:count]


def breeding_pairs(top_performers: Sequence[CreatureAgent]) -> List[Tuple[CreatureAgent, CreatureAgent]]:
    """Adjacent pairs in ranking order: (0, 1), (1, 2), ..."""
    return list(zip(top_performers, top_performers[1:]))


class PopulationBuilder:
    """Assembles a generation: carried clones, offspring, then random fill."""

    def __init__(self, config: SimulationConfig, walls: Sequence[Rectangle],
                 rng: Optional[np.random.Generator] = None):
        self.config = config
        self.walls = list(walls)
        self.rng = ensure_rng(rng)
        self.arena_id = config.arena.arena_id
        self.width = config.arena.width
        self.height = config.arena.height
        self._ids = itertools.count(1)

    def set_bounds(self, width: float, height: float):
        """Spawn area for later generations."""
        self.width = width
        self.height = height

    def spawn_position(self, taken: List[Tuple[float, float]]) -> Tuple[float, float]:
        arena = self.config.arena
        position = find_spawn_position(
            self.width, self.height, self.walls, taken, rng=self.rng,
            size=self.config.creature.size,
            attempts=arena.spawn_attempts,
            separation=arena.spawn_separation,
        )
        taken.append(position)
        return position

    def new_agent(self, generation: int, position, birth_tick: int = 0) -> CreatureAgent:
        return CreatureAgent(
            f"creature-{generation}-{next(self._ids)}",
            generate_name(self.rng),
            position,
            generation=generation,
            arena=self.arena_id,
            config=self.config.creature,
            brain_config=self.config.brain,
            vision_config=self.config.vision,
            rng=self.rng,
            birth_tick=birth_tick,
        )

    def clone(self, agent: CreatureAgent, generation: int, position,
              birth_tick: int = 0) -> CreatureAgent:
        base_id = _GENERATION_SUFFIX.sub('', agent.id)
        clone = agent.clone(f"{base_id}-gen{generation}", agent.name, position,
                            rng=self.rng, birth_tick=birth_tick, generation=generation)
        assert clone.fitness == 0
        return clone

    def breed(self, parent1: CreatureAgent, parent2: CreatureAgent, position,
              birth_tick: int = 0) -> CreatureAgent:
        evolution = self.config.evolution
        generation = max(parent1.generation, parent2.generation) + 1
        return CreatureAgent.create_offspring(
            parent1, parent2,
            f"offspring-{generation}-{next(self._ids)}",
            generate_name(self.rng),
            position,
            mutation_rate=evolution.mutation_rate,
            mutation_strength=evolution.mutation_strength,
            rng=self.rng,
            birth_tick=birth_tick,
        )

    def build(self, generation: int, carried: Sequence[CreatureAgent] = (),
              top_performers: Sequence[CreatureAgent] = (),
              birth_tick: int = 0) -> List[CreatureAgent]:
        """
        Build a full population for ``generation``.

        Args:
            generation: Generation number for clones and new creatures
            carried: Previous creatures; pinned and saved ones in this arena are cloned
            top_performers: Ranked parents for offspring
            birth_tick: Tick at which the new population is born

        Returns:
            Exactly population_size creatures
        """
        size = self.config.evolution.population_size
        taken: List[Tuple[float, float]] = []
        population: List[CreatureAgent] = []

        local = [a for a in carried if a.arena == self.arena_id]
        pinned = [a for a in local if a.is_pinned]
        saved = [a for a in local if a.is_saved and not a.is_pinned]

        for agent in pinned + saved:
            population.append(self.clone(agent, generation, self.spawn_position(taken), birth_tick))

        offspring = 0
        for parent1, parent2 in breeding_pairs(top_performers):
            if len(population) >= size:
                break
            population.append(self.breed(parent1, parent2, self.spawn_position(taken), birth_tick))
            offspring += 1

        fresh = 0
        while len(population) < size:
            population.append(self.new_agent(generation, self.spawn_position(taken), birth_tick))
            fresh += 1

        population = population[:size]
        assert len(population) == size, f"population size {len(population)} != {size}"

        logger.info("Generation %d population: %d pinned, %d saved, %d offspring, %d new",
                    generation, len(pinned), len(saved), offspring, fresh)
        return population


def next_generation(top_performers: Sequence[CreatureAgent],
                    current_population: Sequence[CreatureAgent],
                    builder: PopulationBuilder, generation: int,
                    birth_tick: int = 0) -> List[CreatureAgent]:
    """Breed the ranked parents and carry over pinned/saved creatures."""
    return builder.build(generation, carried=current_population,
                         top_performers=top_performers, birth_tick=birth_tick)
