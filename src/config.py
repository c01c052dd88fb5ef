"""Configuration system for EvoArena.

This module provides a dataclass-based configuration system that supports:
- Per-component parameters (vision, brain, creature physics, fitness, arena)
- Speed-multiplier tuning for batched frames
- JSON serialization for experiment saving
- Validation of configuration values

Every tunable constant used by the simulation lives here; the algorithms
never hardcode them.
"""

from dataclasses import dataclass, field
from typing import Optional, Tuple
import dataclasses
import json
import math


@dataclass
class VisionConfig:
    """Ray-cast vision parameters."""
    ray_count: int = 10
    max_distance: float = 200.0
    fov_angle: float = math.pi / 3  # 60 degrees

    def validate(self):
        assert self.ray_count >= 1, "ray_count must be at least 1"
        assert self.max_distance > 0, "max_distance must be positive"
        assert 0 <= self.fov_angle <= 2 * math.pi, "fov_angle must be within [0, 2*pi]"


@dataclass(frozen=True)
class BrainConfig:
    """Fixed network topology plus mutation parameters.

    Frozen because genomes carry it as their shape descriptor.
    """
    input_size: int = 14
    hidden_layers: Tuple[int, ...] = (120, 80)
    output_size: int = 4
    mutation_rate: float = 0.1
    mutation_strength: float = 0.3
    weight_limit: float = 5.0

    @property
    def layer_sizes(self) -> Tuple[int, ...]:
        """Sizes of every layer, input and output included."""
        return (self.input_size,) + tuple(self.hidden_layers) + (self.output_size,)

    def validate(self):
        assert self.input_size > 0, "input_size must be positive"
        assert self.output_size > 0, "output_size must be positive"
        assert len(self.hidden_layers) > 0, "at least one hidden layer is required"
        assert all(h > 0 for h in self.hidden_layers), "hidden layer sizes must be positive"
        assert 0 <= self.mutation_rate <= 1, "mutation_rate must be within [0, 1]"
        assert self.mutation_strength >= 0, "mutation_strength must be non-negative"
        assert self.weight_limit > 0, "weight_limit must be positive"


@dataclass
class CreatureConfig:
    """Physics, energy and weapon parameters for every creature."""
    size: float = 24.0
    max_energy: float = 1000.0
    turn_speed: float = 0.1           # radians per tick at full turn output
    max_speed: float = 2.0
    inertia: float = 0.8              # velocity blending, 0 = instant, 1 = frozen
    base_energy_cost: float = 0.1     # per tick
    movement_energy_cost: float = 0.2 # per tick at full forward output
    shoot_cooldown: int = 30          # ticks between shots
    shoot_energy_cost: float = 10.0
    projectile_speed: float = 8.0
    projectile_damage: float = 500.0
    projectile_lifetime: int = 120
    projectile_offset: float = 0.7    # spawn distance ahead, as a fraction of size
    hit_radius_factor: float = 0.6    # hit radius, as a fraction of size

    @property
    def hit_radius(self) -> float:
        return self.size * self.hit_radius_factor

    def validate(self):
        assert self.size > 0, "size must be positive"
        assert self.max_energy > 0, "max_energy must be positive"
        assert self.max_speed > 0, "max_speed must be positive"
        assert 0 <= self.inertia < 1, "inertia must be within [0, 1)"
        assert self.base_energy_cost >= 0, "base_energy_cost must be non-negative"
        assert self.movement_energy_cost >= 0, "movement_energy_cost must be non-negative"
        assert self.shoot_cooldown >= 0, "shoot_cooldown must be non-negative"
        assert self.shoot_energy_cost >= 0, "shoot_energy_cost must be non-negative"
        assert self.projectile_damage >= 0, "projectile_damage must be non-negative"
        assert self.projectile_lifetime > 0, "projectile_lifetime must be positive"


@dataclass
class FitnessConfig:
    """Weights of the fitness terms."""
    survival_reward: float = 0.01
    forward_movement_reward: float = 0.1
    collision_penalty: float = 0.05
    kill_reward: float = 50.0
    collision_proxy_scale: float = 10.0
    collision_proxy_cap: float = 2.0

    def validate(self):
        assert self.survival_reward >= 0, "survival_reward must be non-negative"
        assert self.forward_movement_reward >= 0, "forward_movement_reward must be non-negative"
        assert self.collision_penalty >= 0, "collision_penalty must be non-negative"
        assert self.kill_reward >= 0, "kill_reward must be non-negative"
        assert self.collision_proxy_cap >= 0, "collision_proxy_cap must be non-negative"


@dataclass
class ArenaConfig:
    """Arena dimensions and spawn placement parameters."""
    arena_id: str = "main"
    width: float = 800.0
    height: float = 600.0
    spawn_attempts: int = 100
    spawn_separation: float = 1.5  # minimum distance between spawns, in creature sizes

    def validate(self):
        assert self.width > 0 and self.height > 0, "arena dimensions must be positive"
        assert self.spawn_attempts > 0, "spawn_attempts must be positive"
        assert self.spawn_separation >= 0, "spawn_separation must be non-negative"


@dataclass
class SpeedConfig:
    """Speed multiplier and per-frame time budget."""
    ticks_per_frame: int = 1
    max_speed: bool = False            # run up to max_ticks_per_frame each frame
    max_ticks_per_frame: int = 10000
    frame_budget_ms: float = 8.0
    budget_check_interval: int = 100

    def validate(self):
        assert self.ticks_per_frame >= 1, "ticks_per_frame must be at least 1"
        assert self.max_ticks_per_frame >= 1, "max_ticks_per_frame must be at least 1"
        assert self.frame_budget_ms > 0, "frame_budget_ms must be positive"
        assert self.budget_check_interval >= 1, "budget_check_interval must be at least 1"


@dataclass
class EvolutionConfig:
    """Population and breeding parameters."""
    population_size: int = 50
    top_performers: int = 10
    mutation_rate: float = 0.1
    mutation_strength: float = 0.3
    max_generation_ticks: Optional[int] = None

    def validate(self):
        assert self.population_size >= 1, "population_size must be at least 1"
        assert self.top_performers >= 1, "top_performers must be at least 1"
        assert 0 <= self.mutation_rate <= 1, "mutation_rate must be within [0, 1]"
        assert self.mutation_strength >= 0, "mutation_strength must be non-negative"
        assert self.max_generation_ticks is None or self.max_generation_ticks > 0, \
            "max_generation_ticks must be positive when set"


@dataclass
class SimulationConfig:
    """Complete simulation configuration."""
    vision: VisionConfig = field(default_factory=VisionConfig)
    brain: BrainConfig = field(default_factory=BrainConfig)
    creature: CreatureConfig = field(default_factory=CreatureConfig)
    fitness: FitnessConfig = field(default_factory=FitnessConfig)
    arena: ArenaConfig = field(default_factory=ArenaConfig)
    speed: SpeedConfig = field(default_factory=SpeedConfig)
    evolution: EvolutionConfig = field(default_factory=EvolutionConfig)
    seed: Optional[int] = None

    def validate(self):
        """Validate entire configuration."""
        self.vision.validate()
        self.brain.validate()
        self.creature.validate()
        self.fitness.validate()
        self.arena.validate()
        self.speed.validate()
        self.evolution.validate()

        # The brain input contract: one value per ray plus energy, |vx|, |vy| and mean distance
        assert self.brain.input_size == self.vision.ray_count + 4, \
            f"brain input_size must be ray_count + 4 ({self.vision.ray_count + 4}), got {self.brain.input_size}"
        assert self.brain.output_size == 4, "brain output_size must be 4 (left, right, forward, shoot)"

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        data = dataclasses.asdict(self)
        data['brain']['hidden_layers'] = list(self.brain.hidden_layers)
        return data

    def to_json(self, indent: int = 2) -> str:
        """Serialize to JSON string."""
        return json.dumps(self.to_dict(), indent=indent)

    @classmethod
    def from_dict(cls, data: dict) -> 'SimulationConfig':
        """Create from dictionary; missing sections fall back to defaults."""
        brain_data = dict(data.get('brain', {}))
        if 'hidden_layers' in brain_data:
            brain_data['hidden_layers'] = tuple(brain_data['hidden_layers'])

        return cls(
            vision=VisionConfig(**data.get('vision', {})),
            brain=BrainConfig(**brain_data),
            creature=CreatureConfig(**data.get('creature', {})),
            fitness=FitnessConfig(**data.get('fitness', {})),
            arena=ArenaConfig(**data.get('arena', {})),
            speed=SpeedConfig(**data.get('speed', {})),
            evolution=EvolutionConfig(**data.get('evolution', {})),
            seed=data.get('seed'),
        )

    @classmethod
    def from_json(cls, json_str: str) -> 'SimulationConfig':
        """Create from JSON string."""
        return cls.from_dict(json.loads(json_str))

    @classmethod
    def default(cls) -> 'SimulationConfig':
        """Reference configuration: 50 creatures, 14-120-80-4 brains, 1000 energy."""
        return cls()
