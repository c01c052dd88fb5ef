"""Saved creature records.

A record stores a creature's identity, placement and lineage plus its
genome. Decoding is strict: any missing field, wrong type or unknown
schema version raises RecordDecodeError.
"""

from pathlib import Path
from typing import Iterable, List, Optional
import json
import logging
import math

import numpy as np

from config import SimulationConfig
from creature import CreatureAgent
from errors import GenomeDecodeError, RecordDecodeError
from genome import Genome

logger = logging.getLogger(__name__)

CREATURE_RECORD_VERSION = 1

_REQUIRED_FIELDS = {
    'id': str,
    'name': str,
    'generation': int,
    'position': list,
    'rotation': (int, float),
    'fitness': (int, float),
    'arena': str,
    'is_pinned': bool,
    'is_saved': bool,
    'birth_tick': int,
    'parent_ids': list,
    'genome': dict,
}


def serialize_creature(agent: CreatureAgent) -> dict:
    return {
        'schema_version': CREATURE_RECORD_VERSION,
        'id': agent.id,
        'name': agent.name,
        'generation': agent.generation,
        'position': [float(agent.pos[0]), float(agent.pos[1])],
        'rotation': float(agent.rotation),
        'fitness': float(agent.fitness),
        'arena': agent.arena,
        'is_pinned': agent.is_pinned,
        'is_saved': agent.is_saved,
        'birth_tick': agent.birth_tick,
        'parent_ids': list(agent.parent_ids),
        'genome': agent.genome().to_dict(),
    }


def deserialize_creature(data: dict, config: Optional[SimulationConfig] = None,
                         rng: Optional[np.random.Generator] = None) -> CreatureAgent:
    """
    Rebuild a creature from a record.

    Args:
        data: Decoded record
        config: Physics and network configuration for the creature
        rng: Random generator

    Returns:
        The creature, alive with full energy and the recorded fitness

    Raises:
        RecordDecodeError: if the record is malformed
    """
    if not isinstance(data, dict):
        raise RecordDecodeError(f"creature record must be a mapping, got {type(data).__name__}")

    version = data.get('schema_version')
    if version != CREATURE_RECORD_VERSION:
        raise RecordDecodeError(f"unsupported creature record version: {version!r}")

    for key, expected in _REQUIRED_FIELDS.items():
        if key not in data:
            raise RecordDecodeError(f"creature record missing field {key!r}")
        value = data[key]
        # bool is an int subclass; keep it out of numeric fields
        if not isinstance(value, expected) or (expected is not bool and isinstance(value, bool)):
            raise RecordDecodeError(f"creature record field {key!r} has type {type(value).__name__}")

    position = data['position']
    if len(position) != 2 or not all(isinstance(v, (int, float)) and not isinstance(v, bool)
                                      for v in position):
        raise RecordDecodeError("creature record position must be two numbers")
    if not all(math.isfinite(v) for v in position + [data['rotation'], data['fitness']]):
        raise RecordDecodeError("creature record position, rotation and fitness must be finite")
    if data['fitness'] < 0:
        raise RecordDecodeError(f"creature record fitness must be non-negative, got {data['fitness']}")
    if not all(isinstance(p, str) for p in data['parent_ids']):
        raise RecordDecodeError("creature record parent_ids must be strings")

    try:
        genome = Genome.from_dict(data['genome'])
    except GenomeDecodeError as e:
        raise RecordDecodeError(f"creature record {data['id']!r} has a bad genome: {e}") from e

    config = config or SimulationConfig()
    agent = CreatureAgent(
        data['id'], data['name'], position,
        generation=data['generation'],
        arena=data['arena'],
        genome=genome,
        config=config.creature,
        brain_config=config.brain,
        vision_config=config.vision,
        rng=rng,
        birth_tick=data['birth_tick'],
        rotation=float(data['rotation']),
    )
    agent.fitness = float(data['fitness'])
    agent.is_pinned = data['is_pinned']
    agent.is_saved = data['is_saved']
    agent.parent_ids = tuple(data['parent_ids'])
    return agent


def save_creatures(path, agents: Iterable[CreatureAgent]):
    """Write creature records to a JSON file."""
    records = [serialize_creature(agent) for agent in agents]
    Path(path).write_text(json.dumps({'schema_version': CREATURE_RECORD_VERSION,
                                      'creatures': records}, indent=2))
    logger.info("Saved %d creatures to %s", len(records), path)


def load_creatures(path, config: Optional[SimulationConfig] = None,
                   rng: Optional[np.random.Generator] = None) -> List[CreatureAgent]:
    """Read creature records written by save_creatures.

    Raises:
        RecordDecodeError: if the file or any record is malformed
    """
    try:
        payload = json.loads(Path(path).read_text())
    except json.JSONDecodeError as e:
        raise RecordDecodeError(f"{path} is not valid JSON: {e}") from e

    if not isinstance(payload, dict) or payload.get('schema_version') != CREATURE_RECORD_VERSION:
        raise RecordDecodeError(f"{path} is not a version {CREATURE_RECORD_VERSION} creature file")
    creatures = payload.get('creatures')
    if not isinstance(creatures, list):
        raise RecordDecodeError(f"{path} has no creature list")

    return [deserialize_creature(record, config, rng) for record in creatures]
