"""Genome: the flat, versioned encoding of a brain's parameters.

A genome is an immutable value. It never holds a reference into a live
brain; ``from_brain`` and ``to_brain`` copy in both directions. Gene order
is every weight matrix row-major, layer by layer, followed by every bias
vector, layer by layer.
"""

from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Tuple
import json
import logging
import time

import numpy as np

from brain import Brain
from config import BrainConfig
from errors import GenomeDecodeError, IncompatibleShapeError
from utils import ensure_rng

logger = logging.getLogger(__name__)

GENOME_VERSION = "1.0"
SUPPORTED_VERSIONS = (GENOME_VERSION,)


@dataclass(frozen=True)
class GenomeMetadata:
    version: str = GENOME_VERSION
    created_at: float = field(default_factory=time.time)
    parent_ids: Tuple[str, ...] = ()
    generation: Optional[int] = None

    def to_dict(self) -> dict:
        return {
            'version': self.version,
            'created_at': self.created_at,
            'parent_ids': list(self.parent_ids),
            'generation': self.generation,
        }

    @classmethod
    def from_dict(cls, data: dict) -> 'GenomeMetadata':
        try:
            generation = data.get('generation')
            return cls(
                version=str(data.get('version', GENOME_VERSION)),
                created_at=float(data.get('created_at', time.time())),
                parent_ids=tuple(str(p) for p in data.get('parent_ids', ())),
                generation=None if generation is None else int(generation),
            )
        except (TypeError, ValueError, AttributeError) as e:
            raise GenomeDecodeError(f"invalid genome metadata: {e}") from e


def encode_parameters(weights: Sequence[np.ndarray], biases: Sequence[np.ndarray]) -> np.ndarray:
    """Flatten weights then biases into one gene vector."""
    parts = [np.ravel(w) for w in weights] + [np.ravel(b) for b in biases]
    if not parts:
        return np.empty(0, dtype=np.float64)
    return np.concatenate(parts).astype(np.float64)


def decode_parameters(genes: np.ndarray, config: BrainConfig) -> Tuple[List[np.ndarray], List[np.ndarray]]:
    """Inverse of encode_parameters for the given layer sizes."""
    sizes = config.layer_sizes
    idx = 0
    weights = []
    for n_in, n_out in zip(sizes[:-1], sizes[1:]):
        size = n_in * n_out
        weights.append(np.array(genes[idx:idx + size], dtype=np.float64).reshape(n_out, n_in))
        idx += size

    biases = []
    for n_out in sizes[1:]:
        biases.append(np.array(genes[idx:idx + n_out], dtype=np.float64))
        idx += n_out
    return weights, biases


@dataclass(frozen=True, eq=False)
class Genome:
    """Gene vector plus the brain shape it decodes to."""
    genes: np.ndarray
    config: BrainConfig = field(default_factory=BrainConfig)
    metadata: GenomeMetadata = field(default_factory=GenomeMetadata)

    def __post_init__(self):
        genes = np.array(self.genes, dtype=np.float64).ravel()
        genes.flags.writeable = False
        object.__setattr__(self, 'genes', genes)

    def __len__(self):
        return len(self.genes)

    @property
    def layer_sizes(self):
        return self.config.layer_sizes

    @staticmethod
    def expected_length(config: BrainConfig) -> int:
        """Number of genes for a brain of this shape."""
        sizes = config.layer_sizes
        weights = sum(a * b for a, b in zip(sizes[:-1], sizes[1:]))
        return weights + sum(sizes[1:])

    @classmethod
    def from_brain(cls, brain: Brain, metadata: Optional[GenomeMetadata] = None) -> 'Genome':
        return cls(genes=encode_parameters(brain.weights, brain.biases),
                   config=brain.config,
                   metadata=metadata or GenomeMetadata())

    def to_brain(self) -> Brain:
        """Decode into a new brain with independently owned tensors."""
        assert len(self.genes) == self.expected_length(self.config), \
            f"genome has {len(self.genes)} genes, expected {self.expected_length(self.config)}"
        weights, biases = decode_parameters(self.genes, self.config)
        return Brain(self.config, weights=weights, biases=biases)

    @classmethod
    def create_random(cls, config: Optional[BrainConfig] = None,
                      metadata: Optional[GenomeMetadata] = None,
                      rng: Optional[np.random.Generator] = None) -> 'Genome':
        return cls.from_brain(Brain(config, rng=rng), metadata)

    @staticmethod
    def are_compatible(g1: 'Genome', g2: 'Genome') -> bool:
        return (tuple(g1.layer_sizes) == tuple(g2.layer_sizes)
                and len(g1.genes) == len(g2.genes))

    @staticmethod
    def crossover(g1: 'Genome', g2: 'Genome', metadata: Optional[GenomeMetadata] = None,
                  rng: Optional[np.random.Generator] = None) -> 'Genome':
        """Uniform crossover: each gene comes from either parent with equal chance.

        Raises:
            IncompatibleShapeError: if the parents encode different brain shapes
        """
        if not Genome.are_compatible(g1, g2):
            raise IncompatibleShapeError(
                f"cannot cross genomes with layer sizes {g1.layer_sizes} and {g2.layer_sizes}"
            )
        rng = ensure_rng(rng)
        mask = rng.random(len(g1.genes)) < 0.5
        child = np.where(mask, g1.genes, g2.genes)
        return Genome(child, g1.config, metadata or GenomeMetadata())

    def mutate(self, rate: Optional[float] = None, strength: Optional[float] = None,
               metadata: Optional[GenomeMetadata] = None,
               rng: Optional[np.random.Generator] = None) -> 'Genome':
        """Per-gene perturbation, same rule as Brain.mutate on the flat vector."""
        rng = ensure_rng(rng)
        rate = self.config.mutation_rate if rate is None else rate
        strength = self.config.mutation_strength if strength is None else strength
        limit = self.config.weight_limit

        mask = rng.random(len(self.genes)) < rate
        delta = (rng.random(len(self.genes)) - 0.5) * strength
        genes = np.where(mask, np.clip(self.genes + delta, -limit, limit), self.genes)
        return Genome(genes, self.config, metadata or self.metadata)

    def validate(self) -> bool:
        """Check gene count and finiteness. Failures are logged, not raised."""
        expected = self.expected_length(self.config)
        if len(self.genes) != expected:
            logger.warning("Genome length mismatch: expected %d, got %d", expected, len(self.genes))
            return False
        if not np.all(np.isfinite(self.genes)):
            logger.warning("Genome contains %d non-finite genes",
                           int(np.count_nonzero(~np.isfinite(self.genes))))
            return False
        return True

    @staticmethod
    def distance(g1: 'Genome', g2: 'Genome') -> float:
        """Mean absolute per-gene difference, or inf for different shapes."""
        if not Genome.are_compatible(g1, g2):
            return float('inf')
        if len(g1.genes) == 0:
            return 0.0
        return float(np.mean(np.abs(g1.genes - g2.genes)))

    def to_dict(self) -> dict:
        return {
            'version': self.metadata.version,
            'brain': {
                'input_size': self.config.input_size,
                'hidden_layers': list(self.config.hidden_layers),
                'output_size': self.config.output_size,
                'mutation_rate': self.config.mutation_rate,
                'mutation_strength': self.config.mutation_strength,
                'weight_limit': self.config.weight_limit,
            },
            'genes': self.genes.tolist(),
            'metadata': self.metadata.to_dict(),
        }

    def to_json(self) -> str:
        return json.dumps(self.to_dict())

    @classmethod
    def from_dict(cls, data: dict) -> 'Genome':
        """Decode a genome payload.

        Raises:
            GenomeDecodeError: on a missing field, a wrong type or an unknown version
        """
        if not isinstance(data, dict):
            raise GenomeDecodeError(f"genome payload must be a mapping, got {type(data).__name__}")

        version = data.get('version')
        if version not in SUPPORTED_VERSIONS:
            raise GenomeDecodeError(f"unsupported genome version: {version!r}")

        try:
            brain = data['brain']
            genes = data['genes']
        except KeyError as e:
            raise GenomeDecodeError(f"genome payload missing field {e}") from e

        if not isinstance(brain, dict) or not isinstance(genes, list):
            raise GenomeDecodeError("genome 'brain' must be a mapping and 'genes' a list")

        try:
            config = BrainConfig(
                input_size=int(brain['input_size']),
                hidden_layers=tuple(int(h) for h in brain['hidden_layers']),
                output_size=int(brain['output_size']),
                mutation_rate=float(brain.get('mutation_rate', BrainConfig.mutation_rate)),
                mutation_strength=float(brain.get('mutation_strength', BrainConfig.mutation_strength)),
                weight_limit=float(brain.get('weight_limit', BrainConfig.weight_limit)),
            )
            gene_array = np.array([float(g) for g in genes], dtype=np.float64)
        except (KeyError, TypeError, ValueError) as e:
            raise GenomeDecodeError(f"invalid genome payload: {e}") from e

        metadata = GenomeMetadata.from_dict(data.get('metadata') or {'version': version})
        return cls(gene_array, config, metadata)

    @classmethod
    def from_json(cls, json_str: str) -> 'Genome':
        try:
            data = json.loads(json_str)
        except json.JSONDecodeError as e:
            raise GenomeDecodeError(f"genome is not valid JSON: {e}") from e
        return cls.from_dict(data)
