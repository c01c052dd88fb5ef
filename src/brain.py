"""
Neural network brain for creatures using NumPy.
Fixed-topology feedforward network that evolves through a genetic algorithm.
"""

from typing import List, Optional, Sequence

import numpy as np

from config import BrainConfig
from errors import IncompatibleShapeError, ShapeMismatchError
from utils import ensure_rng


def sigmoid(x):
    """Logistic sigmoid, written through tanh so large inputs cannot overflow."""
    return 0.5 * (1.0 + np.tanh(0.5 * x))


class Brain:
    """A fully connected feedforward network with sigmoid activations."""

    def __init__(self, config: Optional[BrainConfig] = None,
                 weights: Optional[Sequence[np.ndarray]] = None,
                 biases: Optional[Sequence[np.ndarray]] = None,
                 rng: Optional[np.random.Generator] = None):
        """
        Initialize a neural network.

        Args:
            config: Layer sizes and mutation parameters
            weights: Optional per-layer weight matrices, shape (out, in)
            biases: Optional per-layer bias vectors, shape (out,)
            rng: Random generator used when parameters are not supplied
        """
        self.config = config or BrainConfig()
        sizes = self.config.layer_sizes

        if weights is None or biases is None:
            rng = ensure_rng(rng)
            # Uniform in [-1, 1] for both weights and biases
            weights = [rng.uniform(-1.0, 1.0, size=(n_out, n_in))
                       for n_in, n_out in zip(sizes[:-1], sizes[1:])]
            biases = [rng.uniform(-1.0, 1.0, size=n_out) for n_out in sizes[1:]]

        # Always own the tensors
        self.weights: List[np.ndarray] = [np.array(w, dtype=np.float64) for w in weights]
        self.biases: List[np.ndarray] = [np.array(b, dtype=np.float64) for b in biases]

        expected_w = [(n_out, n_in) for n_in, n_out in zip(sizes[:-1], sizes[1:])]
        assert [w.shape for w in self.weights] == expected_w, \
            f"weight shapes {[w.shape for w in self.weights]} do not match {expected_w}"
        assert [b.shape for b in self.biases] == [(n,) for n in sizes[1:]], \
            "bias shapes do not match layer sizes"

    @property
    def layer_sizes(self):
        return self.config.layer_sizes

    @property
    def input_size(self) -> int:
        return self.config.input_size

    @property
    def output_size(self) -> int:
        return self.config.output_size

    @property
    def parameter_count(self) -> int:
        """Total number of weights and biases."""
        return sum(w.size for w in self.weights) + sum(b.size for b in self.biases)

    def process(self, inputs) -> np.ndarray:
        """
        Forward pass through the network.

        Args:
            inputs: Input vector of length input_size

        Returns:
            Output vector of length output_size, every value in [0, 1]

        Raises:
            ShapeMismatchError: if the input length is wrong
        """
        x = np.asarray(inputs, dtype=np.float64)
        if x.ndim != 1 or x.shape[0] != self.input_size:
            raise ShapeMismatchError(
                f"expected {self.input_size} inputs, got {x.shape[0] if x.ndim == 1 else x.shape}"
            )

        for w, b in zip(self.weights, self.biases):
            x = sigmoid(w @ x + b)
        return x

    def mutate(self, rng: Optional[np.random.Generator] = None,
               mutation_rate: Optional[float] = None,
               mutation_strength: Optional[float] = None) -> 'Brain':
        """
        Return a mutated copy of this brain.

        Each element is perturbed with probability mutation_rate by a value
        drawn uniformly from [-strength/2, strength/2]; perturbed elements
        are clamped to [-weight_limit, weight_limit].
        """
        rng = ensure_rng(rng)
        rate = self.config.mutation_rate if mutation_rate is None else mutation_rate
        strength = self.config.mutation_strength if mutation_strength is None else mutation_strength
        limit = self.config.weight_limit

        def perturb(values):
            mask = rng.random(values.shape) < rate
            delta = (rng.random(values.shape) - 0.5) * strength
            return np.where(mask, np.clip(values + delta, -limit, limit), values)

        return Brain(self.config,
                     weights=[perturb(w) for w in self.weights],
                     biases=[perturb(b) for b in self.biases])

    @staticmethod
    def are_compatible(a: 'Brain', b: 'Brain') -> bool:
        """Two brains can breed only if their layer sizes match exactly."""
        return tuple(a.layer_sizes) == tuple(b.layer_sizes)

    @staticmethod
    def crossover(a: 'Brain', b: 'Brain', rng: Optional[np.random.Generator] = None) -> 'Brain':
        """
        Uniform crossover: every weight and bias comes from either parent with equal chance.

        Raises:
            IncompatibleShapeError: if the parents have different layer sizes
        """
        if not Brain.are_compatible(a, b):
            raise IncompatibleShapeError(
                f"cannot cross brains with layer sizes {a.layer_sizes} and {b.layer_sizes}"
            )
        rng = ensure_rng(rng)

        def mix(x, y):
            return np.where(rng.random(x.shape) < 0.5, x, y)

        return Brain(a.config,
                     weights=[mix(wa, wb) for wa, wb in zip(a.weights, b.weights)],
                     biases=[mix(ba, bb) for ba, bb in zip(a.biases, b.biases)])

    def copy(self) -> 'Brain':
        """Create a deep copy of this brain."""
        return Brain(self.config, weights=self.weights, biases=self.biases)
