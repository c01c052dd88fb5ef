"""Creature names: a base word plus a 12-character random tag."""

from typing import Optional

import numpy as np

from utils import ensure_rng

CREATURE_NAMES = [
    'Aether', 'Bolt', 'Cipher', 'Delta', 'Echo', 'Flux', 'Gaia', 'Halo', 'Ion', 'Jinx',
    'Kilo', 'Luna', 'Mira', 'Nova', 'Onyx', 'Pulse', 'Quark', 'Raven', 'Sage', 'Terra',
    'Unity', 'Vex', 'Wave', 'Xenon', 'Yara', 'Zen', 'Arc', 'Byte', 'Core', 'Dawn',
    'Phoenix', 'Storm', 'Blaze', 'Frost', 'Shadow', 'Spark', 'Prism', 'Void', 'Nexus', 'Orbit',
    'Stellar', 'Cosmic', 'Quantum', 'Neural', 'Vector', 'Matrix', 'Alpha', 'Beta', 'Gamma',
]

TAG_CHARS = 'ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz0123456789'
TAG_LENGTH = 12


def short_tag(rng: Optional[np.random.Generator] = None, length: int = TAG_LENGTH) -> str:
    rng = ensure_rng(rng)
    indices = rng.integers(0, len(TAG_CHARS), size=length)
    return ''.join(TAG_CHARS[i] for i in indices)


def generate_name(rng: Optional[np.random.Generator] = None) -> str:
    """e.g. 'Nova-x3KpQ8aZr1Lm'"""
    rng = ensure_rng(rng)
    base = CREATURE_NAMES[int(rng.integers(0, len(CREATURE_NAMES)))]
    return f"{base}-{short_tag(rng)}"
