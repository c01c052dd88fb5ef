"""Tests for creature name generation."""

import sys
import os
import numpy as np

# Add src to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from names import CREATURE_NAMES, TAG_CHARS, generate_name, short_tag


def test_name_format():
    rng = np.random.default_rng(0)
    for _ in range(50):
        name = generate_name(rng)
        base, tag = name.split('-')
        assert base in CREATURE_NAMES
        assert len(tag) == 12
        assert all(c in TAG_CHARS for c in tag)


def test_short_tag_length():
    assert len(short_tag(np.random.default_rng(1), length=5)) == 5
    assert short_tag(np.random.default_rng(1), length=0) == ''


def test_names_are_seeded():
    a = [generate_name(np.random.default_rng(7)) for _ in range(3)]
    assert a[0] == a[1] == a[2]

    rng = np.random.default_rng(7)
    assert generate_name(rng) != generate_name(rng)


if __name__ == "__main__":
    print("Running names.py tests...\n")

    test_name_format()
    test_short_tag_length()
    test_names_are_seeded()

    print("\n✅ All names.py tests passed!")
