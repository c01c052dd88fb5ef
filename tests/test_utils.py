"""Unit tests for shared geometry utilities."""

import numpy as np
import sys
import os

# Add src to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from utils import (
    Rectangle,
    as_bounds_array,
    centered_rectangle,
    distance,
    ensure_rng,
    rectangles_intersect,
)


def test_rectangle_edges():
    rect = Rectangle(10, 20, 30, 40)
    assert rect.right == 40
    assert rect.bottom == 60
    assert rect.center == (25, 40)
    print("✓ test_rectangle_edges passed")


def test_rectangles_intersect():
    a = Rectangle(0, 0, 10, 10)
    assert rectangles_intersect(a, Rectangle(5, 5, 10, 10))
    assert a.intersects(Rectangle(-5, -5, 6, 6))
    # Touching edges do not overlap
    assert not rectangles_intersect(a, Rectangle(10, 0, 10, 10))
    assert not rectangles_intersect(a, Rectangle(0, 10, 10, 10))
    assert not rectangles_intersect(a, Rectangle(20, 20, 5, 5))
    print("✓ test_rectangles_intersect passed")


def test_contains_point_is_inclusive():
    rect = Rectangle(0, 0, 10, 10)
    assert rect.contains_point(0, 0)
    assert rect.contains_point(10, 10)
    assert rect.contains_point(5, 5)
    assert not rect.contains_point(10.01, 5)


def test_centered_rectangle():
    assert centered_rectangle(50, 60, 24) == Rectangle(38, 48, 24, 24)


def test_as_bounds_array():
    bounds = as_bounds_array([Rectangle(1, 2, 3, 4), Rectangle(0, 0, 10, 5)])
    np.testing.assert_array_equal(bounds, [[1, 2, 4, 6], [0, 0, 10, 5]])
    assert bounds.dtype == np.float64

    empty = as_bounds_array([])
    assert empty.shape == (0, 4)


def test_distance():
    assert distance((0, 0), (3, 4)) == 5.0
    assert distance(np.array([1.0, 1.0]), np.array([1.0, 1.0])) == 0.0


def test_ensure_rng():
    rng = np.random.default_rng(3)
    assert ensure_rng(rng) is rng
    assert isinstance(ensure_rng(None), np.random.Generator)


if __name__ == "__main__":
    print("Running utils.py tests...\n")

    test_rectangle_edges()
    test_rectangles_intersect()
    test_contains_point_is_inclusive()
    test_centered_rectangle()
    test_as_bounds_array()
    test_distance()
    test_ensure_rng()

    print("\n✅ All utils.py tests passed!")
