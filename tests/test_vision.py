"""Tests for ray-cast vision."""

import sys
import os
import math
import numpy as np

# Add src to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from config import VisionConfig
from utils import Rectangle, as_bounds_array
from vision import Ray, VisionData, VisionSystem, ray_rectangle_distances, ray_segments


def single_ray():
    return VisionSystem(VisionConfig(ray_count=1, max_distance=200.0))


def test_vision_exactness():
    """A box 50 units ahead reads as length 50, normalized 0.25."""
    vision = single_ray().cast_vision((0, 0), 0.0, [Rectangle(50, -5, 10, 10)])
    assert len(vision.rays) == 1
    assert abs(vision.rays[0].length - 50.0) < 1e-9
    assert abs(vision.distances[0] - 0.25) < 1e-9

    # A zero-width fan points every ray straight ahead
    fan = VisionSystem(VisionConfig(fov_angle=0.0)).cast_vision((0, 0), 0.0, [Rectangle(50, -5, 10, 10)])
    assert len(fan.rays) == 10
    np.testing.assert_allclose(fan.distances, 0.25)
    print("✓ test_vision_exactness passed")


def test_no_obstacles_reads_full_range():
    vision = VisionSystem().cast_vision((0, 0), 0.0, [])
    assert len(vision.rays) == 10
    assert len(vision.distances) == 10
    assert all(ray.length == 200.0 for ray in vision.rays)
    assert all(d == 1.0 for d in vision.distances)
    assert vision.quality == 1.0


def test_ray_angles_span_field_of_view():
    system = VisionSystem()
    angles = system.ray_angles(1.0)
    assert len(angles) == 10
    assert abs(angles[0] - (1.0 - math.pi / 6)) < 1e-12
    assert abs(angles[-1] - (1.0 + math.pi / 6)) < 1e-12
    np.testing.assert_allclose(np.diff(angles), (math.pi / 3) / 9)

    assert list(VisionSystem(VisionConfig(ray_count=1)).ray_angles(0.7)) == [0.7]


def test_out_of_range_and_behind_are_misses():
    system = single_ray()
    far = system.cast_vision((0, 0), 0.0, [Rectangle(250, -5, 10, 10)])
    assert far.rays[0].length == 200.0 and far.distances[0] == 1.0

    behind = system.cast_vision((0, 0), 0.0, [Rectangle(-60, -5, 10, 10)])
    assert behind.distances[0] == 1.0

    beside = system.cast_vision((0, 0), 0.0, [Rectangle(50, 10, 10, 10)])
    assert beside.distances[0] == 1.0


def test_nearest_hit_wins():
    rects = [Rectangle(100, -5, 10, 10), Rectangle(50, -5, 10, 10), Rectangle(150, -50, 10, 100)]
    vision = single_ray().cast_vision((0, 0), 0.0, rects)
    assert abs(vision.rays[0].length - 50.0) < 1e-9


def test_origin_inside_rectangle_reports_exit():
    vision = single_ray().cast_vision((0, 0), 0.0, [Rectangle(-10, -10, 20, 20)])
    assert abs(vision.rays[0].length - 10.0) < 1e-9


def test_other_agents_are_obstacles():
    vision = single_ray().cast_vision((0, 0), 0.0, [Rectangle(100, -5, 10, 10)],
                                      other_agents=[Rectangle(30, -12, 24, 24)])
    assert abs(vision.rays[0].length - 30.0) < 1e-9


def test_axis_aligned_vertical_ray():
    vision = single_ray().cast_vision((0, 0), math.pi / 2, [Rectangle(-5, 40, 10, 10)])
    assert abs(vision.rays[0].length - 40.0) < 1e-9


def test_diagonal_ray():
    vision = single_ray().cast_vision((0, 0), math.pi / 4, [Rectangle(30, 30, 10, 10)])
    assert abs(vision.rays[0].length - 30 * math.sqrt(2)) < 1e-9


def test_distances_always_normalized():
    rng = np.random.default_rng(0)
    system = VisionSystem()
    for _ in range(50):
        rects = [Rectangle(*rng.uniform(-200, 200, 2), *rng.uniform(1, 80, 2)) for _ in range(8)]
        vision = system.cast_vision(rng.uniform(-50, 50, 2), rng.uniform(0, 2 * math.pi), rects)
        assert len(vision.rays) == len(vision.distances) == 10
        assert all(0.0 <= d <= 1.0 for d in vision.distances)
        assert all(0.0 <= ray.length <= 200.0 for ray in vision.rays)


def test_degenerate_direction_is_a_miss():
    bounds = as_bounds_array([Rectangle(-10, -10, 20, 20)])
    lengths = ray_rectangle_distances((0, 0), np.array([[0.0, 0.0]]), bounds, 200.0)
    assert lengths[0] == 200.0


def test_ray_geometry_helpers():
    ray = Ray(origin=(1.0, 2.0), direction=(1.0, 0.0), angle=0.0, length=50.0)
    assert ray.end_point == (51.0, 2.0)

    vision = VisionData(rays=(ray, ray), distances=(0.25, 0.75))
    assert vision.quality == 0.5
    assert ray_segments(vision) == [((1.0, 2.0), (51.0, 2.0))] * 2


def test_visualization_rays_are_full_length():
    rays = VisionSystem().visualization_rays((10, 10), 0.0)
    assert len(rays) == 10
    assert all(ray.length == 200.0 for ray in rays)


def test_is_in_vision_cone():
    system = VisionSystem()
    assert system.is_in_vision_cone((0, 0), 0.0, (10, 0))
    assert system.is_in_vision_cone((0, 0), 0.0, (10, 5))        # about 26.6 degrees
    assert not system.is_in_vision_cone((0, 0), 0.0, (0, 10))
    assert not system.is_in_vision_cone((0, 0), 0.0, (-10, 0))
    # Heading just below 2*pi still sees straight ahead
    assert system.is_in_vision_cone((0, 0), 2 * math.pi - 0.1, (10, 0))
    print("✓ test_is_in_vision_cone passed")


if __name__ == "__main__":
    print("Running vision.py tests...\n")

    test_vision_exactness()
    test_no_obstacles_reads_full_range()
    test_ray_angles_span_field_of_view()
    test_out_of_range_and_behind_are_misses()
    test_nearest_hit_wins()
    test_origin_inside_rectangle_reports_exit()
    test_other_agents_are_obstacles()
    test_axis_aligned_vertical_ray()
    test_diagonal_ray()
    test_distances_always_normalized()
    test_degenerate_direction_is_a_miss()
    test_ray_geometry_helpers()
    test_visualization_rays_are_full_length()
    test_is_in_vision_cone()

    print("\n✅ All vision.py tests passed!")
