"""Tests for Voronoi biome partitioning."""

import math

import numpy as np
import pytest

from heightgen.config import DistributionMode, FalloffCurve, VoronoiConfig
from heightgen.exceptions import ConfigurationError, GridError
from heightgen.voronoi import (
    apply_voronoi_biomes,
    generate_voronoi_points,
    grid_candidates,
    voronoi_heights,
    voronoi_regions,
)


class TestGridCandidates:
    """Tests for lattice point placement."""

    @pytest.mark.parametrize("count", [1, 2, 4, 5, 10, 16, 17])
    def test_candidate_count(self, count: int) -> None:
        candidates = grid_candidates(count, 50, 40)
        assert len(candidates) == math.ceil(math.sqrt(count)) ** 2

    def test_candidates_centered_in_cells(self) -> None:
        candidates = grid_candidates(4, 100, 50)
        expected = [(25.0, 12.5), (25.0, 37.5), (75.0, 12.5), (75.0, 37.5)]
        np.testing.assert_allclose(candidates, expected)


class TestGenerateVoronoiPoints:
    """Tests for point generation by distribution mode."""

    @pytest.mark.parametrize("count", [1, 3, 7, 10, 25])
    def test_grid_mode_truncates_to_count(self, count: int, rng: np.random.Generator) -> None:
        config = VoronoiConfig(cell_count=count, distribution_mode=DistributionMode.GRID)
        points = generate_voronoi_points(config, 60, 30, rng)
        assert len(points) == count
        assert np.all((points[:, 0] >= 0) & (points[:, 0] < 60))
        assert np.all((points[:, 1] >= 0) & (points[:, 1] < 30))

    def test_grid_mode_uses_first_candidates(self, rng: np.random.Generator) -> None:
        config = VoronoiConfig(cell_count=3, distribution_mode=DistributionMode.GRID)
        points = generate_voronoi_points(config, 20, 20, rng)
        np.testing.assert_allclose(points, grid_candidates(3, 20, 20)[:3])

    def test_random_mode_within_bounds(self, rng: np.random.Generator) -> None:
        config = VoronoiConfig(cell_count=200, distribution_mode=DistributionMode.RANDOM)
        points = generate_voronoi_points(config, 60, 30, rng)
        assert points.shape == (200, 2)
        assert np.all((points[:, 0] >= 0) & (points[:, 0] < 60))
        assert np.all((points[:, 1] >= 0) & (points[:, 1] < 30))

    def test_random_mode_reproducible(self) -> None:
        config = VoronoiConfig(cell_count=5)
        first = generate_voronoi_points(config, 20, 20, np.random.default_rng(3))
        second = generate_voronoi_points(config, 20, 20, np.random.default_rng(3))
        np.testing.assert_array_equal(first, second)

    def test_custom_mode_uses_points(self, rng: np.random.Generator) -> None:
        config = VoronoiConfig(
            distribution_mode=DistributionMode.CUSTOM,
            custom_points=((1.0, 2.0), (5.5, 3.0)),
        )
        points = generate_voronoi_points(config, 10, 10, rng)
        np.testing.assert_array_equal(points, [[1.0, 2.0], [5.5, 3.0]])

    def test_empty_custom_falls_back_to_random(self, rng: np.random.Generator) -> None:
        config = VoronoiConfig(cell_count=4, distribution_mode=DistributionMode.CUSTOM)
        points = generate_voronoi_points(config, 10, 10, rng)
        assert points.shape == (4, 2)

    def test_empty_custom_without_fallback_raises(self, rng: np.random.Generator) -> None:
        config = VoronoiConfig(
            distribution_mode=DistributionMode.CUSTOM, fallback_to_random=False
        )
        with pytest.raises(ConfigurationError) as exc_info:
            generate_voronoi_points(config, 10, 10, rng)
        assert exc_info.value.field == "voronoi.custom_points"


class TestVoronoiRegions:
    """Tests for nearest-point search."""

    def test_matches_brute_force(self) -> None:
        points = np.array([[2.0, 3.0], [10.0, 1.0], [7.5, 8.0]])
        distance, index = voronoi_regions(12, 10, points)
        for y in range(10):
            for x in range(12):
                dists = np.hypot(points[:, 0] - x, points[:, 1] - y)
                assert distance[y, x] == pytest.approx(dists.min())
                assert dists[index[y, x]] == pytest.approx(dists.min())

    def test_shape(self) -> None:
        distance, index = voronoi_regions(7, 4, np.array([[0.0, 0.0]]))
        assert distance.shape == (4, 7)
        assert index.shape == (4, 7)


class TestVoronoiHeights:
    """Tests for falloff blending."""

    def test_single_point_linear_falloff(self) -> None:
        config = VoronoiConfig(height_range=(0.0, 1.0))
        heights = voronoi_heights(32, 32, np.array([[0.0, 0.0]]), config)
        assert heights[0, 0] == pytest.approx(1.0)
        assert heights[0, 16] == pytest.approx(0.5)
        # Normalized distance beyond 1 clamps at the curve's first key
        assert heights[31, 31] == pytest.approx(0.0)

    def test_height_range_interpolation(self) -> None:
        config = VoronoiConfig(height_range=(0.2, 0.6))
        heights = voronoi_heights(10, 10, np.array([[0.0, 0.0]]), config)
        assert heights[0, 0] == pytest.approx(0.6)
        assert heights[0, 5] == pytest.approx(0.2 + 0.4 * 0.5)

    def test_custom_curve(self) -> None:
        curve = FalloffCurve(keys=((0.0, 1.0), (1.0, 0.0)))
        config = VoronoiConfig(falloff_curve=curve)
        heights = voronoi_heights(10, 10, np.array([[0.0, 0.0]]), config)
        assert heights[0, 0] == pytest.approx(0.0)

    def test_closer_cells_are_higher(self) -> None:
        config = VoronoiConfig()
        heights = voronoi_heights(20, 20, np.array([[10.0, 10.0]]), config)
        assert heights[10, 10] > heights[10, 15] > heights[10, 19]

    def test_no_points_raises(self) -> None:
        with pytest.raises(ConfigurationError):
            voronoi_heights(5, 5, np.empty((0, 2)), VoronoiConfig())


class TestApplyVoronoiBiomes:
    """Tests for writing Voronoi heights into a grid."""

    def test_replaces_grid(self, flat_grid: np.ndarray, rng: np.random.Generator) -> None:
        config = VoronoiConfig(
            distribution_mode=DistributionMode.CUSTOM, custom_points=((0.0, 0.0),)
        )
        apply_voronoi_biomes(flat_grid, config, rng)
        expected = voronoi_heights(40, 30, np.array([[0.0, 0.0]]), config)
        np.testing.assert_array_equal(flat_grid, expected)

    def test_empty_grid_rejected(self, rng: np.random.Generator) -> None:
        with pytest.raises(GridError):
            apply_voronoi_biomes(np.zeros((3, 0)), VoronoiConfig(), rng)
