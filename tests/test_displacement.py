"""Tests for midpoint displacement."""

import numpy as np
import pytest

from heightgen.config import DisplacementConfig
from heightgen.displacement import (
    apply_midpoint_displacement,
    lattice_size,
    midpoint_displacement,
)
from heightgen.exceptions import ConfigurationError


class TestLatticeSize:
    """Tests for power-of-two-plus-one padding."""

    @pytest.mark.parametrize(
        "width,length,expected",
        [(1, 1, 2), (2, 2, 2), (3, 3, 3), (5, 4, 5), (6, 6, 9), (64, 64, 65), (65, 30, 65), (100, 20, 129)],
    )
    def test_covers_grid(self, width: int, length: int, expected: int) -> None:
        assert lattice_size(width, length) == expected


class TestMidpointDisplacement:
    """Tests for the diamond-square lattice."""

    def test_output_shape(self) -> None:
        lattice = midpoint_displacement(33, DisplacementConfig(), np.random.default_rng(0))
        assert lattice.shape == (33, 33)

    def test_same_seed_identical(self) -> None:
        config = DisplacementConfig(displacement_factor=1.0, decay_rate=0.6)
        first = midpoint_displacement(65, config, np.random.default_rng(42))
        second = midpoint_displacement(65, config, np.random.default_rng(42))
        np.testing.assert_array_equal(first, second)

    def test_different_seed_differs(self) -> None:
        config = DisplacementConfig()
        first = midpoint_displacement(33, config, np.random.default_rng(1))
        second = midpoint_displacement(33, config, np.random.default_rng(2))
        assert not np.allclose(first, second)

    def test_zero_decay_is_smooth_after_first_depth(self) -> None:
        """With decay 0 only the first diamond/square steps are displaced."""
        config = DisplacementConfig(displacement_factor=1.0, decay_rate=0.0)
        lattice = midpoint_displacement(9, config, np.random.default_rng(3))
        # Cell (1, 1) is the centre of the square with corners at 0 and 2
        expected = (lattice[0, 0] + lattice[0, 2] + lattice[2, 0] + lattice[2, 2]) / 4.0
        assert lattice[1, 1] == pytest.approx(expected)

    def test_displacement_bounded_by_factor(self) -> None:
        """Total displacement never exceeds the geometric sum of scales."""
        config = DisplacementConfig(displacement_factor=0.2, decay_rate=0.5)
        lattice = midpoint_displacement(65, config, np.random.default_rng(9))
        # Corners in [0, 1); each depth adds at most 0.2 * 0.5**d
        assert lattice.min() >= -0.4
        assert lattice.max() <= 1.4

    def test_every_cell_filled(self) -> None:
        """No cell is left at its zero initial value."""
        lattice = midpoint_displacement(17, DisplacementConfig(), np.random.default_rng(5))
        assert np.count_nonzero(lattice == 0.0) == 0

    def test_invalid_size_rejected(self) -> None:
        with pytest.raises(ConfigurationError):
            midpoint_displacement(10, DisplacementConfig(), np.random.default_rng(0))

    def test_depth_guard(self) -> None:
        with pytest.raises(ConfigurationError):
            midpoint_displacement(2**14 + 1, DisplacementConfig(), np.random.default_rng(0))


class TestApplyMidpointDisplacement:
    """Tests for writing displacement into a grid."""

    def test_replaces_grid_contents(self) -> None:
        grid = np.full((20, 30), 123.0)
        apply_midpoint_displacement(grid, DisplacementConfig(), np.random.default_rng(4))
        assert grid.shape == (20, 30)
        assert not np.any(grid == 123.0)

    def test_matches_cropped_lattice(self) -> None:
        config = DisplacementConfig()
        grid = np.zeros((20, 30))
        apply_midpoint_displacement(grid, config, np.random.default_rng(8))
        lattice = midpoint_displacement(33, config, np.random.default_rng(8))
        np.testing.assert_array_equal(grid, lattice[:20, :30])

    def test_deterministic(self) -> None:
        first = np.zeros((25, 25))
        second = np.zeros((25, 25))
        apply_midpoint_displacement(first, DisplacementConfig(), np.random.default_rng(77))
        apply_midpoint_displacement(second, DisplacementConfig(), np.random.default_rng(77))
        np.testing.assert_array_equal(first, second)
