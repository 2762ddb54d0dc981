"""Thermal erosion over the 4-connected neighbourhood."""

import numpy as np
import structlog
from numpy.typing import NDArray

from .config import ErosionConfig
from .grid import grid_size

logger = structlog.get_logger()


def thermal_erosion_step(
    heights: NDArray[np.float64],
    talus_angle: float,
    erosion_rate: float,
) -> NDArray[np.float64]:
    """Run one erosion pass and return the new heights.

    All transfers are computed from the input snapshot and applied
    together, so the result does not depend on traversal order.
    For each cell, neighbours lower by more than ``talus_angle`` receive
    ``erosion_rate * (d_max - talus_angle)`` in total, split in proportion
    to their height difference. Neighbours outside the grid are ignored,
    so total height is conserved.

    Args:
        heights: Height snapshot, not modified.
        talus_angle: Largest stable height step between adjacent cells.
        erosion_rate: Fraction of the excess moved per pass.

    Returns:
        New height array.
    """
    padded = np.pad(heights, 1, mode="constant", constant_values=np.inf)

    # Order: up, down, left, right
    neighbours = np.stack([
        padded[:-2, 1:-1],
        padded[2:, 1:-1],
        padded[1:-1, :-2],
        padded[1:-1, 2:],
    ])
    diffs = heights[np.newaxis] - neighbours

    excess = np.where(diffs > talus_angle, diffs, 0.0)
    excess_total = excess.sum(axis=0)
    max_diff = diffs.max(axis=0)

    moved = np.where(
        max_diff > talus_angle, erosion_rate * (max_diff - talus_angle), 0.0
    )
    with np.errstate(invalid="ignore", divide="ignore"):
        shares = np.where(
            excess_total > 0, moved * excess / excess_total, 0.0
        )

    result = heights - moved
    result[:-1, :] += shares[0][1:, :]
    result[1:, :] += shares[1][:-1, :]
    result[:, :-1] += shares[2][:, 1:]
    result[:, 1:] += shares[3][:, :-1]
    return result


def apply_thermal_erosion(
    grid: NDArray[np.float64],
    config: ErosionConfig,
) -> NDArray[np.float64]:
    """Erode the grid in place for exactly ``config.iterations`` passes."""
    grid_size(grid)

    if config.iterations == 0:
        logger.warning("erosion_no_iterations")
        return grid

    heights = grid.copy()
    for _ in range(config.iterations):
        heights = thermal_erosion_step(heights, config.talus_angle, config.erosion_rate)

    grid[:, :] = heights
    return grid
