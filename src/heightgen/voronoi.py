"""Voronoi biome partitioning with distance falloff blending."""

import math

import numpy as np
import structlog
from numpy.typing import NDArray
from scipy.spatial import cKDTree

from .config import DistributionMode, VoronoiConfig
from .curves import lerp
from .exceptions import ConfigurationError
from .grid import grid_size

logger = structlog.get_logger()


def grid_candidates(count: int, width: int, length: int) -> NDArray[np.float64]:
    """Centres of a square lattice large enough to hold count points.

    Returns ``ceil(sqrt(count))**2`` points as (x, y) rows, ordered with
    x as the outer index.
    """
    size = math.ceil(math.sqrt(count))
    cell_width = width / size
    cell_length = length / size
    ix, iy = np.meshgrid(np.arange(size), np.arange(size), indexing="ij")
    xs = ix.ravel() * cell_width + cell_width / 2.0
    ys = iy.ravel() * cell_length + cell_length / 2.0
    return np.column_stack([xs, ys]).astype(np.float64)


def random_points(
    count: int,
    width: int,
    length: int,
    rng: np.random.Generator,
) -> NDArray[np.float64]:
    """Sample count points uniformly within [0, width) x [0, length)."""
    xs = rng.uniform(0.0, width, count)
    ys = rng.uniform(0.0, length, count)
    return np.column_stack([xs, ys])


def generate_voronoi_points(
    config: VoronoiConfig,
    width: int,
    length: int,
    rng: np.random.Generator,
) -> NDArray[np.float64]:
    """Generate generator points for the configured distribution mode.

    Args:
        config: Voronoi parameters.
        width: Grid width in cells.
        length: Grid length in cells.
        rng: Random source for random placement.

    Returns:
        Array of shape (n, 2) with (x, y) cell coordinates.

    Raises:
        ConfigurationError: Custom mode with no points and fallback disabled.
    """
    mode = config.distribution_mode

    if mode == DistributionMode.GRID:
        return grid_candidates(config.cell_count, width, length)[: config.cell_count]

    if mode == DistributionMode.CUSTOM:
        if config.custom_points:
            return np.asarray(config.custom_points, dtype=np.float64).reshape(-1, 2)
        if not config.fallback_to_random:
            raise ConfigurationError(
                "voronoi.custom_points",
                "custom distribution requires points when fallback_to_random is off",
            )
        logger.warning(
            "voronoi_custom_points_empty",
            fallback="random",
            cell_count=config.cell_count,
        )

    return random_points(config.cell_count, width, length, rng)


def voronoi_regions(
    width: int,
    length: int,
    points: NDArray[np.float64],
) -> tuple[NDArray[np.float64], NDArray[np.intp]]:
    """Nearest generator point for every cell.

    Uses a k-d tree so the per-cell search is logarithmic in the number
    of points.

    Args:
        width: Grid width in cells.
        length: Grid length in cells.
        points: Generator points as (x, y) rows.

    Returns:
        Tuple of (distance to nearest point, index of nearest point),
        both of shape (length, width).
    """
    ys, xs = np.meshgrid(
        np.arange(length, dtype=np.float64),
        np.arange(width, dtype=np.float64),
        indexing="ij",
    )
    cells = np.column_stack([xs.ravel(), ys.ravel()])
    distance, index = cKDTree(points).query(cells, k=1)
    return (
        np.asarray(distance, dtype=np.float64).reshape(length, width),
        np.asarray(index, dtype=np.intp).reshape(length, width),
    )


def voronoi_heights(
    width: int,
    length: int,
    points: NDArray[np.float64],
    config: VoronoiConfig,
) -> NDArray[np.float64]:
    """Blend the height range by falloff of distance to the nearest point.

    Each cell gets ``lerp(lo, hi, curve(1 - d / max(width, length)))``.

    Raises:
        ConfigurationError: If there are no points.
    """
    if len(points) == 0:
        raise ConfigurationError("voronoi.custom_points", "no generator points")

    distance, _ = voronoi_regions(width, length, points)
    normalized = distance / max(width, length)
    falloff = config.falloff_curve.evaluate(1.0 - normalized)
    low, high = config.height_range
    return lerp(low, high, falloff)


def apply_voronoi_biomes(
    grid: NDArray[np.float64],
    config: VoronoiConfig,
    rng: np.random.Generator,
) -> NDArray[np.float64]:
    """Overwrite the grid with Voronoi falloff heights."""
    width, length = grid_size(grid)
    points = generate_voronoi_points(config, width, length, rng)
    grid[:, :] = voronoi_heights(width, length, points, config)
    logger.debug(
        "voronoi_applied",
        mode=config.distribution_mode.value,
        points=len(points),
    )
    return grid
