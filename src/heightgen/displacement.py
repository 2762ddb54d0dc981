"""Midpoint displacement (diamond-square) fractal terrain."""

import numpy as np
from numpy.typing import NDArray

from .config import DisplacementConfig
from .exceptions import ConfigurationError
from .grid import HEIGHT_DTYPE, grid_size

# 2**13 + 1 = 8193 cells per side
MAX_DISPLACEMENT_DEPTH = 13


def lattice_size(width: int, length: int) -> int:
    """Smallest 2**k + 1 that covers both grid dimensions."""
    span = max(width, length) - 1
    k = 0
    while (1 << k) < span:
        k += 1
    return (1 << k) + 1


def midpoint_displacement(
    size: int,
    config: DisplacementConfig,
    rng: np.random.Generator,
) -> NDArray[np.float64]:
    """Generate a square diamond-square height lattice.

    Corners are seeded from ``rng.random()``. At recursion depth ``d``
    every new point is the mean of its neighbours plus a uniform offset in
    ``[-s, s]`` where ``s = displacement_factor * decay_rate**d``.

    Args:
        size: Side length, must be 2**k + 1.
        config: Displacement parameters.
        rng: Random source; the same state reproduces the same lattice.

    Returns:
        Array of shape (size, size).

    Raises:
        ConfigurationError: If size is not 2**k + 1 or exceeds the depth guard.
    """
    span = size - 1
    if size < 2 or span & (span - 1):
        raise ConfigurationError("displacement", f"lattice size {size} is not 2**k + 1")
    if span.bit_length() - 1 > MAX_DISPLACEMENT_DEPTH:
        raise ConfigurationError(
            "displacement", f"recursion depth exceeds {MAX_DISPLACEMENT_DEPTH}"
        )

    lattice = np.zeros((size, size), dtype=HEIGHT_DTYPE)
    lattice[0, 0], lattice[0, -1], lattice[-1, 0], lattice[-1, -1] = rng.random(4)

    step = span
    depth = 0
    while step > 1:
        half = step // 2
        scale = config.displacement_factor * config.decay_rate**depth
        _diamond_step(lattice, step, half, scale, rng)
        _square_step(lattice, step, half, scale, rng)
        step = half
        depth += 1

    return lattice


def _diamond_step(
    lattice: NDArray[np.float64],
    step: int,
    half: int,
    scale: float,
    rng: np.random.Generator,
) -> None:
    """Set each square's centre to the mean of its corners plus noise."""
    span = lattice.shape[0] - 1
    corners = (
        lattice[0:span:step, 0:span:step]
        + lattice[0:span:step, step::step]
        + lattice[step::step, 0:span:step]
        + lattice[step::step, step::step]
    )
    centers = corners / 4.0
    lattice[half::step, half::step] = centers + rng.uniform(-scale, scale, centers.shape)


def _square_step(
    lattice: NDArray[np.float64],
    step: int,
    half: int,
    scale: float,
    rng: np.random.Generator,
) -> None:
    """Set each edge midpoint to the mean of its in-lattice neighbours plus noise.

    The two midpoint families (row-aligned and column-aligned) only read
    corners and centres, so they can be filled one after the other.
    """
    size = lattice.shape[0]
    for row_start, col_start in ((0, half), (half, 0)):
        rows = np.arange(row_start, size, step)
        cols = np.arange(col_start, size, step)
        rr, cc = np.meshgrid(rows, cols, indexing="ij")

        total = np.zeros(rr.shape, dtype=HEIGHT_DTYPE)
        count = np.zeros(rr.shape, dtype=HEIGHT_DTYPE)
        for dy, dx in ((-half, 0), (half, 0), (0, -half), (0, half)):
            ny = rr + dy
            nx = cc + dx
            valid = (ny >= 0) & (ny < size) & (nx >= 0) & (nx < size)
            total[valid] += lattice[ny[valid], nx[valid]]
            count += valid

        lattice[rr, cc] = total / count + rng.uniform(-scale, scale, rr.shape)


def apply_midpoint_displacement(
    grid: NDArray[np.float64],
    config: DisplacementConfig,
    rng: np.random.Generator,
) -> NDArray[np.float64]:
    """Overwrite the grid with midpoint displacement heights.

    The lattice is generated at the next 2**k + 1 size and its top-left
    window is copied into the grid.
    """
    width, length = grid_size(grid)
    lattice = midpoint_displacement(lattice_size(width, length), config, rng)
    grid[:, :] = lattice[:length, :width]
    return grid
