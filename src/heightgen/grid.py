"""Height grid allocation and shape checks.

Grids are float64 arrays of shape (length, width), indexed ``grid[y, x]``.
"""

import numpy as np
from numpy.typing import NDArray

from .exceptions import GridError

HEIGHT_DTYPE = np.float64


def allocate_grid(width: int, length: int) -> NDArray[np.float64]:
    """Allocate a zero-filled height grid.

    Raises:
        GridError: If either dimension is not positive.
    """
    if width <= 0 or length <= 0:
        raise GridError(f"Grid dimensions must be positive, got {width}x{length}")
    return np.zeros((length, width), dtype=HEIGHT_DTYPE)


def grid_size(grid: NDArray) -> tuple[int, int]:
    """Return (width, length) of a height grid.

    Raises:
        GridError: If the grid is not 2D or has a zero dimension.
    """
    if grid.ndim != 2:
        raise GridError(f"Height grid must be 2D, got {grid.ndim}D")
    length, width = grid.shape
    if width == 0 or length == 0:
        raise GridError(f"Height grid is empty ({width}x{length})")
    return width, length


def check_grid_shape(grid: NDArray, width: int, length: int) -> None:
    """Raise GridError unless grid has shape (length, width)."""
    if grid.shape != (length, width):
        raise GridError(
            f"Expected grid of {width}x{length}, got {grid.shape[1]}x{grid.shape[0]}"
            if grid.ndim == 2
            else f"Expected 2D grid of {width}x{length}, got shape {grid.shape}"
        )


def check_grid_dtype(grid: NDArray) -> None:
    """Raise GridError unless grid stores HEIGHT_DTYPE values.

    Results are written back into a supplied grid, so any other dtype
    would round the heights the layers were classified from.
    """
    if grid.dtype != HEIGHT_DTYPE:
        raise GridError(
            f"Height grid must have dtype {np.dtype(HEIGHT_DTYPE).name}, got {grid.dtype}"
        )
