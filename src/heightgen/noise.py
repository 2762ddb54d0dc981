"""Layered coherent noise synthesis.

Samples OpenSimplex noise on the normalized grid lattice and sums
several layers at geometrically growing frequency and decaying amplitude.
"""

from functools import lru_cache

import numpy as np
from numpy.typing import ArrayLike, NDArray
from opensimplex import OpenSimplex

from .config import NoiseLayerConfig
from .exceptions import ConfigurationError
from .grid import HEIGHT_DTYPE, grid_size


@lru_cache(maxsize=32)
def _generator(seed: int) -> OpenSimplex:
    return OpenSimplex(seed=seed)


def coherent_noise(x: float, y: float, seed: int = 0) -> float:
    """Sample 2D coherent noise at a single point.

    Args:
        x: Sample x coordinate.
        y: Sample y coordinate.
        seed: Noise permutation seed.

    Returns:
        Noise value remapped to [0, 1].
    """
    return 0.5 * (_generator(seed).noise2(float(x), float(y)) + 1.0)


def coherent_noise_lattice(
    xs: ArrayLike,
    ys: ArrayLike,
    seed: int = 0,
) -> NDArray[np.float64]:
    """Sample 2D coherent noise on the lattice xs x ys.

    Args:
        xs: 1D array of x sample coordinates.
        ys: 1D array of y sample coordinates.
        seed: Noise permutation seed.

    Returns:
        Array of shape (len(ys), len(xs)) with values in [0, 1].
    """
    xs = np.asarray(xs, dtype=np.float64)
    ys = np.asarray(ys, dtype=np.float64)
    samples = _generator(seed).noise2array(xs, ys)
    return 0.5 * (np.asarray(samples, dtype=np.float64) + 1.0)


def layered_noise(
    width: int,
    length: int,
    config: NoiseLayerConfig,
    section: str = "noise",
) -> NDArray[np.float64]:
    """Generate a layered noise field.

    Layer ``l`` samples at ``(x/width * scale * growth**l + offset.x,
    y/length * scale * growth**l + offset.y)`` and is weighted by
    ``decay**l``. The sum is clamped to [0, 1]. Normalizing by the grid
    size makes the result independent of resolution.

    Args:
        width: Grid width in cells.
        length: Grid length in cells.
        config: Noise parameters.
        section: Config section name, used in error messages.

    Returns:
        Array of shape (length, width) in [0, 1].

    Raises:
        ConfigurationError: If scale, growth or layer count is invalid.
    """
    _check_noise_config(config, section)

    normalized_x = np.arange(width, dtype=np.float64) / width
    normalized_y = np.arange(length, dtype=np.float64) / length
    offset_x, offset_y = config.offset

    result = np.zeros((length, width), dtype=HEIGHT_DTYPE)
    amplitude = 1.0
    frequency = 1.0

    for _ in range(config.layers):
        xs = normalized_x * config.base_scale * frequency + offset_x
        ys = normalized_y * config.base_scale * frequency + offset_y
        result += coherent_noise_lattice(xs, ys, config.seed) * amplitude
        amplitude *= config.amplitude_decay
        frequency *= config.frequency_growth

    return np.clip(result, 0.0, 1.0)


def apply_layered_noise(
    grid: NDArray[np.float64],
    config: NoiseLayerConfig,
    section: str = "noise",
) -> NDArray[np.float64]:
    """Add a layered noise field into the grid in place."""
    width, length = grid_size(grid)
    grid += layered_noise(width, length, config, section)
    return grid


def _check_noise_config(config: NoiseLayerConfig, section: str) -> None:
    if config.layers < 1:
        raise ConfigurationError(f"{section}.layers", "must be at least 1")
    if not config.base_scale > 0:
        raise ConfigurationError(f"{section}.base_scale", "must be positive")
    if not config.frequency_growth > 0:
        raise ConfigurationError(f"{section}.frequency_growth", "must be positive")
