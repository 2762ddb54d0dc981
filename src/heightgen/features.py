"""Feature carving: lakes, rivers and trails.

Each carver only writes cells inside its zone of influence; cells outside
keep their exact previous value.
"""

import numpy as np
from numpy.typing import NDArray

from .config import LakeConfig, RiverConfig, TrailConfig, Vector2
from .curves import smoothstep
from .grid import grid_size


def to_cell_coords(point: Vector2, width: int, length: int) -> tuple[float, float]:
    """Scale a normalized (x, y) point to cell coordinates."""
    return point[0] * (width - 1), point[1] * (length - 1)


def distance_to_point(
    width: int,
    length: int,
    center: tuple[float, float],
) -> NDArray[np.float64]:
    """Euclidean distance from every cell to a point in cell coordinates."""
    ys, xs = np.mgrid[0:length, 0:width].astype(np.float64)
    return np.hypot(xs - center[0], ys - center[1])


def distance_to_path(
    path: NDArray[np.float64],
    width: int,
    length: int,
) -> NDArray[np.float64]:
    """Distance from every cell to a polyline.

    Args:
        path: Array of shape (n, 2) with (x, y) vertices in cell coordinates.
        width: Grid width in cells.
        length: Grid length in cells.

    Returns:
        Array of shape (length, width) with the distance to the nearest segment.
    """
    ys, xs = np.mgrid[0:length, 0:width].astype(np.float64)
    if len(path) == 1:
        return np.hypot(xs - path[0, 0], ys - path[0, 1])

    best = np.full((length, width), np.inf)
    for (ax, ay), (bx, by) in zip(path[:-1], path[1:]):
        dx = bx - ax
        dy = by - ay
        seg_len_sq = dx * dx + dy * dy
        if seg_len_sq == 0.0:
            t = np.zeros_like(xs)
        else:
            t = np.clip(((xs - ax) * dx + (ys - ay) * dy) / seg_len_sq, 0.0, 1.0)
        dist = np.hypot(xs - (ax + t * dx), ys - (ay + t * dy))
        np.minimum(best, dist, out=best)
    return best


def _perpendicular(start: NDArray, end: NDArray) -> tuple[NDArray, float]:
    """Unit normal of the chord start->end and the chord length."""
    chord = end - start
    chord_length = float(np.hypot(*chord))
    if chord_length == 0.0:
        return np.zeros(2), 0.0
    return np.array([-chord[1], chord[0]]) / chord_length, chord_length


def river_path(config: RiverConfig, width: int, length: int) -> NDArray[np.float64]:
    """Meandering river path between the configured endpoints.

    Vertices follow the straight chord, pushed sideways by
    ``meander_amplitude * chord_length * sin(2*pi*meander_frequency*t)``.
    The endpoints stay fixed.
    """
    start = np.array(to_cell_coords(config.start, width, length))
    end = np.array(to_cell_coords(config.end, width, length))
    normal, chord_length = _perpendicular(start, end)

    t = np.linspace(0.0, 1.0, config.segments + 1)
    base = start + np.outer(t, end - start)
    offset = (
        config.meander_amplitude
        * chord_length
        * np.sin(2.0 * np.pi * config.meander_frequency * t)
    )
    return base + np.outer(offset, normal)


def trail_path(
    config: TrailConfig,
    width: int,
    length: int,
    rng: np.random.Generator,
) -> NDArray[np.float64]:
    """Jittered trail path between the configured endpoints.

    Interior vertices move sideways by
    ``uniform(-1, 1) * randomness * segment_length``.
    """
    start = np.array(to_cell_coords(config.start, width, length))
    end = np.array(to_cell_coords(config.end, width, length))
    normal, chord_length = _perpendicular(start, end)

    t = np.linspace(0.0, 1.0, config.segments + 1)
    path = start + np.outer(t, end - start)

    jitter = rng.uniform(-1.0, 1.0, config.segments + 1)
    jitter[0] = 0.0
    jitter[-1] = 0.0
    segment_length = chord_length / config.segments
    return path + np.outer(jitter * config.randomness * segment_length, normal)


def carve_lake(
    grid: NDArray[np.float64],
    config: LakeConfig,
) -> NDArray[np.float64]:
    """Flatten a circular basin toward the water level.

    Inside the radius, ``h = level + (h - level) * smoothstep(d / radius)``:
    exactly the water level at the centre, blending back to the original
    height at the rim.
    """
    width, length = grid_size(grid)
    center = to_cell_coords(config.center, width, length)
    dist = distance_to_point(width, length, center)

    inside = dist < config.radius
    blend = smoothstep(0.0, 1.0, dist[inside] / config.radius)
    level = config.water_level
    grid[inside] = level + (grid[inside] - level) * blend
    return grid


def carve_river(
    grid: NDArray[np.float64],
    config: RiverConfig,
) -> NDArray[np.float64]:
    """Lower a channel toward the river level along the river path.

    Heights already below the channel profile are kept.
    """
    width, length = grid_size(grid)
    half_width = config.width / 2.0
    dist = distance_to_path(river_path(config, width, length), width, length)

    inside = dist < half_width
    blend = smoothstep(0.0, 1.0, dist[inside] / half_width)
    level = config.river_level
    current = grid[inside]
    grid[inside] = np.minimum(current, level + (current - level) * blend)
    return grid


def carve_trail(
    grid: NDArray[np.float64],
    config: TrailConfig,
    rng: np.random.Generator,
) -> NDArray[np.float64]:
    """Cut a shallow channel of ``config.depth`` along a jittered path."""
    width, length = grid_size(grid)
    half_width = config.width / 2.0
    path = trail_path(config, width, length, rng)
    dist = distance_to_path(path, width, length)

    inside = dist < half_width
    profile = 1.0 - smoothstep(0.0, 1.0, dist[inside] / half_width)
    grid[inside] -= config.depth * profile
    return grid
