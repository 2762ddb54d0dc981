"""Falloff curve evaluation and interpolation helpers."""

from collections.abc import Sequence

import numpy as np
from numpy.typing import ArrayLike, NDArray


def smoothstep(edge0: float, edge1: float, x: ArrayLike) -> NDArray[np.float64]:
    """Smooth Hermite interpolation between 0 and 1.

    Args:
        edge0: Lower edge of transition.
        edge1: Upper edge of transition.
        x: Input values.

    Returns:
        Smoothly interpolated values in [0, 1].
    """
    t = np.clip((np.asarray(x, dtype=np.float64) - edge0) / (edge1 - edge0), 0.0, 1.0)
    return t * t * (3.0 - 2.0 * t)


def lerp(a: float, b: float, t: ArrayLike) -> NDArray[np.float64]:
    """Linear interpolation from a to b by t (unclamped)."""
    return a + (b - a) * np.asarray(t, dtype=np.float64)


def evaluate_keys(
    keys: Sequence[tuple[float, float]],
    t: ArrayLike,
    smooth: bool = False,
) -> NDArray[np.float64]:
    """Evaluate a keyframed curve.

    Inputs before the first key or after the last key take the end values.
    With ``smooth`` each span is eased with smoothstep instead of a
    straight line, giving zero slope at every key.

    Args:
        keys: (time, value) pairs with strictly increasing times.
        t: Evaluation points.
        smooth: Ease between keys instead of linear interpolation.

    Returns:
        Curve values with the same shape as t.
    """
    times = np.array([k[0] for k in keys], dtype=np.float64)
    values = np.array([k[1] for k in keys], dtype=np.float64)
    t = np.asarray(t, dtype=np.float64)

    if len(times) == 1:
        return np.full(t.shape, values[0])

    if not smooth:
        return np.interp(t, times, values)

    # Span index for each sample, clamped to valid spans
    span = np.clip(np.searchsorted(times, t, side="right") - 1, 0, len(times) - 2)
    t0 = times[span]
    t1 = times[span + 1]
    local = np.clip((t - t0) / (t1 - t0), 0.0, 1.0)
    eased = local * local * (3.0 - 2.0 * local)
    return values[span] + (values[span + 1] - values[span]) * eased
