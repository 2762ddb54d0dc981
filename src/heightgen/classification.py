"""Texture layer classification by height bands."""

from collections.abc import Sequence

import numpy as np
from numpy.typing import NDArray

from .config import TerrainConfig, TextureMapping
from .grid import grid_size

UNCLASSIFIED = -1


class LayerMap:
    """Per-cell texture layer assignment.

    ``indices[y, x]`` is an index into ``layers`` or ``UNCLASSIFIED``.
    """

    def __init__(self, indices: NDArray[np.int16], layers: tuple[str, ...]):
        self.indices = indices
        self.layers = layers

    @property
    def shape(self) -> tuple[int, ...]:
        return self.indices.shape

    def layer_at(self, x: int, y: int) -> str | None:
        """Layer name for a cell, or None if unclassified."""
        index = int(self.indices[y, x])
        if index == UNCLASSIFIED:
            return None
        return self.layers[index]

    def mask(self, layer: str) -> NDArray[np.bool_]:
        """Boolean mask of cells assigned to a layer."""
        if layer not in self.layers:
            return np.zeros(self.indices.shape, dtype=bool)
        return self.indices == self.layers.index(layer)

    def coverage(self) -> dict[str | None, float]:
        """Fraction of cells per layer; None holds the unclassified share."""
        total = self.indices.size
        result: dict[str | None, float] = {
            name: float(np.count_nonzero(self.indices == i)) / total
            for i, name in enumerate(self.layers)
        }
        result[None] = float(np.count_nonzero(self.indices == UNCLASSIFIED)) / total
        return result


def effective_mappings(config: TerrainConfig) -> tuple[TextureMapping, ...]:
    """Explicit texture mappings first, then each biome's thresholds in order."""
    mappings = list(config.texture_mappings)
    for biome in config.biomes:
        mappings.extend(biome.texture_mappings())
    return tuple(mappings)


def layer_names(mappings: Sequence[TextureMapping]) -> tuple[str, ...]:
    """Distinct layer names in first-seen order."""
    names: list[str] = []
    for mapping in mappings:
        if mapping.layer not in names:
            names.append(mapping.layer)
    return tuple(names)


def classify_heights(
    heights: NDArray[np.float64],
    mappings: Sequence[TextureMapping],
) -> LayerMap:
    """Assign each cell to the first mapping whose band contains its height.

    Bands are half-open ``[min_height, max_height)``. When bands overlap,
    the mapping declared first wins. Cells matching no band are
    ``UNCLASSIFIED``.

    Args:
        heights: Final height grid.
        mappings: Texture mappings in priority (declaration) order.

    Returns:
        LayerMap with the same shape as heights.
    """
    grid_size(heights)
    names = layer_names(mappings)
    indices = np.full(heights.shape, UNCLASSIFIED, dtype=np.int16)

    for mapping in mappings:
        match = (
            (indices == UNCLASSIFIED)
            & (heights >= mapping.min_height)
            & (heights < mapping.max_height)
        )
        indices[match] = names.index(mapping.layer)

    return LayerMap(indices, names)
