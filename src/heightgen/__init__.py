"""Procedural terrain height field generation.

Composes noise, midpoint displacement, Voronoi biomes, thermal erosion
and feature carving into a deterministic pipeline over one height grid,
then classifies the result into texture layers.
"""

from .classification import UNCLASSIFIED, LayerMap, classify_heights
from .config import (
    Biome,
    DistributionMode,
    FalloffCurve,
    TerrainConfig,
    TextureMapping,
    load_config,
    validate_config,
)
from .exceptions import (
    ConfigurationError,
    GenerationError,
    GenerationSupersededError,
    GridError,
    TerrainError,
)
from .generator import (
    GenerationResult,
    GeneratorState,
    TerrainGenerator,
    generate_terrain,
)
from .persistence import load_result, save_result

__all__ = [
    # Config
    "Biome",
    "DistributionMode",
    "FalloffCurve",
    "TerrainConfig",
    "TextureMapping",
    "load_config",
    "validate_config",
    # Generation
    "GenerationResult",
    "GeneratorState",
    "TerrainGenerator",
    "generate_terrain",
    # Classification
    "UNCLASSIFIED",
    "LayerMap",
    "classify_heights",
    # Persistence
    "load_result",
    "save_result",
    # Exceptions
    "ConfigurationError",
    "GenerationError",
    "GenerationSupersededError",
    "GridError",
    "TerrainError",
]
