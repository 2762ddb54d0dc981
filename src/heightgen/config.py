"""Terrain generation configuration models."""

import tomllib
from enum import Enum
from pathlib import Path
from typing import Literal

import numpy as np
from numpy.typing import ArrayLike, NDArray
from pydantic import BaseModel, Field, ValidationError, field_validator, model_validator

from .exceptions import ConfigurationError

# Guards against runaway work at the orchestration boundary
MAX_GRID_DIMENSION = 8193
MAX_NOISE_LAYERS = 100
MAX_VORONOI_CELLS = 10_000
MAX_EROSION_ITERATIONS = 10_000
MAX_PATH_SEGMENTS = 1024

Vector2 = tuple[float, float]


class _Section(BaseModel, frozen=True, extra="forbid", allow_inf_nan=False):
    """Base for all configuration groups: immutable, no unknown keys."""


class DistributionMode(str, Enum):
    """How Voronoi generator points are placed."""

    GRID = "grid"
    RANDOM = "random"
    CUSTOM = "custom"


class FalloffCurve(_Section):
    """Keyframed curve mapping [0, 1] to a blend weight.

    Values outside the key range clamp to the first/last key.
    """

    keys: tuple[Vector2, ...] = Field(
        default=((0.0, 0.0), (1.0, 1.0)), description="(time, value) keyframes"
    )
    interpolation: Literal["linear", "smooth"] = Field(
        default="linear", description="Interpolation between keyframes"
    )

    @field_validator("keys")
    @classmethod
    def _keys_ordered(cls, keys: tuple[Vector2, ...]) -> tuple[Vector2, ...]:
        if not keys:
            raise ValueError("curve needs at least one key")
        times = [t for t, _ in keys]
        if any(b <= a for a, b in zip(times, times[1:])):
            raise ValueError("key times must be strictly increasing")
        return keys

    def evaluate(self, t: ArrayLike) -> NDArray[np.float64]:
        """Evaluate the curve at t (scalar or array)."""
        from .curves import evaluate_keys

        return evaluate_keys(self.keys, t, smooth=self.interpolation == "smooth")


class NoiseLayerConfig(_Section):
    """Layered coherent noise parameters."""

    enabled: bool = Field(default=False, description="Run this noise stage")
    layers: int = Field(
        default=1, ge=1, le=MAX_NOISE_LAYERS, description="Number of noise layers"
    )
    base_scale: float = Field(default=10.0, gt=0.0, description="Scale of the first layer")
    amplitude_decay: float = Field(
        default=0.5, ge=0.0, le=1.0, description="Amplitude multiplier per layer"
    )
    frequency_growth: float = Field(
        default=2.0, gt=0.0, description="Frequency multiplier per layer"
    )
    offset: Vector2 = Field(default=(0.0, 0.0), description="Sampling offset")
    seed: int = Field(default=0, ge=0, description="Noise permutation seed")


class DisplacementConfig(_Section):
    """Midpoint displacement parameters."""

    enabled: bool = Field(default=False, description="Run midpoint displacement")
    displacement_factor: float = Field(
        default=0.5, gt=0.0, le=10.0, description="Displacement at depth 0"
    )
    decay_rate: float = Field(
        default=0.5, ge=0.0, le=1.0, description="Displacement multiplier per depth"
    )


class VoronoiConfig(_Section):
    """Voronoi biome partitioning parameters."""

    enabled: bool = Field(default=False, description="Run Voronoi biomes")
    cell_count: int = Field(
        default=10, ge=1, le=MAX_VORONOI_CELLS, description="Number of generator points"
    )
    distribution_mode: DistributionMode = Field(
        default=DistributionMode.RANDOM, description="Point placement mode"
    )
    custom_points: tuple[Vector2, ...] = Field(
        default=(), description="Generator points in cell coordinates (custom mode)"
    )
    fallback_to_random: bool = Field(
        default=True, description="Use random points when custom_points is empty"
    )
    falloff_curve: FalloffCurve = Field(default_factory=FalloffCurve)
    height_range: Vector2 = Field(
        default=(0.0, 1.0), description="Heights at falloff 0 and falloff 1"
    )

    @field_validator("height_range")
    @classmethod
    def _range_ordered(cls, value: Vector2) -> Vector2:
        if value[0] > value[1]:
            raise ValueError("lower bound must not exceed upper bound")
        return value


class ErosionConfig(_Section):
    """Thermal erosion parameters."""

    enabled: bool = Field(default=False, description="Run thermal erosion")
    talus_angle: float = Field(
        default=0.05, gt=0.0, le=1.0, description="Max stable height step between cells"
    )
    iterations: int = Field(
        default=3, ge=0, le=MAX_EROSION_ITERATIONS, description="Erosion passes"
    )
    # Above half the excess a pass can overshoot and turn peaks into pits
    erosion_rate: float = Field(
        default=0.5, gt=0.0, le=0.5, description="Fraction of excess moved per pass"
    )


class RiverConfig(_Section):
    """River channel parameters."""

    enabled: bool = Field(default=False, description="Carve a river")
    width: float = Field(default=5.0, gt=0.0, description="Channel width in cells")
    river_level: float = Field(
        default=0.1, ge=0.0, le=1.0, description="Height of the channel bed"
    )
    start: Vector2 = Field(default=(0.0, 0.5), description="Normalized start point")
    end: Vector2 = Field(default=(1.0, 0.5), description="Normalized end point")
    meander_amplitude: float = Field(
        default=0.05, ge=0.0, le=1.0, description="Meander offset as fraction of length"
    )
    meander_frequency: float = Field(
        default=1.5, ge=0.0, description="Meander periods along the path"
    )
    segments: int = Field(
        default=64, ge=1, le=MAX_PATH_SEGMENTS, description="Path resolution"
    )


class LakeConfig(_Section):
    """Lake basin parameters."""

    enabled: bool = Field(default=False, description="Carve a lake")
    center: Vector2 = Field(default=(0.5, 0.5), description="Normalized lake center")
    radius: float = Field(default=10.0, gt=0.0, description="Lake radius in cells")
    water_level: float = Field(
        default=0.3, ge=0.0, le=1.0, description="Height the basin flattens to"
    )


class TrailConfig(_Section):
    """Trail parameters."""

    enabled: bool = Field(default=False, description="Carve a trail")
    start: Vector2 = Field(default=(0.2, 0.8), description="Normalized start point")
    end: Vector2 = Field(default=(0.8, 0.2), description="Normalized end point")
    width: float = Field(default=2.0, gt=0.0, description="Trail width in cells")
    randomness: float = Field(
        default=0.2, ge=0.0, le=5.0, description="Path jitter relative to segment length"
    )
    depth: float = Field(
        default=0.02, ge=0.0, le=1.0, description="Depth of the trail channel"
    )
    segments: int = Field(
        default=16, ge=1, le=MAX_PATH_SEGMENTS, description="Number of trail segments"
    )


class TextureMapping(_Section):
    """Height band [min_height, max_height) assigned to a surface layer."""

    layer: str = Field(min_length=1, description="Texture layer identifier")
    min_height: float = Field(description="Inclusive lower bound")
    max_height: float = Field(description="Exclusive upper bound")

    @model_validator(mode="after")
    def _band_ordered(self) -> "TextureMapping":
        if self.min_height >= self.max_height:
            raise ValueError("min_height must be below max_height")
        return self


class Biome(_Section):
    """Named set of up to three texture thresholds."""

    name: str = Field(min_length=1)
    thresholds: tuple[TextureMapping, ...] = Field(default=(), max_length=3)

    def texture_mappings(self) -> tuple[TextureMapping, ...]:
        return self.thresholds


class TerrainConfig(_Section):
    """Complete terrain generation configuration."""

    seed: int = Field(default=42, ge=0, description="Random seed for reproducibility")
    width: int = Field(
        default=257, ge=1, le=MAX_GRID_DIMENSION, description="Grid width in cells"
    )
    length: int = Field(
        default=257, ge=1, le=MAX_GRID_DIMENSION, description="Grid length in cells"
    )
    clamp_output: bool = Field(
        default=True, description="Clamp final heights into [0, 1]"
    )

    noise: NoiseLayerConfig = Field(default_factory=NoiseLayerConfig)
    fractal_noise: NoiseLayerConfig = Field(
        default_factory=lambda: NoiseLayerConfig(layers=6, base_scale=4.0)
    )
    displacement: DisplacementConfig = Field(default_factory=DisplacementConfig)
    voronoi: VoronoiConfig = Field(default_factory=VoronoiConfig)
    erosion: ErosionConfig = Field(default_factory=ErosionConfig)
    river: RiverConfig = Field(default_factory=RiverConfig)
    lake: LakeConfig = Field(default_factory=LakeConfig)
    trail: TrailConfig = Field(default_factory=TrailConfig)

    texture_mappings: tuple[TextureMapping, ...] = Field(
        default=(), description="Height bands checked in declaration order"
    )
    biomes: tuple[Biome, ...] = Field(default=(), description="Biome thresholds")


def validate_config(config: TerrainConfig) -> TerrainConfig:
    """Re-validate a configuration snapshot before generation.

    Models built with ``model_copy(update=...)`` or ``model_construct``
    skip pydantic validation, so the full model is validated again here.

    Args:
        config: Configuration to check.

    Returns:
        A freshly validated copy of the configuration.

    Raises:
        ConfigurationError: Naming the first invalid field.
    """
    try:
        validated = TerrainConfig.model_validate(config.model_dump())
    except ValidationError as exc:
        raise _to_configuration_error(exc) from exc

    voronoi = validated.voronoi
    if (
        voronoi.enabled
        and voronoi.distribution_mode == DistributionMode.CUSTOM
        and not voronoi.custom_points
        and not voronoi.fallback_to_random
    ):
        raise ConfigurationError(
            "voronoi.custom_points",
            "custom distribution requires points when fallback_to_random is off",
        )

    return validated


def config_from_dict(data: dict) -> TerrainConfig:
    """Build and validate a TerrainConfig from plain data.

    Raises:
        ConfigurationError: Naming the first invalid field.
    """
    try:
        config = TerrainConfig.model_validate(data)
    except ValidationError as exc:
        raise _to_configuration_error(exc) from exc
    return validate_config(config)


def load_config(config_path: Path) -> TerrainConfig:
    """Load configuration from a TOML file.

    Args:
        config_path: Path to the TOML config file.

    Returns:
        Parsed TerrainConfig.

    Raises:
        FileNotFoundError: If config file doesn't exist.
        tomllib.TOMLDecodeError: If TOML is malformed.
        ConfigurationError: If a value is invalid.
    """
    with open(config_path, "rb") as f:
        data = tomllib.load(f)
    return config_from_dict(data)


def _to_configuration_error(exc: ValidationError) -> ConfigurationError:
    """Convert the first pydantic error into a ConfigurationError."""
    first = exc.errors()[0]
    field = ".".join(str(part) for part in first["loc"]) or "config"
    return ConfigurationError(field, first["msg"])
