"""Height modifier stages and their fixed execution order."""

from dataclasses import dataclass
from typing import Protocol

import numpy as np
from numpy.typing import NDArray

from .config import NoiseLayerConfig, TerrainConfig
from .displacement import apply_midpoint_displacement
from .erosion import apply_thermal_erosion
from .features import carve_lake, carve_river, carve_trail
from .noise import apply_layered_noise
from .voronoi import apply_voronoi_biomes


class Stage(Protocol):
    """A pipeline step that mutates a height grid in place."""

    name: str
    seed_offset: int

    def is_enabled(self, config: TerrainConfig) -> bool: ...

    def apply(
        self,
        grid: NDArray[np.float64],
        config: TerrainConfig,
        rng: np.random.Generator,
    ) -> None: ...


@dataclass(frozen=True)
class LayeredNoiseStage:
    """Adds layered noise from one of the noise config sections."""

    name: str
    seed_offset: int

    def _section(self, config: TerrainConfig) -> NoiseLayerConfig:
        return getattr(config, self.name)

    def is_enabled(self, config: TerrainConfig) -> bool:
        return self._section(config).enabled

    def apply(
        self,
        grid: NDArray[np.float64],
        config: TerrainConfig,
        rng: np.random.Generator,
    ) -> None:
        apply_layered_noise(grid, self._section(config), section=self.name)


@dataclass(frozen=True)
class DisplacementStage:
    name: str = "displacement"
    seed_offset: int = 200

    def is_enabled(self, config: TerrainConfig) -> bool:
        return config.displacement.enabled

    def apply(
        self,
        grid: NDArray[np.float64],
        config: TerrainConfig,
        rng: np.random.Generator,
    ) -> None:
        apply_midpoint_displacement(grid, config.displacement, rng)


@dataclass(frozen=True)
class VoronoiStage:
    name: str = "voronoi"
    seed_offset: int = 300

    def is_enabled(self, config: TerrainConfig) -> bool:
        return config.voronoi.enabled

    def apply(
        self,
        grid: NDArray[np.float64],
        config: TerrainConfig,
        rng: np.random.Generator,
    ) -> None:
        apply_voronoi_biomes(grid, config.voronoi, rng)


@dataclass(frozen=True)
class ErosionStage:
    name: str = "erosion"
    seed_offset: int = 400

    def is_enabled(self, config: TerrainConfig) -> bool:
        return config.erosion.enabled

    def apply(
        self,
        grid: NDArray[np.float64],
        config: TerrainConfig,
        rng: np.random.Generator,
    ) -> None:
        apply_thermal_erosion(grid, config.erosion)


@dataclass(frozen=True)
class RiverStage:
    name: str = "river"
    seed_offset: int = 500

    def is_enabled(self, config: TerrainConfig) -> bool:
        return config.river.enabled

    def apply(
        self,
        grid: NDArray[np.float64],
        config: TerrainConfig,
        rng: np.random.Generator,
    ) -> None:
        carve_river(grid, config.river)


@dataclass(frozen=True)
class LakeStage:
    name: str = "lake"
    seed_offset: int = 600

    def is_enabled(self, config: TerrainConfig) -> bool:
        return config.lake.enabled

    def apply(
        self,
        grid: NDArray[np.float64],
        config: TerrainConfig,
        rng: np.random.Generator,
    ) -> None:
        carve_lake(grid, config.lake)


@dataclass(frozen=True)
class TrailStage:
    name: str = "trail"
    seed_offset: int = 700

    def is_enabled(self, config: TerrainConfig) -> bool:
        return config.trail.enabled

    def apply(
        self,
        grid: NDArray[np.float64],
        config: TerrainConfig,
        rng: np.random.Generator,
    ) -> None:
        carve_trail(grid, config.trail, rng)


# Order matters: carvers run after shape generation so their cuts survive
STAGES: tuple[Stage, ...] = (
    LayeredNoiseStage(name="noise", seed_offset=0),
    LayeredNoiseStage(name="fractal_noise", seed_offset=100),
    DisplacementStage(),
    VoronoiStage(),
    ErosionStage(),
    RiverStage(),
    LakeStage(),
    TrailStage(),
)


def enabled_stages(config: TerrainConfig) -> list[Stage]:
    """Enabled stages in execution order."""
    return [stage for stage in STAGES if stage.is_enabled(config)]


def stage_rng(config: TerrainConfig, stage: Stage) -> np.random.Generator:
    """Random source for a stage, independent of which other stages run."""
    return np.random.default_rng(config.seed + stage.seed_offset)
