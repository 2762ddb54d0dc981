"""Shared test fixtures for terrain generation tests."""

from pathlib import Path

import numpy as np
import pytest

from heightgen.config import TerrainConfig

CONFIGS_DIR = Path(__file__).parent.parent / "configs"


@pytest.fixture
def small_config() -> TerrainConfig:
    """32x32 config with every stage disabled."""
    return TerrainConfig(width=32, length=32, seed=7)


@pytest.fixture
def flat_grid() -> np.ndarray:
    """40x30 grid (width x length) at height 0.5."""
    return np.full((30, 40), 0.5, dtype=np.float64)


@pytest.fixture
def sloped_grid() -> np.ndarray:
    """32x32 grid rising steeply from left to right."""
    grid = np.zeros((32, 32), dtype=np.float64)
    grid[:, :] = np.linspace(0.0, 1.0, 32)[np.newaxis, :]
    return grid


@pytest.fixture
def rng() -> np.random.Generator:
    return np.random.default_rng(1234)


@pytest.fixture
def example_config_path() -> Path:
    return CONFIGS_DIR / "example.toml"
