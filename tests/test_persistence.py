"""Tests for saving and loading generation results."""

import json
from pathlib import Path

import numpy as np
import pytest

from heightgen.config import NoiseLayerConfig, TerrainConfig, TextureMapping
from heightgen.generator import GenerationResult, generate_terrain
from heightgen.persistence import load_result, save_result


@pytest.fixture
def result() -> GenerationResult:
    config = TerrainConfig(
        width=24,
        length=16,
        seed=11,
        noise=NoiseLayerConfig(enabled=True, layers=2),
        texture_mappings=(
            TextureMapping(layer="low", min_height=0.0, max_height=0.5),
            TextureMapping(layer="high", min_height=0.5, max_height=1.01),
        ),
    )
    return generate_terrain(config)


class TestSaveLoad:
    """Tests for the .npz result format."""

    def test_save_and_load(self, tmp_path: Path, result: GenerationResult) -> None:
        path = save_result(tmp_path / "terrain.npz", result)
        loaded = load_result(path)

        np.testing.assert_array_equal(loaded.heights, result.heights)
        np.testing.assert_array_equal(loaded.layers.indices, result.layers.indices)
        assert loaded.layers.layers == ("low", "high")
        assert loaded.config == result.config
        assert loaded.stages_run == ("noise",)

    def test_suffix_added(self, tmp_path: Path, result: GenerationResult) -> None:
        path = save_result(tmp_path / "terrain", result)
        assert path.name == "terrain.npz"
        assert path.exists()

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError):
            load_result(tmp_path / "missing.npz")

    def test_missing_key(self, tmp_path: Path) -> None:
        path = tmp_path / "partial.npz"
        np.savez_compressed(path, heights=np.zeros((4, 4)))
        with pytest.raises(ValueError, match="layers"):
            load_result(path)

    def test_unsupported_version(self, tmp_path: Path, result: GenerationResult) -> None:
        path = tmp_path / "old.npz"
        np.savez_compressed(
            path,
            heights=result.heights,
            layers=result.layers.indices,
            config=result.config.model_dump_json().encode("utf-8"),
            metadata=json.dumps({"version": 0, "layers": [], "stages_run": []}).encode("utf-8"),
        )
        with pytest.raises(ValueError, match="version"):
            load_result(path)
