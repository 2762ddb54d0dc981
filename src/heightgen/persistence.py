"""Result persistence: save and load generated height grids."""

import json
from datetime import datetime, timezone
from pathlib import Path

import numpy as np
import structlog

from .classification import LayerMap
from .config import TerrainConfig, config_from_dict
from .generator import GenerationResult

logger = structlog.get_logger()

FORMAT_VERSION = 1


def save_result(path: Path, result: GenerationResult) -> Path:
    """Save a generation result to disk.

    Uses numpy's compressed .npz format for efficient storage.

    Args:
        path: Output path (should end with .npz).
        result: Result to save.

    Returns:
        The path actually written; numpy appends ``.npz`` when missing.
    """
    if path.suffix != ".npz":
        path = Path(f"{path}.npz")

    metadata = {
        "version": FORMAT_VERSION,
        "seed": result.config.seed,
        "width": result.width,
        "length": result.length,
        "stages_run": list(result.stages_run),
        "layers": list(result.layers.layers),
        "generated_at": datetime.now(timezone.utc).isoformat(),
    }

    np.savez_compressed(
        path,
        heights=result.heights,
        layers=result.layers.indices,
        config=result.config.model_dump_json().encode("utf-8"),
        metadata=json.dumps(metadata).encode("utf-8"),
    )

    file_size = path.stat().st_size / 1024
    logger.info("result_saved", path=str(path), size_kb=round(file_size, 1))
    return path


def load_result(path: Path) -> GenerationResult:
    """Load a generation result from disk.

    Args:
        path: Path to .npz file.

    Returns:
        GenerationResult with heights, layers and the generating config.

    Raises:
        FileNotFoundError: If file doesn't exist.
        ValueError: If file format is invalid.
    """
    if not path.exists():
        raise FileNotFoundError(f"Result file not found: {path}")

    with np.load(path) as data:
        for key in ("heights", "layers", "config", "metadata"):
            if key not in data:
                raise ValueError(f"Invalid result file: missing '{key}'")
        heights = data["heights"]
        indices = data["layers"]
        config_json = data["config"].tobytes().decode("utf-8")
        metadata = json.loads(data["metadata"].tobytes().decode("utf-8"))

    if metadata.get("version") != FORMAT_VERSION:
        raise ValueError(f"Unsupported result file version: {metadata.get('version')}")

    config: TerrainConfig = config_from_dict(json.loads(config_json))
    result = GenerationResult(
        heights=heights,
        layers=LayerMap(indices, tuple(metadata["layers"])),
        config=config,
        stages_run=tuple(metadata["stages_run"]),
        duration_ms=0.0,
    )

    logger.info("result_loaded", path=str(path), width=result.width, length=result.length)
    return result
