"""Main terrain generation orchestration."""

import threading
import time
from collections.abc import Callable
from enum import Enum

import numpy as np
import structlog
from numpy.typing import NDArray

from .classification import LayerMap, classify_heights, effective_mappings
from .config import TerrainConfig, validate_config
from .exceptions import GenerationError, GenerationSupersededError, TerrainError
from .grid import allocate_grid, check_grid_dtype, check_grid_shape
from .stages import enabled_stages, stage_rng

logger = structlog.get_logger()


class GeneratorState(str, Enum):
    """Lifecycle of a generation request."""

    IDLE = "idle"
    CONFIGURING = "configuring"
    GENERATING = "generating"
    CLASSIFYING = "classifying"
    DONE = "done"
    FAILED = "failed"


# Called on every phase change; may raise to abort the run
ProgressCallback = Callable[[GeneratorState, str | None], None]


class GenerationResult:
    """Finished height grid with its layer classification."""

    def __init__(
        self,
        heights: NDArray[np.float64],
        layers: LayerMap,
        config: TerrainConfig,
        stages_run: tuple[str, ...],
        duration_ms: float,
    ):
        self.heights = heights
        self.layers = layers
        self.config = config
        self.stages_run = stages_run
        self.duration_ms = duration_ms

    @property
    def width(self) -> int:
        return self.heights.shape[1]

    @property
    def length(self) -> int:
        return self.heights.shape[0]


def generate_terrain(
    config: TerrainConfig,
    grid: NDArray[np.float64] | None = None,
    on_progress: ProgressCallback | None = None,
) -> GenerationResult:
    """Generate a height grid and its layer classification.

    Enabled stages run in the fixed order of ``stages.STAGES`` over one
    grid. A configuration with nothing enabled yields an all-zero grid.

    Args:
        config: Terrain generation configuration. A validated snapshot is
            taken before anything runs.
        grid: Optional pre-filled float64 grid of shape
            (length, width). It is only written once the run succeeds.
        on_progress: Optional callback invoked on each phase and stage.

    Returns:
        GenerationResult with heights and layers.

    Raises:
        ConfigurationError: If the configuration is invalid.
        GridError: If the supplied grid has the wrong shape or dtype.
        GenerationError: If a stage produces an invalid grid.
    """
    progress = on_progress or _no_progress
    start_time = time.perf_counter()

    progress(GeneratorState.CONFIGURING, None)
    snapshot = validate_config(config)
    width, length = snapshot.width, snapshot.length

    if grid is None:
        working = allocate_grid(width, length)
    else:
        check_grid_shape(grid, width, length)
        check_grid_dtype(grid)
        working = grid.copy()

    logger.info(
        "terrain_generation_started",
        width=width,
        length=length,
        seed=snapshot.seed,
    )

    stages_run = _run_stages(working, snapshot, progress)

    if snapshot.clamp_output:
        np.clip(working, 0.0, 1.0, out=working)

    progress(GeneratorState.CLASSIFYING, None)
    layers = classify_heights(working, effective_mappings(snapshot))

    if grid is not None:
        grid[:, :] = working
        working = grid

    duration_ms = (time.perf_counter() - start_time) * 1000.0
    _log_terrain_stats(working, layers, duration_ms)

    return GenerationResult(
        heights=working,
        layers=layers,
        config=snapshot,
        stages_run=stages_run,
        duration_ms=duration_ms,
    )


def _run_stages(
    grid: NDArray[np.float64],
    config: TerrainConfig,
    progress: ProgressCallback,
) -> tuple[str, ...]:
    """Run enabled stages in order, checking the grid after each."""
    expected_shape = grid.shape
    stages_run: list[str] = []

    stages = enabled_stages(config)
    if not stages:
        logger.info("no_stages_enabled")

    for stage in stages:
        progress(GeneratorState.GENERATING, stage.name)
        stage_start = time.perf_counter()

        stage.apply(grid, config, stage_rng(config, stage))

        if grid.shape != expected_shape:
            raise GenerationError(
                f"Stage '{stage.name}' resized the grid from {expected_shape} to {grid.shape}"
            )
        if not np.all(np.isfinite(grid)):
            raise GenerationError(f"Stage '{stage.name}' produced non-finite heights")

        stages_run.append(stage.name)
        logger.info(
            "stage_completed",
            stage=stage.name,
            duration_ms=round((time.perf_counter() - stage_start) * 1000.0, 1),
        )

    return tuple(stages_run)


def _no_progress(state: GeneratorState, stage: str | None) -> None:
    pass


def _log_terrain_stats(
    heights: NDArray[np.float64],
    layers: LayerMap,
    duration_ms: float,
) -> None:
    """Log height range and layer coverage."""
    logger.info(
        "terrain_generation_completed",
        duration_ms=round(duration_ms, 1),
        min_height=round(float(heights.min()), 4),
        max_height=round(float(heights.max()), 4),
        mean_height=round(float(heights.mean()), 4),
    )
    for name, fraction in layers.coverage().items():
        logger.debug(
            "layer_coverage",
            layer=name if name is not None else "unclassified",
            percent=round(fraction * 100, 1),
        )


class TerrainGenerator:
    """Runs generation requests where only the newest result counts.

    Every call to ``generate`` gets a new request id. A running request
    that sees a newer id at a phase boundary stops with
    GenerationSupersededError, as does one that finishes after being
    replaced. ``latest_result`` therefore only ever holds the result of
    the most recent completed request.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._latest_request = 0
        self._state = GeneratorState.IDLE
        self._result: GenerationResult | None = None
        self._last_error: TerrainError | None = None

    @property
    def state(self) -> GeneratorState:
        with self._lock:
            return self._state

    @property
    def latest_result(self) -> GenerationResult | None:
        with self._lock:
            return self._result

    @property
    def last_error(self) -> TerrainError | None:
        with self._lock:
            return self._last_error

    def generate(self, config: TerrainConfig) -> GenerationResult:
        """Run a generation request.

        Raises:
            GenerationSupersededError: If a newer request was made meanwhile.
            ConfigurationError: If the configuration is invalid.
            GenerationError: If a stage produced an invalid grid.
        """
        with self._lock:
            self._latest_request += 1
            request_id = self._latest_request

        log = logger.bind(request_id=request_id)

        def on_progress(state: GeneratorState, stage: str | None) -> None:
            self._transition(request_id, state)
            log.debug("generation_phase", state=state.value, stage=stage)

        try:
            result = generate_terrain(config, on_progress=on_progress)
        except GenerationSupersededError:
            log.info("generation_superseded")
            raise
        except TerrainError as exc:
            with self._lock:
                if request_id == self._latest_request:
                    self._state = GeneratorState.FAILED
                    self._last_error = exc
            log.error("generation_failed", error=str(exc))
            raise

        with self._lock:
            if request_id != self._latest_request:
                log.info("generation_discarded", latest_request=self._latest_request)
                raise GenerationSupersededError(request_id, self._latest_request)
            self._result = result
            self._last_error = None
            self._state = GeneratorState.DONE

        return result

    def _transition(self, request_id: int, state: GeneratorState) -> None:
        """Move to state, or abort if the request is stale."""
        with self._lock:
            if request_id != self._latest_request:
                raise GenerationSupersededError(request_id, self._latest_request)
            self._state = state
