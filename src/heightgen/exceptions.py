"""Custom exceptions for terrain generation."""


class TerrainError(Exception):
    """Base exception for terrain generation errors."""

    pass


class ConfigurationError(TerrainError):
    """Raised when a configuration value is invalid.

    Attributes:
        field: Dotted path of the offending field, e.g. "noise.base_scale".
    """

    def __init__(self, field: str, message: str):
        super().__init__(f"{field}: {message}")
        self.field = field
        self.message = message


class GridError(TerrainError):
    """Raised when a height grid is empty or has the wrong shape."""

    pass


class GenerationError(TerrainError):
    """Raised when a stage leaves the grid in an invalid state."""

    pass


class GenerationSupersededError(TerrainError):
    """Raised when a generation request was replaced by a newer one."""

    def __init__(self, request_id: int, latest_id: int):
        super().__init__(
            f"Generation request {request_id} superseded by request {latest_id}"
        )
        self.request_id = request_id
        self.latest_id = latest_id
