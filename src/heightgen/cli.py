"""Command-line interface for terrain generation."""

import argparse
import logging
import sys
import time
import tomllib
from pathlib import Path

import structlog


def configure_logging(verbose: bool = False) -> None:
    """Configure structlog console output."""
    level = logging.DEBUG if verbose else logging.INFO
    structlog.configure(
        processors=[
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.dev.ConsoleRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Generate a procedural terrain height field"
    )
    parser.add_argument(
        "--config",
        "-c",
        type=str,
        default=None,
        help="Path to a TOML generation config (default: built-in defaults)",
    )
    parser.add_argument("--width", type=int, default=None, help="Override grid width")
    parser.add_argument("--length", type=int, default=None, help="Override grid length")
    parser.add_argument("--seed", type=int, default=None, help="Override random seed")
    parser.add_argument(
        "--output",
        "-o",
        type=str,
        default="terrain.npz",
        help="Output path (default: terrain.npz)",
    )
    parser.add_argument(
        "--verbose", "-v", action="store_true", help="Verbose logging"
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    """CLI entry point for terrain generation."""
    args = build_parser().parse_args(argv)
    configure_logging(args.verbose)
    logger = structlog.get_logger()

    # Import here to avoid slow startup for --help
    from .config import TerrainConfig, config_from_dict, load_config
    from .exceptions import TerrainError
    from .generator import generate_terrain
    from .persistence import save_result

    try:
        config = load_config(Path(args.config)) if args.config else TerrainConfig()
        overrides = {
            key: value
            for key, value in (
                ("width", args.width),
                ("length", args.length),
                ("seed", args.seed),
            )
            if value is not None
        }
        if overrides:
            config = config_from_dict({**config.model_dump(), **overrides})
    except FileNotFoundError:
        logger.error("config_not_found", path=args.config)
        return 1
    except tomllib.TOMLDecodeError as exc:
        logger.error("config_invalid", path=args.config, error=str(exc))
        return 1
    except TerrainError as exc:
        logger.error("config_invalid", error=str(exc))
        return 1

    output_path = Path(args.output)
    print(f"Generating {config.width}x{config.length} terrain with seed {config.seed}")
    print(f"Output: {output_path}")
    print()

    start_time = time.time()
    try:
        result = generate_terrain(config)
    except TerrainError as exc:
        logger.error("generation_failed", error=str(exc))
        return 1
    gen_time = time.time() - start_time

    print()
    print(f"Generation complete in {gen_time:.1f}s")
    print(f"Stages: {', '.join(result.stages_run) or 'none'}")

    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path = save_result(output_path, result)

    print(f"Saved to {output_path}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
