"""Command-line entrypoint for the HexStorm server.

Usage:
    hexstorm
    hexstorm --port 8080 --host 127.0.0.1 --radius 5 --seed 42
    python -m hexstorm --static-dir ./public

Flags override the HEXSTORM_* environment variables read by ServerConfig.
"""

from __future__ import annotations

import argparse
import dataclasses
import logging
from typing import List, Optional

from .config import ServerConfig

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="HexStorm Game Server")
    parser.add_argument("--host", help="Host to bind to")
    parser.add_argument("--port", type=int, help="Port to listen on")
    parser.add_argument("--static-dir", help="Directory of client assets to serve")
    parser.add_argument("--radius", type=int, help="Board radius")
    parser.add_argument("--seed", type=int, help="RNG seed for reproducible boards")
    parser.add_argument("--reset-delay", type=float, help="Seconds between a win and the next board")
    parser.add_argument("--log-level", help="Logging level (DEBUG, INFO, ...)")
    parser.add_argument(
        "--report-rejected-moves",
        action="store_true",
        default=None,
        help="Send a gameError to players whose move is rejected",
    )
    return parser


def resolve_config(argv: Optional[List[str]] = None) -> ServerConfig:
    """Merge command-line overrides on top of the environment configuration."""
    args = build_parser().parse_args(argv)
    config = ServerConfig.from_env()

    session_overrides = {}
    if args.radius is not None:
        session_overrides["board_radius"] = args.radius
    if args.seed is not None:
        session_overrides["rng_seed"] = args.seed
    if args.reset_delay is not None:
        session_overrides["reset_delay_sec"] = args.reset_delay
    if args.report_rejected_moves is not None:
        session_overrides["report_rejected_moves"] = args.report_rejected_moves
    session = dataclasses.replace(config.session, **session_overrides).validate()

    server_overrides = {"session": session}
    if args.host is not None:
        server_overrides["host"] = args.host
    if args.port is not None:
        server_overrides["port"] = args.port
    if args.static_dir is not None:
        server_overrides["static_dir"] = args.static_dir
    if args.log_level is not None:
        server_overrides["log_level"] = args.log_level.upper()
    return dataclasses.replace(config, **server_overrides)


def main(argv: Optional[List[str]] = None) -> None:
    import uvicorn

    from .main import create_app

    config = resolve_config(argv)
    logging.getLogger().setLevel(config.log_level)
    logger.info("Server listening on %s:%d", config.host, config.port)
    uvicorn.run(
        create_app(config),
        host=config.host,
        port=config.port,
        log_level=config.log_level.lower(),
    )


if __name__ == "__main__":
    main()
