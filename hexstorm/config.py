"""Runtime configuration for the HexStorm server.

Settings come from environment variables so that local runs, containers and
tests share the same configuration surface:

    HEXSTORM_BOARD_RADIUS            Board radius R (default: 4)
    HEXSTORM_PALETTE                 Comma-separated colour palette
    HEXSTORM_RESET_DELAY_SEC         Delay between a win and the new board (default: 5)
    HEXSTORM_RNG_SEED                Optional seed for reproducible boards
    HEXSTORM_REPORT_REJECTED_MOVES   Send gameError to senders of rejected moves
    HEXSTORM_HOST / HEXSTORM_PORT    Listening address (PORT is honoured too)
    HEXSTORM_STATIC_DIR              Directory served as static assets
    HEXSTORM_LOG_LEVEL               Logging level (default: INFO)
    CORS_ORIGINS                     Comma-separated allowed origins (default: *)
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from typing import Optional, Tuple

from .errors import ConfigurationError

logger = logging.getLogger(__name__)

DEFAULT_BOARD_RADIUS = 4
DEFAULT_PALETTE: Tuple[str, ...] = (
    "#FF5733",
    "#33FF57",
    "#3357FF",
    "#FF33A1",
    "#FFD700",
    "#8A2BE2",
)
DEFAULT_RESET_DELAY_SEC = 5.0
DEFAULT_PORT = 3000

_TRUTHY = {"1", "true", "yes", "on"}


def _env_flag(name: str, default: bool = False) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in _TRUTHY


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        logger.warning("Ignoring non-integer %s=%r; using %d", name, raw, default)
        return default


def _env_seed(name: str) -> Optional[int]:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return None
    try:
        return int(raw)
    except ValueError:
        logger.warning("Ignoring non-integer %s=%r; boards will be random", name, raw)
        return None


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError:
        logger.warning("Ignoring non-numeric %s=%r; using %s", name, raw, default)
        return default


def _env_list(name: str, default: Tuple[str, ...]) -> Tuple[str, ...]:
    raw = os.getenv(name)
    if raw is None:
        return default
    items = tuple(item.strip() for item in raw.split(",") if item.strip())
    return items or default


@dataclass(frozen=True)
class SessionConfig:
    """Game rules knobs for one session."""

    board_radius: int = DEFAULT_BOARD_RADIUS
    palette: Tuple[str, ...] = DEFAULT_PALETTE
    reset_delay_sec: float = DEFAULT_RESET_DELAY_SEC
    rng_seed: Optional[int] = None
    report_rejected_moves: bool = False

    @classmethod
    def from_env(cls) -> "SessionConfig":
        return cls(
            board_radius=_env_int("HEXSTORM_BOARD_RADIUS", DEFAULT_BOARD_RADIUS),
            palette=_env_list("HEXSTORM_PALETTE", DEFAULT_PALETTE),
            reset_delay_sec=_env_float(
                "HEXSTORM_RESET_DELAY_SEC", DEFAULT_RESET_DELAY_SEC
            ),
            rng_seed=_env_seed("HEXSTORM_RNG_SEED"),
            report_rejected_moves=_env_flag("HEXSTORM_REPORT_REJECTED_MOVES"),
        )

    def validate(self) -> "SessionConfig":
        """Return self, or raise ConfigurationError if the rules are unplayable."""
        if self.board_radius < 1:
            raise ConfigurationError(
                "Board radius must be at least 1",
                context={"board_radius": self.board_radius},
            )
        if self.reset_delay_sec < 0:
            raise ConfigurationError(
                "Reset delay cannot be negative",
                context={"reset_delay_sec": self.reset_delay_sec},
            )
        # Two seed colours plus at least one colour for every other hex.
        if len(set(self.palette)) < 3:
            raise ConfigurationError(
                "Palette needs at least three distinct colours",
                context={"palette": ",".join(self.palette)},
            )
        if len(set(self.palette)) != len(self.palette):
            raise ConfigurationError(
                "Palette contains duplicate colours",
                context={"palette": ",".join(self.palette)},
            )
        return self


@dataclass(frozen=True)
class ServerConfig:
    """Process-level settings: where to listen and what to serve."""

    host: str = "0.0.0.0"
    port: int = DEFAULT_PORT
    static_dir: str = "public"
    cors_origins: Tuple[str, ...] = ("*",)
    log_level: str = "INFO"
    session: SessionConfig = field(default_factory=SessionConfig)

    @classmethod
    def from_env(cls) -> "ServerConfig":
        port = _env_int("PORT", DEFAULT_PORT)
        port = _env_int("HEXSTORM_PORT", port)
        return cls(
            host=os.getenv("HEXSTORM_HOST", "0.0.0.0"),
            port=port,
            static_dir=os.getenv("HEXSTORM_STATIC_DIR", "public"),
            cors_origins=_env_list("CORS_ORIGINS", ("*",)),
            log_level=os.getenv("HEXSTORM_LOG_LEVEL", "INFO").upper(),
            session=SessionConfig.from_env(),
        )
