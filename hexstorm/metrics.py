"""Prometheus metrics for the HexStorm server.

This module centralises counters and histograms so that the connection
manager and session can record lightweight telemetry without each handler
having to manage its own metric instances. They are exposed on ``/metrics``.
"""

from __future__ import annotations

from typing import Final

from prometheus_client import Counter, Gauge, Histogram


ACTIVE_CONNECTIONS: Final[Gauge] = Gauge(
    "hexstorm_active_connections",
    "Currently attached connections, labeled by role (player or spectator).",
    labelnames=("role",),
)

MOVES_TOTAL: Final[Counter] = Counter(
    "hexstorm_moves_total",
    "Total playerMove commands, labeled by outcome and rejection reason.",
    labelnames=("outcome", "reason"),
)

HEXES_CAPTURED: Final[Histogram] = Histogram(
    "hexstorm_hexes_captured",
    "Number of hexes newly captured by a single applied move.",
    buckets=(0, 1, 2, 4, 8, 16, 32),
)

GAMES_WON: Final[Counter] = Counter(
    "hexstorm_games_won_total",
    "Total games won, labeled by winning slot.",
    labelnames=("winner",),
)

SESSION_RESETS: Final[Counter] = Counter(
    "hexstorm_session_resets_total",
    "Total board regenerations, labeled by reason.",
    labelnames=("reason",),
)

STALE_RESET_TIMERS: Final[Counter] = Counter(
    "hexstorm_stale_reset_timers_total",
    "Post-win reset timers that fired after a newer reset had already happened.",
)

PROTOCOL_ERRORS: Final[Counter] = Counter(
    "hexstorm_protocol_errors_total",
    "Malformed client frames dropped by the server.",
)


def record_move_applied(captured: int) -> None:
    MOVES_TOTAL.labels("applied", "").inc()
    HEXES_CAPTURED.observe(captured)


def record_move_rejected(reason: str) -> None:
    MOVES_TOTAL.labels("rejected", reason).inc()
