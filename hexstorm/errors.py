"""
HexStorm Error Hierarchy

Unified exception hierarchy for consistent error handling across the server.
All custom exceptions inherit from HexStormError for easy catching and filtering.

None of these errors are fatal to the process. Move validation errors are
raised by the engine and caught at the connection boundary, where the move is
dropped without touching the game state.

Usage:
    from hexstorm.errors import InvalidMoveError

    try:
        session.play_move(slot, color)
    except InvalidMoveError as e:
        logger.info("Rejected move: %s (reason=%s)", e.message, e.reason)
"""

from typing import Any

__all__ = [
    # Base error
    "HexStormError",
    # Move validation errors
    "InvalidMoveError",
    "UnknownSenderError",
    "GameNotStartedError",
    "NotYourTurnError",
    "IllegalColorError",
    # Engine errors
    "InvalidStateError",
    # Boundary errors
    "ProtocolError",
    "ConfigurationError",
]


class HexStormError(Exception):
    """Base exception for all HexStorm errors.

    Attributes:
        code: Machine-readable error code for categorization
        message: Human-readable error description
        context: Additional context for debugging
    """
    code: str = "HEXSTORM_ERROR"

    def __init__(
        self,
        message: str,
        code: str | None = None,
        context: dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.message = message
        if code:
            self.code = code
        self.context = context or {}

    def __str__(self) -> str:
        if self.context:
            ctx = ", ".join(f"{k}={v}" for k, v in self.context.items())
            return f"[{self.code}] {self.message} ({ctx})"
        return f"[{self.code}] {self.message}"

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "code": self.code,
            "message": self.message,
            "context": self.context,
        }


# =============================================================================
# Move Validation Errors
# =============================================================================


class InvalidMoveError(HexStormError):
    """Move that cannot be applied to the current session.

    Raised when a ``playerMove`` arrives from a sender that may not move
    right now, or names a colour the acting player cannot pick.

    Attributes:
        reason: Short label used for metrics and logs (e.g. "not_your_turn")
    """
    code: str = "INVALID_MOVE"
    reason: str = "invalid_move"

    def __init__(
        self,
        message: str,
        reason: str | None = None,
        context: dict[str, Any] | None = None,
    ):
        super().__init__(message, context=context)
        if reason:
            self.reason = reason


class UnknownSenderError(InvalidMoveError):
    """Move received from a spectator or an unknown connection."""
    reason: str = "unknown_sender"


class GameNotStartedError(InvalidMoveError):
    """Move received while no game is in progress."""
    reason: str = "not_started"


class NotYourTurnError(InvalidMoveError):
    """Move received from the slot that is not on turn."""
    reason: str = "not_your_turn"


class IllegalColorError(InvalidMoveError):
    """Target colour is outside the palette or held by a player.

    Attributes:
        color: The rejected target colour
    """
    reason: str = "illegal_color"

    def __init__(
        self,
        message: str,
        color: Any = None,
        context: dict[str, Any] | None = None,
    ):
        super().__init__(message, context=context)
        self.color = color
        if color is not None:
            self.context["color"] = color


# =============================================================================
# Engine Errors
# =============================================================================


class InvalidStateError(HexStormError):
    """Corrupted or unexpected game state.

    Raised when the session is driven into a transition that should not be
    possible through the connection manager (e.g. a move played out of turn).
    """
    code: str = "INVALID_STATE"


# =============================================================================
# Boundary Errors
# =============================================================================


class ProtocolError(HexStormError):
    """Malformed client frame (bad JSON, unknown event, bad payload)."""
    code: str = "PROTOCOL_ERROR"

    def __init__(
        self,
        message: str,
        event: str | None = None,
        context: dict[str, Any] | None = None,
    ):
        super().__init__(message, context=context)
        self.event = event
        if event:
            self.context["event"] = event


class ConfigurationError(HexStormError):
    """Invalid configuration."""
    code: str = "CONFIGURATION_ERROR"
