"""Mutable game state owned by the session.

There is exactly one ``GameState`` per running session. It is reset in place
(fields reassigned, object identity kept) so that any handler holding a
reference always reads the current game.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterator, Optional

from .models import (
    GameStateSnapshot,
    HexCoord,
    HexSnapshot,
    PlayerSlot,
    PlayerSnapshot,
    SessionPhase,
)

__all__ = ["Hex", "Player", "GameState"]


@dataclass
class Hex:
    coord: HexCoord
    color: str
    owner: Optional[PlayerSlot] = None


@dataclass
class Player:
    slot: PlayerSlot
    start_hex: HexCoord
    color: Optional[str] = None
    score: int = 0
    connection_id: Optional[str] = None

    @property
    def is_attached(self) -> bool:
        return self.connection_id is not None


@dataclass
class GameState:
    """Root aggregate: board, both players and the turn bookkeeping."""

    board: Dict[HexCoord, Hex] = field(default_factory=dict)
    players: Dict[PlayerSlot, Player] = field(default_factory=dict)
    turn: Optional[PlayerSlot] = None
    game_started: bool = False
    winner: Optional[PlayerSlot] = None

    @property
    def phase(self) -> SessionPhase:
        if self.winner is not None:
            return SessionPhase.WON
        if self.game_started:
            return SessionPhase.IN_PROGRESS
        return SessionPhase.NOT_STARTED

    @property
    def total_hexes(self) -> int:
        return len(self.board)

    def player(self, slot: PlayerSlot) -> Player:
        return self.players[slot]

    def opponent(self, slot: PlayerSlot) -> Player:
        return self.players[slot.opponent]

    def owned_by(self, slot: PlayerSlot) -> Iterator[Hex]:
        return (cell for cell in self.board.values() if cell.owner == slot)

    def slot_for_connection(self, connection_id: str) -> Optional[PlayerSlot]:
        for slot, player in self.players.items():
            if player.connection_id == connection_id:
                return slot
        return None

    def both_attached(self) -> bool:
        return len(self.players) == len(PlayerSlot) and all(
            player.is_attached for player in self.players.values()
        )

    def to_snapshot(self) -> GameStateSnapshot:
        """Build an immutable wire snapshot of the current state."""
        return GameStateSnapshot(
            board={
                coord.to_key(): HexSnapshot(
                    q=coord.q, r=coord.r, color=cell.color, owner=cell.owner
                )
                for coord, cell in self.board.items()
            },
            players={
                slot: PlayerSnapshot(
                    score=player.score,
                    startHex=player.start_hex.to_key(),
                    color=player.color,
                )
                for slot, player in self.players.items()
            },
            turn=self.turn,
            gameStarted=self.game_started,
            winner=self.winner,
        )
