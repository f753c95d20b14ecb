"""
Pydantic Models for HexStorm Game State
Value types shared by the engine and the wire snapshots sent to clients.
"""

from __future__ import annotations

from enum import Enum
from typing import Dict, Optional

from pydantic import BaseModel, ConfigDict, Field


class PlayerSlot(str, Enum):
    """Fixed player identities a connection can be bound to"""
    PLAYER1 = "player1"
    PLAYER2 = "player2"

    @property
    def opponent(self) -> "PlayerSlot":
        if self is PlayerSlot.PLAYER1:
            return PlayerSlot.PLAYER2
        return PlayerSlot.PLAYER1


class SessionPhase(str, Enum):
    """Session state machine phases"""
    NOT_STARTED = "not_started"
    IN_PROGRESS = "in_progress"
    WON = "won"


class HexCoord(BaseModel):
    """Axial hex coordinate (q, r)"""
    model_config = ConfigDict(frozen=True)

    q: int
    r: int

    def to_key(self) -> str:
        """Convert coordinate to the "q,r" key used on the wire"""
        return f"{self.q},{self.r}"

    @classmethod
    def from_key(cls, key: str) -> "HexCoord":
        q, r = key.split(",")
        return cls(q=int(q), r=int(r))

    def offset(self, dq: int, dr: int) -> "HexCoord":
        return HexCoord(q=self.q + dq, r=self.r + dr)


class HexSnapshot(BaseModel):
    """One board cell as seen by clients"""
    q: int
    r: int
    color: str
    owner: Optional[PlayerSlot] = None


class PlayerSnapshot(BaseModel):
    """Player record as seen by clients (connection ids are not exposed)"""
    model_config = ConfigDict(populate_by_name=True)

    score: int
    start_hex: str = Field(alias="startHex")
    color: Optional[str] = None


class GameStateSnapshot(BaseModel):
    """Complete game state pushed to every connection after a mutation"""
    model_config = ConfigDict(populate_by_name=True)

    board: Dict[str, HexSnapshot] = Field(default_factory=dict)
    players: Dict[PlayerSlot, PlayerSnapshot] = Field(default_factory=dict)
    turn: Optional[PlayerSlot] = None
    game_started: bool = Field(False, alias="gameStarted")
    winner: Optional[PlayerSlot] = None
