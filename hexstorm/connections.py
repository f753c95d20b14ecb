"""Connection manager: binds transport connections to player slots.

The first two connections take ``player1`` and ``player2``; anyone after that
is a spectator who receives every snapshot but can never move. Every handler
here is synchronous and runs to completion against the session's single
GameState.
"""

from __future__ import annotations

import logging
from typing import Optional, Set, Union

from .errors import (
    GameNotStartedError,
    InvalidMoveError,
    NotYourTurnError,
    ProtocolError,
    UnknownSenderError,
)
from .gateway import BroadcastGateway, MessageSink
from .metrics import (
    ACTIVE_CONNECTIONS,
    PROTOCOL_ERRORS,
    record_move_applied,
    record_move_rejected,
)
from .models import PlayerSlot, SessionPhase
from .protocol import (
    AssignPlayerMessage,
    GameErrorMessage,
    GameErrorPayload,
    PlayerMoveMessage,
    SpectatorMessage,
    decode_client_message,
)
from .session import GameSession, MoveOutcome

__all__ = ["ConnectionManager", "OPPONENT_DISCONNECTED_MESSAGE"]

logger = logging.getLogger(__name__)

OPPONENT_DISCONNECTED_MESSAGE = "Opponent disconnected. Resetting game."


class ConnectionManager:
    """Routes connect / move / disconnect events into the session."""

    def __init__(
        self,
        session: GameSession,
        gateway: BroadcastGateway,
        report_rejected_moves: bool = False,
    ) -> None:
        self.session = session
        self.gateway = gateway
        self.report_rejected_moves = report_rejected_moves
        self._spectators: Set[str] = set()

    @property
    def spectator_count(self) -> int:
        return len(self._spectators)

    def slot_of(self, connection_id: str) -> Optional[PlayerSlot]:
        return self.session.state.slot_for_connection(connection_id)

    def connect(self, connection_id: str, sink: MessageSink) -> Optional[PlayerSlot]:
        """Attach a new connection and return its slot (None for spectators)."""
        state = self.session.state
        self.gateway.attach(connection_id, sink)
        logger.info("A user connected: %s", connection_id)

        assigned: Optional[PlayerSlot] = None
        for slot in PlayerSlot:
            if not state.player(slot).is_attached:
                assigned = slot
                break

        if assigned is not None:
            state.player(assigned).connection_id = connection_id
            ACTIVE_CONNECTIONS.labels("player").inc()
            logger.info("Assigned %s to %s", connection_id, assigned.value)
            self.gateway.send(connection_id, AssignPlayerMessage(data=assigned))
        else:
            self._spectators.add(connection_id)
            ACTIVE_CONNECTIONS.labels("spectator").inc()
            logger.info("Spectator connected: %s", connection_id)
            self.gateway.send(connection_id, SpectatorMessage())

        self.gateway.send_state(connection_id, state)
        self.session.try_start()
        return assigned

    def handle_message(self, connection_id: str, raw: Union[str, bytes]) -> None:
        """Decode one client frame and dispatch it; malformed frames are dropped."""
        try:
            message = decode_client_message(raw)
        except ProtocolError as exc:
            PROTOCOL_ERRORS.inc()
            logger.warning("Dropping frame from %s: %s", connection_id, exc)
            return
        if isinstance(message, PlayerMoveMessage):
            self.handle_move(connection_id, message.data.color)

    def handle_move(self, connection_id: str, color: str) -> Optional[MoveOutcome]:
        """Validate and apply a move, then broadcast. Invalid moves change nothing."""
        try:
            slot = self._authorize_move(connection_id)
            logger.info("Move received from %s (%s): %s", slot.value, connection_id, color)
            outcome = self.session.play_move(slot, color)
        except InvalidMoveError as exc:
            record_move_rejected(exc.reason)
            logger.info("Rejected move from %s: %s", connection_id, exc)
            if self.report_rejected_moves:
                self.gateway.send(
                    connection_id,
                    GameErrorMessage(data=GameErrorPayload(message=exc.message)),
                )
            return None

        record_move_applied(outcome.captured)
        self.gateway.broadcast_state(self.session.state)
        return outcome

    def disconnect(self, connection_id: str) -> None:
        """Detach a connection; a player leaving mid-game forces a reset."""
        self.gateway.detach(connection_id)
        logger.info("User disconnected: %s", connection_id)

        if connection_id in self._spectators:
            self._spectators.discard(connection_id)
            ACTIVE_CONNECTIONS.labels("spectator").dec()
            logger.info("Spectator disconnected.")
            return

        slot = self.slot_of(connection_id)
        if slot is None:
            return

        state = self.session.state
        was_in_progress = state.phase is SessionPhase.IN_PROGRESS
        state.player(slot).connection_id = None
        ACTIVE_CONNECTIONS.labels("player").dec()
        logger.info("Player %s disconnected.", slot.value)

        if not was_in_progress:
            logger.info("Player disconnected outside a running game; slot vacated.")
            return

        logger.info("A player disconnected mid-game. Resetting.")
        other_connection = state.opponent(slot).connection_id
        if other_connection is not None:
            self.gateway.send(
                other_connection,
                GameErrorMessage(data=GameErrorPayload(message=OPPONENT_DISCONNECTED_MESSAGE)),
            )
        self.session.reset(reason="disconnect", broadcast=True)

    def _authorize_move(self, connection_id: str) -> PlayerSlot:
        state = self.session.state
        slot = self.slot_of(connection_id)
        if slot is None:
            raise UnknownSenderError(
                "Spectators cannot move.",
                context={"connection_id": connection_id},
            )
        if not state.game_started:
            raise GameNotStartedError(
                "Game has not started yet.",
                context={"player": slot.value},
            )
        if state.turn != slot:
            raise NotYourTurnError(
                "It's not your turn.",
                context={"player": slot.value, "turn": state.turn.value if state.turn else None},
            )
        return slot
