"""Session / turn state machine.

States::

    NOT_STARTED --(both slots attached)--> IN_PROGRESS(turn)
    IN_PROGRESS --(legal move, no win)---> IN_PROGRESS(other turn)
    IN_PROGRESS --(score > |board| / 2)--> WON(winner)
    WON ---------(reset timer fires)-----> NOT_STARTED -> IN_PROGRESS if both attached
    any ---------(forced reset)----------> NOT_STARTED

All transitions run synchronously on the event loop, so a handler always
completes before the next event is processed. The only deferred work is the
post-win reset timer. Every reset bumps ``epoch`` and cancels the pending
timer, and a timer that still fires with an older epoch is ignored.
"""

from __future__ import annotations

import asyncio
import logging
import random
from dataclasses import dataclass
from typing import Callable, Optional, Protocol

from . import capture
from .board import initialize_board
from .config import SessionConfig
from .errors import InvalidStateError
from .gateway import BroadcastGateway
from .metrics import GAMES_WON, SESSION_RESETS, STALE_RESET_TIMERS
from .models import PlayerSlot, SessionPhase
from .state import GameState

__all__ = ["TimerHandle", "Scheduler", "asyncio_scheduler", "MoveOutcome", "GameSession"]

logger = logging.getLogger(__name__)

FIRST_TURN = PlayerSlot.PLAYER1


class TimerHandle(Protocol):
    def cancel(self) -> None:
        ...


Scheduler = Callable[[float, Callable[[], None]], TimerHandle]


def asyncio_scheduler(delay: float, callback: Callable[[], None]) -> TimerHandle:
    """Schedule ``callback`` on the running event loop after ``delay`` seconds."""
    return asyncio.get_running_loop().call_later(delay, callback)


@dataclass(frozen=True)
class MoveOutcome:
    slot: PlayerSlot
    color: str
    score: int
    captured: int
    winner: Optional[PlayerSlot] = None


class GameSession:
    """Owner of the singleton GameState and its lifecycle."""

    def __init__(
        self,
        config: SessionConfig,
        gateway: BroadcastGateway,
        scheduler: Optional[Scheduler] = None,
        rng: Optional[random.Random] = None,
    ) -> None:
        self.config = config.validate()
        self.gateway = gateway
        self._scheduler = scheduler or asyncio_scheduler
        self._rng = rng or random.Random(config.rng_seed)
        self.state = GameState()
        self.epoch = 0
        self._pending_reset: Optional[TimerHandle] = None
        self.reset(reason="startup", broadcast=False)

    @property
    def phase(self) -> SessionPhase:
        return self.state.phase

    @property
    def has_pending_reset(self) -> bool:
        return self._pending_reset is not None

    def is_winning_score(self, score: int) -> bool:
        """Strict majority of all hexes on the board."""
        return score * 2 > self.state.total_hexes

    def reset(self, reason: str, broadcast: bool = True) -> None:
        """Regenerate the board in place and start again if both players remain."""
        self._cancel_pending_reset()
        self.epoch += 1
        logger.info("Resetting session (reason=%s, epoch=%d)", reason, self.epoch)
        initialize_board(
            self.state,
            self.config.board_radius,
            self.config.palette,
            self._rng,
        )
        SESSION_RESETS.labels(reason).inc()
        self.try_start(broadcast=False)
        if broadcast:
            self.gateway.broadcast_state(self.state)

    def try_start(self, broadcast: bool = True) -> bool:
        """Move NOT_STARTED -> IN_PROGRESS once both slots have a connection."""
        state = self.state
        if state.phase is not SessionPhase.NOT_STARTED or not state.both_attached():
            return False
        state.game_started = True
        state.turn = FIRST_TURN
        logger.info("Both players connected. Starting game.")
        if broadcast:
            self.gateway.broadcast_state(state)
        return True

    def play_move(self, slot: PlayerSlot, color: str) -> MoveOutcome:
        """Apply a move for the slot on turn and run the post-move transition.

        Raises:
            InvalidStateError: the game is not in progress or ``slot`` is not on turn.
            IllegalColorError: ``color`` cannot be picked by ``slot``.
        """
        state = self.state
        if state.phase is not SessionPhase.IN_PROGRESS or state.turn != slot:
            raise InvalidStateError(
                "Move played outside the player's turn",
                context={"slot": slot.value, "turn": state.turn, "phase": state.phase.value},
            )
        capture.check_move(state, slot, color, self.config.palette)

        before = state.player(slot).score
        score = capture.apply_move(state, slot, color, self.config.palette)

        if self.is_winning_score(score):
            state.winner = slot
            state.turn = None
            state.game_started = False
            GAMES_WON.labels(slot.value).inc()
            logger.info("Player %s wins with %d of %d hexes!", slot.value, score, state.total_hexes)
            self._schedule_reset()
        else:
            state.turn = slot.opponent

        return MoveOutcome(
            slot=slot,
            color=color,
            score=score,
            captured=score - before,
            winner=state.winner,
        )

    def _schedule_reset(self) -> None:
        self._cancel_pending_reset()
        epoch = self.epoch
        self._pending_reset = self._scheduler(
            self.config.reset_delay_sec,
            lambda: self._on_reset_timer(epoch),
        )
        logger.info("New game in %.1f seconds", self.config.reset_delay_sec)

    def _on_reset_timer(self, epoch: int) -> None:
        if epoch != self.epoch:
            STALE_RESET_TIMERS.inc()
            logger.debug("Ignoring stale reset timer (epoch=%d, current=%d)", epoch, self.epoch)
            return
        self._pending_reset = None
        self.reset(reason="post_win", broadcast=True)

    def _cancel_pending_reset(self) -> None:
        if self._pending_reset is not None:
            self._pending_reset.cancel()
            self._pending_reset = None
