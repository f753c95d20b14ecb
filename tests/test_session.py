"""Tests for hexstorm.session - turn state machine and reset timer."""

import pytest

from hexstorm.errors import IllegalColorError, InvalidStateError
from hexstorm.models import PlayerSlot, SessionPhase

from .conftest import BLUE, GREEN, RED, YELLOW

P1 = PlayerSlot.PLAYER1
P2 = PlayerSlot.PLAYER2


def _attach_both(session):
    session.state.player(P1).connection_id = "conn-1"
    session.state.player(P2).connection_id = "conn-2"


@pytest.fixture
def started(session, gateway, recorder_factory):
    """Session with both slots attached, in progress, and a recording spectator."""
    recorder = recorder_factory()
    gateway.attach("watcher", recorder)
    _attach_both(session)
    assert session.try_start() is True
    recorder.clear()
    return session, recorder


@pytest.fixture
def winnable(started, paint_board):
    """P1 wins by picking blue (4 of 7 hexes); yellow gives only 3."""
    session, recorder = started
    paint_board(
        session.state,
        {
            (-1, 0): RED,
            (1, 0): GREEN,
            (0, 0): BLUE,
            (0, -1): YELLOW,
            (1, -1): YELLOW,
            (-1, 1): BLUE,
            (0, 1): BLUE,
        },
    )
    return session, recorder


class TestStart:

    def test_initial_state(self, session):
        assert session.phase is SessionPhase.NOT_STARTED
        assert session.state.turn is None
        assert session.epoch == 1
        assert session.state.total_hexes == 7

    def test_does_not_start_with_one_player(self, session):
        session.state.player(P1).connection_id = "conn-1"
        assert session.try_start() is False
        assert session.phase is SessionPhase.NOT_STARTED

    def test_start_sets_first_turn_and_broadcasts(self, session, gateway, recorder_factory):
        recorder = recorder_factory()
        gateway.attach("watcher", recorder)
        _attach_both(session)

        assert session.try_start() is True

        assert session.phase is SessionPhase.IN_PROGRESS
        assert session.state.turn is P1
        assert recorder.events() == ["gameState"]
        assert recorder.last_state().game_started is True

    def test_start_is_idempotent(self, started):
        session, recorder = started
        assert session.try_start() is False
        assert recorder.events() == []


class TestTurns:

    def test_turn_flips_after_move(self, winnable):
        session, _ = winnable
        outcome = session.play_move(P1, YELLOW)
        assert outcome.score == 3
        assert outcome.captured == 2
        assert outcome.winner is None
        assert session.state.turn is P2
        assert session.phase is SessionPhase.IN_PROGRESS

    def test_out_of_turn_raises(self, started):
        session, _ = started
        with pytest.raises(InvalidStateError):
            session.play_move(P2, BLUE)

    def test_illegal_color_raises_without_mutation(self, winnable):
        session, _ = winnable
        turn = session.state.turn
        with pytest.raises(IllegalColorError):
            session.play_move(P1, GREEN)
        assert session.state.turn is turn
        assert session.state.player(P1).score == 1

    def test_move_before_start_raises(self, session):
        with pytest.raises(InvalidStateError):
            session.play_move(P1, BLUE)


class TestWinThreshold:

    @pytest.mark.parametrize("radius", [1, 2, 4])
    def test_strict_majority(self, session_factory, radius):
        session = session_factory(board_radius=radius)
        total = session.state.total_hexes
        assert not session.is_winning_score(total // 2)
        assert session.is_winning_score(total // 2 + 1)

    def test_half_board_is_not_a_win(self, winnable):
        session, _ = winnable
        outcome = session.play_move(P1, YELLOW)
        assert outcome.score == 3  # floor(7 / 2)
        assert session.state.winner is None

    def test_majority_wins(self, winnable, scheduler):
        session, _ = winnable
        outcome = session.play_move(P1, BLUE)

        assert outcome.score == 4
        assert outcome.winner is P1
        assert session.state.winner is P1
        assert session.state.turn is None
        assert session.state.game_started is False
        assert session.phase is SessionPhase.WON
        assert len(scheduler.pending) == 1
        assert scheduler.pending[0].delay == 5.0


class TestResetTimer:

    def test_timer_regenerates_and_restarts(self, winnable, scheduler):
        session, recorder = winnable
        state = session.state
        session.play_move(P1, BLUE)
        epoch = session.epoch

        scheduler.fire_pending()

        assert session.state is state
        assert session.epoch == epoch + 1
        assert session.state.winner is None
        assert session.phase is SessionPhase.IN_PROGRESS
        assert session.state.turn is P1
        assert session.state.player(P1).score == 1
        assert session.state.player(P1).connection_id == "conn-1"
        assert recorder.events() == ["gameState"]
        assert recorder.last_state().game_started is True
        assert not session.has_pending_reset

    def test_timer_reset_without_players_stays_idle(self, winnable, scheduler):
        session, recorder = winnable
        session.play_move(P1, BLUE)
        session.state.player(P2).connection_id = None

        scheduler.fire_pending()

        assert session.phase is SessionPhase.NOT_STARTED
        assert session.state.turn is None
        assert recorder.last_state().game_started is False

    def test_forced_reset_cancels_pending_timer(self, winnable, scheduler):
        session, recorder = winnable
        session.play_move(P1, BLUE)
        timer = scheduler.timers[-1]

        session.reset(reason="disconnect")
        assert timer.cancelled
        assert session.phase is SessionPhase.IN_PROGRESS
        recorder.clear()
        board = dict(session.state.board)

        # Even if the loop still runs the stale callback, nothing changes.
        timer.callback()

        assert recorder.events() == []
        assert session.state.board == board
        assert session.phase is SessionPhase.IN_PROGRESS

    def test_reset_without_broadcast(self, session, gateway, recorder_factory):
        recorder = recorder_factory()
        gateway.attach("watcher", recorder)
        session.reset(reason="test", broadcast=False)
        assert recorder.events() == []
