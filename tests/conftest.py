"""
Shared pytest fixtures for HexStorm tests.

Game state fixtures are function-scoped to ensure test isolation. Sessions
are built with a fake scheduler so the post-win reset timer can be fired
(or left pending) deterministically.
"""

from dataclasses import dataclass, field
from pathlib import Path
import random
import sys
from typing import Callable, Dict, List, Optional, Tuple

import pytest

# Ensure the project root is on sys.path so `import hexstorm` works when
# running pytest without an editable install.
PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from hexstorm.config import SessionConfig  # noqa: E402
from hexstorm.connections import ConnectionManager  # noqa: E402
from hexstorm.gateway import BroadcastGateway  # noqa: E402
from hexstorm.models import HexCoord, PlayerSlot  # noqa: E402
from hexstorm.session import GameSession  # noqa: E402
from hexstorm.state import GameState  # noqa: E402

RED = "red"
GREEN = "green"
BLUE = "blue"
YELLOW = "yellow"
TEST_PALETTE = (RED, GREEN, BLUE, YELLOW)


# =============================================================================
# SCHEDULER / TRANSPORT DOUBLES
# =============================================================================


@dataclass
class FakeTimer:
    delay: float
    callback: Callable[[], None]
    cancelled: bool = False

    def cancel(self) -> None:
        self.cancelled = True


@dataclass
class FakeScheduler:
    """Records scheduled callbacks instead of running them."""

    timers: List[FakeTimer] = field(default_factory=list)

    def __call__(self, delay: float, callback: Callable[[], None]) -> FakeTimer:
        timer = FakeTimer(delay, callback)
        self.timers.append(timer)
        return timer

    @property
    def pending(self) -> List[FakeTimer]:
        return [t for t in self.timers if not t.cancelled]

    def fire_pending(self) -> None:
        for timer in self.pending:
            timer.callback()


@dataclass
class Recorder:
    """Message sink that keeps everything it receives."""

    messages: list = field(default_factory=list)

    def __call__(self, message) -> None:
        self.messages.append(message)

    def events(self) -> List[str]:
        return [m.event for m in self.messages]

    def last_state(self):
        states = [m.data for m in self.messages if m.event == "gameState"]
        return states[-1] if states else None

    def clear(self) -> None:
        self.messages.clear()


# =============================================================================
# FACTORY FIXTURES
# =============================================================================


@pytest.fixture
def scheduler() -> FakeScheduler:
    return FakeScheduler()


@pytest.fixture
def gateway() -> BroadcastGateway:
    return BroadcastGateway()


@pytest.fixture
def session_factory(
    scheduler: FakeScheduler, gateway: BroadcastGateway
) -> Callable[..., GameSession]:
    """Factory for sessions on a small, seeded board."""

    def _create_session(
        board_radius: int = 1,
        palette: Tuple[str, ...] = TEST_PALETTE,
        seed: int = 1234,
        reset_delay_sec: float = 5.0,
    ) -> GameSession:
        config = SessionConfig(
            board_radius=board_radius,
            palette=palette,
            reset_delay_sec=reset_delay_sec,
        )
        return GameSession(config, gateway, scheduler=scheduler, rng=random.Random(seed))

    return _create_session


@pytest.fixture
def session(session_factory) -> GameSession:
    return session_factory()


@pytest.fixture
def manager(session: GameSession, gateway: BroadcastGateway) -> ConnectionManager:
    return ConnectionManager(session, gateway)


@pytest.fixture
def recorder_factory() -> Callable[[], Recorder]:
    return Recorder


@pytest.fixture
def paint_board() -> Callable[..., GameState]:
    """Overwrite colours/owners on an existing board and resync the players.

    ``colors`` maps (q, r) to a colour for every hex that should change.
    ``owners`` maps (q, r) to the owning slot; hexes not listed become
    unowned. Player colours are taken from their seed hexes and scores are
    recomputed from ownership.
    """

    def _paint(
        state: GameState,
        colors: Dict[Tuple[int, int], str],
        owners: Optional[Dict[Tuple[int, int], PlayerSlot]] = None,
    ) -> GameState:
        if owners is None:
            owners = {
                (p.start_hex.q, p.start_hex.r): slot for slot, p in state.players.items()
            }
        for (q, r), color in colors.items():
            state.board[HexCoord(q=q, r=r)].color = color
        for coord, cell in state.board.items():
            cell.owner = owners.get((coord.q, coord.r))
        for slot, player in state.players.items():
            player.color = state.board[player.start_hex].color
            player.score = sum(1 for cell in state.board.values() if cell.owner == slot)
        return state

    return _paint
