"""Board geometry and generation for HexStorm.

The board is a hexagon of radius ``R`` in axial coordinates: every ``(q, r)``
with ``|q| <= R``, ``|r| <= R`` and ``|q + r| <= R``. The two seed hexes sit at
the antipodal corners ``(-R, 0)`` (player1) and ``(R, 0)`` (player2).
"""

from __future__ import annotations

import logging
import random
from typing import Iterator, List, Sequence, Tuple

from .models import HexCoord, PlayerSlot
from .state import GameState, Hex, Player

__all__ = [
    "AXIAL_DIRECTIONS",
    "board_coords",
    "board_size",
    "neighbors",
    "seed_coord",
    "initialize_board",
]

logger = logging.getLogger(__name__)

AXIAL_DIRECTIONS: Tuple[Tuple[int, int], ...] = (
    (+1, 0),
    (+1, -1),
    (0, -1),
    (-1, 0),
    (-1, +1),
    (0, +1),
)


def board_coords(radius: int) -> Iterator[HexCoord]:
    """Yield every coordinate on a hexagonal board of the given radius."""
    for q in range(-radius, radius + 1):
        for r in range(-radius, radius + 1):
            if abs(q + r) <= radius:
                yield HexCoord(q=q, r=r)


def board_size(radius: int) -> int:
    """Number of hexes on a board of the given radius (3R^2 + 3R + 1)."""
    return 3 * radius * radius + 3 * radius + 1


def neighbors(state: GameState, coord: HexCoord) -> List[Hex]:
    """Return the existing board neighbours of ``coord``."""
    result = []
    for dq, dr in AXIAL_DIRECTIONS:
        cell = state.board.get(coord.offset(dq, dr))
        if cell is not None:
            result.append(cell)
    return result


def seed_coord(slot: PlayerSlot, radius: int) -> HexCoord:
    if slot is PlayerSlot.PLAYER1:
        return HexCoord(q=-radius, r=0)
    return HexCoord(q=radius, r=0)


def _pick(rng: random.Random, palette: Sequence[str], excluded: Sequence[str]) -> str:
    choices = [color for color in palette if color not in excluded]
    return rng.choice(choices)


def initialize_board(
    state: GameState,
    radius: int,
    palette: Sequence[str],
    rng: random.Random,
) -> None:
    """Regenerate the board and both player records in place.

    Connection ids survive the reset; everything else on the players is
    recreated. Seed colours are distinct, and every other hex gets a colour
    that differs from both seed colours. ``turn``, ``winner`` and
    ``game_started`` are cleared; starting the game is the session's job.
    """
    previous = state.players
    p1_start = seed_coord(PlayerSlot.PLAYER1, radius)
    p2_start = seed_coord(PlayerSlot.PLAYER2, radius)

    p1_color = _pick(rng, palette, ())
    p2_color = _pick(rng, palette, (p1_color,))

    players = {}
    for slot, start, color in (
        (PlayerSlot.PLAYER1, p1_start, p1_color),
        (PlayerSlot.PLAYER2, p2_start, p2_color),
    ):
        old = previous.get(slot)
        players[slot] = Player(
            slot=slot,
            start_hex=start,
            color=color,
            score=1,
            connection_id=old.connection_id if old is not None else None,
        )

    board = {}
    for coord in board_coords(radius):
        if coord == p1_start:
            board[coord] = Hex(coord=coord, color=p1_color, owner=PlayerSlot.PLAYER1)
        elif coord == p2_start:
            board[coord] = Hex(coord=coord, color=p2_color, owner=PlayerSlot.PLAYER2)
        else:
            board[coord] = Hex(coord=coord, color=_pick(rng, palette, (p1_color, p2_color)))

    state.board = board
    state.players = players
    state.turn = None
    state.winner = None
    state.game_started = False
    logger.info(
        "Board initialized: radius=%d, hexes=%d, player1=%s, player2=%s",
        radius,
        len(board),
        p1_color,
        p2_color,
    )
