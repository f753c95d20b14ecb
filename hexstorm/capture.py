"""Flood-fill capture engine.

A move recolours every hex the acting player owns to the target colour, then
grows the territory breadth-first through neighbours that either already
carry the target colour or are already owned by the player. The result is a
saturation fixpoint: the final owned set does not depend on the order in
which neighbours are visited.

Only the acting player's territory grows or changes colour. The opponent
can never hold the target colour (it is rejected up front), so the flood
never crosses into the opponent's hexes.
"""

from __future__ import annotations

import logging
from collections import deque
from typing import Deque, Sequence, Set

from . import board
from .errors import IllegalColorError
from .models import HexCoord, PlayerSlot
from .state import GameState, Hex

__all__ = ["check_move", "apply_move"]

logger = logging.getLogger(__name__)


def check_move(
    state: GameState,
    slot: PlayerSlot,
    target_color: object,
    palette: Sequence[str],
) -> None:
    """Raise IllegalColorError unless ``target_color`` is a legal pick."""
    player = state.player(slot)
    opponent = state.opponent(slot)
    if target_color not in palette:
        raise IllegalColorError(
            "Color is not in the palette.",
            color=target_color,
            context={"player": slot.value},
        )
    if target_color == player.color:
        raise IllegalColorError(
            "You already own that color.",
            color=target_color,
            context={"player": slot.value},
        )
    if target_color == opponent.color:
        raise IllegalColorError(
            "Your opponent owns that color.",
            color=target_color,
            context={"player": slot.value},
        )


def apply_move(
    state: GameState,
    slot: PlayerSlot,
    target_color: str,
    palette: Sequence[str],
) -> int:
    """Apply a colour pick for ``slot`` and return the player's new score.

    An illegal colour leaves the state untouched and returns the current
    score unchanged.
    """
    player = state.player(slot)
    if player.color is None:
        return player.score
    try:
        check_move(state, slot, target_color, palette)
    except IllegalColorError as exc:
        logger.info("Player %s: %s", slot.value, exc)
        return player.score

    queue: Deque[Hex] = deque()
    visited: Set[HexCoord] = set()

    for cell in state.owned_by(slot):
        cell.color = target_color
        visited.add(cell.coord)
        queue.append(cell)

    while queue:
        current = queue.popleft()
        for neighbor in board.neighbors(state, current.coord):
            if neighbor.coord in visited:
                continue
            if neighbor.color == target_color or neighbor.owner == slot:
                visited.add(neighbor.coord)
                neighbor.owner = slot
                neighbor.color = target_color
                queue.append(neighbor)

    player.color = target_color
    player.score = len(visited)
    logger.info(
        "Player %s captured with %s. New score: %d",
        slot.value,
        target_color,
        player.score,
    )
    return player.score
