"""Table tennis game engine.

Rally-point scoring to 11 points with a win-by-2 requirement and no cap.
Service changes every two points until both sides reach 10, then after
every point.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from ..exceptions import GameAlreadyWon
from .state import Side, Tally, other_side

POINTS_TO_WIN = 11
WIN_BY = 2
SERVICE_ROTATION = 2
DEUCE_AT = POINTS_TO_WIN - 1


@dataclass(frozen=True)
class PointResult:
    game: Tally
    winner: Optional[Side] = None


def game_winner(game: Tally) -> Optional[Side]:
    """Return the side that has won ``game``, if any."""
    for side in (1, 2):
        own, opp = game.of(side), game.of(other_side(side))
        if own >= POINTS_TO_WIN and own - opp >= WIN_BY:
            return side
    return None


def is_deuce(game: Tally) -> bool:
    return game.side1 >= DEUCE_AT and game.side2 >= DEUCE_AT


def apply_point(game: Tally, side: Side) -> PointResult:
    """Apply a single point for ``side`` to ``game``."""
    if game_winner(game) is not None:
        raise GameAlreadyWon()
    updated = game.add(side)
    return PointResult(game=updated, winner=game_winner(updated))


def next_server(game: Tally, current_server: Side) -> Side:
    """Server for the next rally, given the score after the last point."""
    if is_deuce(game):
        return other_side(current_server)
    total = game.total
    if total > 0 and total % SERVICE_ROTATION == 0:
        return other_side(current_server)
    return current_server


def server_after_game(winner: Side) -> Side:
    # the side that lost the game serves first in the next one
    return other_side(winner)
