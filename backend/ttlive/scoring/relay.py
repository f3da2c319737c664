"""Relay scoring rules.

A relay match keeps one running score per side across all legs. Leg ``n``
closes as soon as either side reaches ``points_per_leg * n``; the match ends
when a side reaches ``points_per_leg * number_of_legs``.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .state import Side, Tally, other_side

SERVICE_ROTATION = 2


@dataclass(frozen=True)
class RelayPointResult:
    cumulative: Tally
    leg_winner: Optional[Side] = None
    match_winner: Optional[Side] = None


def apply_relay_point(
    cumulative: Tally,
    side: Side,
    *,
    leg_target: int,
    final_target: int,
) -> RelayPointResult:
    updated = cumulative.add(side)
    if updated.of(side) < leg_target:
        return RelayPointResult(cumulative=updated)
    match_winner = side if updated.of(side) >= final_target else None
    return RelayPointResult(
        cumulative=updated, leg_winner=side, match_winner=match_winner
    )


def next_relay_server(cumulative: Tally, leg_start: Tally, current_server: Side) -> Side:
    """Swap service every two points scored since the leg began."""
    net = cumulative.total - leg_start.total
    if net > 0 and net % SERVICE_ROTATION == 0:
        return other_side(current_server)
    return current_server
