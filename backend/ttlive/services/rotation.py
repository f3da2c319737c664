"""Roster rotation rules checked before a team encounter may start."""

from __future__ import annotations

from collections import Counter
from typing import Dict, Iterable, Sequence

from ..exceptions import RotationError
from ..scoring.formats import MatchConfig, TeamRelayConfig, TeamSetConfig
from ..scoring.state import Score, Side, TeamRelayScore, TeamSetScore


def appearance_counts(score: Score) -> Counter:
    """Count finished encounter/leg appearances per player id."""
    counts: Counter = Counter()
    if isinstance(score, TeamSetScore):
        finished: Iterable = score.finished_encounters()
    elif isinstance(score, TeamRelayScore):
        finished = score.finished_legs()
    else:
        return counts
    for entry in finished:
        counts.update(entry.side1_players)
        counts.update(entry.side2_players)
    return counts


def can_field(capacities: Iterable[int], encounters: int, arity: int) -> bool:
    """Whether ``encounters`` more encounters of ``arity`` distinct players fit.

    ``capacities`` holds how many more encounters each roster player may
    play. A player appears at most once per encounter, so each one covers at
    most ``encounters`` of the needed slots.
    """
    if encounters <= 0:
        return True
    usable = sum(min(max(c, 0), encounters) for c in capacities)
    return usable >= arity * encounters


def _pairs_played(score: TeamSetScore, side: Side) -> set[frozenset[str]]:
    return {
        frozenset(e.players(side))
        for e in score.finished_encounters()
        if len(e.players(side)) == 2
    }


def validate(
    config: MatchConfig,
    score: Score,
    side: Side,
    selected_ids: Sequence[str],
    roster: Sequence[str],
) -> None:
    """Raise ``RotationError`` if ``selected_ids`` may not play for ``side``.

    Checks roster membership, the encounter-format arity, duplicate picks,
    and the per-sub-type usage rules. Team sets get the per-player cap, the
    optional no-repeat-pair rule, and a check that the side can still field
    its remaining encounters. Relays get play-once.
    """
    if not isinstance(config, (TeamSetConfig, TeamRelayConfig)):
        raise TypeError("rotation rules only apply to team matches")

    selected = list(selected_ids)
    if len(selected) != config.arity:
        raise RotationError(
            f"side {side} must select exactly {config.arity} player(s) for "
            f"{config.encounter_format.value} encounters"
        )
    if len(set(selected)) != len(selected):
        raise RotationError(f"side {side} selected the same player more than once")

    roster_ids = set(roster)
    missing = [pid for pid in selected if pid not in roster_ids]
    if missing:
        raise RotationError(
            f"player(s) {', '.join(missing)} not on the side {side} roster"
        )

    counts = appearance_counts(score)
    if isinstance(config, TeamSetConfig):
        capped = [
            pid for pid in selected if counts[pid] >= config.max_encounters_per_player
        ]
        if capped:
            raise RotationError(
                f"player(s) {', '.join(capped)} already played the maximum of "
                f"{config.max_encounters_per_player} encounter(s)"
            )
        if (
            not config.allow_repeat_pairs
            and len(selected) == 2
            and isinstance(score, TeamSetScore)
            and frozenset(selected) in _pairs_played(score, side)
        ):
            raise RotationError(
                f"pair {' & '.join(selected)} already played together for side {side}"
            )
        if isinstance(score, TeamSetScore):
            remaining = config.encounters_to_field - len(score.finished_encounters()) - 1
            left = [
                config.max_encounters_per_player - counts[pid] - (pid in selected)
                for pid in roster_ids
            ]
            if not can_field(left, remaining, config.arity):
                raise RotationError(
                    f"side {side} could not field the remaining {remaining} "
                    f"encounter(s) after selecting {', '.join(selected)}"
                )
    else:
        repeated = [pid for pid in selected if counts[pid] > 0]
        if repeated:
            raise RotationError(
                f"player(s) {', '.join(repeated)} already played a relay leg"
            )


def validate_selection(
    config: MatchConfig,
    score: Score,
    selections: Dict[Side, Sequence[str]],
    rosters: Dict[Side, Sequence[str]],
) -> None:
    """Validate both sides of an encounter selection."""
    for side in (1, 2):
        validate(config, score, side, selections[side], rosters[side])
    overlap = set(selections[1]) & set(selections[2])
    if overlap:
        raise RotationError(
            f"player(s) {', '.join(sorted(overlap))} selected for both sides"
        )
