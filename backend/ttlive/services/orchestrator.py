"""Match-level state machine.

Pure functions over a ``MatchView``: they take the configuration, status and
score of a match and return the next status and score without touching the
store. ``live_scoring`` wraps them with locking and persistence.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Dict, Mapping, Optional, Sequence, Tuple

from ..exceptions import StateError, ValidationError
from ..scoring import relay, table_tennis
from ..scoring.formats import (
    BEST_OF_TO_SETS_TO_WIN,
    MatchConfig,
    MatchStatus,
    SeriesConfig,
    TeamRelayConfig,
    TeamSetConfig,
)
from ..scoring.state import (
    CompletedGame,
    Encounter,
    EncounterStatus,
    RelayLeg,
    Score,
    SeriesScore,
    Side,
    Tally,
    TeamRelayScore,
    TeamSetScore,
    check_side,
    replace_at,
)
from . import rotation


@dataclass(frozen=True)
class MatchView:
    config: MatchConfig
    status: MatchStatus
    score: Score
    # configured players per side; only series matches fix these up front
    participants: Mapping[Side, Tuple[str, ...]] = field(default_factory=dict)


class PointResult(str, Enum):
    POINT = "point"
    GAME = "game"
    ENCOUNTER = "encounter"
    MATCH = "match"


@dataclass(frozen=True)
class Outcome:
    score: Score
    status: MatchStatus
    result: PointResult
    winner_side: Optional[Side] = None


@dataclass(frozen=True)
class SetupResult:
    score: Score
    status: MatchStatus
    index: int
    tiebreaker: bool = False


# ---------------------------------------------------------------------------
# Scoring
# ---------------------------------------------------------------------------


def score_point(view: MatchView, side: Side) -> Outcome:
    """Apply one point for ``side`` and resolve game/encounter/match completion."""
    side = check_side(side, field_name="scoringSide")
    if view.status is not MatchStatus.LIVE:
        raise StateError(f"cannot score a point while the match is {view.status.value}")

    config = view.config
    if isinstance(config, SeriesConfig):
        return _score_series(config, view.score, side)
    if isinstance(config, TeamSetConfig):
        return _score_team_set(config, view.score, side)
    if isinstance(config, TeamRelayConfig):
        return _score_relay(config, view.score, side)
    raise TypeError(f"unsupported match config: {type(config).__name__}")


def _score_series(config: SeriesConfig, score: SeriesScore, side: Side) -> Outcome:
    point = table_tennis.apply_point(score.current_game, side)
    if point.winner is None:
        return Outcome(
            score=replace(
                score,
                current_game=point.game,
                server=table_tennis.next_server(point.game, score.server),
            ),
            status=MatchStatus.LIVE,
            result=PointResult.POINT,
        )

    winner = point.winner
    updated = SeriesScore(
        current_game=Tally(),
        server=table_tennis.server_after_game(winner),
        completed_games=score.completed_games
        + (CompletedGame(side1=point.game.side1, side2=point.game.side2, winner=winner),),
        sets_won=score.sets_won.add(winner),
    )
    if updated.sets_won.of(winner) >= config.sets_to_win:
        return Outcome(updated, MatchStatus.FINISHED, PointResult.MATCH, winner)
    return Outcome(updated, MatchStatus.LIVE, PointResult.GAME)


def _score_team_set(config: TeamSetConfig, score: TeamSetScore, side: Side) -> Outcome:
    live = score.live_encounter()
    if live is None:
        raise StateError("no encounter is live")

    point = table_tennis.apply_point(score.current_game, side)
    if point.winner is None:
        return Outcome(
            score=replace(
                score,
                current_game=point.game,
                server=table_tennis.next_server(point.game, score.server),
            ),
            status=MatchStatus.LIVE,
            result=PointResult.POINT,
        )

    winner = point.winner
    finished = replace(
        live,
        status=EncounterStatus.FINISHED,
        final_score=point.game,
        winner=winner,
    )
    updated = TeamSetScore(
        current_game=Tally(),
        server=table_tennis.server_after_game(winner),
        encounters=replace_at(score.encounters, live.index, finished),
        encounters_won=score.encounters_won.add(winner),
    )
    status, match_winner = team_set_status(config, updated)
    result = PointResult.MATCH if status is MatchStatus.FINISHED else PointResult.ENCOUNTER
    return Outcome(updated, status, result, match_winner)


def team_set_status(
    config: TeamSetConfig, score: TeamSetScore
) -> Tuple[MatchStatus, Optional[Side]]:
    """Decide what follows a finished team-set encounter."""
    won = score.encounters_won
    total = config.number_of_encounters
    for side in (1, 2):
        if won.of(side) * 2 > total:
            return MatchStatus.FINISHED, side

    if len(score.finished_encounters()) >= total:
        leader = won.leader()
        if leader is None and total % 2 == 0:
            return MatchStatus.AWAITING_TIEBREAKER_SETUP, None
        return MatchStatus.FINISHED, leader

    return MatchStatus.AWAITING_ENCOUNTER_SETUP, None


def _score_relay(config: TeamRelayConfig, score: TeamRelayScore, side: Side) -> Outcome:
    leg = score.live_leg()
    if leg is None:
        raise StateError("no relay leg is live")

    point = relay.apply_relay_point(
        score.cumulative,
        side,
        leg_target=config.leg_target(leg.number),
        final_target=config.final_target,
    )
    server = relay.next_relay_server(point.cumulative, leg.start_score, score.server)
    if point.leg_winner is None:
        return Outcome(
            score=replace(score, cumulative=point.cumulative, server=server),
            status=MatchStatus.LIVE,
            result=PointResult.POINT,
        )

    finished = replace(
        leg,
        status=EncounterStatus.FINISHED,
        end_score=point.cumulative,
        winner=point.leg_winner,
    )
    updated = TeamRelayScore(
        cumulative=point.cumulative,
        server=server,
        legs=replace_at(score.legs, leg.index, finished),
    )
    if point.match_winner is not None:
        return Outcome(updated, MatchStatus.FINISHED, PointResult.MATCH, point.match_winner)
    return Outcome(updated, MatchStatus.AWAITING_ENCOUNTER_SETUP, PointResult.ENCOUNTER)


# ---------------------------------------------------------------------------
# Encounter setup
# ---------------------------------------------------------------------------


def setup_encounter(
    view: MatchView,
    index: int,
    selections: Mapping[Side, Sequence[str]],
    initial_server: Side,
    rosters: Optional[Mapping[Side, Sequence[str]]] = None,
) -> SetupResult:
    """Start the match or the next encounter/leg with the selected players.

    ``rosters`` is required for team matches and ignored otherwise.
    """
    initial_server = check_side(initial_server, field_name="initialServer")
    if isinstance(index, bool) or not isinstance(index, int) or index < 0:
        raise ValidationError("encounterIndex must be a non-negative integer")

    config = view.config
    if isinstance(config, SeriesConfig):
        return _start_series(view, config, index, selections, initial_server)
    if isinstance(config, (TeamSetConfig, TeamRelayConfig)):
        if rosters is None:
            raise TypeError("team encounters need both team rosters")
        return _setup_team_encounter(view, config, index, selections, initial_server, rosters)
    raise TypeError(f"unsupported match config: {type(config).__name__}")


def _start_series(
    view: MatchView,
    config: SeriesConfig,
    index: int,
    selections: Mapping[Side, Sequence[str]],
    initial_server: Side,
) -> SetupResult:
    if view.status is not MatchStatus.UPCOMING:
        raise StateError(f"match has already started (status {view.status.value})")
    if index != 0:
        raise ValidationError(f"{config.kind.value} matches have a single encounter (index 0)")

    for side in (1, 2):
        configured = tuple(view.participants.get(side, ()))
        chosen = tuple(selections.get(side) or ())
        if not chosen:
            continue
        if len(chosen) != config.arity:
            raise ValidationError(
                f"side {side} must select exactly {config.arity} player(s) "
                f"for {config.kind.value} matches"
            )
        if sorted(chosen) != sorted(configured):
            raise ValidationError(
                f"side {side} selection does not match the players registered for the match"
            )

    return SetupResult(
        score=SeriesScore(server=initial_server),
        status=MatchStatus.LIVE,
        index=0,
    )


def _finished_count(score: Score) -> int:
    if isinstance(score, TeamSetScore):
        return len(score.finished_encounters())
    if isinstance(score, TeamRelayScore):
        return len(score.finished_legs())
    return 0


def _check_setup_slot(view: MatchView, index: int, regular: int) -> bool:
    """Validate that ``index`` is the slot due for setup; return tiebreaker flag."""
    status = view.status
    if status is MatchStatus.UPCOMING:
        if index != 0:
            raise ValidationError("the first encounter must have index 0")
        return False
    if status is MatchStatus.AWAITING_ENCOUNTER_SETUP:
        expected = _finished_count(view.score)
        if index != expected:
            raise ValidationError(f"next encounter to set up is index {expected}, got {index}")
        if index >= regular:
            raise ValidationError(f"match has only {regular} regular encounter(s)")
        return False
    if status is MatchStatus.AWAITING_TIEBREAKER_SETUP:
        if index != regular:
            raise ValidationError(f"the tiebreaker encounter has index {regular}, got {index}")
        return True
    raise StateError(f"cannot set up an encounter while the match is {status.value}")


def _place(items: Tuple, index: int, item) -> Tuple:
    if index < len(items):
        return replace_at(items, index, item)
    return items + (item,)


def _setup_team_encounter(
    view: MatchView,
    config: MatchConfig,
    index: int,
    selections: Mapping[Side, Sequence[str]],
    initial_server: Side,
    rosters: Mapping[Side, Sequence[str]],
) -> SetupResult:
    regular = (
        config.number_of_encounters
        if isinstance(config, TeamSetConfig)
        else config.number_of_legs
    )
    tiebreaker = _check_setup_slot(view, index, regular)

    picked: Dict[Side, Tuple[str, ...]] = {
        1: tuple(selections.get(1) or ()),
        2: tuple(selections.get(2) or ()),
    }
    rotation.validate_selection(config, view.score, picked, rosters)

    score = view.score
    if isinstance(score, TeamSetScore):
        entry = Encounter(
            index=index,
            side1_players=picked[1],
            side2_players=picked[2],
            status=EncounterStatus.LIVE,
            tiebreaker=tiebreaker,
        )
        updated: Score = replace(
            score,
            current_game=Tally(),
            server=initial_server,
            encounters=_place(score.encounters, index, entry),
        )
    elif isinstance(score, TeamRelayScore):
        leg = RelayLeg(
            index=index,
            side1_players=picked[1],
            side2_players=picked[2],
            status=EncounterStatus.LIVE,
            start_score=score.cumulative,
        )
        updated = replace(score, server=initial_server, legs=_place(score.legs, index, leg))
    else:
        raise TypeError(f"score shape {type(score).__name__} does not match a team match")

    return SetupResult(score=updated, status=MatchStatus.LIVE, index=index, tiebreaker=tiebreaker)


# ---------------------------------------------------------------------------
# Administrative transitions
# ---------------------------------------------------------------------------


def change_length(view: MatchView, sets_to_win: int) -> SeriesConfig:
    if not isinstance(view.config, SeriesConfig):
        raise ValidationError("match length can only be changed for Individual/Dual matches")
    if view.status is not MatchStatus.UPCOMING:
        raise StateError(f"cannot change length of a match that is {view.status.value}")
    if sets_to_win not in BEST_OF_TO_SETS_TO_WIN.values():
        raise ValidationError("setsToWin must be 1, 2 or 3")
    return replace(view.config, sets_to_win=sets_to_win)


def cancel(view: MatchView) -> MatchStatus:
    if view.status is not MatchStatus.UPCOMING:
        raise StateError(f"only upcoming matches can be cancelled (status {view.status.value})")
    return MatchStatus.CANCELLED
