from typing import Any, List, Optional, Sequence

from ..exceptions import ValidationError
from ..scoring.formats import (
    BEST_OF_TO_SETS_TO_WIN,
    MatchConfig,
    SeriesConfig,
    TeamRelayConfig,
    TeamSetConfig,
)
from .rotation import can_field


def _positive_int(value: Any, field_name: str) -> int:
    # Reject booleans explicitly (bool is a subclass of int in Python)
    if isinstance(value, bool):
        raise ValidationError(f"{field_name} must be an integer (not a boolean).")
    try:
        number = int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field_name} must be an integer.")
    if number < 1:
        raise ValidationError(f"{field_name} must be >= 1.")
    return number


def resolve_sets_to_win(
    sets_to_win: Optional[int] = None, best_of: Optional[int] = None
) -> int:
    """Return games needed from either ``setsToWin`` or ``bestOf``.

    When both are given they must agree.
    """

    if sets_to_win is None and best_of is None:
        raise ValidationError("Either setsToWin or bestOf is required.")

    resolved: Optional[int] = None
    if best_of is not None:
        if best_of not in BEST_OF_TO_SETS_TO_WIN:
            allowed = ", ".join(str(v) for v in sorted(BEST_OF_TO_SETS_TO_WIN))
            raise ValidationError(f"bestOf must be one of {allowed}.")
        resolved = BEST_OF_TO_SETS_TO_WIN[best_of]
    if sets_to_win is not None:
        if sets_to_win not in BEST_OF_TO_SETS_TO_WIN.values():
            raise ValidationError("setsToWin must be 1, 2 or 3.")
        if resolved is not None and resolved != sets_to_win:
            raise ValidationError(
                f"bestOf {best_of} needs {resolved} games to win, not {sets_to_win}."
            )
        resolved = sets_to_win
    assert resolved is not None  # for type checkers
    return resolved


def validate_match_config(config: MatchConfig) -> MatchConfig:
    """Check numeric limits of a match configuration and return it."""

    if isinstance(config, SeriesConfig):
        resolve_sets_to_win(sets_to_win=config.sets_to_win)
    elif isinstance(config, TeamSetConfig):
        _positive_int(config.number_of_encounters, "numberOfEncounters")
        _positive_int(config.max_encounters_per_player, "maxEncountersPerPlayer")
    elif isinstance(config, TeamRelayConfig):
        _positive_int(config.number_of_legs, "numberOfLegs")
        _positive_int(config.points_per_leg, "pointsPerLeg")
    else:
        raise TypeError(f"unsupported match config: {type(config).__name__}")
    return config


def validate_series_participants(
    config: SeriesConfig, side1: Sequence[str], side2: Sequence[str]
) -> None:
    label = config.kind.value
    for side, players in ((1, side1), (2, side2)):
        if len(players) != config.arity:
            raise ValidationError(
                f"{label} matches require exactly {config.arity} player(s) per side."
            )
    everyone = list(side1) + list(side2)
    if len(set(everyone)) != len(everyone):
        raise ValidationError("duplicate players are not allowed")


def validate_roster(
    player_ids: Sequence[str], *, min_size: int, max_size: int
) -> List[str]:
    """Validate an ordered team roster and return it as a list."""

    roster = [pid.strip() for pid in player_ids if isinstance(pid, str) and pid.strip()]
    if len(roster) != len(player_ids):
        raise ValidationError("Roster player ids must be non-empty strings.")
    if len(roster) < min_size or len(roster) > max_size:
        raise ValidationError(
            f"A team roster must have between {min_size} and {max_size} players."
        )
    if len(set(roster)) != len(roster):
        raise ValidationError("A player can only appear once on a roster.")
    return roster


def validate_team_match_rosters(
    config: MatchConfig, roster1: Sequence[str], roster2: Sequence[str]
) -> None:
    """Reject team matches whose rosters cannot field every encounter they may need."""

    if not isinstance(config, (TeamSetConfig, TeamRelayConfig)):
        return
    arity = config.arity
    for side, roster in ((1, roster1), (2, roster2)):
        if len(roster) < arity:
            raise ValidationError(
                f"Team {side} needs at least {arity} players for "
                f"{config.encounter_format.value} encounters."
            )
        if isinstance(config, TeamRelayConfig) and len(roster) < arity * config.number_of_legs:
            raise ValidationError(
                f"Team {side} needs {arity * config.number_of_legs} players: "
                "each player may only play one relay leg."
            )
        if isinstance(config, TeamSetConfig):
            needed = config.encounters_to_field
            if not can_field(
                [config.max_encounters_per_player] * len(roster), needed, arity
            ):
                raise ValidationError(
                    f"Team {side} cannot field {needed} {config.encounter_format.value} "
                    f"encounter(s) with {len(roster)} player(s) playing at most "
                    f"{config.max_encounters_per_player} each."
                )
            pairs = len(roster) * (len(roster) - 1) // 2
            if arity == 2 and not config.allow_repeat_pairs and pairs < needed:
                raise ValidationError(
                    f"Team {side} has only {pairs} distinct pair(s) for {needed} "
                    "encounter(s) without repeat pairs."
                )
