"""Match kinds and their configuration variants."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Union

from .state import (
    Encounter,
    RelayLeg,
    Score,
    SeriesScore,
    TeamRelayScore,
    TeamSetScore,
)


class MatchKind(str, Enum):
    INDIVIDUAL = "Individual"
    DUAL = "Dual"
    TEAM = "Team"


class TeamSubType(str, Enum):
    SET = "Set"
    RELAY = "Relay"


class EncounterFormat(str, Enum):
    SINGLE = "Single"
    PAIR = "Pair"


class MatchStatus(str, Enum):
    UPCOMING = "Upcoming"
    LIVE = "Live"
    AWAITING_ENCOUNTER_SETUP = "AwaitingEncounterSetup"
    AWAITING_TIEBREAKER_SETUP = "AwaitingTiebreakerSetup"
    FINISHED = "Finished"
    CANCELLED = "Cancelled"


AWAITING_SETUP = frozenset(
    {MatchStatus.AWAITING_ENCOUNTER_SETUP, MatchStatus.AWAITING_TIEBREAKER_SETUP}
)

# bestOf as entered at the scorer's table -> games needed to win
BEST_OF_TO_SETS_TO_WIN = {1: 1, 3: 2, 5: 3}


def format_arity(encounter_format: EncounterFormat) -> int:
    return 1 if encounter_format is EncounterFormat.SINGLE else 2


@dataclass(frozen=True)
class SeriesConfig:
    """Individual (1 v 1) or Dual (2 v 2) match played as a series of games."""

    kind: MatchKind
    sets_to_win: int

    @property
    def arity(self) -> int:
        return 1 if self.kind is MatchKind.INDIVIDUAL else 2


@dataclass(frozen=True)
class TeamSetConfig:
    encounter_format: EncounterFormat
    number_of_encounters: int
    max_encounters_per_player: int = 2
    allow_repeat_pairs: bool = True

    kind = MatchKind.TEAM
    sub_type = TeamSubType.SET

    @property
    def arity(self) -> int:
        return format_arity(self.encounter_format)

    @property
    def encounters_to_field(self) -> int:
        """Regular encounters plus the tiebreaker an even count may need."""
        extra = 1 if self.number_of_encounters % 2 == 0 else 0
        return self.number_of_encounters + extra


@dataclass(frozen=True)
class TeamRelayConfig:
    encounter_format: EncounterFormat
    number_of_legs: int
    points_per_leg: int

    kind = MatchKind.TEAM
    sub_type = TeamSubType.RELAY

    @property
    def arity(self) -> int:
        return format_arity(self.encounter_format)

    def leg_target(self, leg_number: int) -> int:
        return self.points_per_leg * leg_number

    @property
    def final_target(self) -> int:
        return self.points_per_leg * self.number_of_legs


MatchConfig = Union[SeriesConfig, TeamSetConfig, TeamRelayConfig]


def initial_score(config: MatchConfig) -> Score:
    """Empty score for a new match, with a Pending slot per encounter/leg."""
    if isinstance(config, SeriesConfig):
        return SeriesScore()
    if isinstance(config, TeamSetConfig):
        return TeamSetScore(
            encounters=tuple(
                Encounter(index=i) for i in range(config.number_of_encounters)
            )
        )
    if isinstance(config, TeamRelayConfig):
        return TeamRelayScore(
            legs=tuple(RelayLeg(index=i) for i in range(config.number_of_legs))
        )
    raise TypeError(f"unsupported match config: {type(config).__name__}")
