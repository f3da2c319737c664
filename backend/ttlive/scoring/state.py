"""Immutable score values for live table-tennis matches.

Every engine operation takes one of these values and returns a new one, so a
history snapshot is simply the previous value. ``score_to_dict`` and
``score_from_dict`` convert to and from the JSON stored on the match row.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Dict, Literal, Optional, Tuple, Union

from ..exceptions import ValidationError

Side = Literal[1, 2]
SIDES: Tuple[Side, Side] = (1, 2)


def other_side(side: Side) -> Side:
    return 2 if side == 1 else 1


def check_side(value: Any, *, field_name: str = "side") -> Side:
    # bool is an int subclass; True would otherwise pass as side 1
    if isinstance(value, bool) or value not in SIDES:
        raise ValidationError(f"{field_name} must be 1 or 2")
    return value


class EncounterStatus(str, Enum):
    PENDING = "Pending"
    LIVE = "Live"
    FINISHED = "Finished"


@dataclass(frozen=True)
class Tally:
    """A pair of per-side counters (points, games, encounters won)."""

    side1: int = 0
    side2: int = 0

    def of(self, side: Side) -> int:
        return self.side1 if side == 1 else self.side2

    def add(self, side: Side, amount: int = 1) -> "Tally":
        if side == 1:
            return replace(self, side1=self.side1 + amount)
        return replace(self, side2=self.side2 + amount)

    @property
    def total(self) -> int:
        return self.side1 + self.side2

    def leader(self) -> Optional[Side]:
        if self.side1 > self.side2:
            return 1
        if self.side2 > self.side1:
            return 2
        return None

    def to_dict(self) -> Dict[str, int]:
        return {"side1": self.side1, "side2": self.side2}

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "Tally":
        if not data:
            return cls()
        return cls(side1=int(data.get("side1", 0)), side2=int(data.get("side2", 0)))


@dataclass(frozen=True)
class CompletedGame:
    side1: int
    side2: int
    winner: Side


@dataclass(frozen=True)
class Encounter:
    """One set of a Team-Set match."""

    index: int
    side1_players: Tuple[str, ...] = ()
    side2_players: Tuple[str, ...] = ()
    status: EncounterStatus = EncounterStatus.PENDING
    final_score: Optional[Tally] = None
    winner: Optional[Side] = None
    tiebreaker: bool = False

    def players(self, side: Side) -> Tuple[str, ...]:
        return self.side1_players if side == 1 else self.side2_players


@dataclass(frozen=True)
class RelayLeg:
    """One leg of a Team-Relay match; scores are cumulative across legs."""

    index: int
    side1_players: Tuple[str, ...] = ()
    side2_players: Tuple[str, ...] = ()
    status: EncounterStatus = EncounterStatus.PENDING
    start_score: Tally = field(default_factory=Tally)
    end_score: Optional[Tally] = None
    winner: Optional[Side] = None

    @property
    def number(self) -> int:
        return self.index + 1

    def players(self, side: Side) -> Tuple[str, ...]:
        return self.side1_players if side == 1 else self.side2_players


@dataclass(frozen=True)
class SeriesScore:
    """Score of an Individual or Dual match: a best-of series of games."""

    current_game: Tally = field(default_factory=Tally)
    server: Side = 1
    completed_games: Tuple[CompletedGame, ...] = ()
    sets_won: Tally = field(default_factory=Tally)


@dataclass(frozen=True)
class TeamSetScore:
    current_game: Tally = field(default_factory=Tally)
    server: Side = 1
    encounters: Tuple[Encounter, ...] = ()
    encounters_won: Tally = field(default_factory=Tally)

    def live_encounter(self) -> Optional[Encounter]:
        return next(
            (e for e in self.encounters if e.status is EncounterStatus.LIVE), None
        )

    def finished_encounters(self) -> Tuple[Encounter, ...]:
        return tuple(
            e for e in self.encounters if e.status is EncounterStatus.FINISHED
        )


@dataclass(frozen=True)
class TeamRelayScore:
    cumulative: Tally = field(default_factory=Tally)
    server: Side = 1
    legs: Tuple[RelayLeg, ...] = ()

    def live_leg(self) -> Optional[RelayLeg]:
        return next((leg for leg in self.legs if leg.status is EncounterStatus.LIVE), None)

    def finished_legs(self) -> Tuple[RelayLeg, ...]:
        return tuple(leg for leg in self.legs if leg.status is EncounterStatus.FINISHED)


Score = Union[SeriesScore, TeamSetScore, TeamRelayScore]


def replace_at(items: Tuple[Any, ...], index: int, item: Any) -> Tuple[Any, ...]:
    return items[:index] + (item,) + items[index + 1 :]


# ---------------------------------------------------------------------------
# JSON codec
# ---------------------------------------------------------------------------


def _tally_or_none(value: Optional[Tally]) -> Optional[Dict[str, int]]:
    return value.to_dict() if value is not None else None


def _encounter_to_dict(e: Encounter) -> Dict[str, Any]:
    return {
        "index": e.index,
        "side1Players": list(e.side1_players),
        "side2Players": list(e.side2_players),
        "status": e.status.value,
        "finalScore": _tally_or_none(e.final_score),
        "winner": e.winner,
        "tiebreaker": e.tiebreaker,
    }


def _leg_to_dict(leg: RelayLeg) -> Dict[str, Any]:
    return {
        "index": leg.index,
        "side1Players": list(leg.side1_players),
        "side2Players": list(leg.side2_players),
        "status": leg.status.value,
        "startScore": leg.start_score.to_dict(),
        "endScore": _tally_or_none(leg.end_score),
        "winner": leg.winner,
    }


def score_to_dict(score: Score) -> Dict[str, Any]:
    if isinstance(score, SeriesScore):
        return {
            "shape": "series",
            "currentGame": score.current_game.to_dict(),
            "server": score.server,
            "completedGames": [
                {"side1": g.side1, "side2": g.side2, "winner": g.winner}
                for g in score.completed_games
            ],
            "setsWon": score.sets_won.to_dict(),
        }
    if isinstance(score, TeamSetScore):
        return {
            "shape": "teamSet",
            "currentGame": score.current_game.to_dict(),
            "server": score.server,
            "encounters": [_encounter_to_dict(e) for e in score.encounters],
            "encountersWon": score.encounters_won.to_dict(),
        }
    if isinstance(score, TeamRelayScore):
        return {
            "shape": "teamRelay",
            "cumulativeScore": score.cumulative.to_dict(),
            "server": score.server,
            "legs": [_leg_to_dict(leg) for leg in score.legs],
        }
    raise TypeError(f"unsupported score type: {type(score).__name__}")


def _optional_tally(data: Optional[Dict[str, Any]]) -> Optional[Tally]:
    return Tally.from_dict(data) if data is not None else None


def score_from_dict(data: Dict[str, Any]) -> Score:
    shape = data.get("shape")
    server = data.get("server", 1)
    if shape == "series":
        return SeriesScore(
            current_game=Tally.from_dict(data.get("currentGame")),
            server=server,
            completed_games=tuple(
                CompletedGame(side1=g["side1"], side2=g["side2"], winner=g["winner"])
                for g in data.get("completedGames") or []
            ),
            sets_won=Tally.from_dict(data.get("setsWon")),
        )
    if shape == "teamSet":
        return TeamSetScore(
            current_game=Tally.from_dict(data.get("currentGame")),
            server=server,
            encounters=tuple(
                Encounter(
                    index=e["index"],
                    side1_players=tuple(e.get("side1Players") or ()),
                    side2_players=tuple(e.get("side2Players") or ()),
                    status=EncounterStatus(e.get("status", "Pending")),
                    final_score=_optional_tally(e.get("finalScore")),
                    winner=e.get("winner"),
                    tiebreaker=bool(e.get("tiebreaker", False)),
                )
                for e in data.get("encounters") or []
            ),
            encounters_won=Tally.from_dict(data.get("encountersWon")),
        )
    if shape == "teamRelay":
        return TeamRelayScore(
            cumulative=Tally.from_dict(data.get("cumulativeScore")),
            server=server,
            legs=tuple(
                RelayLeg(
                    index=leg["index"],
                    side1_players=tuple(leg.get("side1Players") or ()),
                    side2_players=tuple(leg.get("side2Players") or ()),
                    status=EncounterStatus(leg.get("status", "Pending")),
                    start_score=Tally.from_dict(leg.get("startScore")),
                    end_score=_optional_tally(leg.get("endScore")),
                    winner=leg.get("winner"),
                )
                for leg in data.get("legs") or []
            ),
        )
    raise ValueError(f"unknown score shape: {shape!r}")
