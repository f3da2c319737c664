from typing import Any, Dict, List, Literal, Optional
from datetime import datetime
from pydantic import BaseModel, Field, model_validator, field_validator, ConfigDict

Category = Literal["Super Senior", "Senior", "Junior"]


def _strip_required(value: Any, field_name: str) -> str:
    if not isinstance(value, str):
        raise TypeError(f"{field_name} must be a string")
    trimmed = value.strip()
    if not trimmed:
        raise ValueError(f"{field_name} must not be empty")
    return trimmed


class PlayerCreate(BaseModel):
    name: str = Field(
        ..., min_length=1, max_length=50, pattern=r"^[A-Za-z0-9 .'-]+$"
    )
    category: Category
    photoUrl: Optional[str] = Field(default=None, max_length=500)

    model_config = ConfigDict(extra="forbid")

    @field_validator("name", mode="before")
    @classmethod
    def _validate_name(cls, value: Any) -> str:
        return _strip_required(value, "name")


class PlayerOut(BaseModel):
    id: str
    name: str
    category: str
    photoUrl: Optional[str] = None
    createdAt: Optional[datetime] = None


class TeamCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    playerIds: List[str]

    model_config = ConfigDict(extra="forbid")

    @field_validator("name", mode="before")
    @classmethod
    def _validate_name(cls, value: Any) -> str:
        return _strip_required(value, "name")


class TeamOut(BaseModel):
    id: str
    name: str
    playerIds: List[str]
    players: List[PlayerOut] = Field(default_factory=list)
    createdAt: Optional[datetime] = None


class MatchCreate(BaseModel):
    """Payload for scheduling a match.

    Individual/Dual matches list their players per side and a length given
    as ``setsToWin`` or ``bestOf``. Team matches name two teams and a
    ``subType`` with its own settings.
    """

    kind: Literal["Individual", "Dual", "Team"]
    category: Optional[Category] = None

    side1PlayerIds: List[str] = Field(default_factory=list)
    side2PlayerIds: List[str] = Field(default_factory=list)
    setsToWin: Optional[int] = None
    bestOf: Optional[int] = None

    team1Id: Optional[str] = None
    team2Id: Optional[str] = None
    subType: Optional[Literal["Set", "Relay"]] = None
    encounterFormat: Optional[Literal["Single", "Pair"]] = None
    numberOfEncounters: Optional[int] = None
    maxEncountersPerPlayer: Optional[int] = None
    allowRepeatPairs: bool = True
    numberOfLegs: Optional[int] = None
    pointsPerLeg: Optional[int] = None

    model_config = ConfigDict(extra="forbid")

    @model_validator(mode="after")
    def _check_required(self) -> "MatchCreate":
        if self.kind != "Team":
            if self.setsToWin is None and self.bestOf is None:
                raise ValueError("setsToWin or bestOf is required")
            return self

        missing = [
            name
            for name in ("team1Id", "team2Id", "subType", "encounterFormat")
            if getattr(self, name) is None
        ]
        if self.subType == "Set" and self.numberOfEncounters is None:
            missing.append("numberOfEncounters")
        if self.subType == "Relay":
            missing.extend(
                name
                for name in ("numberOfLegs", "pointsPerLeg")
                if getattr(self, name) is None
            )
        if missing:
            raise ValueError(
                f"{', '.join(missing)} required for Team matches"
            )
        return self


class MatchOut(BaseModel):
    id: str
    kind: str
    subType: Optional[str] = None
    encounterFormat: Optional[str] = None
    category: Optional[str] = None
    side1PlayerIds: List[str] = Field(default_factory=list)
    side2PlayerIds: List[str] = Field(default_factory=list)
    team1Id: Optional[str] = None
    team2Id: Optional[str] = None
    setsToWin: Optional[int] = None
    numberOfEncounters: Optional[int] = None
    maxEncountersPerPlayer: Optional[int] = None
    allowRepeatPairs: Optional[bool] = None
    numberOfLegs: Optional[int] = None
    pointsPerLeg: Optional[int] = None
    status: str
    score: Dict[str, Any]
    historyLength: int
    winnerSide: Optional[int] = None
    winnerPlayerId: Optional[str] = None
    startTime: Optional[datetime] = None
    endTime: Optional[datetime] = None
    createdAt: Optional[datetime] = None
    updatedAt: Optional[datetime] = None
    version: int
    # set on point responses: "point" | "game" | "encounter" | "match"
    lastResult: Optional[str] = None


class SetupEncounterIn(BaseModel):
    encounterIndex: int = 0
    side1PlayerIds: List[str] = Field(default_factory=list)
    side2PlayerIds: List[str] = Field(default_factory=list)
    initialServer: int


class ScorePointIn(BaseModel):
    scoringSide: int


class ChangeLengthIn(BaseModel):
    setsToWin: Optional[int] = None
    bestOf: Optional[int] = None

    @model_validator(mode="after")
    def _one_of(self) -> "ChangeLengthIn":
        if self.setsToWin is None and self.bestOf is None:
            raise ValueError("setsToWin or bestOf is required")
        return self


class RankingOut(BaseModel):
    id: str
    name: str
    category: str
    photoUrl: Optional[str] = None
    points: int
    wins: int
