"""Point history for undo.

Each entry holds the score value as it was *before* a point was applied.
Because scores are immutable the snapshot is the value itself; undo swaps
it back in wholesale.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Sequence, Tuple

from ..exceptions import NoHistoryError, StateError
from ..scoring.formats import MatchStatus
from ..scoring.state import Score, Side, score_from_dict, score_to_dict
from ..time_utils import coerce_utc


@dataclass(frozen=True)
class PointHistoryEntry:
    scoring_side: Side
    snapshot: Score
    timestamp: datetime

    def to_dict(self) -> Dict[str, Any]:
        return {
            "scoringSide": self.scoring_side,
            "snapshot": score_to_dict(self.snapshot),
            "timestamp": self.timestamp.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PointHistoryEntry":
        return cls(
            scoring_side=data["scoringSide"],
            snapshot=score_from_dict(data["snapshot"]),
            timestamp=coerce_utc(datetime.fromisoformat(data["timestamp"])),
        )


History = Tuple[PointHistoryEntry, ...]

# statuses a point can leave a match in; undo is meaningful from any of them
UNDOABLE_STATUSES = frozenset(
    {
        MatchStatus.LIVE,
        MatchStatus.AWAITING_ENCOUNTER_SETUP,
        MatchStatus.AWAITING_TIEBREAKER_SETUP,
        MatchStatus.FINISHED,
    }
)


@dataclass(frozen=True)
class UndoResult:
    score: Score
    status: MatchStatus
    history: History
    undone: PointHistoryEntry
    reopened: bool


def record_before(
    history: Sequence[PointHistoryEntry],
    score: Score,
    scoring_side: Side,
    now: Optional[datetime] = None,
) -> History:
    entry = PointHistoryEntry(
        scoring_side=scoring_side,
        snapshot=score,
        timestamp=now or datetime.now(timezone.utc),
    )
    return tuple(history) + (entry,)


def undo(
    status: MatchStatus,
    history: Sequence[PointHistoryEntry],
    *,
    match_id: Optional[str] = None,
) -> UndoResult:
    """Revert the most recent point.

    Points are only ever recorded while a match is Live, so the restored
    snapshot always belongs to a Live match: the status returns to Live and
    ``reopened`` tells the caller to clear the winner and end time when the
    undone point had closed an encounter or the match.
    """
    if status not in UNDOABLE_STATUSES:
        raise StateError(f"cannot undo a point while the match is {status.value}")
    if not history:
        raise NoHistoryError(match_id)

    *rest, last = history
    return UndoResult(
        score=last.snapshot,
        status=MatchStatus.LIVE,
        history=tuple(rest),
        undone=last,
        reopened=status is not MatchStatus.LIVE,
    )


def history_to_json(history: Sequence[PointHistoryEntry]) -> List[Dict[str, Any]]:
    return [entry.to_dict() for entry in history]


def history_from_json(data: Optional[Sequence[Dict[str, Any]]]) -> History:
    return tuple(PointHistoryEntry.from_dict(item) for item in data or ())
