from __future__ import annotations

from collections import defaultdict
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence

from ..config import RANKING_WIN_BONUS
from ..scoring.formats import MatchKind, MatchStatus
from ..scoring.state import (
    Score,
    SeriesScore,
    Tally,
    TeamRelayScore,
    TeamSetScore,
    score_from_dict,
)


def side_points(score: Score) -> Tally:
    """Total points each side scored over a finished match."""
    if isinstance(score, SeriesScore):
        total = Tally()
        for game in score.completed_games:
            total = Tally(total.side1 + game.side1, total.side2 + game.side2)
        return total
    if isinstance(score, TeamSetScore):
        total = Tally()
        for encounter in score.finished_encounters():
            final = encounter.final_score or Tally()
            total = Tally(total.side1 + final.side1, total.side2 + final.side2)
        return total
    if isinstance(score, TeamRelayScore):
        return score.cumulative
    raise TypeError(f"unsupported score type: {type(score).__name__}")


def _side_players(match: Any, rosters: Mapping[str, Sequence[str]]) -> Dict[int, List[str]]:
    if match.kind == MatchKind.TEAM.value:
        return {
            1: list(rosters.get(match.team1_id) or []),
            2: list(rosters.get(match.team2_id) or []),
        }
    return {1: list(match.side1_player_ids or []), 2: list(match.side2_player_ids or [])}


def compute_rankings(
    matches: Iterable[Any],
    players: Mapping[str, Any],
    rosters: Mapping[str, Sequence[str]],
    *,
    category: Optional[str] = None,
) -> List[Dict[str, Any]]:
    """Aggregate ranking points per player over finished matches.

    Args:
        matches: match rows; anything not Finished with a winner is skipped.
        players: player rows by id; ids missing here are skipped.
        rosters: team id to player ids, used for team matches.
        category: only rank players of this category.
    Returns:
        list of ``{"id", "name", "category", "photoUrl", "points", "wins"}``
        sorted by points descending, then name.
    """
    stats: Dict[str, Dict[str, int]] = defaultdict(lambda: {"points": 0, "wins": 0})
    for match in matches:
        if match.status != MatchStatus.FINISHED.value or match.winner_side is None:
            continue
        points = side_points(score_from_dict(match.score))
        for side, player_ids in _side_players(match, rosters).items():
            won = match.winner_side == side
            for pid in player_ids:
                if pid not in players:
                    continue
                entry = stats[pid]
                entry["points"] += points.of(side)
                if won:
                    entry["points"] += RANKING_WIN_BONUS
                    entry["wins"] += 1

    ranked = []
    for pid, entry in stats.items():
        player = players[pid]
        if category and player.category != category:
            continue
        ranked.append(
            {
                "id": pid,
                "name": player.name,
                "category": player.category,
                "photoUrl": player.photo_url,
                "points": entry["points"],
                "wins": entry["wins"],
            }
        )
    ranked.sort(key=lambda r: (-r["points"], r["name"]))
    return ranked
