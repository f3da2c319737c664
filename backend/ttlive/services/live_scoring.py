"""Live scoring operations against stored matches.

Each operation runs under the match's lock: load the row, run the pure
engine, write the result back and commit. A failed engine call leaves the
stored match untouched.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional, Sequence

from sqlalchemy.ext.asyncio import AsyncSession

from ..models import Match
from ..repositories import (
    MatchRepository,
    TeamRepository,
    apply_config,
    history_of,
    match_locks,
    store_score,
    view_from_row,
)
from ..scoring.formats import MatchKind, MatchStatus
from ..scoring.state import Side
from ..time_utils import utcnow
from . import history as point_history
from . import orchestrator
from .orchestrator import MatchView, PointResult

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ScoredPoint:
    match: Match
    result: PointResult


def _record_winner(row: Match, view: MatchView, side: Optional[Side]) -> None:
    row.winner_side = side
    row.winner_player_id = None
    if side is not None and view.config.kind is MatchKind.INDIVIDUAL:
        players = view.participants.get(side) or ()
        row.winner_player_id = players[0] if players else None
    row.end_time = utcnow()


async def setup_encounter(
    session: AsyncSession,
    match_id: str,
    index: int,
    side1_player_ids: Sequence[str],
    side2_player_ids: Sequence[str],
    initial_server: Side,
) -> Match:
    repo = MatchRepository(session)
    async with match_locks.get(match_id):
        row = await repo.load(match_id)
        view = view_from_row(row)
        rosters = None
        if view.config.kind is MatchKind.TEAM:
            teams = TeamRepository(session)
            rosters = {
                1: await teams.get_roster(row.team1_id),
                2: await teams.get_roster(row.team2_id),
            }
        result = orchestrator.setup_encounter(
            view,
            index,
            {1: side1_player_ids, 2: side2_player_ids},
            initial_server,
            rosters,
        )
        if view.status is MatchStatus.UPCOMING:
            row.start_time = utcnow()
        row.status = result.status.value
        # undo never crosses an encounter boundary
        store_score(row, result.score, ())
        await repo.save(match_id)

    logger.info(
        "Match %s: %s %d set up",
        match_id,
        "tiebreaker" if result.tiebreaker else "encounter",
        result.index,
    )
    return row


async def score_point(session: AsyncSession, match_id: str, side: Side) -> ScoredPoint:
    repo = MatchRepository(session)
    async with match_locks.get(match_id):
        row = await repo.load(match_id)
        view = view_from_row(row)
        outcome = orchestrator.score_point(view, side)
        entries = point_history.record_before(history_of(row), view.score, side)
        row.status = outcome.status.value
        store_score(row, outcome.score, entries)
        if outcome.status is MatchStatus.FINISHED:
            _record_winner(row, view, outcome.winner_side)
        await repo.save(match_id)

    if outcome.result is not PointResult.POINT:
        logger.info(
            "Match %s: %s won by side %s, status %s",
            match_id,
            outcome.result.value,
            side,
            outcome.status.value,
        )
    return ScoredPoint(match=row, result=outcome.result)


async def undo_point(session: AsyncSession, match_id: str) -> Match:
    repo = MatchRepository(session)
    async with match_locks.get(match_id):
        row = await repo.load(match_id)
        undone = point_history.undo(
            MatchStatus(row.status), history_of(row), match_id=match_id
        )
        row.status = undone.status.value
        store_score(row, undone.score, undone.history)
        if undone.reopened:
            row.winner_side = None
            row.winner_player_id = None
            row.end_time = None
        await repo.save(match_id)

    logger.info(
        "Match %s: undid point for side %s%s",
        match_id,
        undone.undone.scoring_side,
        " (reopened)" if undone.reopened else "",
    )
    return row


async def change_length(session: AsyncSession, match_id: str, sets_to_win: int) -> Match:
    repo = MatchRepository(session)
    async with match_locks.get(match_id):
        row = await repo.load(match_id)
        config = orchestrator.change_length(view_from_row(row), sets_to_win)
        apply_config(row, config)
        row.updated_at = utcnow()
        await repo.save(match_id)
    return row


async def cancel_match(session: AsyncSession, match_id: str) -> Match:
    repo = MatchRepository(session)
    async with match_locks.get(match_id):
        row = await repo.load(match_id)
        row.status = orchestrator.cancel(view_from_row(row)).value
        row.updated_at = utcnow()
        await repo.save(match_id)
    logger.info("Match %s cancelled", match_id)
    return row
