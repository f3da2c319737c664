"""Storage boundary between the scoring engine and the database.

The engine only ever sees ``MatchView`` values; this module turns ``Match``
rows into views and writes engine results back. Writes go through
SQLAlchemy's ``version_id_col`` so two writers holding the same version of a
match cannot both commit.
"""

from __future__ import annotations

import asyncio
import logging
import weakref
from typing import Dict, List, Optional, Sequence, Tuple

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm.exc import StaleDataError

from .exceptions import ConflictError, MatchNotFound, TeamNotFound
from .models import Match, Player, Team
from .scoring.formats import (
    EncounterFormat,
    MatchConfig,
    MatchKind,
    MatchStatus,
    SeriesConfig,
    TeamRelayConfig,
    TeamSetConfig,
    TeamSubType,
)
from .scoring.state import Score, Side, score_from_dict, score_to_dict
from .services.history import History, history_from_json, history_to_json
from .services.orchestrator import MatchView
from .time_utils import utcnow

logger = logging.getLogger(__name__)


class MatchLocks:
    """Per-match ``asyncio.Lock`` registry.

    Locks are held weakly so idle matches do not accumulate, and keyed by the
    running loop because a lock may not be shared across event loops.
    """

    def __init__(self) -> None:
        self._locks: "weakref.WeakValueDictionary[Tuple[int, str], asyncio.Lock]" = (
            weakref.WeakValueDictionary()
        )

    def get(self, match_id: str) -> asyncio.Lock:
        key = (id(asyncio.get_running_loop()), match_id)
        lock = self._locks.get(key)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[key] = lock
        return lock


match_locks = MatchLocks()


def config_from_row(row: Match) -> MatchConfig:
    kind = MatchKind(row.kind)
    if kind is not MatchKind.TEAM:
        return SeriesConfig(kind=kind, sets_to_win=row.sets_to_win)
    encounter_format = EncounterFormat(row.encounter_format)
    if TeamSubType(row.sub_type) is TeamSubType.SET:
        return TeamSetConfig(
            encounter_format=encounter_format,
            number_of_encounters=row.number_of_encounters,
            max_encounters_per_player=row.max_encounters_per_player,
            allow_repeat_pairs=bool(row.allow_repeat_pairs),
        )
    return TeamRelayConfig(
        encounter_format=encounter_format,
        number_of_legs=row.number_of_legs,
        points_per_leg=row.points_per_leg,
    )


def apply_config(row: Match, config: MatchConfig) -> None:
    row.kind = config.kind.value
    if isinstance(config, SeriesConfig):
        row.sets_to_win = config.sets_to_win
        return
    row.sub_type = config.sub_type.value
    row.encounter_format = config.encounter_format.value
    if isinstance(config, TeamSetConfig):
        row.number_of_encounters = config.number_of_encounters
        row.max_encounters_per_player = config.max_encounters_per_player
        row.allow_repeat_pairs = config.allow_repeat_pairs
    else:
        row.number_of_legs = config.number_of_legs
        row.points_per_leg = config.points_per_leg


def view_from_row(row: Match) -> MatchView:
    participants: Dict[Side, Tuple[str, ...]] = {}
    if row.kind != MatchKind.TEAM.value:
        participants = {
            1: tuple(row.side1_player_ids or ()),
            2: tuple(row.side2_player_ids or ()),
        }
    return MatchView(
        config=config_from_row(row),
        status=MatchStatus(row.status),
        score=score_from_dict(row.score),
        participants=participants,
    )


def history_of(row: Match) -> History:
    return history_from_json(row.history)


def store_score(row: Match, score: Score, history: History) -> None:
    # new objects so the JSON columns are flagged dirty
    row.score = score_to_dict(score)
    row.history = history_to_json(history)
    row.updated_at = utcnow()


class MatchRepository:
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def get(self, match_id: str) -> Optional[Match]:
        return await self.session.get(Match, match_id)

    async def load(self, match_id: str) -> Match:
        row = await self.get(match_id)
        if row is None:
            raise MatchNotFound(match_id)
        # another request may have committed since this session last looked
        await self.session.refresh(row)
        return row

    async def list(
        self, *, status: Optional[str] = None, kind: Optional[str] = None
    ) -> List[Match]:
        stmt = select(Match)
        if status:
            stmt = stmt.where(Match.status == status)
        if kind:
            stmt = stmt.where(Match.kind == kind)
        stmt = stmt.order_by(Match.created_at.desc(), Match.id)
        return list((await self.session.execute(stmt)).scalars().all())

    def add(self, row: Match) -> None:
        self.session.add(row)

    async def delete(self, row: Match) -> None:
        await self.session.delete(row)
        await self.save(row.id)

    async def save(self, match_id: str) -> None:
        """Commit pending changes to the match; a stale version raises ``ConflictError``."""
        try:
            await self.session.commit()
        except StaleDataError:
            await self.session.rollback()
            logger.warning("Concurrent modification of match %s", match_id)
            raise ConflictError(match_id)


class TeamRepository:
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def get(self, team_id: str) -> Team:
        team = await self.session.get(Team, team_id)
        if team is None:
            raise TeamNotFound(team_id)
        return team

    async def get_roster(self, team_id: str) -> List[str]:
        team = await self.get(team_id)
        return list(team.player_ids or [])


class PlayerRepository:
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def exists(self, player_id: str) -> bool:
        found = await self.session.execute(select(Player.id).where(Player.id == player_id))
        return found.scalar_one_or_none() is not None

    async def missing(self, player_ids: Sequence[str]) -> List[str]:
        """Return the ids from ``player_ids`` that do not exist."""
        return [pid for pid in player_ids if not await self.exists(pid)]
