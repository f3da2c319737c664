from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ..db import get_session
from ..models import Match, Player, Team
from ..schemas import Category, RankingOut
from ..scoring.formats import MatchStatus
from ..services.rankings import compute_rankings

router = APIRouter(prefix="/stats", tags=["stats"])


@router.get("/rankings", response_model=list[RankingOut])
async def rankings(
    category: Optional[Category] = Query(None),
    session: AsyncSession = Depends(get_session),
) -> list[RankingOut]:
    matches = (
        await session.execute(
            select(Match).where(Match.status == MatchStatus.FINISHED.value)
        )
    ).scalars().all()
    if not matches:
        return []
    players = {p.id: p for p in (await session.execute(select(Player))).scalars().all()}
    rosters = {
        t.id: list(t.player_ids or [])
        for t in (await session.execute(select(Team))).scalars().all()
    }
    ranked = compute_rankings(matches, players, rosters, category=category)
    return [RankingOut(**row) for row in ranked]
