import uuid
from typing import Optional

from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from ..db import get_session
from ..models import Player, Match, Team
from ..schemas import Category, PlayerCreate, PlayerOut
from ..exceptions import ProblemDetail, PlayerAlreadyExists, PlayerNotFound, StateError

router = APIRouter(
    prefix="/players",
    tags=["players"],
    responses={400: {"model": ProblemDetail}, 404: {"model": ProblemDetail}},
)


def to_player_out(p: Player) -> PlayerOut:
    return PlayerOut(
        id=p.id,
        name=p.name,
        category=p.category,
        photoUrl=p.photo_url,
        createdAt=p.created_at,
    )


@router.post("", response_model=PlayerOut, status_code=201)
async def create_player(
    body: PlayerCreate,
    session: AsyncSession = Depends(get_session),
):
    exists = (
        await session.execute(
            select(Player.id).where(func.lower(Player.name) == body.name.lower())
        )
    ).scalar_one_or_none()
    if exists:
        raise PlayerAlreadyExists(body.name)
    p = Player(
        id=uuid.uuid4().hex,
        name=body.name,
        category=body.category,
        photo_url=body.photoUrl,
    )
    session.add(p)
    await session.commit()
    await session.refresh(p)
    return to_player_out(p)


@router.get("", response_model=list[PlayerOut])
async def list_players(
    category: Optional[Category] = Query(None),
    session: AsyncSession = Depends(get_session),
):
    stmt = select(Player).order_by(Player.name)
    if category:
        stmt = stmt.where(Player.category == category)
    rows = (await session.execute(stmt)).scalars().all()
    return [to_player_out(p) for p in rows]


@router.get("/{player_id}", response_model=PlayerOut)
async def get_player(player_id: str, session: AsyncSession = Depends(get_session)):
    p = await session.get(Player, player_id)
    if not p:
        raise PlayerNotFound(player_id)
    return to_player_out(p)


async def _is_referenced(session: AsyncSession, player_id: str) -> bool:
    rosters = (await session.execute(select(Team.player_ids))).scalars().all()
    if any(player_id in (ids or []) for ids in rosters):
        return True
    sides = (
        await session.execute(select(Match.side1_player_ids, Match.side2_player_ids))
    ).all()
    return any(player_id in (s1 or []) or player_id in (s2 or []) for s1, s2 in sides)


@router.delete("/{player_id}", status_code=204)
async def delete_player(player_id: str, session: AsyncSession = Depends(get_session)):
    p = await session.get(Player, player_id)
    if not p:
        raise PlayerNotFound(player_id)
    if await _is_referenced(session, player_id):
        raise StateError("player is on a team or in a match", code="player_in_use")
    await session.delete(p)
    await session.commit()
    return Response(status_code=204)
