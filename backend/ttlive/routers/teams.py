import uuid

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy import select, or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from ..config import TEAM_MAX_ROSTER, TEAM_MIN_ROSTER
from ..db import get_session
from ..exceptions import ProblemDetail, StateError, TeamAlreadyExists, ValidationError
from ..models import Match, Player, Team
from ..repositories import PlayerRepository, TeamRepository
from ..schemas import TeamCreate, TeamOut
from ..services.validation import validate_roster
from .players import to_player_out

router = APIRouter(
    prefix="/teams",
    tags=["teams"],
    responses={400: {"model": ProblemDetail}, 404: {"model": ProblemDetail}},
)


async def _to_team_out(session: AsyncSession, team: Team) -> TeamOut:
    ids = list(team.player_ids or [])
    players = []
    if ids:
        rows = (
            await session.execute(select(Player).where(Player.id.in_(ids)))
        ).scalars().all()
        by_id = {p.id: p for p in rows}
        players = [to_player_out(by_id[pid]) for pid in ids if pid in by_id]
    return TeamOut(
        id=team.id,
        name=team.name,
        playerIds=ids,
        players=players,
        createdAt=team.created_at,
    )


@router.post("", response_model=TeamOut, status_code=status.HTTP_201_CREATED)
async def create_team(body: TeamCreate, session: AsyncSession = Depends(get_session)):
    roster = validate_roster(
        body.playerIds, min_size=TEAM_MIN_ROSTER, max_size=TEAM_MAX_ROSTER
    )
    missing = await PlayerRepository(session).missing(roster)
    if missing:
        raise ValidationError(f"unknown player id(s): {', '.join(missing)}")

    exists = (
        await session.execute(select(Team.id).where(Team.name == body.name))
    ).scalar_one_or_none()
    if exists:
        raise TeamAlreadyExists(body.name)

    team = Team(id=uuid.uuid4().hex, name=body.name, player_ids=roster)
    session.add(team)
    try:
        await session.commit()
    except IntegrityError:
        await session.rollback()
        raise TeamAlreadyExists(body.name)
    await session.refresh(team)
    return await _to_team_out(session, team)


@router.get("", response_model=list[TeamOut])
async def list_teams(session: AsyncSession = Depends(get_session)) -> list[TeamOut]:
    rows = (await session.execute(select(Team).order_by(Team.name))).scalars().all()
    return [await _to_team_out(session, team) for team in rows]


@router.get("/{team_id}", response_model=TeamOut)
async def get_team(team_id: str, session: AsyncSession = Depends(get_session)):
    team = await TeamRepository(session).get(team_id)
    return await _to_team_out(session, team)


@router.delete("/{team_id}", status_code=204)
async def delete_team(team_id: str, session: AsyncSession = Depends(get_session)):
    team = await TeamRepository(session).get(team_id)
    used = (
        await session.execute(
            select(Match.id)
            .where(or_(Match.team1_id == team_id, Match.team2_id == team_id))
            .limit(1)
        )
    ).scalar_one_or_none()
    if used:
        raise StateError("team is referenced by a match", code="team_in_use")
    await session.delete(team)
    await session.commit()
    return Response(status_code=204)
