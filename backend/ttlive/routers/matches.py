import uuid
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request, Response
from sqlalchemy.ext.asyncio import AsyncSession

from ..config import DEFAULT_MAX_ENCOUNTERS_PER_PLAYER
from ..db import get_session
from ..exceptions import ProblemDetail, StateError, ValidationError
from ..models import Match
from ..ratelimit import limiter, score_rate_limit
from ..repositories import (
    MatchRepository,
    PlayerRepository,
    TeamRepository,
    apply_config,
    match_locks,
)
from ..schemas import (
    ChangeLengthIn,
    MatchCreate,
    MatchOut,
    ScorePointIn,
    SetupEncounterIn,
)
from ..scoring.formats import (
    EncounterFormat,
    MatchConfig,
    MatchKind,
    MatchStatus,
    SeriesConfig,
    TeamRelayConfig,
    TeamSetConfig,
    initial_score,
)
from ..scoring.state import score_to_dict
from ..services import live_scoring
from ..services.validation import (
    resolve_sets_to_win,
    validate_match_config,
    validate_series_participants,
    validate_team_match_rosters,
)

router = APIRouter(
    prefix="/matches",
    tags=["matches"],
    responses={
        400: {"model": ProblemDetail},
        404: {"model": ProblemDetail},
        409: {"model": ProblemDetail},
    },
)


def to_match_out(m: Match, last_result: Optional[str] = None) -> MatchOut:
    return MatchOut(
        id=m.id,
        kind=m.kind,
        subType=m.sub_type,
        encounterFormat=m.encounter_format,
        category=m.category,
        side1PlayerIds=list(m.side1_player_ids or []),
        side2PlayerIds=list(m.side2_player_ids or []),
        team1Id=m.team1_id,
        team2Id=m.team2_id,
        setsToWin=m.sets_to_win,
        numberOfEncounters=m.number_of_encounters,
        maxEncountersPerPlayer=m.max_encounters_per_player,
        allowRepeatPairs=m.allow_repeat_pairs if m.kind == MatchKind.TEAM.value else None,
        numberOfLegs=m.number_of_legs,
        pointsPerLeg=m.points_per_leg,
        status=m.status,
        score=m.score,
        historyLength=len(m.history or []),
        winnerSide=m.winner_side,
        winnerPlayerId=m.winner_player_id,
        startTime=m.start_time,
        endTime=m.end_time,
        createdAt=m.created_at,
        updatedAt=m.updated_at,
        version=m.version,
        lastResult=last_result,
    )


def _config_from_body(body: MatchCreate) -> MatchConfig:
    kind = MatchKind(body.kind)
    if kind is not MatchKind.TEAM:
        return SeriesConfig(
            kind=kind,
            sets_to_win=resolve_sets_to_win(body.setsToWin, body.bestOf),
        )
    encounter_format = EncounterFormat(body.encounterFormat)
    if body.subType == "Set":
        max_per_player = body.maxEncountersPerPlayer
        if max_per_player is None:
            max_per_player = DEFAULT_MAX_ENCOUNTERS_PER_PLAYER
        return TeamSetConfig(
            encounter_format=encounter_format,
            number_of_encounters=body.numberOfEncounters,
            max_encounters_per_player=max_per_player,
            allow_repeat_pairs=body.allowRepeatPairs,
        )
    return TeamRelayConfig(
        encounter_format=encounter_format,
        number_of_legs=body.numberOfLegs,
        points_per_leg=body.pointsPerLeg,
    )


async def create_match(body: MatchCreate, session: AsyncSession) -> Match:
    config = validate_match_config(_config_from_body(body))
    m = Match(
        id=uuid.uuid4().hex,
        category=body.category,
        status=MatchStatus.UPCOMING.value,
        score=score_to_dict(initial_score(config)),
        history=[],
    )
    apply_config(m, config)

    if isinstance(config, SeriesConfig):
        validate_series_participants(config, body.side1PlayerIds, body.side2PlayerIds)
        missing = await PlayerRepository(session).missing(
            body.side1PlayerIds + body.side2PlayerIds
        )
        if missing:
            raise ValidationError(f"unknown player id(s): {', '.join(missing)}")
        m.side1_player_ids = list(body.side1PlayerIds)
        m.side2_player_ids = list(body.side2PlayerIds)
    else:
        if body.team1Id == body.team2Id:
            raise ValidationError("a team cannot play itself")
        teams = TeamRepository(session)
        validate_team_match_rosters(
            config,
            await teams.get_roster(body.team1Id),
            await teams.get_roster(body.team2Id),
        )
        m.team1_id = body.team1Id
        m.team2_id = body.team2Id

    repo = MatchRepository(session)
    repo.add(m)
    await repo.save(m.id)
    await session.refresh(m)
    return m


@router.post("", response_model=MatchOut, status_code=201)
async def create_match_route(
    body: MatchCreate, session: AsyncSession = Depends(get_session)
) -> MatchOut:
    return to_match_out(await create_match(body, session))


@router.get("", response_model=list[MatchOut])
async def list_matches(
    status: Optional[MatchStatus] = Query(None),
    kind: Optional[MatchKind] = Query(None),
    session: AsyncSession = Depends(get_session),
) -> list[MatchOut]:
    rows = await MatchRepository(session).list(
        status=status.value if status else None,
        kind=kind.value if kind else None,
    )
    return [to_match_out(m) for m in rows]


@router.get("/{mid}", response_model=MatchOut)
async def get_match(mid: str, session: AsyncSession = Depends(get_session)) -> MatchOut:
    return to_match_out(await MatchRepository(session).load(mid))


@router.delete("/{mid}", status_code=204)
async def delete_match(mid: str, session: AsyncSession = Depends(get_session)):
    repo = MatchRepository(session)
    async with match_locks.get(mid):
        m = await repo.load(mid)
        if m.status != MatchStatus.UPCOMING.value:
            raise StateError(f"only upcoming matches can be deleted (status {m.status})")
        await repo.delete(m)
    return Response(status_code=204)


@router.post("/{mid}/encounters", response_model=MatchOut)
async def setup_encounter(
    mid: str, body: SetupEncounterIn, session: AsyncSession = Depends(get_session)
) -> MatchOut:
    m = await live_scoring.setup_encounter(
        session,
        mid,
        body.encounterIndex,
        body.side1PlayerIds,
        body.side2PlayerIds,
        body.initialServer,
    )
    return to_match_out(m)


@router.post("/{mid}/points", response_model=MatchOut)
@limiter.limit(score_rate_limit)
async def score_point(
    request: Request,
    mid: str,
    body: ScorePointIn,
    session: AsyncSession = Depends(get_session),
) -> MatchOut:
    scored = await live_scoring.score_point(session, mid, body.scoringSide)
    return to_match_out(scored.match, scored.result.value)


@router.post("/{mid}/undo", response_model=MatchOut)
async def undo_point(mid: str, session: AsyncSession = Depends(get_session)) -> MatchOut:
    return to_match_out(await live_scoring.undo_point(session, mid))


@router.put("/{mid}/length", response_model=MatchOut)
async def change_length(
    mid: str, body: ChangeLengthIn, session: AsyncSession = Depends(get_session)
) -> MatchOut:
    sets_to_win = resolve_sets_to_win(body.setsToWin, body.bestOf)
    return to_match_out(await live_scoring.change_length(session, mid, sets_to_win))


@router.post("/{mid}/cancel", response_model=MatchOut)
async def cancel_match(mid: str, session: AsyncSession = Depends(get_session)) -> MatchOut:
    return to_match_out(await live_scoring.cancel_match(session, mid))
