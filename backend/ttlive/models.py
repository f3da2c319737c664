from sqlalchemy import (
    Column,
    String,
    DateTime,
    ForeignKey,
    JSON,
    Integer,
    Boolean,
    Index,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.sql import func
from .db import Base


def _json():
    return JSON().with_variant(JSONB, "postgresql")


class Player(Base):
    __tablename__ = "player"
    id = Column(String, primary_key=True)
    name = Column(String, nullable=False)
    category = Column(String, nullable=False)  # "Super Senior" | "Senior" | "Junior"
    photo_url = Column(String, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    __table_args__ = (
        Index("uq_player_name_lower", func.lower(name), unique=True),
    )


class Team(Base):
    __tablename__ = "team"
    id = Column(String, primary_key=True)
    name = Column(String, nullable=False, unique=True)
    # ordered list of player ids
    player_ids = Column(_json(), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)


class Match(Base):
    __tablename__ = "match"
    id = Column(String, primary_key=True)
    kind = Column(String, nullable=False)  # Individual | Dual | Team
    sub_type = Column(String, nullable=True)  # Set | Relay for team matches
    encounter_format = Column(String, nullable=True)  # Single | Pair
    category = Column(String, nullable=True)

    side1_player_ids = Column(_json(), nullable=True)
    side2_player_ids = Column(_json(), nullable=True)
    team1_id = Column(String, ForeignKey("team.id"), nullable=True)
    team2_id = Column(String, ForeignKey("team.id"), nullable=True)

    sets_to_win = Column(Integer, nullable=True)
    number_of_encounters = Column(Integer, nullable=True)
    max_encounters_per_player = Column(Integer, nullable=True)
    allow_repeat_pairs = Column(Boolean, nullable=False, default=True)
    number_of_legs = Column(Integer, nullable=True)
    points_per_leg = Column(Integer, nullable=True)

    status = Column(String, nullable=False, default="Upcoming")
    score = Column(_json(), nullable=False)
    history = Column(_json(), nullable=False, default=list)
    winner_side = Column(Integer, nullable=True)
    winner_player_id = Column(String, nullable=True)

    start_time = Column(DateTime(timezone=True), nullable=True)
    end_time = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), nullable=True)

    # bumped on every flush; a stale writer gets StaleDataError
    version = Column(Integer, nullable=False)

    __mapper_args__ = {"version_id_col": version}

    __table_args__ = (
        Index("ix_match_status", "status"),
    )
