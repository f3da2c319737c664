from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

revision = "0001_initial"
down_revision = None
branch_labels = None
depends_on = None

JSON_TYPE = sa.JSON().with_variant(postgresql.JSONB(), "postgresql")


def upgrade():
    op.create_table(
        "player",
        sa.Column("id", sa.String(), primary_key=True),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("category", sa.String(), nullable=False),
        sa.Column("photo_url", sa.String(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index(
        "uq_player_name_lower", "player", [sa.text("lower(name)")], unique=True
    )
    op.create_table(
        "team",
        sa.Column("id", sa.String(), primary_key=True),
        sa.Column("name", sa.String(), nullable=False, unique=True),
        sa.Column("player_ids", JSON_TYPE, nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_table(
        "match",
        sa.Column("id", sa.String(), primary_key=True),
        sa.Column("kind", sa.String(), nullable=False),
        sa.Column("sub_type", sa.String(), nullable=True),
        sa.Column("encounter_format", sa.String(), nullable=True),
        sa.Column("category", sa.String(), nullable=True),
        sa.Column("side1_player_ids", JSON_TYPE, nullable=True),
        sa.Column("side2_player_ids", JSON_TYPE, nullable=True),
        sa.Column("team1_id", sa.String(), sa.ForeignKey("team.id"), nullable=True),
        sa.Column("team2_id", sa.String(), sa.ForeignKey("team.id"), nullable=True),
        sa.Column("sets_to_win", sa.Integer(), nullable=True),
        sa.Column("number_of_encounters", sa.Integer(), nullable=True),
        sa.Column("max_encounters_per_player", sa.Integer(), nullable=True),
        sa.Column("allow_repeat_pairs", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("number_of_legs", sa.Integer(), nullable=True),
        sa.Column("points_per_leg", sa.Integer(), nullable=True),
        sa.Column("status", sa.String(), nullable=False),
        sa.Column("score", JSON_TYPE, nullable=False),
        sa.Column("history", JSON_TYPE, nullable=False),
        sa.Column("winner_side", sa.Integer(), nullable=True),
        sa.Column("winner_player_id", sa.String(), nullable=True),
        sa.Column("start_time", sa.DateTime(timezone=True), nullable=True),
        sa.Column("end_time", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("version", sa.Integer(), nullable=False),
    )
    op.create_index("ix_match_status", "match", ["status"])

def downgrade():
    op.drop_index("ix_match_status", table_name="match")
    op.drop_table("match")
    op.drop_table("team")
    op.drop_index("uq_player_name_lower", table_name="player")
    op.drop_table("player")
