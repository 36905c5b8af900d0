"""user data v1: users and visits

Revision ID: 0001_user_data_v1
Revises:
Create Date: 2025-06-20 09:00:00.000000

"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "0001_user_data_v1"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table(
        "users",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("last_active", sa.DateTime(), nullable=False),
        sa.Column("display_name", sa.String(length=255), nullable=True),
        sa.Column("email", sa.String(length=255), nullable=True),
        sa.Column("has_completed_onboarding", sa.Boolean(), nullable=False),
        sa.Column("current_city_name", sa.String(length=100), nullable=True),
        sa.Column("total_visits", sa.Integer(), nullable=False),
        sa.Column("unique_parks_visited", sa.Integer(), nullable=False),
        sa.Column("journal_entry_count", sa.Integer(), nullable=False),
        sa.Column("current_streak_days", sa.Integer(), nullable=False),
        sa.Column("longest_streak_days", sa.Integer(), nullable=False),
        sa.Column(
            "preferred_units",
            sa.Enum("imperial", "metric", name="unitsystem"),
            nullable=False,
        ),
        sa.Column(
            "default_privacy_level",
            sa.Enum("private", "friends", "public", name="privacylevel"),
            nullable=False,
        ),
        sa.Column("enable_location_tracking", sa.Boolean(), nullable=False),
        sa.Column("enable_notifications", sa.Boolean(), nullable=False),
        sa.Column("enable_analytics", sa.Boolean(), nullable=False),
        sa.Column("enable_weather_data", sa.Boolean(), nullable=False),
        sa.Column("preferred_visit_duration", sa.Float(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_users_created_at", "users", ["created_at"])

    op.create_table(
        "visits",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("timestamp", sa.DateTime(), nullable=False),
        sa.Column("journal_entry", sa.Text(), nullable=True),
        sa.Column("park_unique_id", sa.String(length=255), nullable=False),
        sa.Column("park_name", sa.String(length=255), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.Column("user_id", sa.Uuid(), nullable=True),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_visits_timestamp", "visits", ["timestamp"])
    op.create_index("ix_visits_park_unique_id", "visits", ["park_unique_id"])
    op.create_index("ix_visits_user_id", "visits", ["user_id"])


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_index("ix_visits_user_id", table_name="visits")
    op.drop_index("ix_visits_park_unique_id", table_name="visits")
    op.drop_index("ix_visits_timestamp", table_name="visits")
    op.drop_table("visits")
    op.drop_index("ix_users_created_at", table_name="users")
    op.drop_table("users")
