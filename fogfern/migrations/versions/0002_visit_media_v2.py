"""user data v2: visit photos, weather and rating

Revision ID: 0002_visit_media_v2
Revises: 0001_user_data_v1
Create Date: 2025-07-15 09:00:00.000000

"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "0002_visit_media_v2"
down_revision: Union[str, Sequence[str], None] = "0001_user_data_v1"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade schema."""
    op.add_column(
        "visits",
        sa.Column("photo_urls", sa.JSON(), nullable=False, server_default="[]"),
    )
    op.add_column("visits", sa.Column("weather", sa.String(length=100), nullable=True))
    op.add_column("visits", sa.Column("rating", sa.Integer(), nullable=True))


def downgrade() -> None:
    """Downgrade schema."""
    with op.batch_alter_table("visits") as batch_op:
        batch_op.drop_column("rating")
        batch_op.drop_column("weather")
        batch_op.drop_column("photo_urls")
