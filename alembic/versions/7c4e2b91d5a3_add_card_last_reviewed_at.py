"""add last_reviewed_at to cards

Revision ID: 7c4e2b91d5a3
Revises: 3a1f0c2d9b7e
Create Date: 2026-10-20 00:00:00.000000
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "7c4e2b91d5a3"
down_revision: Union[str, Sequence[str], None] = "3a1f0c2d9b7e"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    with op.batch_alter_table("cards", schema=None) as batch_op:
        batch_op.add_column(sa.Column("last_reviewed_at", sa.DateTime(), nullable=True))

    # Cards graded before this column existed were last touched by their review.
    op.execute('UPDATE cards SET last_reviewed_at = updated_at WHERE repetitions > 0 OR "interval" > 0')


def downgrade() -> None:
    with op.batch_alter_table("cards", schema=None) as batch_op:
        batch_op.drop_column("last_reviewed_at")
