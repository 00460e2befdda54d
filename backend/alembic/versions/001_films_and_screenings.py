"""Films and screenings with the taken-seat array.

Revision ID: 001
Revises: None
Create Date: 2026-10-19
"""
from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "films",
        sa.Column("id", sa.String(64), primary_key=True),
        sa.Column("title", sa.String(255), nullable=True),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("about", sa.Text(), nullable=True),
        sa.Column("image", sa.String(255), nullable=True),
        sa.Column("cover", sa.String(255), nullable=True),
        sa.Column("director", sa.String(255), nullable=True),
        sa.Column("rating", sa.Float(), nullable=True),
        sa.Column("tags", sa.JSON(), nullable=False, server_default=sa.text("'[]'")),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )

    op.create_table(
        "screenings",
        sa.Column("id", sa.String(64), primary_key=True),
        sa.Column("film_id", sa.String(64), sa.ForeignKey("films.id", ondelete="CASCADE"), nullable=False),
        sa.Column("daytime", sa.DateTime(timezone=True), nullable=False),
        sa.Column("hall", sa.String(16), nullable=False),
        sa.Column("rows", sa.Integer(), nullable=False),
        sa.Column("seats", sa.Integer(), nullable=False),
        sa.Column("price", sa.Integer(), nullable=False),
        # The reservation UPDATE tests overlap with && on this column, so it
        # must stay a native text[]; there is no alternate column name.
        sa.Column(
            "taken",
            postgresql.ARRAY(sa.Text()),
            nullable=False,
            server_default=sa.text("ARRAY[]::text[]"),
        ),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.CheckConstraint("rows > 0", name="check_screening_rows_positive"),
        sa.CheckConstraint("seats > 0", name="check_screening_seats_positive"),
        sa.CheckConstraint("price >= 0", name="check_screening_price_non_negative"),
    )
    # Schedule listing: WHERE film_id = ? ORDER BY daytime
    op.create_index("ix_screenings_film_daytime", "screenings", ["film_id", "daytime"])


def downgrade() -> None:
    op.drop_index("ix_screenings_film_daytime", table_name="screenings")
    op.drop_table("screenings")
    op.drop_table("films")
