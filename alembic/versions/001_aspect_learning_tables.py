"""aspect learning tables

Revision ID: 001_aspect_learning_tables
Revises:
Create Date: 2026-10-18 00:00:00.000000
"""
from typing import Sequence, Union

import sqlalchemy as sa

from alembic import op

revision: str = "001_aspect_learning_tables"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # Learned keyword rules (category_id NULL = universal)
    op.create_table(
        "ebay_aspect_keywords",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("aspect_name", sa.Text(), nullable=False),
        sa.Column("keyword_pattern", sa.Text(), nullable=False),
        sa.Column("aspect_value", sa.Text(), nullable=False),
        sa.Column("match_type", sa.String(16), nullable=False, server_default="regex"),
        sa.Column("category_id", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.CheckConstraint(
            "match_type IN ('substring', 'regex', 'exact')", name="ck_ebay_aspect_keywords_match_type"
        ),
    )
    op.create_index("ix_ebay_aspect_keywords_aspect_name", "ebay_aspect_keywords", ["aspect_name"])
    op.create_index(
        "uq_ebay_aspect_keywords_rule",
        "ebay_aspect_keywords",
        ["aspect_name", "keyword_pattern", sa.text("coalesce(category_id, '')")],
        unique=True,
    )

    # Unresolved required aspects, queued for review
    op.create_table(
        "ebay_aspect_misses",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("asin", sa.Text(), nullable=False),
        sa.Column("category_id", sa.Text(), nullable=True),
        sa.Column("category_name", sa.Text(), nullable=True),
        sa.Column("aspect_name", sa.Text(), nullable=False),
        sa.Column("product_title", sa.Text(), nullable=False),
        sa.Column("keepa_brand", sa.Text(), nullable=True),
        sa.Column("keepa_model", sa.Text(), nullable=True),
        sa.Column("status", sa.Text(), nullable=False, server_default="pending"),
        sa.Column("reviewed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("suggested_value", sa.Text(), nullable=True),
        sa.Column("suggested_pattern", sa.Text(), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.create_index("ix_ebay_aspect_misses_asin", "ebay_aspect_misses", ["asin"])
    op.create_index("ix_ebay_aspect_misses_status", "ebay_aspect_misses", ["status"])
    op.create_index(
        "ix_ebay_aspect_misses_category_aspect", "ebay_aspect_misses", ["category_id", "aspect_name"]
    )


def downgrade() -> None:
    op.drop_table("ebay_aspect_misses")
    op.drop_table("ebay_aspect_keywords")
