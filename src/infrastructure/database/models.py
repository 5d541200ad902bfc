"""
SQLAlchemy ORM models for the aspect learning tables.

These are purely infrastructure concerns; domain entities are mapped to/from
these models inside the repository implementations.
"""
from datetime import datetime

from sqlalchemy import DateTime, Index, Integer, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column

from src.domain.enums.match_type import MatchType
from src.infrastructure.database.connection import Base


class AspectKeywordModel(Base):
    """A learned keyword rule: titles matching ``keyword_pattern`` get ``aspect_value``."""

    __tablename__ = "ebay_aspect_keywords"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    aspect_name: Mapped[str] = mapped_column(Text, nullable=False, index=True)
    keyword_pattern: Mapped[str] = mapped_column(Text, nullable=False)
    aspect_value: Mapped[str] = mapped_column(Text, nullable=False)
    match_type: Mapped[str] = mapped_column(
        String(16), nullable=False, default=MatchType.REGEX.value, server_default=MatchType.REGEX.value
    )
    # NULL = applies to every category
    category_id: Mapped[str | None] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )


class AspectMissModel(Base):
    """A required aspect that could not be resolved, pending human review."""

    __tablename__ = "ebay_aspect_misses"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    asin: Mapped[str] = mapped_column(Text, nullable=False, index=True)
    category_id: Mapped[str | None] = mapped_column(Text, nullable=True)
    category_name: Mapped[str | None] = mapped_column(Text, nullable=True)
    aspect_name: Mapped[str] = mapped_column(Text, nullable=False)
    product_title: Mapped[str] = mapped_column(Text, nullable=False)
    keepa_brand: Mapped[str | None] = mapped_column(Text, nullable=True)
    keepa_model: Mapped[str | None] = mapped_column(Text, nullable=True)

    # Review workflow
    status: Mapped[str] = mapped_column(
        Text, nullable=False, default="pending", server_default="pending", index=True
    )
    reviewed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    suggested_value: Mapped[str | None] = mapped_column(Text, nullable=True)
    suggested_pattern: Mapped[str | None] = mapped_column(Text, nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )

    __table_args__ = (Index("ix_ebay_aspect_misses_category_aspect", "category_id", "aspect_name"),)
