"""Rating ledger ORM models.

Ratings are append-only: re-rating a user inserts a new row, and only each
rater's most recent row counts towards the derived score (see
services.ratings.derived_score). RatingMilestone rows record the ratings whose
insertion moved that derived score across an integer boundary; there is at
most one milestone per rating row, enforced by the unique rating_id.
"""

from datetime import datetime
from typing import Optional

from sqlalchemy import (
    CheckConstraint,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base

RATING_MIN = 1.0
RATING_MAX = 5.0


class Rating(Base):
    __tablename__ = "ratings"
    __table_args__ = (
        CheckConstraint(
            f"rating >= {RATING_MIN} AND rating <= {RATING_MAX}",
            name="ck_ratings_rating_range",
        ),
        Index("ix_ratings_user_id_rater_id_rated_at", "user_id", "rater_id", "rated_at"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    rater_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id", name="fk_ratings_rater_id_users"), nullable=False
    )
    user_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id", name="fk_ratings_user_id_users"), nullable=False
    )
    rating: Mapped[float] = mapped_column(Float, nullable=False)
    # rate_user overrides this with clock_timestamp() on PostgreSQL (see services.ratings)
    rated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    milestone: Mapped[Optional["RatingMilestone"]] = relationship(
        "RatingMilestone", back_populates="rating", lazy="raise", uselist=False
    )


class RatingMilestone(Base):
    __tablename__ = "rating_milestones"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    rating_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("ratings.id", name="fk_rating_milestones_rating_id_ratings"),
        unique=True,
        nullable=False,
    )
    score_before: Mapped[float] = mapped_column(Float, nullable=False)
    score_after: Mapped[float] = mapped_column(Float, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    rating: Mapped["Rating"] = relationship("Rating", back_populates="milestone", lazy="raise")
