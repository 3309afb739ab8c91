"""Rating ledger: append-only ratings, derived scores, and milestones.

The derived score of a user is the average, over every distinct rater, of
that rater's most recent rating. A rater's older ratings stay in the table
but stop counting once they rate again.

rate_user() records a rating and, in the same transaction, a RatingMilestone
whenever the rating moves the derived score across an integer boundary
(floor(before) != floor(after)).

Design notes:
- The derived score is a single SQL expression (derived_score) shared by
  get_rating, the before/after reads in rate_user, and the timeline's
  comment entries, so every caller computes it the same way.
- "Most recent" is latest rated_at, ties broken by highest id. It is written
  as an anti-join (no newer row from the same rater exists) rather than a
  window function so the expression can be correlated into other queries.
- rate_user locks the target's users row (SELECT ... FOR UPDATE) for the
  whole transaction. Two concurrent ratings of the same user therefore run
  one after the other, and the second one's "before" read sees the first
  one's row. Without the lock both could read the same stale "before" and
  record a missed or duplicate milestone.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Optional

import structlog
from sqlalchemy import ColumnElement, Select, and_, exists, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import aliased

from socialfeed.errors import InvalidRatingError, SelfRatingError, UserNotFoundError
from socialfeed.metrics import rating_milestones_recorded, ratings_recorded
from socialfeed.models.rating import RATING_MAX, RATING_MIN, Rating, RatingMilestone
from socialfeed.models.user import User

log = structlog.get_logger(__name__)


@dataclass
class RateResult:
    """The rating row written by rate_user and the milestone it triggered, if any."""

    rating: Rating
    milestone: Optional[RatingMilestone] = None


def validate_rating_value(value: float) -> None:
    """Raise InvalidRatingError unless RATING_MIN <= value <= RATING_MAX.

    NaN fails the comparison and is rejected too.
    """
    if not (RATING_MIN <= value <= RATING_MAX):
        raise InvalidRatingError(value)


def crossed_integer_boundary(before: float, after: float) -> bool:
    """True when the integer floor of the score changed."""
    return math.floor(before) != math.floor(after)


def derived_score(user_id: ColumnElement | int) -> ColumnElement[float]:
    """Scalar SQL expression for the derived score of `user_id`.

    `user_id` may be a literal id or a column of an enclosing query (the
    timeline correlates it to posts.user_id). Evaluates to 0 when the user
    has no ratings.
    """
    latest = aliased(Rating, name="latest_rating")
    newer = aliased(Rating, name="newer_rating")

    superseded = (
        exists()
        .where(
            newer.user_id == latest.user_id,
            newer.rater_id == latest.rater_id,
            or_(
                newer.rated_at > latest.rated_at,
                and_(newer.rated_at == latest.rated_at, newer.id > latest.id),
            ),
        )
        .correlate(latest)
    )

    return (
        select(func.coalesce(func.avg(latest.rating), 0.0))
        .where(latest.user_id == user_id, ~superseded)
        .correlate_except(latest)
        .scalar_subquery()
    )


async def get_rating(db: AsyncSession, user_id: int) -> float:
    """Return the derived score of a user, or 0.0 when nobody has rated them."""
    result = await db.execute(select(derived_score(user_id)))
    score = result.scalar_one()
    return float(score or 0.0)


def lock_target_query(user_id: int) -> Select:
    """SELECT ... FOR UPDATE on the target's users row.

    Held until rate_user commits, so same-target ratings run one at a time.
    """
    return select(User.id).where(User.id == user_id).with_for_update()


def rated_at_clock(dialect_name: str) -> ColumnElement:
    """Timestamp expression for a new rating row.

    On PostgreSQL now() is frozen at transaction start, so a transaction
    that waited on the target lock would stamp its rating earlier than the
    one it waited for. clock_timestamp() reads the clock at insert time,
    which is after the lock was taken.
    """
    if dialect_name == "postgresql":
        return func.clock_timestamp()
    return func.now()


async def _lock_target(db: AsyncSession, user_id: int) -> None:
    result = await db.execute(lock_target_query(user_id))
    if result.scalar_one_or_none() is None:
        raise UserNotFoundError(user_id)


async def _ensure_user(db: AsyncSession, user_id: int) -> None:
    result = await db.execute(select(User.id).where(User.id == user_id))
    if result.scalar_one_or_none() is None:
        raise UserNotFoundError(user_id)


async def rate_user(
    db: AsyncSession,
    rater_id: int,
    user_id: int,
    value: float,
) -> RateResult:
    """Record `rater_id`'s rating of `user_id` and any milestone it triggers.

    Input is validated before the database is touched. The rest runs in one
    transaction on `db`:

    1. lock the target user row
    2. before = derived score
    3. insert the rating (flush for its id)
    4. after = derived score, now including the new row
    5. insert a RatingMilestone if floor(before) != floor(after)
    6. commit

    Any failure in 1-6 rolls the transaction back and propagates; nothing is
    retried here.

    Raises:
        InvalidRatingError: value outside [1, 5].
        SelfRatingError: rater_id == user_id.
        UserNotFoundError: rater or target does not exist.
    """
    validate_rating_value(value)
    if rater_id == user_id:
        raise SelfRatingError(user_id)

    try:
        await _lock_target(db, user_id)
        await _ensure_user(db, rater_id)

        before = await get_rating(db, user_id)

        rating = Rating(
            rater_id=rater_id,
            user_id=user_id,
            rating=value,
            rated_at=rated_at_clock(db.get_bind().dialect.name),
        )
        db.add(rating)
        await db.flush()

        after = await get_rating(db, user_id)

        milestone = None
        if crossed_integer_boundary(before, after):
            milestone = RatingMilestone(
                rating_id=rating.id,
                score_before=before,
                score_after=after,
            )
            db.add(milestone)
            await db.flush()

        await db.commit()
    except Exception:
        await db.rollback()
        raise

    await db.refresh(rating)
    if milestone is not None:
        await db.refresh(milestone)

    ratings_recorded.inc()
    log.info(
        "rating_recorded",
        rating_id=rating.id,
        rater_id=rater_id,
        user_id=user_id,
        score_before=before,
        score_after=after,
    )
    if milestone is not None:
        rating_milestones_recorded.labels(
            direction="up" if after > before else "down"
        ).inc()
        log.info(
            "rating_milestone_recorded",
            milestone_id=milestone.id,
            rating_id=rating.id,
            user_id=user_id,
            score_before=before,
            score_after=after,
        )

    return RateResult(rating=rating, milestone=milestone)
