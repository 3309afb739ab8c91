"""Tests for the rating ledger in socialfeed.services.ratings.

Covers:
- value validation (rejected before any write)
- derived score: only each rater's most recent rating counts
- milestones: recorded exactly when floor(score) changes, in the same
  transaction as the rating
- self-rating and unknown users
"""

import math

import pytest
from sqlalchemy import func, select
from sqlalchemy.dialects import postgresql, sqlite

from socialfeed.errors import InvalidRatingError, SelfRatingError, UserNotFoundError
from socialfeed.models import Rating, RatingMilestone
from socialfeed.services.ratings import (
    crossed_integer_boundary,
    get_rating,
    lock_target_query,
    rate_user,
    rated_at_clock,
    validate_rating_value,
)
from tests.factories import at, make_user


async def _count(db, model) -> int:
    result = await db.execute(select(func.count()).select_from(model))
    return result.scalar_one()


class TestValidateRatingValue:
    @pytest.mark.parametrize("value", [0, 0.99, 5.01, 6, -1, math.nan])
    def test_out_of_range_rejected(self, value):
        with pytest.raises(InvalidRatingError):
            validate_rating_value(value)

    @pytest.mark.parametrize("value", [1, 1.0, 3, 4.5, 5])
    def test_in_range_accepted(self, value):
        validate_rating_value(value)


class TestCrossedIntegerBoundary:
    def test_same_floor_is_not_a_crossing(self):
        assert crossed_integer_boundary(3.0, 3.9) is False

    def test_rising_through_integer(self):
        assert crossed_integer_boundary(3.5, 4.0) is True

    def test_falling_through_integer(self):
        assert crossed_integer_boundary(4.0, 3.0) is True

    def test_first_rating_from_zero(self):
        assert crossed_integer_boundary(0.0, 3.0) is True


class TestRateUser:
    @pytest.mark.parametrize("value", [0, 0.99, 5.01, 6])
    async def test_invalid_values_write_nothing(self, db, value):
        rater = await make_user(db, "rater")
        target = await make_user(db, "target")

        with pytest.raises(InvalidRatingError):
            await rate_user(db, rater.id, target.id, value)

        assert await _count(db, Rating) == 0
        assert await _count(db, RatingMilestone) == 0

    @pytest.mark.parametrize("value", [1, 3, 5])
    async def test_valid_values_are_recorded(self, db, value):
        rater = await make_user(db, "rater")
        target = await make_user(db, "target")

        result = await rate_user(db, rater.id, target.id, value)

        assert result.rating.id is not None
        assert result.rating.rating == value
        assert result.rating.rated_at is not None
        assert await get_rating(db, target.id) == pytest.approx(value)

    async def test_self_rating_rejected(self, db):
        user = await make_user(db, "narcissus")

        with pytest.raises(SelfRatingError):
            await rate_user(db, user.id, user.id, 5)

        assert await _count(db, Rating) == 0

    async def test_unknown_target(self, db):
        rater = await make_user(db, "rater")

        with pytest.raises(UserNotFoundError):
            await rate_user(db, rater.id, 9999, 4)

        assert await _count(db, Rating) == 0

    async def test_unknown_rater(self, db):
        target = await make_user(db, "target")

        with pytest.raises(UserNotFoundError):
            await rate_user(db, 9999, target.id, 4)

        assert await _count(db, Rating) == 0

    async def test_session_usable_after_failure(self, db):
        """A failed rating rolls back cleanly; the next one on the same session works.

        The rollback expires every loaded instance, so ids are read up front.
        """
        a = await make_user(db, "a")
        target = await make_user(db, "target")
        a_id, target_id = a.id, target.id

        with pytest.raises(UserNotFoundError):
            await rate_user(db, 9999, target_id, 4)

        result = await rate_user(db, a_id, target_id, 4)
        assert result.rating.id is not None

    async def test_milestone_failure_after_flush_leaves_no_rating(self, db, monkeypatch):
        """The rating row is already flushed when the milestone step runs;
        a failure there must take the rating down with it."""
        rater = await make_user(db, "rater")
        target = await make_user(db, "target")
        rater_id, target_id = rater.id, target.id

        def broken_milestone(**kwargs):
            raise RuntimeError("milestone insert failed")

        monkeypatch.setattr("socialfeed.services.ratings.RatingMilestone", broken_milestone)

        # 0 -> 3 crosses a boundary, so the milestone step is reached
        with pytest.raises(RuntimeError):
            await rate_user(db, rater_id, target_id, 3)

        assert await _count(db, Rating) == 0
        assert await _count(db, RatingMilestone) == 0
        assert await get_rating(db, target_id) == 0.0


class TestLedgerSql:
    def test_target_row_locked_for_update(self):
        sql = str(lock_target_query(1).compile(dialect=postgresql.dialect()))

        assert "FROM users" in sql
        assert sql.rstrip().endswith("FOR UPDATE")

    def test_postgres_stamps_with_clock_timestamp(self):
        sql = str(rated_at_clock("postgresql").compile(dialect=postgresql.dialect()))

        assert sql == "clock_timestamp()"

    def test_other_dialects_use_now(self):
        sql = str(rated_at_clock("sqlite").compile(dialect=sqlite.dialect()))

        assert "clock_timestamp" not in sql


class TestDerivedScore:
    async def test_unrated_user_scores_zero(self, db):
        user = await make_user(db, "nobody")
        score = await get_rating(db, user.id)
        assert score == 0.0
        assert isinstance(score, float)

    async def test_unknown_user_scores_zero(self, db):
        assert await get_rating(db, 424242) == 0.0

    async def test_rerating_same_value_keeps_score_and_records_no_milestone(self, db):
        a = await make_user(db, "a")
        u = await make_user(db, "u")

        await rate_user(db, a.id, u.id, 3)
        second = await rate_user(db, a.id, u.id, 3)

        assert await get_rating(db, u.id) == pytest.approx(3.0)
        assert second.milestone is None
        # Both rows kept: the ledger is append-only
        assert await _count(db, Rating) == 2

    async def test_latest_rating_by_time_wins_over_insertion_order(self, db):
        a = await make_user(db, "a")
        u = await make_user(db, "u")
        db.add(Rating(rater_id=a.id, user_id=u.id, rating=2.0, rated_at=at(10)))
        await db.commit()
        # Inserted later but dated earlier: superseded
        db.add(Rating(rater_id=a.id, user_id=u.id, rating=5.0, rated_at=at(0)))
        await db.commit()

        assert await get_rating(db, u.id) == pytest.approx(2.0)

    async def test_equal_timestamps_broken_by_highest_id(self, db):
        a = await make_user(db, "a")
        u = await make_user(db, "u")
        db.add(Rating(rater_id=a.id, user_id=u.id, rating=5.0, rated_at=at(0)))
        await db.commit()
        db.add(Rating(rater_id=a.id, user_id=u.id, rating=1.0, rated_at=at(0)))
        await db.commit()

        assert await get_rating(db, u.id) == pytest.approx(1.0)

    async def test_average_over_distinct_raters(self, db):
        a = await make_user(db, "a")
        b = await make_user(db, "b")
        c = await make_user(db, "c")
        u = await make_user(db, "u")

        await rate_user(db, a.id, u.id, 5)
        await rate_user(db, b.id, u.id, 4)
        await rate_user(db, c.id, u.id, 2)
        await rate_user(db, c.id, u.id, 3)

        assert await get_rating(db, u.id) == pytest.approx(4.0)

    async def test_ratings_of_other_users_do_not_leak(self, db):
        a = await make_user(db, "a")
        u = await make_user(db, "u")
        v = await make_user(db, "v")

        await rate_user(db, a.id, u.id, 5)
        await rate_user(db, a.id, v.id, 1)

        assert await get_rating(db, u.id) == pytest.approx(5.0)
        assert await get_rating(db, v.id) == pytest.approx(1.0)


class TestMilestones:
    async def test_first_rating_crosses_from_zero(self, db):
        a = await make_user(db, "a")
        u = await make_user(db, "u")

        result = await rate_user(db, a.id, u.id, 3)

        assert result.milestone is not None
        assert result.milestone.rating_id == result.rating.id
        assert result.milestone.score_before == pytest.approx(0.0)
        assert result.milestone.score_after == pytest.approx(3.0)

    async def test_second_rater_lifts_score_through_four(self, db):
        a = await make_user(db, "a")
        b = await make_user(db, "b")
        u = await make_user(db, "u")

        await rate_user(db, a.id, u.id, 3)
        result = await rate_user(db, b.id, u.id, 5)

        assert result.milestone is not None
        assert result.milestone.score_before == pytest.approx(3.0)
        assert result.milestone.score_after == pytest.approx(4.0)

    async def test_changed_rating_uses_current_two_rater_average(self, db):
        """A moves 3 -> 1 with B at 5: average drops from 4 to (1+5)/2 = 3."""
        a = await make_user(db, "a")
        b = await make_user(db, "b")
        u = await make_user(db, "u")

        await rate_user(db, a.id, u.id, 3)
        await rate_user(db, b.id, u.id, 5)
        result = await rate_user(db, a.id, u.id, 1)

        assert await get_rating(db, u.id) == pytest.approx(3.0)
        assert result.milestone is not None
        assert result.milestone.score_before == pytest.approx(4.0)
        assert result.milestone.score_after == pytest.approx(3.0)

    async def test_no_milestone_without_floor_change(self, db):
        a = await make_user(db, "a")
        b = await make_user(db, "b")
        u = await make_user(db, "u")

        await rate_user(db, a.id, u.id, 4)
        result = await rate_user(db, b.id, u.id, 5)

        # 4.0 -> 4.5 stays within [4, 5)
        assert result.milestone is None
        assert await _count(db, RatingMilestone) == 1

    async def test_at_most_one_milestone_per_rating(self, db):
        a = await make_user(db, "a")
        b = await make_user(db, "b")
        u = await make_user(db, "u")

        await rate_user(db, a.id, u.id, 1)
        await rate_user(db, b.id, u.id, 5)
        await rate_user(db, a.id, u.id, 5)

        result = await db.execute(
            select(RatingMilestone.rating_id, func.count())
            .group_by(RatingMilestone.rating_id)
            .having(func.count() > 1)
        )
        assert result.all() == []
