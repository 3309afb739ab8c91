"""Timeline aggregator: one user's posts, comments, rating milestones and
GitHub activity merged into a single newest-first feed.

Each source is mapped onto the same column set (type tag, shared header,
every variant's payload columns with the other variants' left NULL) and the
four selects are combined with UNION ALL. Ordering and the start/limit
window are applied once to the combined result, never per source, so page N
continues exactly where page N-1 stopped as long as nothing newer than the
page boundary is inserted in between.

Ordering: posted_at DESC, then type ASC, then id DESC. (type, id) is unique
across the union, so the order is total and windows never overlap.

Only milestones where the derived score rose through 4 (before < 4 <= after)
are surfaced; the ledger records every integer crossing but the timeline
shows just this one.
"""

from __future__ import annotations

from typing import Any

import structlog
from sqlalchemy import (
    Float,
    Integer,
    Select,
    String,
    Text,
    cast,
    literal_column,
    null,
    select,
    union_all,
)
from sqlalchemy.ext.asyncio import AsyncSession

from socialfeed.errors import InvalidPaginationError
from socialfeed.models.activity import ActivityEvent
from socialfeed.models.comment import Comment
from socialfeed.models.post import Post
from socialfeed.models.rating import Rating, RatingMilestone
from socialfeed.models.user import User
from socialfeed.schemas.timeline import (
    ActivityEntry,
    CommentEntry,
    PassedRatingEntry,
    PostEntry,
    TimelineEntry,
)
from socialfeed.services.cursor import ResultCursor
from socialfeed.services.ratings import derived_score

log = structlog.get_logger(__name__)

# Milestones surfaced on the timeline: rising through this score
PASSED_RATING_THRESHOLD = 4.0

_VARIANTS = {
    "post": PostEntry,
    "comment": CommentEntry,
    "passed_rating": PassedRatingEntry,
    "github_event": ActivityEntry,
}

# Payload columns in union order, with the type used when a variant leaves them NULL
_PAYLOAD_COLUMNS = (
    ("title", Text),
    ("body", Text),
    ("message", Text),
    ("post_id", Integer),
    ("post_user_id", Integer),
    ("post_user_name", String),
    ("post_user_rating", Float),
    ("score_before", Float),
    ("score_after", Float),
    ("event_type", String),
    ("repo", String),
    ("pr_number", Integer),
    ("num_commits", Integer),
    ("head", String),
)


def _variant_select(type_tag: str, posted_at, updated_at, id_, **payload) -> Select:
    """Build one source's select over the shared column set."""
    columns = [
        literal_column(f"'{type_tag}'", String).label("type"),
        posted_at.label("posted_at"),
        updated_at.label("updated_at"),
        id_.label("id"),
    ]
    for name, type_ in _PAYLOAD_COLUMNS:
        expr = payload.pop(name, None)
        if expr is None:
            expr = cast(null(), type_)
        columns.append(expr.label(name))
    if payload:
        raise TypeError(f"unknown timeline columns: {sorted(payload)}")
    return select(*columns)


def _posts(user_id: int) -> Select:
    return _variant_select(
        "post",
        Post.posted_at,
        Post.updated_at,
        Post.id,
        title=Post.title,
        body=Post.body,
    ).where(Post.user_id == user_id)


def _comments(user_id: int) -> Select:
    return (
        _variant_select(
            "comment",
            Comment.commented_at,
            Comment.updated_at,
            Comment.id,
            message=Comment.message,
            post_id=Comment.post_id,
            post_user_id=User.id,
            post_user_name=User.name,
            post_user_rating=derived_score(Post.user_id),
        )
        .select_from(Comment)
        .join(Post, Post.id == Comment.post_id)
        .join(User, User.id == Post.user_id)
        .where(Comment.user_id == user_id)
    )


def _passed_ratings(user_id: int) -> Select:
    return (
        _variant_select(
            "passed_rating",
            RatingMilestone.created_at,
            RatingMilestone.created_at,
            RatingMilestone.id,
            score_before=RatingMilestone.score_before,
            score_after=RatingMilestone.score_after,
        )
        .select_from(RatingMilestone)
        .join(Rating, Rating.id == RatingMilestone.rating_id)
        .where(
            Rating.user_id == user_id,
            RatingMilestone.score_before < PASSED_RATING_THRESHOLD,
            RatingMilestone.score_after >= PASSED_RATING_THRESHOLD,
        )
    )


def _activity(user_id: int) -> Select:
    return _variant_select(
        "github_event",
        ActivityEvent.created_at,
        ActivityEvent.created_at,
        ActivityEvent.id,
        event_type=ActivityEvent.kind,
        repo=ActivityEvent.repo_name,
        pr_number=ActivityEvent.pr_number,
        num_commits=ActivityEvent.num_commits,
        head=ActivityEvent.head,
    ).where(ActivityEvent.user_id == user_id)


def timeline_query(user_id: int, start: int, limit: int) -> Select:
    """The merged, ordered, windowed timeline select for one user."""
    merged = union_all(
        _posts(user_id),
        _comments(user_id),
        _passed_ratings(user_id),
        _activity(user_id),
    ).subquery("timeline")

    return (
        select(merged)
        .order_by(merged.c.posted_at.desc(), merged.c.type.asc(), merged.c.id.desc())
        .offset(start)
        .limit(limit)
    )


def entry_from_row(row: Any) -> TimelineEntry:
    """Map a timeline row onto its variant, dropping the other variants' columns."""
    mapping = row._mapping
    model = _VARIANTS[mapping["type"]]
    return model.model_validate({name: mapping[name] for name in model.model_fields})


async def get_timeline(
    db: AsyncSession,
    user_id: int,
    start: int,
    limit: int,
) -> ResultCursor[TimelineEntry]:
    """Stream one page of a user's timeline, newest first.

    Skips `start` entries of the merged feed and yields at most `limit`.
    The caller owns the returned cursor and must release it.

    Raises:
        InvalidPaginationError: start or limit is negative.
    """
    if start < 0 or limit < 0:
        raise InvalidPaginationError(start, limit)

    log.debug("timeline_query", user_id=user_id, start=start, limit=limit)
    result = await db.stream(timeline_query(user_id, start, limit))
    return ResultCursor(result, entry_from_row)
