"""Timeline endpoint.

GET /api/v1/timeline?user_id=&start=&limit= -- merged activity feed, newest first
"""

from typing import Annotated

from fastapi import APIRouter, Query

from socialfeed.dependencies import DbSession
from socialfeed.metrics import timeline_entries_served
from socialfeed.middleware.rate_limiter import ReadRateLimit
from socialfeed.schemas.common import ERROR_RESPONSES
from socialfeed.schemas.timeline import TimelineQuery, TimelineResponse
from socialfeed.services.timeline import get_timeline

router = APIRouter(prefix="/api/v1", tags=["timeline"], responses=ERROR_RESPONSES)


@router.get("/timeline", response_model=TimelineResponse, summary="get a user's timeline")
async def read_timeline(
    params: Annotated[TimelineQuery, Query()],
    db: DbSession,
    _rate: ReadRateLimit,
) -> TimelineResponse:
    """Return a page of the user's posts, comments, passed-4-stars milestones and
    GitHub activity, merged and sorted by posting time, newest first.

    `start` skips that many entries of the merged feed; `limit` caps the page size.
    """
    cursor = await get_timeline(db, params.user_id, params.start, params.limit)
    async with cursor:
        entries = await cursor.collect()

    timeline_entries_served.observe(len(entries))
    return TimelineResponse(
        user_id=params.user_id,
        start=params.start,
        limit=params.limit,
        entries=entries,
    )
