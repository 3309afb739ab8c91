"""Pydantic schemas for the merged user timeline.

Every entry shares the (type, posted_at, updated_at, id) header and carries
only its own variant's payload. `type` is the discriminator:

  "post"           - one of the user's posts
  "comment"        - a comment by the user, with the commented post's author
  "passed_rating"  - the user's derived score rose through 4
  "github_event"   - ingested GitHub activity
"""

from datetime import datetime
from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from socialfeed.config import settings


class TimelineEntryBase(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    posted_at: datetime
    updated_at: datetime
    id: int


class PostEntry(TimelineEntryBase):
    type: Literal["post"] = "post"
    title: str
    body: str


class CommentEntry(TimelineEntryBase):
    type: Literal["comment"] = "comment"
    message: str
    post_id: int
    post_user_id: int
    post_user_name: str
    post_user_rating: float


class PassedRatingEntry(TimelineEntryBase):
    type: Literal["passed_rating"] = "passed_rating"
    score_before: float
    score_after: float


class ActivityEntry(TimelineEntryBase):
    type: Literal["github_event"] = "github_event"
    event_type: str
    repo: str
    pr_number: Optional[int] = None
    num_commits: Optional[int] = None
    head: Optional[str] = None


TimelineEntry = Annotated[
    Union[PostEntry, CommentEntry, PassedRatingEntry, ActivityEntry],
    Field(discriminator="type"),
]


class TimelineQuery(BaseModel):
    """Query parameters for GET /api/v1/timeline."""

    user_id: int = Field(ge=1, description="ID of the user whose timeline to fetch")
    start: int = Field(0, ge=0, description="number of entries to skip")
    limit: int = Field(
        settings.timeline_default_limit,
        ge=1,
        le=settings.timeline_max_limit,
        description="maximum number of entries to return",
    )


class TimelineResponse(BaseModel):
    user_id: int
    start: int
    limit: int
    entries: list[TimelineEntry]
