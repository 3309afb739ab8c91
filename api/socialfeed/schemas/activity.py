"""Pydantic schema for an activity event on its way into the store."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from socialfeed.models.activity import ActivityKind


class ActivityEventIn(BaseModel):
    """One external event, already filtered and mapped to a known kind.

    `id` is the source's own event id and doubles as the idempotency key.
    """

    id: int = Field(ge=1)
    created_at: datetime
    user_id: int
    kind: ActivityKind
    repo_name: str = Field(min_length=1, max_length=255)
    pr_number: Optional[int] = None
    num_commits: Optional[int] = None
    head: Optional[str] = Field(None, max_length=64)
