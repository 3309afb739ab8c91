"""Pydantic schemas for the rating ledger endpoints."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class RatingCreate(BaseModel):
    """Request schema for rating a user.

    The 1-5 range is checked by the ledger itself (INVALID_RATING), not here,
    so HTTP and in-process callers get the same error.
    """

    rater_id: int = Field(description="ID of the user giving the rating")
    user_id: int = Field(description="ID of the user being rated")
    rating: float = Field(allow_inf_nan=False, description="rating between 1 and 5, inclusive")


class MilestoneResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    rating_id: int
    score_before: float
    score_after: float
    created_at: datetime


class RatingResponse(BaseModel):
    """Response schema for a recorded rating, with the milestone it triggered if any."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    rater_id: int
    user_id: int
    rating: float
    rated_at: datetime
    milestone: Optional[MilestoneResponse] = None
