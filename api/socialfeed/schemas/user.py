"""Pydantic schemas for user registration and score lookup."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class UserCreate(BaseModel):
    """Request schema for registering a user."""

    email: str = Field(min_length=3, max_length=255)
    name: str = Field(min_length=1, max_length=100)
    github_username: Optional[str] = Field(None, min_length=1, max_length=100)


class UserResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    email: str
    name: str
    github_username: Optional[str] = None
    registered_at: datetime


class UserRatingResponse(BaseModel):
    user_id: int
    rating: float
