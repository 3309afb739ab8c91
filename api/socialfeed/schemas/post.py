"""Pydantic schemas for posts and comments."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class PostCreate(BaseModel):
    user_id: int = Field(description="ID of the user making the post")
    title: str = Field(max_length=500, description="title of the post; must not be blank")
    body: str = Field("", description="contents of the post")


class PostResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: int
    title: str
    body: str
    posted_at: datetime
    updated_at: datetime


class CommentCreate(BaseModel):
    user_id: int = Field(description="ID of the user making the comment")
    post_id: int = Field(description="ID of the post on which a comment is being made")
    message: str = Field(max_length=10_000, description="contents of the comment; must not be blank")


class CommentResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: int
    post_id: int
    message: str
    commented_at: datetime
    updated_at: datetime


class PostWithCommentsResponse(PostResponse):
    comments: list[CommentResponse]
