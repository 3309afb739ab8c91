"""SocialFeed Pydantic schemas package.

Re-exports all request and response schemas for convenient importing:

    from socialfeed.schemas import RatingCreate, TimelineResponse, ...
"""

from socialfeed.schemas.activity import ActivityEventIn
from socialfeed.schemas.common import ERROR_RESPONSES, ErrorResponse, error_response
from socialfeed.schemas.post import (
    CommentCreate,
    CommentResponse,
    PostCreate,
    PostResponse,
    PostWithCommentsResponse,
)
from socialfeed.schemas.rating import MilestoneResponse, RatingCreate, RatingResponse
from socialfeed.schemas.timeline import (
    ActivityEntry,
    CommentEntry,
    PassedRatingEntry,
    PostEntry,
    TimelineEntry,
    TimelineQuery,
    TimelineResponse,
)
from socialfeed.schemas.user import UserCreate, UserRatingResponse, UserResponse

__all__ = [
    # Users
    "UserCreate",
    "UserResponse",
    "UserRatingResponse",
    # Ratings
    "RatingCreate",
    "RatingResponse",
    "MilestoneResponse",
    # Posts / comments
    "PostCreate",
    "PostResponse",
    "PostWithCommentsResponse",
    "CommentCreate",
    "CommentResponse",
    # Timeline
    "TimelineQuery",
    "TimelineResponse",
    "TimelineEntry",
    "PostEntry",
    "CommentEntry",
    "PassedRatingEntry",
    "ActivityEntry",
    # Activity
    "ActivityEventIn",
    # Common
    "ErrorResponse",
    "ERROR_RESPONSES",
    "error_response",
]
