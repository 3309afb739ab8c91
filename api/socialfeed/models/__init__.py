from .base import Base
from .user import User
from .post import Post
from .comment import Comment
from .rating import RATING_MAX, RATING_MIN, Rating, RatingMilestone
from .activity import ActivityEvent, ActivityKind

__all__ = [
    "Base",
    "User",
    "Post",
    "Comment",
    "Rating",
    "RatingMilestone",
    "RATING_MIN",
    "RATING_MAX",
    "ActivityEvent",
    "ActivityKind",
]
