"""User registration and derived-score endpoints.

POST /api/v1/users                  -- register a user
GET  /api/v1/users/{user_id}/rating -- current derived rating of a user
"""

from fastapi import APIRouter

from socialfeed.dependencies import DbSession
from socialfeed.middleware.rate_limiter import ReadRateLimit, WriteRateLimit
from socialfeed.schemas.common import ERROR_RESPONSES, error_response
from socialfeed.schemas.user import UserCreate, UserRatingResponse, UserResponse
from socialfeed.services.ratings import get_rating
from socialfeed.services.users import create_user, get_user

router = APIRouter(prefix="/api/v1", tags=["users"], responses=ERROR_RESPONSES)


@router.post(
    "/users",
    response_model=UserResponse,
    status_code=201,
    summary="register a user",
    responses={409: error_response("Email already registered (EMAIL_ALREADY_REGISTERED)")},
)
async def register_user(body: UserCreate, db: DbSession, _rate: WriteRateLimit) -> UserResponse:
    """Register a user. Returns 409 EMAIL_ALREADY_REGISTERED for a duplicate email."""
    user = await create_user(
        db,
        email=body.email,
        name=body.name,
        github_username=body.github_username,
    )
    return UserResponse.model_validate(user)


@router.get(
    "/users/{user_id}/rating",
    response_model=UserRatingResponse,
    summary="get the derived rating of a user",
)
async def get_user_rating(user_id: int, db: DbSession, _rate: ReadRateLimit) -> UserRatingResponse:
    """Average of each rater's most recent rating of the user; 0 when unrated."""
    await get_user(db, user_id)
    return UserRatingResponse(user_id=user_id, rating=await get_rating(db, user_id))
