"""Rating submission endpoint.

POST /api/v1/ratings -- rate a user
"""

from fastapi import APIRouter

from socialfeed.dependencies import DbSession
from socialfeed.middleware.rate_limiter import WriteRateLimit
from socialfeed.schemas.common import ERROR_RESPONSES, error_response
from socialfeed.schemas.rating import MilestoneResponse, RatingCreate, RatingResponse
from socialfeed.services.ratings import rate_user

router = APIRouter(prefix="/api/v1", tags=["ratings"], responses=ERROR_RESPONSES)


@router.post(
    "/ratings",
    response_model=RatingResponse,
    status_code=201,
    summary="rate a user",
    responses={403: error_response("Users cannot rate themselves (SELF_RATING)")},
)
async def submit_rating(body: RatingCreate, db: DbSession, _rate: WriteRateLimit) -> RatingResponse:
    """Rate a user from 1 to 5.

    Validation rules enforced:
    - rating must be within [1, 5] (400 INVALID_RATING)
    - users cannot rate themselves (403 SELF_RATING)
    - rater and rated user must exist (404 USER_NOT_FOUND)

    Rating a user again adds a new rating; only the latest one per rater
    counts. When the rating moves the user's score across an integer
    boundary the recorded milestone is returned alongside the rating.
    """
    result = await rate_user(db, rater_id=body.rater_id, user_id=body.user_id, value=body.rating)

    rating = result.rating
    milestone = None
    if result.milestone is not None:
        milestone = MilestoneResponse.model_validate(result.milestone)

    return RatingResponse(
        id=rating.id,
        rater_id=rating.rater_id,
        user_id=rating.user_id,
        rating=rating.rating,
        rated_at=rating.rated_at,
        milestone=milestone,
    )
