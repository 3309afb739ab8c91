"""Comment endpoints.

POST   /api/v1/comments              -- comment on a post
DELETE /api/v1/comments/{comment_id} -- delete a comment
"""

from fastapi import APIRouter, Response

from socialfeed.dependencies import DbSession
from socialfeed.middleware.rate_limiter import WriteRateLimit
from socialfeed.schemas.common import ERROR_RESPONSES
from socialfeed.schemas.post import CommentCreate, CommentResponse
from socialfeed.services.posts import create_comment, delete_comment

router = APIRouter(prefix="/api/v1", tags=["comments"], responses=ERROR_RESPONSES)


@router.post(
    "/comments",
    response_model=CommentResponse,
    status_code=201,
    summary="make a comment on a post",
)
async def submit_comment(body: CommentCreate, db: DbSession, _rate: WriteRateLimit) -> CommentResponse:
    comment = await create_comment(
        db, user_id=body.user_id, post_id=body.post_id, message=body.message
    )
    return CommentResponse.model_validate(comment)


@router.delete("/comments/{comment_id}", status_code=204, summary="delete a comment")
async def remove_comment(comment_id: int, db: DbSession, _rate: WriteRateLimit) -> Response:
    await delete_comment(db, comment_id)
    return Response(status_code=204)
