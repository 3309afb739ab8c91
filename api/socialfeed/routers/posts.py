"""Post endpoints.

POST /api/v1/posts           -- create a post
GET  /api/v1/posts/{post_id} -- a post with its comments
"""

from fastapi import APIRouter

from socialfeed.dependencies import DbSession
from socialfeed.middleware.rate_limiter import ReadRateLimit, WriteRateLimit
from socialfeed.schemas.common import ERROR_RESPONSES
from socialfeed.schemas.post import (
    CommentResponse,
    PostCreate,
    PostResponse,
    PostWithCommentsResponse,
)
from socialfeed.services.posts import create_post, get_comments_for_post, get_post

router = APIRouter(prefix="/api/v1", tags=["posts"], responses=ERROR_RESPONSES)


@router.post("/posts", response_model=PostResponse, status_code=201, summary="make a post")
async def submit_post(body: PostCreate, db: DbSession, _rate: WriteRateLimit) -> PostResponse:
    post = await create_post(db, user_id=body.user_id, title=body.title, body=body.body)
    return PostResponse.model_validate(post)


@router.get(
    "/posts/{post_id}",
    response_model=PostWithCommentsResponse,
    summary="get a post and its comments",
)
async def read_post(post_id: int, db: DbSession, _rate: ReadRateLimit) -> PostWithCommentsResponse:
    post = await get_post(db, post_id)

    cursor = await get_comments_for_post(db, post_id)
    async with cursor:
        comments = [CommentResponse.model_validate(c) async for c in cursor]

    return PostWithCommentsResponse(
        **PostResponse.model_validate(post).model_dump(),
        comments=comments,
    )
