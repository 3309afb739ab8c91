"""Post and comment storage.

Plain keyed CRUD; the timeline reads these tables directly.
"""

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from socialfeed.errors import BlankFieldError, CommentNotFoundError, PostNotFoundError
from socialfeed.models.comment import Comment
from socialfeed.models.post import Post
from socialfeed.services.cursor import ResultCursor
from socialfeed.services.users import get_user


async def create_post(db: AsyncSession, user_id: int, title: str, body: str) -> Post:
    """Create a post. Raises BlankFieldError for a blank title."""
    if not title.strip():
        raise BlankFieldError("title")
    await get_user(db, user_id)

    post = Post(user_id=user_id, title=title, body=body)
    db.add(post)
    await db.commit()
    await db.refresh(post)
    return post


async def get_post(db: AsyncSession, post_id: int) -> Post:
    result = await db.execute(select(Post).where(Post.id == post_id))
    post = result.scalar_one_or_none()
    if post is None:
        raise PostNotFoundError(post_id)
    return post


async def get_comments_for_post(db: AsyncSession, post_id: int) -> ResultCursor[Comment]:
    """Stream the comments on a post, oldest first. The caller releases the cursor."""
    result = await db.stream(
        select(Comment)
        .where(Comment.post_id == post_id)
        .order_by(Comment.commented_at.asc(), Comment.id.asc())
    )
    return ResultCursor(result, lambda row: row[0])


async def create_comment(db: AsyncSession, user_id: int, post_id: int, message: str) -> Comment:
    """Comment on a post. Raises BlankFieldError for a blank message."""
    if not message.strip():
        raise BlankFieldError("message")
    await get_user(db, user_id)
    await get_post(db, post_id)

    comment = Comment(user_id=user_id, post_id=post_id, message=message)
    db.add(comment)
    await db.commit()
    await db.refresh(comment)
    return comment


async def delete_comment(db: AsyncSession, comment_id: int) -> None:
    result = await db.execute(
        delete(Comment)
        .where(Comment.id == comment_id)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount == 0:
        await db.rollback()
        raise CommentNotFoundError(comment_id)
    await db.commit()
