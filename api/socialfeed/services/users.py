"""User registration and lookup.

Users are owned outside the feed core; this module only covers what the
API and the GitHub ingestor need from them.
"""

from typing import Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from socialfeed.errors import EmailAlreadyRegisteredError, UserNotFoundError
from socialfeed.models.user import User


async def create_user(
    db: AsyncSession,
    email: str,
    name: str,
    github_username: Optional[str] = None,
) -> User:
    result = await db.execute(select(User.id).where(User.email == email))
    if result.scalar_one_or_none() is not None:
        raise EmailAlreadyRegisteredError(email)

    user = User(email=email, name=name, github_username=github_username)
    db.add(user)
    try:
        await db.commit()
    except IntegrityError as exc:
        # Lost a race with a concurrent registration of the same email
        await db.rollback()
        raise EmailAlreadyRegisteredError(email) from exc

    await db.refresh(user)
    return user


async def get_user(db: AsyncSession, user_id: int) -> User:
    result = await db.execute(select(User).where(User.id == user_id))
    user = result.scalar_one_or_none()
    if user is None:
        raise UserNotFoundError(user_id)
    return user


async def list_linked_accounts(db: AsyncSession) -> list[tuple[int, str]]:
    """Return (user_id, github_username) for every user with a linked GitHub account."""
    result = await db.execute(
        select(User.id, User.github_username)
        .where(User.github_username.is_not(None))
        .order_by(User.id)
    )
    return [(row.id, row.github_username) for row in result.all()]
