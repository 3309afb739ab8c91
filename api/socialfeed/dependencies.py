from typing import Annotated

import redis.asyncio as aioredis
from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from socialfeed.database import get_db

DbSession = Annotated[AsyncSession, Depends(get_db)]


async def get_redis(request: Request) -> aioredis.Redis:
    """Inject the Redis client from app.state (set during lifespan startup)."""
    return request.app.state.redis


RedisClient = Annotated[aioredis.Redis, Depends(get_redis)]
