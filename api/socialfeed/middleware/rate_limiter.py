"""Token bucket rate limiter backed by Redis Lua script.

Uses a token bucket algorithm implemented atomically in Lua to prevent
race conditions on the Redis side. Separate read/write buckets per client.
There are no accounts to key on, so buckets are keyed by client address
(see client_key for when X-Forwarded-For is trusted).

Key format: rl:{client}:{bucket_type}
Bucket types: "read" or "write"
"""
import time
from typing import Annotated

import redis.asyncio as aioredis
from fastapi import Depends, HTTPException, Request

from socialfeed.config import Settings, settings
from socialfeed.dependencies import RedisClient

# Lua token bucket script - executed atomically on the Redis server.
#
# KEYS[1] = rate limit key (e.g. "rl:{client}:{bucket_type}")
# ARGV[1] = max_tokens (integer capacity of the bucket)
# ARGV[2] = refill_rate (tokens per second, float)
# ARGV[3] = now (current Unix timestamp, float)
#
# Returns: 1 if allowed (token consumed), 0 if rejected (bucket empty)
RATE_LIMIT_LUA = """
local key = KEYS[1]
local max_tokens = tonumber(ARGV[1])
local refill_rate = tonumber(ARGV[2])
local now = tonumber(ARGV[3])

-- Load current bucket state
local data = redis.call('HGETALL', key)
local tokens = max_tokens
local last_refill = now

if #data > 0 then
    for i = 1, #data, 2 do
        if data[i] == 'tokens' then
            tokens = tonumber(data[i+1])
        elseif data[i] == 'last_refill' then
            last_refill = tonumber(data[i+1])
        end
    end
end

-- Refill tokens based on elapsed time
local elapsed = now - last_refill
local new_tokens = tokens + elapsed * refill_rate
if new_tokens > max_tokens then
    new_tokens = max_tokens
end

-- Attempt to consume 1 token
local allowed = 0
if new_tokens >= 1 then
    new_tokens = new_tokens - 1
    allowed = 1
end

-- Persist updated state with 120s TTL (2x the refill window)
redis.call('HSET', key, 'tokens', new_tokens, 'last_refill', now)
redis.call('EXPIRE', key, 120)

return allowed
"""


def client_key(request: Request, trusted_proxy_hops: int = 0) -> str:
    """Identify the caller for bucketing.

    With no trusted proxies the peer address is used and X-Forwarded-For is
    ignored, since clients can set it to anything. With N trusted proxies,
    each appends the address it received from, so the client is the Nth
    entry from the right; entries left of that are client-supplied.
    """
    if trusted_proxy_hops > 0:
        forwarded = request.headers.get("X-Forwarded-For", "")
        hops = [hop.strip() for hop in forwarded.split(",") if hop.strip()]
        if hops:
            return hops[max(len(hops) - trusted_proxy_hops, 0)]
    if request.client is not None:
        return request.client.host
    return "unknown"


async def check_rate_limit(
    client: str,
    redis_client: aioredis.Redis,
    bucket_type: str,
    app_settings: Settings,
) -> None:
    """Check and consume a token from the client's rate limit bucket.

    Raises HTTP 429 with Retry-After header if the bucket is empty.

    Args:
        client: Caller identity (provides the bucket key namespace).
        redis_client: Async Redis client from app.state.
        bucket_type: "read" or "write" - selects the capacity setting.
        app_settings: Application settings for max token values.
    """
    if not app_settings.rate_limit_enabled:
        return

    key = f"rl:{client}:{bucket_type}"

    if bucket_type == "read":
        max_tokens = app_settings.rate_limit_read_per_minute
    else:
        max_tokens = app_settings.rate_limit_write_per_minute

    # Tokens per second - bucket refills fully in 60 seconds
    refill_rate = max_tokens / 60.0

    allowed = await redis_client.eval(
        RATE_LIMIT_LUA,
        1,  # number of KEYS
        key,
        max_tokens,
        refill_rate,
        time.time(),
    )

    if not allowed:
        raise HTTPException(
            status_code=429,
            detail="Rate limit exceeded",
            headers={"Retry-After": "60"},
        )


def require_read_limit():
    """FastAPI dependency factory for read-path rate limiting."""

    async def _check(request: Request, redis_client: RedisClient) -> None:
        client = client_key(request, settings.trusted_proxy_hops)
        await check_rate_limit(client, redis_client, "read", settings)

    return _check


def require_write_limit():
    """FastAPI dependency factory for write-path rate limiting."""

    async def _check(request: Request, redis_client: RedisClient) -> None:
        client = client_key(request, settings.trusted_proxy_hops)
        await check_rate_limit(client, redis_client, "write", settings)

    return _check


# Annotated type aliases - inject into endpoint signatures for clean DI
ReadRateLimit = Annotated[None, Depends(require_read_limit())]
WriteRateLimit = Annotated[None, Depends(require_write_limit())]
