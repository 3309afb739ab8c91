from contextlib import asynccontextmanager

import redis.asyncio as aioredis
from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from sqlalchemy import text
from starlette.exceptions import HTTPException as StarletteHTTPException

from socialfeed.config import settings
from socialfeed.dependencies import DbSession
from socialfeed.errors import (
    SocialFeedError,
    http_exception_handler,
    socialfeed_exception_handler,
    unhandled_exception_handler,
    validation_exception_handler,
)
from socialfeed.logging_config import configure_logging
from socialfeed.metrics import metrics_endpoint
from socialfeed.middleware.logging_middleware import RequestLoggingMiddleware
from socialfeed.routers import comments, posts, ratings, timeline, users


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Configure structured logging before anything else
    configure_logging()

    # Startup: create Redis connection and store on app.state
    app.state.redis = aioredis.from_url(
        settings.redis_url, encoding="utf-8", decode_responses=True
    )
    try:
        yield
    finally:
        # Shutdown: close Redis connection
        await app.state.redis.aclose()


app = FastAPI(
    title="SocialFeed API",
    description=(
        "Posts, comments, user ratings and a merged activity timeline.\n\n"
        "All error responses follow the `{code, message, details}` envelope."
    ),
    version="0.1.0",
    lifespan=lifespan,
)

# Register request logging middleware (runs on every request)
app.add_middleware(RequestLoggingMiddleware)

# Exception handlers (most specific first)
app.add_exception_handler(SocialFeedError, socialfeed_exception_handler)
app.add_exception_handler(RequestValidationError, validation_exception_handler)
app.add_exception_handler(StarletteHTTPException, http_exception_handler)
app.add_exception_handler(Exception, unhandled_exception_handler)

# Register all API routers
app.include_router(users.router)
app.include_router(ratings.router)
app.include_router(timeline.router)
app.include_router(posts.router)
app.include_router(comments.router)

# Prometheus metrics endpoint
app.get("/metrics", include_in_schema=False)(metrics_endpoint)


@app.get("/health", tags=["health"])
async def health_check(db: DbSession):
    await db.execute(text("SELECT 1"))
    return {"status": "ok", "db": "ok"}
