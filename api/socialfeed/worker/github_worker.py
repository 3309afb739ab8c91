"""GitHub activity ingestor: copies linked users' public events into activity_events.

Designed to run either as a cron job (--once: one pass, exit status 1 if any
account failed) or as a long-running poller. Each linked account is ingested
by its own task with its own session; writes are idempotent on the GitHub
event id, so overlapping fetches and concurrent runs never duplicate rows.

Usage:
    python -m socialfeed.worker.github_worker --once
    python -m socialfeed.worker.github_worker
"""
import argparse
import asyncio
import sys
import time

import httpx
import structlog
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from socialfeed.config import settings
from socialfeed.database import async_session_factory
from socialfeed.logging_config import configure_logging
from socialfeed.metrics import activity_events_ingested, github_fetch_duration
from socialfeed.services.activity import record_activity_event
from socialfeed.services.github import GitHubClient, map_github_event
from socialfeed.services.users import list_linked_accounts

log = structlog.get_logger(__name__)


async def ingest_account(
    session_factory: async_sessionmaker[AsyncSession],
    client: GitHubClient,
    user_id: int,
    username: str,
) -> int:
    """Fetch, map and store one account's recent events.

    Returns:
        Number of newly stored events.
    """
    start = time.monotonic()
    try:
        raw_events = await client.fetch_events(username)
    finally:
        github_fetch_duration.observe(time.monotonic() - start)

    stored = 0
    async with session_factory() as db:
        for raw in raw_events:
            event = map_github_event(raw, user_id)
            if event is None:
                activity_events_ingested.labels(status="ignored").inc()
                continue

            if await record_activity_event(db, event):
                stored += 1
                activity_events_ingested.labels(status="stored").inc()
            else:
                activity_events_ingested.labels(status="duplicate").inc()
        await db.commit()

    log.info(
        "github_events_ingested",
        user_id=user_id,
        github_username=username,
        fetched=len(raw_events),
        stored=stored,
    )
    return stored


async def ingest_all(
    session_factory: async_sessionmaker[AsyncSession],
    client: GitHubClient,
    concurrency: int | None = None,
) -> int:
    """Ingest every linked account concurrently.

    A failing account is logged and does not stop the others.

    Returns:
        Number of accounts that failed.
    """
    async with session_factory() as db:
        accounts = await list_linked_accounts(db)

    semaphore = asyncio.Semaphore(concurrency or settings.github_ingest_concurrency)

    async def _one(user_id: int, username: str) -> bool:
        async with semaphore:
            try:
                await ingest_account(session_factory, client, user_id, username)
            except Exception as exc:
                log.error(
                    "github_ingest_failed",
                    user_id=user_id,
                    github_username=username,
                    error=str(exc),
                )
                return False
            return True

    results = await asyncio.gather(*(_one(uid, name) for uid, name in accounts))
    failed = results.count(False)
    log.info("github_ingest_pass_completed", accounts=len(accounts), failed=failed)
    return failed


async def run_worker(once: bool = False) -> int:
    """Run one ingest pass (once=True) or poll every github_poll_interval_seconds."""
    configure_logging()
    log.info(
        "github_worker_started",
        once=once,
        poll_interval=settings.github_poll_interval_seconds,
        concurrency=settings.github_ingest_concurrency,
    )

    # One outbound client for the whole process, shared by every account task
    async with httpx.AsyncClient(timeout=settings.github_http_timeout_seconds) as http_client:
        client = GitHubClient(http_client, settings.github_api_url, settings.github_token)

        if once:
            failed = await ingest_all(async_session_factory, client)
            return 1 if failed else 0

        while True:
            try:
                await ingest_all(async_session_factory, client)
            except Exception as exc:
                log.error("worker_loop_error", error=str(exc))

            await asyncio.sleep(settings.github_poll_interval_seconds)


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Ingest public GitHub activity for linked users.")
    parser.add_argument(
        "--once",
        action="store_true",
        help="run a single ingest pass and exit (for cron)",
    )
    args = parser.parse_args(argv)
    return asyncio.run(run_worker(once=args.once))


if __name__ == "__main__":
    sys.exit(main())
