from prometheus_client import Counter, Histogram, generate_latest, CONTENT_TYPE_LATEST
from fastapi.responses import Response

# Rating ledger metrics
ratings_recorded = Counter(
    "socialfeed_ratings_recorded_total",
    "Total ratings written to the ledger",
)

rating_milestones_recorded = Counter(
    "socialfeed_rating_milestones_recorded_total",
    "Ratings whose insertion moved the derived score across an integer boundary",
    ["direction"],  # direction: up | down
)

# Timeline metrics
timeline_entries_served = Histogram(
    "socialfeed_timeline_entries_served",
    "Entries returned per timeline page",
    buckets=[0, 1, 5, 10, 25, 50],
)

# GitHub ingestor metrics
activity_events_ingested = Counter(
    "socialfeed_activity_events_ingested_total",
    "Activity events seen by the ingestor",
    ["status"],  # status: stored | duplicate | ignored
)

github_fetch_duration = Histogram(
    "socialfeed_github_fetch_duration_seconds",
    "Time to fetch one account's events from GitHub",
    buckets=[0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0, 60.0],
)

# HTTP request metrics (from middleware)
http_requests = Counter(
    "socialfeed_http_requests_total",
    "Total HTTP requests",
    ["method", "path", "status_code"],
)

http_request_duration = Histogram(
    "socialfeed_http_request_duration_seconds",
    "HTTP request duration",
    ["method", "path"],
    buckets=[0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0],
)


async def metrics_endpoint():
    """FastAPI endpoint handler that returns Prometheus metrics."""
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)
