from app.core.activitypub.fetcher import ActivityPubFetcher, create_http_client
from app.core.activitypub.pipeline import OutboxPipeline, clamp_max_posts
from app.core.activitypub.resolver import ActivityResolver, Resolved, Unresolved
from app.core.activitypub.url_guard import authorize_url

__all__ = [
    "ActivityPubFetcher",
    "ActivityResolver",
    "OutboxPipeline",
    "Resolved",
    "Unresolved",
    "authorize_url",
    "clamp_max_posts",
    "create_http_client",
]
