"""
Actor → outbox → 貼文 的取得流程
"""

import asyncio
import logging
from datetime import datetime, timezone
from typing import Any, Iterable, List, Optional, Sequence, Tuple

from app.core.config import settings
from app.core.activitypub.fetcher import ActivityPubFetcher
from app.core.activitypub.note_builder import build_note, strip_html
from app.core.activitypub.resolver import ActivityResolver, Resolution, Resolved
from app.core.activitypub.url_guard import authorize_url
from app.core.activitypub.validator import (
    first_page_link,
    parse_actor,
    parse_outbox_page,
    validate_outbox_page,
)
from app.models.activitypub import ActorDocument, ActorInfo, FetchMeta, FetchResult, Note, OutboxPage

logger = logging.getLogger(__name__)


def clamp_max_posts(value: Optional[int]) -> int:
    """將 max_posts 限制在 1..MAX_POSTS_LIMIT"""
    if value is None:
        value = settings.DEFAULT_MAX_POSTS
    return min(max(int(value), 1), settings.MAX_POSTS_LIMIT)


def extract_actor_info(actor: ActorDocument) -> ActorInfo:
    """從 Actor 文件擷取基本資訊"""
    if actor.name is not None:
        name = actor.name
    elif actor.preferred_username is not None:
        name = actor.preferred_username
    else:
        name = "Unknown"

    return ActorInfo(
        id=actor.id,
        name=name,
        preferred_username=actor.preferred_username or "",
        summary=strip_html(actor.summary),
        url=actor.url or "",
        avatar=actor.icon_url,
        header=actor.image_url,
        followers_count=actor.followers if actor.followers is not None else 0,
        following_count=actor.following if actor.following is not None else 0,
    )


def _describe_page(page: Any) -> str:
    if not isinstance(page, dict):
        return type(page).__name__
    parts = [f"keys={','.join(page.keys())}", f"type={page.get('type', 'not set')}"]
    for key in ("orderedItems", "items"):
        if isinstance(page.get(key), list):
            parts.append(f"{key}={len(page[key])}")
    if page.get("first") is not None:
        parts.append(f"first={first_page_link(page) or 'embedded'}")
    return " ".join(parts)


class OutboxPipeline:
    """Fetch an actor's outbox and normalize its entries into notes.

    One instance can serve many calls; nothing is kept between them.
    """

    def __init__(
        self,
        fetcher: Optional[ActivityPubFetcher] = None,
        allowed_domains: Optional[Iterable[str]] = None,
        max_pages: Optional[int] = None,
        concurrency: Optional[int] = None,
    ):
        self.fetcher = fetcher or ActivityPubFetcher()
        self.resolver = ActivityResolver(self.fetcher)
        self.allowed_domains = list(allowed_domains if allowed_domains is not None else settings.ALLOWED_DOMAINS)
        self.max_pages = max(1, max_pages if max_pages is not None else settings.OUTBOX_MAX_PAGES)
        self.concurrency = max(1, concurrency if concurrency is not None else settings.RESOLVE_CONCURRENCY)

    async def fetch(self, actor_url: str, max_posts: int) -> FetchResult:
        fetched_at = datetime.now(timezone.utc)

        # 1. URL 驗證
        authorize_url(actor_url, self.allowed_domains)

        # 2. 取得並驗證 Actor
        actor = parse_actor(await self.fetcher.get(actor_url))
        outbox_url = actor.outbox

        # 3. 取得 outbox collection
        collection = await self.fetcher.get(outbox_url)
        logger.debug("Outbox collection %s: %s", outbox_url, _describe_page(collection))

        # 4. 只有 first 連結時，取得第一頁作為工作頁
        raw_page = await self._working_page(collection)

        # 5. 驗證工作頁
        page = parse_outbox_page(raw_page)

        # 6-7. 逐項解析，直到取得 max_posts 筆
        notes: Tuple[Note, ...] = ()
        unparsed: Tuple[Any, ...] = ()
        pages_read = 0
        while page is not None:
            items = await self._page_items(page)
            page_notes, page_unparsed = await self._collect(items, max_posts - len(notes), fetched_at)
            notes += page_notes
            unparsed += page_unparsed
            pages_read += 1
            page = await self._next_page(page, pages_read, len(notes), max_posts)

        logger.info(
            "Fetched %d notes (%d unparsed) from %s",
            len(notes), len(unparsed), outbox_url,
        )

        # 8. 組合結果
        return FetchResult(
            notes=notes,
            actor_info=extract_actor_info(actor),
            meta=FetchMeta(
                count=len(notes),
                fetched_at=fetched_at,
                actor_url=actor_url,
                outbox_url=outbox_url,
            ),
            unparsed_items=unparsed,
            outbox_page=raw_page if isinstance(raw_page, dict) else None,
        )

    async def _working_page(self, collection: Any) -> Any:
        if not isinstance(collection, dict):
            return collection
        first = collection.get("first")
        if isinstance(first, dict) and (isinstance(first.get("orderedItems"), list) or isinstance(first.get("items"), list)):
            # First page embedded in the collection
            return first
        first_url = first_page_link(collection)
        if first_url is None:
            return collection
        page = await self.fetcher.get(first_url)
        logger.debug("First page %s: %s", first_url, _describe_page(page))
        return page

    async def _page_items(self, page: OutboxPage) -> Sequence[Any]:
        items = page.item_source
        if items is not None:
            return items
        if page.first is None:
            logger.debug("Outbox page has no orderedItems, items or first")
            return ()

        # The working page only links to another first page: follow it once
        nested = await self.fetcher.get(page.first)
        logger.debug("Nested first page %s: %s", page.first, _describe_page(nested))
        if not validate_outbox_page(nested):
            return ()
        return parse_outbox_page(nested).item_source or ()

    async def _next_page(self, page: OutboxPage, pages_read: int, collected: int, max_posts: int) -> Optional[OutboxPage]:
        if pages_read >= self.max_pages or collected >= max_posts or page.next is None:
            return None
        return parse_outbox_page(await self.fetcher.get(page.next))

    async def _collect(
        self, items: Sequence[Any], limit: int, fetched_at: datetime
    ) -> Tuple[Tuple[Note, ...], Tuple[Any, ...]]:
        """Resolve items in windows, then fold the results back in document order."""
        notes: List[Note] = []
        unparsed: List[Any] = []
        position = 0
        while position < len(items) and len(notes) < limit:
            window = items[position:position + min(self.concurrency, limit - len(notes))]
            position += len(window)
            resolutions: List[Resolution] = await asyncio.gather(
                *(self.resolver.resolve(item) for item in window)
            )
            for item, resolution in zip(window, resolutions):
                if len(notes) >= limit:
                    break
                if isinstance(resolution, Resolved):
                    notes.append(build_note(resolution.candidate, now=fetched_at))
                else:
                    logger.debug("Unparsed %s item: %s", resolution.kind.value, resolution.reason)
                    unparsed.append(item)
        return tuple(notes), tuple(unparsed)
