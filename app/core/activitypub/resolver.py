import logging
from dataclasses import dataclass
from typing import Any, Optional, Union

from app.core.errors import ViewerError
from app.core.activitypub.fetcher import ActivityPubFetcher
from app.core.activitypub.url_guard import is_absolute_url
from app.core.activitypub.validator import parse_note
from app.models.activitypub import ItemKind, NoteCandidate

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Resolved:
    kind: ItemKind
    candidate: NoteCandidate


@dataclass(frozen=True)
class Unresolved:
    kind: ItemKind
    reason: str


Resolution = Union[Resolved, Unresolved]


def classify_item(item: Any) -> ItemKind:
    """判斷 outbox 項目的種類"""
    if isinstance(item, str):
        return ItemKind.URL_REFERENCE if is_absolute_url(item) else ItemKind.UNKNOWN
    if not isinstance(item, dict):
        return ItemKind.UNKNOWN
    item_type = item.get("type")
    if item_type == "Announce":
        return ItemKind.ANNOUNCE
    if item_type == "Create":
        return ItemKind.CREATE
    if item_type == "Note":
        return ItemKind.NOTE
    return ItemKind.UNKNOWN


class ActivityResolver:
    """將單一 outbox 項目解析為 Note（必要時再次取得遠端物件）"""

    def __init__(self, fetcher: ActivityPubFetcher):
        self.fetcher = fetcher

    async def resolve(self, item: Any) -> Resolution:
        kind = classify_item(item)

        if kind is ItemKind.ANNOUNCE:
            raw, reason = await self._resolve_announce(item)
        elif kind is ItemKind.CREATE:
            raw, reason = await self._unwrap_create(item)
        elif kind is ItemKind.NOTE:
            raw, reason = item, None
        elif kind is ItemKind.URL_REFERENCE:
            raw, reason = await self._resolve_reference(item)
        else:
            return Unresolved(kind, f"unsupported item: {_describe(item)}")

        if raw is None:
            return Unresolved(kind, reason or "no object")

        candidate = parse_note(raw)
        if candidate is None:
            logger.warning("Note validation failed for %s item (object type: %s)", kind.value, _describe(raw))
            return Unresolved(kind, "note validation failed")
        return Resolved(kind, candidate)

    async def _fetch(self, url: str) -> Optional[Any]:
        try:
            return await self.fetcher.get(url)
        except ViewerError as e:
            # One bad reference only downgrades the current item
            logger.warning("Secondary fetch failed for %s: [%s] %s", url, e.code, e)
            return None

    async def _resolve_announce(self, item: dict):
        target = item.get("object")
        if not is_absolute_url(target):
            return None, f"announce object is not a URL: {_describe(target)}"

        original = await self._fetch(target)
        if original is None:
            return None, f"failed to fetch announced object {target}"
        if not isinstance(original, dict) or original.get("type") != "Note":
            return None, f"announced object is not a Note: {_describe(original)}"
        return original, None

    async def _unwrap_create(self, activity: dict):
        target = activity.get("object")
        if isinstance(target, dict):
            return target, None
        if is_absolute_url(target):
            fetched = await self._fetch(target)
            if fetched is None:
                return None, f"failed to fetch created object {target}"
            return fetched, None
        return None, f"create object is neither embedded nor a URL: {_describe(target)}"

    async def _resolve_reference(self, url: str):
        activity = await self._fetch(url)
        if activity is None:
            return None, f"failed to fetch referenced activity {url}"
        if isinstance(activity, dict) and activity.get("type") == "Create" and activity.get("object") is not None:
            return await self._unwrap_create(activity)
        return None, f"referenced document is not a Create activity: {_describe(activity)}"


def _describe(value: Any) -> str:
    if isinstance(value, dict):
        return str(value.get("type", "no type"))
    return type(value).__name__
