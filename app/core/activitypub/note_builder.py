"""
Note 建立：內容淨化、日期格式化、附件與作者正規化
"""

import logging
from datetime import datetime, timezone
from typing import Optional, Tuple
from zoneinfo import ZoneInfo

import bleach
from bs4 import BeautifulSoup

from app.core.config import settings
from app.models.activitypub import (
    Attachment,
    AttachmentCandidate,
    AttributedActor,
    Author,
    Note,
    NoteCandidate,
)

logger = logging.getLogger(__name__)

ALLOWED_TAGS = frozenset({
    "p", "br", "a", "strong", "em", "b", "i", "u", "s",
    "code", "pre", "blockquote", "ul", "ol", "li",
})
ALLOWED_ATTRIBUTES = {"a": ["href", "title", "rel"]}
ALLOWED_PROTOCOLS = frozenset({"http", "https", "mailto"})
# Removed together with their text, not just unwrapped
DROPPED_CONTENT_TAGS = ("script", "style")

DATE_FORMAT = "%Y年%m月%d日 %H:%M"
TRUNCATION_MARKER = "..."
UNKNOWN_AUTHOR = "Unknown User"


def sanitize_content(content: str, max_length: Optional[int] = None) -> str:
    """只保留白名單標籤，其餘文字做 HTML escape，並限制長度"""
    if not content:
        return ""
    limit = max_length if max_length is not None else settings.MAX_CONTENT_LENGTH

    if "<" in content:
        soup = BeautifulSoup(content, "html.parser")
        for tag in soup.find_all(DROPPED_CONTENT_TAGS):
            tag.decompose()
        content = str(soup)

    sanitized = bleach.clean(
        content,
        tags=ALLOWED_TAGS,
        attributes=ALLOWED_ATTRIBUTES,
        protocols=ALLOWED_PROTOCOLS,
        strip=True,
    )

    if len(sanitized) > limit:
        sanitized = _truncate(sanitized, limit) + TRUNCATION_MARKER
    return sanitized


def _truncate(html: str, limit: int) -> str:
    """截斷至 limit 字元，不在標籤或字元實體中間切斷"""
    cut = html[:limit]
    tag_start = cut.rfind("<")
    if tag_start > cut.rfind(">"):
        cut = cut[:tag_start]
    # bleach escapes every bare "&", so an "&" with no ";" after it is a cut entity
    entity_start = cut.rfind("&")
    if entity_start != -1 and ";" not in cut[entity_start:]:
        cut = cut[:entity_start]
    return cut


def strip_html(content: Optional[str]) -> str:
    """移除所有標籤，只留下 escape 過的文字"""
    if not content:
        return ""
    return bleach.clean(content, tags=frozenset(), strip=True).strip()


def parse_published(value: Optional[str], now: Optional[datetime] = None) -> datetime:
    """解析 published，缺少或無法解析時使用目前時間"""
    fallback = now or datetime.now(timezone.utc)
    if not value:
        return fallback
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        logger.warning("Unparseable published timestamp %r, using current time", value)
        return fallback
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def format_published(published_at: datetime, timezone_name: Optional[str] = None) -> str:
    tz = ZoneInfo(timezone_name or settings.DISPLAY_TIMEZONE)
    return published_at.astimezone(tz).strftime(DATE_FORMAT)


def normalize_attachments(candidates: Tuple[AttachmentCandidate, ...]) -> Tuple[Attachment, ...]:
    attachments = []
    for candidate in candidates:
        if candidate.type is None or candidate.url is None:
            continue
        attachment_type = candidate.type.lower()
        is_image = attachment_type == "image"
        attachments.append(Attachment(
            type=attachment_type,
            url=candidate.url,
            alt_text=candidate.name if candidate.name is not None else "",
            width=candidate.width if is_image else None,
            height=candidate.height if is_image else None,
        ))
    return tuple(attachments)


def normalize_author(attributed_to) -> Optional[Author]:
    if isinstance(attributed_to, str):
        return Author(id=attributed_to, name=UNKNOWN_AUTHOR, avatar=None)
    if isinstance(attributed_to, AttributedActor):
        if attributed_to.name is not None:
            name = attributed_to.name
        elif attributed_to.preferred_username is not None:
            name = attributed_to.preferred_username
        else:
            name = UNKNOWN_AUTHOR
        return Author(id=attributed_to.id or "", name=name, avatar=attributed_to.icon_url)
    return None


def build_note(candidate: NoteCandidate, now: Optional[datetime] = None) -> Note:
    """由驗證過的 NoteCandidate 建立 Note"""
    published_at = parse_published(candidate.published, now)
    content = candidate.content or ""

    return Note(
        id=candidate.id,
        content=content,
        sanitized_content=sanitize_content(content),
        published_at=published_at,
        formatted_date=format_published(published_at),
        url=candidate.url,
        attachments=normalize_attachments(candidate.attachments),
        author=normalize_author(candidate.attributed_to),
    )
