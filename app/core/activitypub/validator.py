"""
ActivityPub 文件驗證

The ``validate_*`` predicates are the structural checks; the ``parse_*``
helpers run them and convert the raw JSON into typed models.
"""

from typing import Any, Dict, Optional, Tuple

from app.core.errors import InvalidActorError, InvalidOutboxShapeError, NoOutboxError
from app.core.activitypub.url_guard import is_absolute_url
from app.models.activitypub import (
    ACTOR_TYPES,
    COLLECTION_TYPES,
    ActorDocument,
    AttachmentCandidate,
    AttributedActor,
    NoteCandidate,
    OutboxPage,
)


def _present(data: Dict[str, Any], key: str) -> bool:
    return data.get(key) is not None


def validate_actor(doc: Any) -> bool:
    """驗證 Actor 物件"""
    if not isinstance(doc, dict):
        return False
    for field in ("id", "type", "outbox"):
        if not _present(doc, field):
            return False
    if doc["type"] not in ACTOR_TYPES:
        return False
    return is_absolute_url(doc["outbox"])


def validate_outbox_page(page: Any) -> bool:
    """驗證 outbox 集合（相容 Misskey 的 items / first）"""
    if not isinstance(page, dict):
        return False
    if page.get("type") not in COLLECTION_TYPES:
        return False
    return any(_present(page, key) for key in ("orderedItems", "items", "first"))


def validate_note(obj: Any) -> bool:
    """驗證 Note 物件"""
    if not isinstance(obj, dict):
        return False
    if obj.get("type") != "Note":
        return False
    note_id = obj.get("id")
    if not isinstance(note_id, str) or not note_id:
        return False
    return _present(obj, "content") or _present(obj, "summary")


def _str_or_none(value: Any) -> Optional[str]:
    return value if isinstance(value, str) else None


def _int_or_none(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, str) and value.isdigit():
        return int(value)
    return None


def _link_url(value: Any) -> Optional[str]:
    """從字串、Link/Image 物件或其列表中取出 URL"""
    if isinstance(value, str):
        return value
    if isinstance(value, dict):
        return _str_or_none(value.get("url")) or _str_or_none(value.get("href"))
    if isinstance(value, list):
        for entry in value:
            url = _link_url(entry)
            if url:
                return url
    return None


def _image_url(value: Any) -> Optional[str]:
    if isinstance(value, dict):
        return _link_url(value.get("url"))
    if isinstance(value, list) and value:
        return _image_url(value[0])
    return None


def page_link(collection: Dict[str, Any], key: str) -> Optional[str]:
    """取得 first / next 頁面 URL（字串或帶 id 的物件）"""
    link = collection.get(key)
    if isinstance(link, str) and link:
        return link
    if isinstance(link, dict):
        link_id = link.get("id")
        if isinstance(link_id, str) and link_id:
            return link_id
    return None


def first_page_link(collection: Dict[str, Any]) -> Optional[str]:
    return page_link(collection, "first")


def _item_list(value: Any) -> Optional[Tuple[Any, ...]]:
    if isinstance(value, list):
        return tuple(value)
    return None


def parse_actor(doc: Any) -> ActorDocument:
    if not validate_actor(doc):
        # A well-typed actor that simply lacks an outbox is reported as such
        if isinstance(doc, dict) and doc.get("type") in ACTOR_TYPES and _present(doc, "id") and not _present(doc, "outbox"):
            raise NoOutboxError("Actor document has no outbox")
        raise InvalidActorError("Not a valid ActivityPub actor")

    return ActorDocument(
        id=str(doc["id"]),
        type=doc["type"],
        outbox=doc["outbox"],
        name=_str_or_none(doc.get("name")),
        preferred_username=_str_or_none(doc.get("preferredUsername")),
        summary=_str_or_none(doc.get("summary")),
        url=_link_url(doc.get("url")),
        icon_url=_image_url(doc.get("icon")),
        image_url=_image_url(doc.get("image")),
        followers=doc.get("followers") if isinstance(doc.get("followers"), (str, int)) else None,
        following=doc.get("following") if isinstance(doc.get("following"), (str, int)) else None,
    )


def parse_outbox_page(page: Any) -> OutboxPage:
    if not validate_outbox_page(page):
        raise InvalidOutboxShapeError("Not a valid outbox collection")

    return OutboxPage(
        type=page["type"],
        ordered_items=_item_list(page.get("orderedItems")),
        items=_item_list(page.get("items")),
        first=first_page_link(page),
        next=page_link(page, "next"),
    )


def _parse_attachment(entry: Any) -> Optional[AttachmentCandidate]:
    if not isinstance(entry, dict):
        return None
    return AttachmentCandidate(
        type=_str_or_none(entry.get("type")),
        url=_link_url(entry.get("url")),
        name=_str_or_none(entry.get("name")),
        width=_int_or_none(entry.get("width")),
        height=_int_or_none(entry.get("height")),
    )


def _parse_attributed_to(value: Any):
    if isinstance(value, list):
        # Some servers send a list of actors; the first one is the author
        value = value[0] if value else None
    if isinstance(value, str):
        return value
    if isinstance(value, dict):
        return AttributedActor(
            id=_str_or_none(value.get("id")),
            name=_str_or_none(value.get("name")),
            preferred_username=_str_or_none(value.get("preferredUsername")),
            icon_url=_image_url(value.get("icon")),
        )
    return None


def parse_note(obj: Any) -> Optional[NoteCandidate]:
    """驗證並轉換 Note，失敗時回傳 None"""
    if not validate_note(obj):
        return None

    raw_attachments = obj.get("attachment")
    if isinstance(raw_attachments, dict):
        raw_attachments = [raw_attachments]
    attachments = []
    if isinstance(raw_attachments, list):
        for entry in raw_attachments:
            attachment = _parse_attachment(entry)
            if attachment is not None:
                attachments.append(attachment)

    return NoteCandidate(
        id=obj["id"],
        content=_str_or_none(obj.get("content")),
        summary=_str_or_none(obj.get("summary")),
        published=_str_or_none(obj.get("published")),
        url=_link_url(obj.get("url")),
        attachments=tuple(attachments),
        attributed_to=_parse_attributed_to(obj.get("attributedTo")),
    )
