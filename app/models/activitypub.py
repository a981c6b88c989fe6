"""ActivityPub 文件與貼文的型別定義

Raw JSON from remote servers is turned into these models by
``app.core.activitypub.validator``; nothing downstream of the validator
reads untyped dictionaries.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict

ACTOR_TYPES = frozenset({"Person", "Service", "Organization", "Application", "Group"})
COLLECTION_TYPES = frozenset({"OrderedCollection", "Collection", "OrderedCollectionPage", "CollectionPage"})


class FrozenModel(BaseModel):
    model_config = ConfigDict(frozen=True)


class ActorDocument(FrozenModel):
    """遠端 Actor 文件"""
    id: str
    type: str
    outbox: str
    name: Optional[str] = None
    preferred_username: Optional[str] = None
    summary: Optional[str] = None
    url: Optional[str] = None
    icon_url: Optional[str] = None
    image_url: Optional[str] = None
    followers: Union[str, int, None] = None
    following: Union[str, int, None] = None


class OutboxPage(FrozenModel):
    """outbox 集合或其中一頁"""
    type: str
    ordered_items: Optional[Tuple[Any, ...]] = None
    items: Optional[Tuple[Any, ...]] = None
    first: Optional[str] = None
    next: Optional[str] = None

    @property
    def item_source(self) -> Optional[Tuple[Any, ...]]:
        if self.ordered_items is not None:
            return self.ordered_items
        return self.items


class ItemKind(str, Enum):
    CREATE = "Create"
    ANNOUNCE = "Announce"
    NOTE = "Note"
    URL_REFERENCE = "UrlReference"
    UNKNOWN = "Unknown"


class AttachmentCandidate(FrozenModel):
    type: Optional[str] = None
    url: Optional[str] = None
    name: Optional[str] = None
    width: Optional[int] = None
    height: Optional[int] = None


class AttributedActor(FrozenModel):
    id: Optional[str] = None
    name: Optional[str] = None
    preferred_username: Optional[str] = None
    icon_url: Optional[str] = None


class NoteCandidate(FrozenModel):
    """通過驗證的 Note 物件"""
    id: str
    content: Optional[str] = None
    summary: Optional[str] = None
    published: Optional[str] = None
    url: Optional[str] = None
    attachments: Tuple[AttachmentCandidate, ...] = ()
    attributed_to: Union[str, AttributedActor, None] = None


class Attachment(FrozenModel):
    type: str
    url: str
    alt_text: str = ""
    width: Optional[int] = None
    height: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "type": self.type,
            "url": self.url,
            "alt_text": self.alt_text,
        }
        if self.type == "image":
            data["width"] = self.width
            data["height"] = self.height
        return data


class Author(FrozenModel):
    id: str
    name: str
    avatar: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "name": self.name, "avatar": self.avatar}


class Note(FrozenModel):
    """正規化後的貼文"""
    id: str
    content: str
    sanitized_content: str
    published_at: datetime
    formatted_date: str
    url: Optional[str] = None
    attachments: Tuple[Attachment, ...] = ()
    # None when the object carried no attributedTo
    author: Optional[Author] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "content": self.sanitized_content,
            "published_at": self.published_at.isoformat(),
            "formatted_date": self.formatted_date,
            "url": self.url,
            "attachments": [attachment.to_dict() for attachment in self.attachments],
            "author": self.author.to_dict() if self.author else {},
        }


class ActorInfo(FrozenModel):
    id: str = ""
    name: str = "Unknown"
    preferred_username: str = ""
    summary: str = ""
    url: str = ""
    avatar: Optional[str] = None
    header: Optional[str] = None
    followers_count: Union[str, int] = 0
    following_count: Union[str, int] = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "preferredUsername": self.preferred_username,
            "summary": self.summary,
            "url": self.url,
            "avatar": self.avatar,
            "header": self.header,
            "followers_count": self.followers_count,
            "following_count": self.following_count,
        }


class FetchMeta(FrozenModel):
    count: int
    fetched_at: datetime
    actor_url: str
    outbox_url: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "count": self.count,
            "fetched_at": self.fetched_at.isoformat(),
            "actor_url": self.actor_url,
            "outbox_url": self.outbox_url,
        }


class FetchResult(FrozenModel):
    notes: Tuple[Note, ...]
    actor_info: ActorInfo
    meta: FetchMeta
    unparsed_items: Tuple[Any, ...] = ()
    outbox_page: Optional[Dict[str, Any]] = None

    def to_dict(self, include_debug: bool = False) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "posts": [note.to_dict() for note in self.notes],
            "actor_info": self.actor_info.to_dict(),
            "meta": self.meta.to_dict(),
        }
        if include_debug:
            data["debug_outbox_page"] = self.outbox_page
            data["debug_unparsed"] = list(self.unparsed_items)
        return data
