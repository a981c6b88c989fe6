from fastapi import APIRouter, Depends
from fastapi.responses import ORJSONResponse
from typing import Optional
from pydantic import BaseModel

from app.core.config import settings
from app.core.errors import InvalidActionError, InvalidRequestError
from app.core.activitypub.pipeline import OutboxPipeline, clamp_max_posts

router = APIRouter()

FETCH_POSTS_ACTION = "fetch_posts"

# Pydantic 模型
class FetchPostsRequest(BaseModel):
    action: str
    actor_url: str
    max_posts: Optional[int] = None

def get_pipeline() -> OutboxPipeline:
    return OutboxPipeline()

@router.post("/")
async def fetch_posts(
    request: FetchPostsRequest,
    pipeline: OutboxPipeline = Depends(get_pipeline),
):
    """取得指定 Actor 的公開貼文"""
    if request.action != FETCH_POSTS_ACTION:
        raise InvalidActionError(f"Unsupported action: {request.action}")

    actor_url = request.actor_url.strip()
    if not actor_url:
        raise InvalidRequestError("actor_url is required")

    result = await pipeline.fetch(actor_url, clamp_max_posts(request.max_posts))

    return ORJSONResponse({
        "success": True,
        "data": result.to_dict(include_debug=settings.DEBUG_PAYLOAD_ENABLED),
    })
