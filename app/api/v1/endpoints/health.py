from fastapi import APIRouter
from fastapi.responses import ORJSONResponse

from app.core.config import settings
from app.core.activitypub.fetcher import ActivityPubFetcher

router = APIRouter()

@router.get("/")
async def health_check():
    """Health check endpoint"""
    http_client = "ready" if ActivityPubFetcher.shared_client is not None else "not initialized"

    # 直接回傳 ORJSONResponse 並加快取極短 TTL
    return ORJSONResponse({
        "status": "ok",
        "http_client": http_client,
        "service": settings.PROJECT_NAME
    }, headers={"Cache-Control": "public, max-age=5"})
