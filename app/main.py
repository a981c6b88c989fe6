import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import ORJSONResponse
import uvicorn

from app.core.config import settings
from app.core.errors import UNKNOWN_ERROR, InvalidRequestError, ViewerError, build_error_payload
from app.api.v1.api import api_router
from app.core.activitypub.fetcher import ActivityPubFetcher, create_http_client

logger = logging.getLogger(__name__)

app = FastAPI(
    title=settings.PROJECT_NAME,
    description="Fetch and normalize public posts from ActivityPub actors",
    version="1.0.0",
    openapi_url=f"{settings.API_V1_STR}/openapi.json",
    default_response_class=ORJSONResponse,
)

# CORS settings
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_HOSTS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["Content-Type", "Accept"],
    max_age=86400,
)

# Enable gzip compression for large responses
app.add_middleware(GZipMiddleware, minimum_size=500)

# Include API routes
app.include_router(api_router, prefix=settings.API_V1_STR)

def error_response(code: str, message: str, status_code: int) -> ORJSONResponse:
    return ORJSONResponse(
        {"success": False, "error": build_error_payload(code, message)},
        status_code=status_code,
    )

@app.exception_handler(ViewerError)
async def viewer_error_handler(request: Request, exc: ViewerError):
    """URL、取得、解析錯誤一律回傳 400"""
    logger.info("Request failed: [%s] %s", exc.code, exc)
    return error_response(exc.code, exc.message, 400)

@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    return error_response(InvalidRequestError.code, "Invalid request body", 400)

@app.exception_handler(Exception)
async def unexpected_error_handler(request: Request, exc: Exception):
    # 預期外錯誤：隱藏細節，只留在伺服器紀錄
    logger.exception("Unexpected error while handling %s", request.url.path)
    return error_response(UNKNOWN_ERROR, "An unexpected error occurred", 500)

@app.on_event("startup")
async def startup_event():
    """Initialize resources on application startup"""
    # 建立共享 httpx AsyncClient（TLS 驗證、重新導向上限、逾時）
    ActivityPubFetcher.set_shared_client(create_http_client())

@app.on_event("shutdown")
async def shutdown_event():
    """Cleanup resources on application shutdown"""
    client = ActivityPubFetcher.shared_client
    if client is not None:
        await client.aclose()
    ActivityPubFetcher.set_shared_client(None)

@app.get("/")
async def root():
    """Root path"""
    return {"message": settings.PROJECT_NAME}

if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    uvicorn.run(
        "app.main:app",
        host="0.0.0.0",
        port=8000,
        reload=True
    )
