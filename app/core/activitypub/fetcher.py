import logging
from typing import Any, Dict, Optional, Union

import httpx
import orjson

from app.core.config import settings
from app.core.errors import FetchTimeoutError, HttpStatusError, InvalidUrlError, JsonParseError, NetworkError
from app.core.activitypub.url_guard import authorize_url

logger = logging.getLogger(__name__)

JsonValue = Union[Dict[str, Any], list]

ACCEPT_HEADER = 'application/activity+json, application/ld+json; profile="https://www.w3.org/ns/activitystreams"'


def default_headers() -> Dict[str, str]:
    return {
        "Accept": ACCEPT_HEADER,
        "User-Agent": settings.USER_AGENT,
        "Accept-Language": settings.ACCEPT_LANGUAGE,
        "Cache-Control": "no-cache",
    }


async def _require_https(request: httpx.Request) -> None:
    # Runs for every hop, so a redirect cannot downgrade to plain http
    if request.url.scheme != "https":
        raise InvalidUrlError(f"Only https URLs are supported: {request.url}")


def create_http_client(transport: Optional[httpx.AsyncBaseTransport] = None) -> httpx.AsyncClient:
    """建立供聯邦請求使用的 AsyncClient（TLS 驗證、重新導向上限）"""
    return httpx.AsyncClient(
        headers=default_headers(),
        event_hooks={"request": [_require_https]},
        timeout=httpx.Timeout(settings.FETCH_TIMEOUT),
        follow_redirects=True,
        max_redirects=settings.MAX_REDIRECTS,
        verify=True,
        transport=transport,
    )


class ActivityPubFetcher:
    """對遠端 ActivityPub 伺服器發出單次 GET 並解析 JSON"""
    # 共享 httpx AsyncClient（由應用啟動時注入）
    shared_client: Optional[httpx.AsyncClient] = None

    @classmethod
    def set_shared_client(cls, client: Optional[httpx.AsyncClient]) -> None:
        cls.shared_client = client

    def __init__(self, client: Optional[httpx.AsyncClient] = None, timeout: Optional[float] = None):
        # 優先採用注入 client；否則採用 shared_client；最後回退到本地臨時 client
        self.client = client or ActivityPubFetcher.shared_client
        self.timeout = timeout if timeout is not None else settings.FETCH_TIMEOUT

    async def get(self, url: str) -> JsonValue:
        # Only the scheme rules apply here; the host allowlist is checked once on the actor URL
        authorize_url(url)

        client = self.client
        if client is not None:
            response = await self._request(client, url)
        else:
            async with create_http_client() as temp_client:
                response = await self._request(temp_client, url)

        if not response.is_success:
            raise HttpStatusError(response.status_code, f"HTTP error {response.status_code} for {url}")

        try:
            data = orjson.loads(response.content)
        except orjson.JSONDecodeError as e:
            raise JsonParseError(f"Failed to parse JSON from {url}: {e}") from e

        if not isinstance(data, (dict, list)):
            raise JsonParseError(f"Unexpected JSON document from {url}: {type(data).__name__}")
        return data

    async def _request(self, client: httpx.AsyncClient, url: str) -> httpx.Response:
        logger.debug("GET %s", url)
        try:
            return await client.get(
                url,
                headers=default_headers(),
                timeout=self.timeout,
                follow_redirects=True,
            )
        except httpx.TimeoutException as e:
            raise FetchTimeoutError(f"Request to {url} timed out") from e
        except httpx.RequestError as e:
            raise NetworkError(f"Request to {url} failed: {e}") from e
        except httpx.InvalidURL as e:
            # Passed the URL guard but httpx still refuses it
            raise InvalidUrlError(f"Invalid URL {url!r}: {e}") from e
