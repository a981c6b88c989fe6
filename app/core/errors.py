"""
錯誤類型與錯誤訊息對照
"""

from datetime import datetime, timezone
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional, Tuple

UNKNOWN_ERROR = "UNKNOWN_ERROR"

# code -> (internal message, user-facing message)
ERROR_MESSAGES: Mapping[str, Tuple[str, str]] = MappingProxyType({
    # URL 相關
    "INVALID_URL": (
        "Invalid URL format",
        "URLの形式が正しくありません。HTTPSのURLを入力してください。",
    ),
    "DOMAIN_NOT_ALLOWED": (
        "Domain not allowed",
        "許可されていないドメインです。",
    ),
    # 網路相關
    "NETWORK_ERROR": (
        "Network connection failed",
        "ネットワーク接続に失敗しました。しばらく時間をおいてから再試行してください。",
    ),
    "HTTP_ERROR": (
        "HTTP request failed",
        "データの取得に失敗しました。URLが正しいか確認してください。",
    ),
    "TIMEOUT_ERROR": (
        "Request timeout",
        "応答時間が長すぎます。しばらく時間をおいてから再試行してください。",
    ),
    # 資料解析相關
    "JSON_ERROR": (
        "JSON parsing failed",
        "データの解析に失敗しました。",
    ),
    "INVALID_ACTOR": (
        "Invalid ActivityPub Actor",
        "有効なActivityPubユーザーではありません。",
    ),
    "NO_OUTBOX": (
        "Outbox not found",
        "投稿データが見つかりません。",
    ),
    "INVALID_NOTE": (
        "Invalid Note object",
        "投稿データの形式が正しくありません。",
    ),
    # 請求相關
    "INVALID_REQUEST": (
        "Invalid request",
        "リクエストの形式が正しくありません。",
    ),
    "INVALID_ACTION": (
        "Unsupported action",
        "サポートされていないアクションです。",
    ),
    UNKNOWN_ERROR: (
        "Unknown error occurred",
        "予期しないエラーが発生しました。",
    ),
})


class ViewerError(Exception):
    """所有可預期錯誤的基底類別"""
    code: str = UNKNOWN_ERROR

    def __init__(self, message: Optional[str] = None):
        super().__init__(message or ERROR_MESSAGES[self.code][0])

    @property
    def message(self) -> str:
        return str(self)

    @property
    def user_message(self) -> str:
        return ERROR_MESSAGES.get(self.code, ERROR_MESSAGES[UNKNOWN_ERROR])[1]


class FetchError(ViewerError):
    """URL 驗證或取得遠端資料時的錯誤"""
    code = "NETWORK_ERROR"


class InvalidUrlError(FetchError):
    code = "INVALID_URL"


class DomainNotAllowedError(FetchError):
    code = "DOMAIN_NOT_ALLOWED"


class NetworkError(FetchError):
    code = "NETWORK_ERROR"


class FetchTimeoutError(NetworkError):
    code = "TIMEOUT_ERROR"


class HttpStatusError(FetchError):
    code = "HTTP_ERROR"

    def __init__(self, status_code: int, message: Optional[str] = None):
        self.status_code = status_code
        super().__init__(message or f"HTTP error: {status_code}")


class ParseError(ViewerError):
    """JSON 解析錯誤或 ActivityPub 文件格式不符"""
    code = "JSON_ERROR"


class JsonParseError(ParseError):
    code = "JSON_ERROR"


class InvalidActorError(ParseError):
    code = "INVALID_ACTOR"


class NoOutboxError(ParseError):
    code = "NO_OUTBOX"


class InvalidOutboxShapeError(ParseError):
    # Clients expect INVALID_NOTE for a malformed collection
    code = "INVALID_NOTE"


class InvalidRequestError(ViewerError):
    code = "INVALID_REQUEST"


class InvalidActionError(InvalidRequestError):
    code = "INVALID_ACTION"


def build_error_payload(code: str, message: Optional[str] = None) -> Dict[str, Any]:
    """建立對外的錯誤回應內容"""
    default_message, user_message = ERROR_MESSAGES.get(code, ERROR_MESSAGES[UNKNOWN_ERROR])
    return {
        "code": code,
        "message": message or default_message,
        "user_message": user_message,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }
