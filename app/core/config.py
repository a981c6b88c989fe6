from pydantic_settings import BaseSettings
from typing import List

class Settings(BaseSettings):
    # Basic settings
    PROJECT_NAME: str = "ActivityPub Web Viewer"
    API_V1_STR: str = "/api/v1"

    # Outbound federation requests
    FETCH_TIMEOUT: float = 10.0  # seconds, shared by every outbound call
    MAX_REDIRECTS: int = 5
    USER_AGENT: str = "ActivityPubWebViewer/1.0 (+https://yourdomain.com/about)"
    ACCEPT_LANGUAGE: str = "ja,en;q=0.9"

    # Empty list allows every host, "*" is an explicit wildcard
    ALLOWED_DOMAINS: List[str] = []

    # Post normalization
    DISPLAY_TIMEZONE: str = "Asia/Tokyo"
    MAX_CONTENT_LENGTH: int = 10000

    # Pipeline limits
    DEFAULT_MAX_POSTS: int = 20
    MAX_POSTS_LIMIT: int = 50
    OUTBOX_MAX_PAGES: int = 1
    RESOLVE_CONCURRENCY: int = 4

    # Raw outbox page / unparsed items in responses (troubleshooting only)
    DEBUG_PAYLOAD_ENABLED: bool = False

    # CORS settings
    ALLOWED_HOSTS: List[str] = ["*"]

    class Config:
        env_file = ".env"
        case_sensitive = True

settings = Settings()
