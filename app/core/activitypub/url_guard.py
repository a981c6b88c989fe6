from typing import Iterable, Optional
from urllib.parse import urlparse

from app.core.errors import DomainNotAllowedError, InvalidUrlError

WILDCARD_DOMAIN = "*"
DANGEROUS_SCHEMES = frozenset({"javascript", "data", "vbscript", "file"})


def is_absolute_url(value) -> bool:
    """檢查字串是否為完整的 URL（含 scheme 與 host）"""
    if not isinstance(value, str) or not value or value != value.strip():
        return False
    try:
        parsed = urlparse(value)
        # Accessing port validates it
        parsed.port
    except ValueError:
        return False
    return bool(parsed.scheme and parsed.netloc and parsed.hostname)


def authorize_url(url: str, allowed_domains: Optional[Iterable[str]] = None) -> str:
    """檢查 URL 格式與安全性，不合格時拋出 FetchError

    Rules run in a fixed order: well-formedness, https only, host allowlist,
    then the dangerous scheme denylist. No network access happens here.
    """
    if not is_absolute_url(url):
        raise InvalidUrlError(f"Malformed URL: {url!r}")

    parsed = urlparse(url)
    if parsed.scheme != "https":
        raise InvalidUrlError(f"Only https URLs are supported: {url}")

    domains = list(allowed_domains or [])
    if domains and WILDCARD_DOMAIN not in domains:
        host = parsed.hostname
        if not host or host not in domains:
            raise DomainNotAllowedError(f"Domain not allowed: {host}")

    if parsed.scheme.lower() in DANGEROUS_SCHEMES:
        raise InvalidUrlError(f"URL scheme not allowed: {parsed.scheme}")

    return url
