import pytest

from app.core.errors import DomainNotAllowedError, FetchError, InvalidUrlError
from app.core.activitypub.url_guard import authorize_url, is_absolute_url


def test_http_url_is_rejected():
    with pytest.raises(InvalidUrlError):
        authorize_url("http://x/actor")


@pytest.mark.parametrize("url", [
    "",
    "not a url",
    "https://",
    "/users/alice",
    " https://social.example/users/alice",
    "https://social.example:99999/users/alice",
])
def test_malformed_urls_are_rejected(url):
    with pytest.raises(InvalidUrlError):
        authorize_url(url)


@pytest.mark.parametrize("url", [
    "javascript:alert(1)",
    "data:text/html,<script>alert(1)</script>",
    "file:///etc/passwd",
    "ftp://social.example/users/alice",
])
def test_non_https_schemes_are_rejected(url):
    with pytest.raises(InvalidUrlError):
        authorize_url(url)


def test_host_outside_allowlist_is_rejected():
    with pytest.raises(DomainNotAllowedError) as exc_info:
        authorize_url("https://blocked.example/actor", ["good.example"])
    assert exc_info.value.code == "DOMAIN_NOT_ALLOWED"
    assert isinstance(exc_info.value, FetchError)


def test_host_in_allowlist_is_authorized():
    assert authorize_url("https://good.example/actor", ["good.example"]) == "https://good.example/actor"


def test_allowlist_matches_literal_host_only():
    with pytest.raises(DomainNotAllowedError):
        authorize_url("https://sub.good.example/actor", ["good.example"])
    with pytest.raises(DomainNotAllowedError):
        authorize_url("https://good.example.evil.org/actor", ["good.example"])


def test_wildcard_and_empty_allowlist_allow_every_host():
    assert authorize_url("https://anywhere.example/actor", ["*"])
    assert authorize_url("https://anywhere.example/actor", ["good.example", "*"])
    assert authorize_url("https://anywhere.example/actor", [])
    assert authorize_url("https://anywhere.example/actor")


def test_scheme_is_checked_before_allowlist():
    with pytest.raises(InvalidUrlError):
        authorize_url("http://blocked.example/actor", ["good.example"])


def test_is_absolute_url():
    assert is_absolute_url("https://x/notes/2")
    assert not is_absolute_url("notes/2")
    assert not is_absolute_url(None)
    assert not is_absolute_url({"id": "https://x/notes/2"})
