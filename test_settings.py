"""
設定載入測試
"""

from app.core.config import Settings


def test_defaults():
    settings = Settings(_env_file=None)
    assert settings.FETCH_TIMEOUT == 5.0  # from TEST_ENV_VARS
    assert settings.MAX_REDIRECTS == 5
    assert settings.DEFAULT_MAX_POSTS == 20
    assert settings.MAX_POSTS_LIMIT == 50
    assert settings.OUTBOX_MAX_PAGES == 1
    assert settings.DEBUG_PAYLOAD_ENABLED is False
    assert settings.ALLOWED_DOMAINS == []


def test_environment_overrides(monkeypatch):
    monkeypatch.setenv("ALLOWED_DOMAINS", '["mastodon.social", "misskey.io"]')
    monkeypatch.setenv("DISPLAY_TIMEZONE", "UTC")
    monkeypatch.setenv("RESOLVE_CONCURRENCY", "1")
    monkeypatch.setenv("DEBUG_PAYLOAD_ENABLED", "true")

    settings = Settings(_env_file=None)

    assert settings.ALLOWED_DOMAINS == ["mastodon.social", "misskey.io"]
    assert settings.DISPLAY_TIMEZONE == "UTC"
    assert settings.RESOLVE_CONCURRENCY == 1
    assert settings.DEBUG_PAYLOAD_ENABLED is True
