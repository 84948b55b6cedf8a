"""Tests for settings parsing."""

from attendance_tracker.config import Settings, parse_fallback_code


def test_parse_fallback_code() -> None:
    assert parse_fallback_code(None) is None
    assert parse_fallback_code("   ") is None
    assert parse_fallback_code(" 0042 ") == "0042"


def test_settings_read_environment(monkeypatch) -> None:
    monkeypatch.setenv("SUPABASE_URL", "https://example.supabase.co")
    monkeypatch.setenv("SUPABASE_SERVICE_KEY", "header.payload.signature")
    monkeypatch.setenv("ADMIN_TOKEN", "secret")
    monkeypatch.setenv("FALLBACK_CODE", "7")
    monkeypatch.setenv("AUTO_COMPLETE_HOURS", "3")

    settings = Settings()

    assert settings.admin_token == "secret"
    assert settings.fallback_code == "7"
    assert settings.auto_complete_hours == 3
    assert settings.timezone == "America/New_York"
