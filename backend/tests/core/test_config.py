from pydantic import ValidationError
import pytest

from app.core.config import Settings


@pytest.mark.parametrize(
    "raw",
    [
        "http://a.com,http://b.com",
        " http://a.com , http://b.com ,",
        '["http://a.com", "http://b.com"]',
    ],
)
def test_cors_origins_from_environment(monkeypatch, raw):
    monkeypatch.setenv("CORS_ALLOWED_ORIGINS", raw)
    assert Settings().cors_allowed_origins == ["http://a.com", "http://b.com"]


def test_single_cors_origin(monkeypatch):
    monkeypatch.setenv("CORS_ALLOWED_ORIGINS", "https://fitbook.example")
    assert Settings().cors_allowed_origins == ["https://fitbook.example"]


def test_currency_is_normalized(monkeypatch):
    monkeypatch.setenv("DEFAULT_CURRENCY", " usd ")
    assert Settings().default_currency == "USD"


def test_duration_bounds_are_checked(monkeypatch):
    monkeypatch.setenv("MIN_SESSION_DURATION", "120")
    monkeypatch.setenv("MAX_SESSION_DURATION", "60")
    with pytest.raises(ValidationError):
        Settings()
