import json

import pytest

from pyfibernet.config import DEFAULT_SERVICES, Settings, load_settings
from pyfibernet.exceptions import InvalidConfigurationParameter

ENV_VARS = ["FN_ACS_URL", "FN_STATUS_TTL", "FN_SERVICES", "FN_DEDUPE_BY_MAC", "FN_STATUS_URL",
            "GEMINI_API_KEY", "FN_DEBUG"]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)


def test_defaults():
    settings = load_settings()
    assert settings.acs_url == "http://localhost:7557"
    assert settings.status_ttl == 300
    assert settings.refresh_interval == 900
    assert settings.dedupe_by_mac is False
    assert settings.ai_fallback_enabled is False
    assert [s.key for s in settings.services] == [s["key"] for s in DEFAULT_SERVICES]


def test_environment_overrides(monkeypatch):
    monkeypatch.setenv("FN_ACS_URL", "http://acs.internal:7557")
    monkeypatch.setenv("FN_STATUS_TTL", "60")
    monkeypatch.setenv("FN_DEDUPE_BY_MAC", "yes")
    monkeypatch.setenv("GEMINI_API_KEY", "secret")
    settings = Settings()
    assert settings.acs_url == "http://acs.internal:7557"
    assert settings.status_ttl == 60
    assert settings.dedupe_by_mac is True
    assert settings.ai_fallback_enabled is True


def test_keyword_overrides():
    settings = load_settings(status_ttl=5, acs_timeout=3)
    assert settings.status_ttl == 5
    assert settings.acs_timeout == 3


def test_services_from_environment(monkeypatch):
    monkeypatch.setenv("FN_SERVICES", json.dumps([
        {"key": "spotify", "name": "Spotify"},
        {"key": "whatsapp-messenger", "name": "WhatsApp", "aliases": ["zap"]},
    ]))
    settings = Settings()
    assert [s.key for s in settings.services] == ["spotify", "whatsapp-messenger"]
    assert settings.services[1].aliases == ["zap"]


def test_bad_services_json_uses_defaults(monkeypatch):
    monkeypatch.setenv("FN_SERVICES", "[{not json")
    settings = Settings()
    assert len(settings.services) == len(DEFAULT_SERVICES)


def test_non_positive_ttl_rejected():
    with pytest.raises(InvalidConfigurationParameter):
        load_settings(status_ttl=0)


def test_status_url_needs_placeholder(monkeypatch):
    monkeypatch.setenv("FN_STATUS_URL", "https://status.example.com/")
    with pytest.raises(InvalidConfigurationParameter):
        load_settings()


def test_unparseable_number_rejected(monkeypatch):
    monkeypatch.setenv("FN_STATUS_TTL", "five minutes")
    with pytest.raises(InvalidConfigurationParameter):
        load_settings()
