import pytest

from cosmoparse.config import DEFAULT_BASE_URL, DEFAULT_MODEL, load_settings, resolve_api_key
from cosmoparse.errors import ConfigurationError


def test_explicit_key_wins_over_environment():
    assert resolve_api_key("ai_explicit", {"COSMO_AI_KEY": "ai_env"}) == "ai_explicit"


def test_falls_back_to_environment():
    assert resolve_api_key(None, {"COSMO_AI_KEY": "ai_env"}) == "ai_env"


def test_missing_key_raises():
    with pytest.raises(ConfigurationError, match="Missing COSMO_AI_KEY"):
        resolve_api_key(None, {})


def test_empty_key_raises():
    with pytest.raises(ConfigurationError):
        resolve_api_key("", {"COSMO_AI_KEY": "ai_env"})


@pytest.mark.parametrize("key", ["sk-123", "AI_upper", "xai_", " ai_leading_space"])
def test_key_without_prefix_raises(key):
    with pytest.raises(ConfigurationError, match="must start with 'ai_'"):
        resolve_api_key(key, {})


def test_reads_os_environ_by_default(monkeypatch):
    monkeypatch.setenv("COSMO_AI_KEY", "ai_from_os")
    assert resolve_api_key() == "ai_from_os"


def test_load_settings_defaults():
    settings = load_settings(environ={"COSMO_AI_KEY": "ai_x"})
    assert settings.api_key == "ai_x"
    assert settings.model == DEFAULT_MODEL == "gpt-4o"
    assert settings.base_url == DEFAULT_BASE_URL
    assert settings.timeout == 60.0


def test_load_settings_overrides():
    env = {
        "COSMO_AI_KEY": "ai_x",
        "COSMO_AI_MODEL": "gpt-4o-mini",
        "COSMO_AI_BASE_URL": "http://localhost:8080/",
        "COSMO_AI_TIMEOUT": "12.5",
    }
    settings = load_settings(environ=env)
    assert settings.model == "gpt-4o-mini"
    assert settings.base_url == "http://localhost:8080"
    assert settings.timeout == 12.5

    assert load_settings(model="o1", environ=env).model == "o1"


def test_bad_timeout_is_a_configuration_error():
    with pytest.raises(ConfigurationError, match="COSMO_AI_TIMEOUT"):
        load_settings(environ={"COSMO_AI_KEY": "ai_x", "COSMO_AI_TIMEOUT": "soon"})
