import pytest
from pydantic import ValidationError

from mcp_oneinch.config import OpenRouterConfig, ServiceConfig, get_openrouter_config, get_service_config

CONFIG_VARS = (
    "ONEINCH_BASE_URL", "ONEINCH_API_KEY", "ONEINCH_TIMEOUT",
    "OPENROUTER_BASE_URL", "OPENROUTER_API_KEY", "OPENROUTER_TIMEOUT",
    "OPENROUTER_SMALL_MODEL", "OPENROUTER_LARGE_MODEL", "OPENROUTER_MAX_TOKENS", "OPENROUTER_TEMPERATURE",
)


@pytest.fixture
def clean_env(monkeypatch: pytest.MonkeyPatch) -> pytest.MonkeyPatch:
    """Environment with none of the config variables set (a local .env may define them)."""
    for name in CONFIG_VARS:
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


def test_service_config_defaults(clean_env):
    config = get_service_config()
    assert config.base_url == "https://api.1inch.dev"
    assert config.api_key == ""
    assert config.timeout == 30.0


def test_service_config_from_env(clean_env):
    clean_env.setenv("ONEINCH_BASE_URL", "https://proxy.example")
    clean_env.setenv("ONEINCH_API_KEY", "secret")
    clean_env.setenv("ONEINCH_TIMEOUT", "2500")

    config = get_service_config()

    assert config.base_url == "https://proxy.example"
    assert config.api_key == "secret"
    assert config.timeout == 2.5


def test_openrouter_config_defaults(clean_env):
    config = get_openrouter_config()
    assert config.base_url == "https://openrouter.ai/api/v1"
    assert config.timeout == 60.0
    assert config.small_model == config.large_model == ""
    assert config.max_tokens == 4000
    assert config.temperature == 0.7


def test_openrouter_config_from_env(clean_env):
    clean_env.setenv("OPENROUTER_SMALL_MODEL", "vendor/small")
    clean_env.setenv("OPENROUTER_MAX_TOKENS", "512")
    clean_env.setenv("OPENROUTER_TEMPERATURE", "1.5")

    config = get_openrouter_config()

    assert config.small_model == "vendor/small"
    assert config.max_tokens == 512
    assert config.temperature == 1.5


@pytest.mark.parametrize("bad", [
    {"timeout": 0},
    {"base_url": ""},
])
def test_service_config_rejects_invalid_values(bad):
    with pytest.raises(ValidationError):
        ServiceConfig(**{"base_url": "https://api.1inch.dev", **bad})


def test_openrouter_temperature_bounds():
    with pytest.raises(ValidationError):
        OpenRouterConfig(base_url="https://openrouter.ai/api/v1", temperature=2.5)
