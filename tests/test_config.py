"""Tests for configuration loading and validation."""

from pathlib import Path

import pytest
from pydantic import SecretStr

from llmanki.config import Config, get_config, load_config, reset_config, set_config
from llmanki.exceptions import ConfigurationError

ENV_VARS = (
    "LLMANKI_CONFIG",
    "LLM_PROVIDER",
    "LLM_MODEL",
    "LLM_API_KEY",
    "LLM_BASE_URL",
    "MAX_ANALYSIS_CARDS",
    "CONCURRENT_ANALYSIS",
    "REQUEST_DELAY_MS",
)


@pytest.fixture(autouse=True)
def isolated_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
    """Run every test in an empty directory with no llmanki variables set."""
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)
    reset_config()
    yield
    reset_config()


def _write_config(tmp_path: Path, text: str) -> Path:
    path = tmp_path / "config.yaml"
    path.write_text(text, encoding="utf-8")
    return path


def test_defaults() -> None:
    config = load_config()
    assert config.llm_provider == "groq"
    assert config.effective_model == "llama-3.3-70b-versatile"
    assert config.max_analysis_cards == 100
    assert config.concurrent_analysis is False
    assert config.request_delay_ms == 2000
    assert config.send_images is True


def test_yaml_values(tmp_path: Path) -> None:
    path = _write_config(
        tmp_path,
        "llm_provider: Anthropic\n"
        "llm_api_key: sk-test\n"
        "max_analysis_cards: 5\n"
        "concurrent_analysis: true\n"
        f"cache_dir: {tmp_path / 'cache'}\n"
        "unknown_setting: 1\n",
    )
    config = load_config(path)
    assert config.llm_provider == "anthropic"
    assert config.effective_model == "claude-3-5-sonnet-20241022"
    assert config.max_analysis_cards == 5
    assert config.concurrent_analysis is True
    assert config.cache_dir == tmp_path / "cache"


def test_config_found_in_working_directory(tmp_path: Path) -> None:
    _write_config(tmp_path, "llm_model: llama-3.1-8b-instant\n")
    assert load_config().effective_model == "llama-3.1-8b-instant"


def test_config_env_var(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    other = tmp_path / "elsewhere.yaml"
    other.write_text("request_delay_ms: 0\n", encoding="utf-8")
    monkeypatch.setenv("LLMANKI_CONFIG", str(other))
    assert load_config().request_delay_ms == 0


def test_environment_variables(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("LLM_API_KEY", "from-env")
    monkeypatch.setenv("LLM_PROVIDER", "openai")
    config = load_config()
    assert config.llm_api_key == "from-env"
    assert config.llm_provider == "openai"


def test_yaml_beats_environment(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("LLM_MODEL", "env-model")
    path = _write_config(tmp_path, "llm_model: yaml-model\n")
    assert load_config(path).llm_model == "yaml-model"


def test_invalid_yaml(tmp_path: Path) -> None:
    path = _write_config(tmp_path, "llm_provider: [unclosed\n")
    with pytest.raises(ConfigurationError) as exc_info:
        load_config(path)
    assert "YAML" in exc_info.value.suggestion


def test_non_mapping_yaml(tmp_path: Path) -> None:
    path = _write_config(tmp_path, "- a\n- b\n")
    with pytest.raises(ConfigurationError):
        load_config(path)


def test_invalid_value(tmp_path: Path) -> None:
    path = _write_config(tmp_path, "max_analysis_cards: 0\n")
    with pytest.raises(ConfigurationError, match="Invalid configuration"):
        load_config(path)


def test_unknown_provider() -> None:
    with pytest.raises(ConfigurationError, match="Unknown LLM provider"):
        Config(llm_provider="skynet")


def test_missing_explicit_path(tmp_path: Path) -> None:
    with pytest.raises(ConfigurationError, match="not found"):
        load_config(tmp_path / "missing.yaml")


def test_llm_config() -> None:
    config = Config(llm_provider="ollama", llm_base_url="http://box:11434/v1", llm_timeout=30)
    llm = config.llm_config()
    assert llm.provider_id == "ollama"
    assert llm.model == "llama3.2"
    assert llm.base_url == "http://box:11434/v1"
    assert llm.timeout == 30
    assert isinstance(llm.api_key, SecretStr)
    assert llm.system_prompt


def test_require_api_key() -> None:
    with pytest.raises(ConfigurationError, match="requires an API key"):
        Config(llm_provider="groq").require_api_key()
    Config(llm_provider="ollama").require_api_key()
    Config(llm_provider="groq", llm_api_key="k").require_api_key()


def test_singleton_helpers() -> None:
    config = Config(llm_provider="together")
    set_config(config)
    assert get_config() is config
    reset_config()
    assert get_config() is not config
