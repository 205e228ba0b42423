"""Config loader utilities (split from config.py)."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from .config_settings import Config
from .exceptions import ConfigurationError
from .utils.logging import get_logger

CONFIG_ENV_VAR = "LLMANKI_CONFIG"

_config: Config | None = None


def _candidate_paths(config_path: Path | None) -> list[Path]:
    if config_path:
        return [config_path.expanduser()]
    candidates: list[Path] = []
    env_path = os.getenv(CONFIG_ENV_VAR)
    if env_path:
        candidates.append(Path(env_path).expanduser())
    candidates.append(Path.cwd() / "config.yaml")
    return candidates


def _read_yaml(path: Path) -> dict[str, Any]:
    logger = get_logger(__name__)
    try:
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as e:
        logger.error(
            "config_yaml_load_error",
            config_path=str(path),
            error=str(e),
            error_type=type(e).__name__,
        )
        msg = f"Failed to parse config file: {path}"
        suggestion = (
            "Check YAML syntax (indentation, colons, quotes) and that the file "
            f"is UTF-8. Original error: {e}"
        )
        raise ConfigurationError(msg, suggestion=suggestion) from e

    if not isinstance(data, dict):
        msg = f"Config file must contain a mapping: {path}"
        raise ConfigurationError(msg, suggestion="Use `key: value` lines at the top level.")
    logger.debug("config_yaml_loaded", config_path=str(path), keys_count=len(data))
    return data


def load_config(config_path: Path | None = None) -> Config:
    """Load configuration from config.yaml, the environment and .env.

    The file is looked up at ``config_path``, else ``$LLMANKI_CONFIG``, else
    ``./config.yaml``. An explicitly given path must exist. Values from the
    file take precedence over environment variables.

    Raises:
        ConfigurationError: If the file is unreadable or a value is invalid
    """
    logger = get_logger(__name__)

    candidates = _candidate_paths(config_path)
    resolved = next((p for p in candidates if p.exists()), None)

    if config_path and resolved is None:
        msg = f"Config file not found: {config_path}"
        raise ConfigurationError(msg, suggestion="Check the --config path.")
    if resolved is None:
        logger.debug("config_file_not_found", searched_paths=[str(p) for p in candidates])

    yaml_data = _read_yaml(resolved) if resolved else {}

    known = set(Config.model_fields)
    unknown = sorted(k for k in yaml_data if str(k).lower() not in known)
    if unknown:
        logger.warning("config_unknown_keys", keys=unknown)
    config_kwargs = {
        str(k).lower(): v for k, v in yaml_data.items() if str(k).lower() in known and v is not None
    }

    try:
        config = Config(**config_kwargs)
    except ValidationError as e:
        logger.error(
            "config_validation_error",
            error=str(e),
            config_path=str(resolved) if resolved else None,
        )
        raise ConfigurationError(
            "Invalid configuration",
            suggestion=str(e),
            context={"config_path": str(resolved) if resolved else None},
        ) from e

    logger.info(
        "config_loaded",
        config_path=str(resolved) if resolved else None,
        llm_provider=config.llm_provider,
        llm_model=config.effective_model,
    )
    return config


def get_config() -> Config:
    """Get singleton config instance."""
    global _config
    if _config is None:
        _config = load_config()
    return _config


def set_config(config: Config) -> None:
    """Set singleton config instance (for testing)."""
    global _config
    _config = config


def reset_config() -> None:
    """Reset global config instance (for testing only)."""
    global _config
    _config = None


__all__ = ["Config", "get_config", "load_config", "reset_config", "set_config"]
