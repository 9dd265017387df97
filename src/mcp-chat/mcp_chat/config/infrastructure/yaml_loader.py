"""YAML config loader — parses, interpolates env vars, validates, and emits observer events."""

from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from mcp_chat.config.domain.config import AppConfig
from mcp_chat.config.domain.observer import ConfigObserver
from mcp_chat.config.infrastructure.env_interpolation import (
    collect_missing_vars,
    interpolate,
)
from mcp_chat.config.infrastructure.errors import (
    ConfigLoadError,
    ConfigValidationError,
    MissingEnvVarsError,
)

# Providers reached over a hosted API; a missing key is worth a warning.
_KEYED_PROVIDERS = frozenset({"openai", "azureopenai", "anthropic"})


class YamlConfigLoader:
    """Loads, interpolates, validates, and returns an AppConfig from a YAML file."""

    def __init__(self, observer: ConfigObserver) -> None:
        self._observer = observer

    def load(self, path: Path) -> AppConfig:
        """
        Load, interpolate, validate, and return an AppConfig from a YAML file.

        Raises:
            ConfigLoadError: if the file cannot be read.
            MissingEnvVarsError: if any ${ENV_VAR} references are unset (all collected first).
            ConfigValidationError: on YAML syntax errors, schema violations, or
                default_tool_groups naming an unknown MCP server.
        """
        raw = _parse_yaml(path=path)
        _check_missing_env_vars(raw=raw)
        interpolated = interpolate(raw)
        _check_tool_group_refs(interpolated=interpolated)
        cfg = _build_config(resolved=interpolated)
        _emit_warnings(cfg=cfg, observer=self._observer)
        self._observer.config_loaded(
            name=cfg.name, provider=cfg.model.provider, model=cfg.model.model
        )
        return cfg


def _parse_yaml(path: Path) -> Any:
    try:
        with path.open("r", encoding="utf-8") as fh:
            raw = yaml.safe_load(fh)
    except OSError as exc:
        raise ConfigLoadError(path=path, reason=exc.strerror or str(exc)) from exc
    except yaml.YAMLError as exc:
        raise ConfigValidationError(f"invalid YAML: {exc}") from exc

    if not isinstance(raw, dict):
        raise ConfigValidationError("top-level document must be a mapping")
    return raw


def _check_missing_env_vars(raw: Any) -> None:
    """Raise MissingEnvVarsError if any ${ENV_VAR} references in raw are unset."""
    missing = collect_missing_vars(raw)
    if missing:
        raise MissingEnvVarsError(missing)


def _check_tool_group_refs(interpolated: dict[str, Any]) -> None:
    """
    Validate that default_tool_groups only names configured MCP servers.

    Raises:
        ConfigValidationError: listing ALL unknown names, not just the first one.
    """
    defined_names = set((interpolated.get("mcp_servers") or {}).keys())
    requested: list[str] = interpolated.get("default_tool_groups") or []

    unknown = [
        f"default_tool_groups references unknown MCP server '{name}'"
        for name in requested
        if name not in defined_names
    ]
    if unknown:
        raise ConfigValidationError("; ".join(unknown))


def _build_config(resolved: Any) -> AppConfig:
    try:
        return AppConfig.model_validate(resolved)
    except ValidationError as exc:
        raise ConfigValidationError(str(exc)) from exc


def _emit_warnings(cfg: AppConfig, observer: ConfigObserver) -> None:
    if cfg.model.provider in _KEYED_PROVIDERS and not cfg.model.api_key:
        observer.config_api_key_missing_warning(provider=cfg.model.provider)
