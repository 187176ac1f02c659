"""Configuration loading (TOML/YAML files, env vars)."""

from __future__ import annotations

import dataclasses
import logging
import os
from pathlib import Path
from typing import Any

from dotenv import load_dotenv

from hookflow.observability.exporters import ObservabilityConfig
from hookflow.types.config import HooksConfig

logger = logging.getLogger(__name__)

# Load .env from current directory (and parents), won't override existing env vars
load_dotenv()

CONFIG_NAMES = ("config.toml", "config.yaml", "config.yml")

_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off"}

_BOOL_KEYS = frozenset({"parallel", "continue_on_error", "emit_events"})
_OBSERVABILITY_STR_KEYS = frozenset({"exporter", "otlp_endpoint", "service_name"})


def _parse_bool(name: str, value: str) -> bool | None:
    lowered = value.strip().lower()
    if lowered in _TRUE:
        return True
    if lowered in _FALSE:
        return False
    logger.warning("Ignoring %s=%r: expected a boolean", name, value)
    return None


def _coerce_bool(name: str, value: Any) -> bool | None:
    """Accept a real bool, or a string spelled the way env values are."""
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        return _parse_bool(name, value)
    logger.warning("Ignoring %s=%r: expected a boolean", name, value)
    return None


def _coerce_str(name: str, value: Any) -> str | None:
    if isinstance(value, str) and value:
        return value
    logger.warning("Ignoring %s=%r: expected a non-empty string", name, value)
    return None


def _parse_timeout(name: str, value: Any) -> float | None:
    try:
        timeout = float(value)
    except (TypeError, ValueError):
        logger.warning("Ignoring %s=%r: expected a number of milliseconds", name, value)
        return None
    if timeout <= 0:
        logger.warning("Ignoring %s=%r: timeout must be positive", name, value)
        return None
    return timeout


def load_env_config() -> dict[str, Any]:
    """Load configuration from HOOKFLOW_* environment variables."""
    config: dict[str, Any] = {}
    observability: dict[str, Any] = {}

    for key, env_name in (
        ("parallel", "HOOKFLOW_PARALLEL"),
        ("continue_on_error", "HOOKFLOW_CONTINUE_ON_ERROR"),
        ("emit_events", "HOOKFLOW_EMIT_EVENTS"),
    ):
        if (raw := os.environ.get(env_name)) is not None:
            parsed = _parse_bool(env_name, raw)
            if parsed is not None:
                config[key] = parsed

    if raw := os.environ.get("HOOKFLOW_TIMEOUT_MS"):
        if (timeout := _parse_timeout("HOOKFLOW_TIMEOUT_MS", raw)) is not None:
            config["timeout_ms"] = timeout
    if topic := os.environ.get("HOOKFLOW_EVENT_TOPIC"):
        config["event_topic"] = topic

    if (raw := os.environ.get("HOOKFLOW_OTEL_ENABLED")) is not None:
        parsed = _parse_bool("HOOKFLOW_OTEL_ENABLED", raw)
        if parsed is not None:
            observability["enabled"] = parsed
    if exporter := os.environ.get("HOOKFLOW_OTEL_EXPORTER"):
        observability["exporter"] = exporter
    if endpoint := os.environ.get("HOOKFLOW_OTLP_ENDPOINT"):
        observability["otlp_endpoint"] = endpoint

    if observability:
        config["observability"] = observability
    return config


def _parse_file(path: Path) -> dict[str, Any] | None:
    """Parse a YAML or TOML file."""
    suffix = path.suffix.lower()
    try:
        text = path.read_text()
    except OSError as exc:
        logger.warning("Cannot read config file %s: %s", path, exc)
        return None

    if suffix in (".yml", ".yaml"):
        import yaml

        try:
            data = yaml.safe_load(text)
        except yaml.YAMLError as exc:
            logger.warning("Failed to parse YAML config %s: %s", path, exc)
            return None
        return data if isinstance(data, dict) else {}
    if suffix == ".toml":
        import tomllib

        try:
            return tomllib.loads(text)
        except tomllib.TOMLDecodeError as exc:
            logger.warning("Failed to parse TOML config %s: %s", path, exc)
            return None

    logger.warning("Unsupported config file extension: %s", path)
    return None


def load_file_config(path: str | Path) -> dict[str, Any]:
    """Load the ``hooks`` and ``observability`` tables from a config file."""
    raw = _parse_file(Path(path).expanduser())
    if not raw:
        return {}

    config: dict[str, Any] = dict(raw.get("hooks") or {})
    if isinstance(raw.get("observability"), dict):
        config["observability"] = dict(raw["observability"])
    return config


def find_config_file(cwd: str | Path | None = None) -> Path | None:
    """Locate .hookflow/config.{toml,yaml,yml} in cwd, then ~/.hookflow/config.toml."""
    search_dirs = []
    if cwd:
        search_dirs.append(Path(cwd) / ".hookflow")
    search_dirs.append(Path.cwd() / ".hookflow")

    for d in search_dirs:
        for name in CONFIG_NAMES:
            candidate = d / name
            if candidate.is_file():
                return candidate

    home_config = Path.home() / ".hookflow" / "config.toml"
    if home_config.is_file():
        return home_config
    return None


def build_hooks_config(values: dict[str, Any]) -> HooksConfig:
    """Build a HooksConfig from a flat mapping, dropping unknown or invalid keys."""
    known = {f.name for f in dataclasses.fields(HooksConfig)}
    kwargs: dict[str, Any] = {}

    for key, value in values.items():
        if key not in known:
            logger.warning("Unknown hooks config key '%s', ignoring", key)
            continue
        if key == "observability":
            kwargs[key] = _build_observability(value)
        elif key == "timeout_ms":
            if value is not None and (timeout := _parse_timeout(key, value)) is not None:
                kwargs[key] = timeout
        elif key in _BOOL_KEYS:
            if (flag := _coerce_bool(key, value)) is not None:
                kwargs[key] = flag
        elif key == "event_topic":
            if (topic := _coerce_str(key, value)) is not None:
                kwargs[key] = topic
        else:
            kwargs[key] = value

    return HooksConfig(**kwargs)


def _build_observability(values: Any) -> ObservabilityConfig:
    if isinstance(values, ObservabilityConfig):
        return values
    if values is not None and not isinstance(values, dict):
        logger.warning("Ignoring observability=%r: expected a table", values)
        return ObservabilityConfig()
    known = {f.name for f in dataclasses.fields(ObservabilityConfig)}
    kwargs: dict[str, Any] = {}
    for key, value in (values or {}).items():
        if key not in known:
            logger.warning("Unknown observability config key '%s', ignoring", key)
        elif key == "enabled":
            if (flag := _coerce_bool("observability.enabled", value)) is not None:
                kwargs[key] = flag
        elif key in _OBSERVABILITY_STR_KEYS:
            if (text := _coerce_str(f"observability.{key}", value)) is not None:
                kwargs[key] = text
        else:
            kwargs[key] = value
    return ObservabilityConfig(**kwargs)


def load_hooks_config(
    cwd: str | Path | None = None, path: str | Path | None = None,
) -> HooksConfig:
    """Resolve the executor configuration.

    Values come from the config file (``path``, or the first one found by
    :func:`find_config_file`), overridden by environment variables.
    """
    values: dict[str, Any] = {}

    config_path = Path(path) if path else find_config_file(cwd)
    if config_path is not None:
        values.update(load_file_config(config_path))

    env_values = load_env_config()
    env_observability = env_values.pop("observability", None)
    values.update(env_values)
    if env_observability:
        values["observability"] = {**(values.get("observability") or {}), **env_observability}

    return build_hooks_config(values)
