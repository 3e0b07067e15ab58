"""Runtime configuration for the CLI.

Precedence, highest first:
1) explicit CLI flags
2) ``--set KEY=VALUE`` overrides
3) the ``--config`` file (YAML or JSON; optional top-level ``depfrontier:`` section)
4) built-in defaults
"""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, field, fields
from typing import Any, Dict, List, Optional

import yaml

from constants import Constants, GraphProviders
from graph.models import DependencyKind

logger = logging.getLogger(__name__)


class ConfigError(ValueError):
    """Raised when the configuration file cannot be read or is invalid."""


@dataclass
class Settings:
    """Resolved run settings."""

    graph: Optional[str] = None
    workspace: Optional[str] = None
    provider: str = GraphProviders.AUTO.value
    target: Optional[str] = None
    package_id: Optional[str] = None
    target_version: Optional[str] = None
    kinds: List[str] = field(default_factory=list)
    skip: List[str] = field(default_factory=list)
    boundary_only: bool = False
    format: Optional[str] = None
    output: Optional[str] = None
    baseline: Optional[str] = None
    error_on_warnings: bool = False
    log_level: Optional[str] = None
    log_file: Optional[str] = None


# Settings field -> argparse dest
_ARG_DESTS = {
    "graph": "GRAPH",
    "workspace": "WORKSPACE",
    "provider": "PROVIDER",
    "target": "TARGET",
    "package_id": "PACKAGE_ID",
    "target_version": "TARGET_VERSION",
    "kinds": "KINDS",
    "skip": "SKIP",
    "boundary_only": "BOUNDARY_ONLY",
    "format": "OUTPUT_FORMAT",
    "output": "OUTPUT",
    "baseline": "BASELINE",
    "error_on_warnings": "ERROR_ON_WARNINGS",
    "log_level": "LOG_LEVEL",
    "log_file": "LOG_FILE",
}
_LIST_FIELDS = ("kinds", "skip")
_BOOL_FIELDS = ("boundary_only", "error_on_warnings")


def load_config_file(path: str) -> Dict[str, Any]:
    """Load a YAML or JSON configuration file.

    Raises:
        ConfigError: If the file cannot be read, parsed, or is not a mapping.
    """
    if not os.path.isfile(path):
        raise ConfigError(f"Config file not found: {path}")
    try:
        with open(path, "r", encoding="utf-8") as fh:
            if path.lower().endswith(".json"):
                data = json.load(fh)
            else:
                data = yaml.safe_load(fh)
    except (OSError, ValueError, yaml.YAMLError) as e:
        raise ConfigError(f"Failed to load config {path}: {e}") from e
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"Config {path} must contain a mapping at the top level")
    section = data.get(Constants.CONFIG_SECTION)
    if isinstance(section, dict):
        return section
    return data


def _coerce_value(text: str) -> Any:
    """Best-effort convert string to JSON/number/bool, else raw string."""
    s = str(text).strip()
    try:
        return json.loads(s)
    except ValueError:
        sl = s.lower()
        if sl == "true":
            return True
        if sl == "false":
            return False
        return s


def collect_overrides(pairs: Optional[List[str]]) -> Dict[str, Any]:
    """Parse ``KEY=VALUE`` pairs; malformed items are logged and skipped."""
    overrides: Dict[str, Any] = {}
    for item in pairs or []:
        if not isinstance(item, str) or "=" not in item:
            logger.warning("Ignoring malformed --set override: %s", item)
            continue
        key, val = item.split("=", 1)
        key = key.strip().replace("-", "_")
        if key.startswith(f"{Constants.CONFIG_SECTION}."):
            key = key[len(Constants.CONFIG_SECTION) + 1:]
        overrides[key] = _coerce_value(val.strip())
    return overrides


def _normalize(key: str, value: Any) -> Any:
    if key in _LIST_FIELDS:
        if value is None:
            return []
        if isinstance(value, str):
            return [v.strip() for v in value.split(",") if v.strip()]
        if isinstance(value, (list, tuple)):
            return [str(v) for v in value]
        raise ConfigError(f"'{key}' must be a list or a comma-separated string")
    if key in _BOOL_FIELDS:
        if not isinstance(value, bool):
            raise ConfigError(f"'{key}' must be true or false")
        return value
    if value is None:
        return None
    if key in ("provider", "format"):
        value = str(value).lower()
        allowed = Constants.SUPPORTED_PROVIDERS if key == "provider" else Constants.SUPPORTED_FORMATS
        if value not in allowed:
            raise ConfigError(f"'{key}' must be one of {', '.join(allowed)}")
        return value
    if key == "log_level":
        return str(value).upper()
    return str(value)


def _apply(settings: Settings, values: Dict[str, Any], origin: str) -> None:
    known = {f.name for f in fields(Settings)}
    for key, value in values.items():
        name = str(key).replace("-", "_")
        if name not in known:
            logger.warning("Ignoring unknown %s key: %s", origin, key)
            continue
        setattr(settings, name, _normalize(name, value))


def resolve_settings(args: Any) -> Settings:
    """Merge defaults, config file, ``--set`` overrides and CLI flags.

    Raises:
        ConfigError: On unreadable config files or invalid values.
    """
    settings = Settings()
    config_path = getattr(args, "CONFIG", None)
    if config_path:
        _apply(settings, load_config_file(config_path), "config")
        logger.debug("Loaded configuration from %s", config_path)

    _apply(settings, collect_overrides(getattr(args, "CONFIG_SET", None)), "--set")

    for name, dest in _ARG_DESTS.items():
        value = getattr(args, dest, None)
        if value is None or (name in _LIST_FIELDS and not value):
            continue
        setattr(settings, name, _normalize(name, value))

    if getattr(args, "DEBUG", False):
        settings.log_level = "DEBUG"
    for kind in settings.kinds:
        try:
            DependencyKind.parse(kind)
        except ValueError as e:
            raise ConfigError(str(e)) from e
    return settings


def infer_format(settings: Settings) -> str:
    """Explicit format, else the --output extension, else json."""
    if settings.format:
        return settings.format
    if settings.output:
        ext = os.path.splitext(settings.output)[1].lower().lstrip(".")
        if ext == "yml":
            ext = "yaml"
        if ext == "htm":
            ext = "html"
        if ext in Constants.SUPPORTED_FORMATS:
            return ext
    return Constants.DEFAULT_FORMAT
