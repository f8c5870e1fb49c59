"""Configuration for asynczone: detach strictness, stack-depth warning, and trace data directory."""

import logging
import os
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Any

import yaml

logger = logging.getLogger(__name__)

_DEFAULT_STRICT_DETACH = False
_DEFAULT_STACK_WARN_DEPTH = 256

_MIN_STACK_WARN_DEPTH = 8

_TRUE_VALUES = ("1", "true", "yes")


@dataclass
class AsyncZoneConfig:
    """Runtime configuration for the zone engine and trace storage."""

    strict_detach: bool
    stack_warn_depth: int
    data_dir: Path

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["data_dir"] = str(self.data_dir)
        return data


def _load_yaml(path: Path) -> dict[str, Any]:
    """Load YAML from path. Return {} if file missing or invalid."""
    if not path.is_file():
        return {}
    try:
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except (OSError, yaml.YAMLError) as e:
        logger.warning("ignoring unreadable config %s: %s", path, e)
        return {}
    return data if isinstance(data, dict) else {}


def _apply_yaml(config: dict[str, Any], key: str, default: Any) -> Any:
    """Get value from config dict if present and valid; else return default."""
    if key not in config:
        return default
    val = config[key]
    if key == "strict_detach":
        return bool(val) if val is not None else default
    if key == "stack_warn_depth":
        try:
            return max(_MIN_STACK_WARN_DEPTH, int(val))
        except (TypeError, ValueError):
            return default
    if key == "data_dir":
        if val is None:
            return default
        return Path(val) if isinstance(val, (str, Path)) else default
    return default


def _apply_layer(layer: dict[str, Any], values: dict[str, Any]) -> None:
    for key in values:
        values[key] = _apply_yaml(layer, key, values[key])


def load_config(project_root: Path | None = None) -> AsyncZoneConfig:
    """
    Load AsyncZoneConfig with precedence (highest first):
    1. Environment variables (only those actually set)
    2. .asynczone/config.yaml in project root (default: cwd)
    3. ~/.asynczone/config.yaml
    """
    base = Path.home() / ".asynczone"
    values: dict[str, Any] = {
        "strict_detach": _DEFAULT_STRICT_DETACH,
        "stack_warn_depth": _DEFAULT_STACK_WARN_DEPTH,
        "data_dir": base,
    }

    # 3. User config
    _apply_layer(_load_yaml(base / "config.yaml"), values)

    # 2. Project config (overrides user)
    root = project_root if project_root is not None else Path.cwd()
    _apply_layer(_load_yaml(root / ".asynczone" / "config.yaml"), values)

    # 1. Env (overrides all)
    env_strict = os.environ.get("ASYNCZONE_STRICT_DETACH")
    if env_strict is not None and env_strict.strip():
        values["strict_detach"] = env_strict.strip().lower() in _TRUE_VALUES

    env_depth = os.environ.get("ASYNCZONE_STACK_WARN_DEPTH")
    if env_depth is not None:
        try:
            values["stack_warn_depth"] = max(_MIN_STACK_WARN_DEPTH, int(env_depth))
        except ValueError:
            pass

    env_data = os.environ.get("ASYNCZONE_DATA_DIR")
    if env_data and env_data.strip():
        values["data_dir"] = Path(env_data.strip()).expanduser()

    return AsyncZoneConfig(**values)


_active_config: AsyncZoneConfig | None = None


def get_config() -> AsyncZoneConfig:
    """Return the active config, loading it on first use."""
    global _active_config
    if _active_config is None:
        _active_config = load_config()
    return _active_config


def set_config(config: AsyncZoneConfig | None) -> None:
    """Install config as the active config. None means reload lazily on next use."""
    global _active_config
    _active_config = config


def _clear_test_config() -> None:
    """Drop the cached config. For tests only."""
    set_config(None)
