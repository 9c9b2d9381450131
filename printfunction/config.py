"""Configuration loading for printfunction (.printfunction.yml)."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Sequence

import yaml

CONFIG_FILENAME = ".printfunction.yml"

DISABLE_RG_ENV = "PF_DISABLE_RG"
REPORT_RG_ENV = "PF_TEST_RG_USED"

DEFAULT_IGNORE_DIRS = frozenset(
    {
        ".git",
        ".hg",
        ".svn",
        ".venv",
        "venv",
        "__pycache__",
        "build",
        "dist",
        ".mypy_cache",
        ".ruff_cache",
        ".pytest_cache",
        ".tox",
        "node_modules",
        ".idea",
        ".vscode",
    }
)


class ConfigError(RuntimeError):
    """Raised when the configuration file cannot be parsed."""


@dataclass
class PrefilterConfig:
    """Settings for the ripgrep candidate prefilter."""

    enabled: bool = True
    executable: str = "rg"
    timeout: Optional[float] = None
    batch_size: int = 512


@dataclass
class PrintFunctionConfig:
    """Represents the settings defined in .printfunction.yml and the environment."""

    root: Path
    ignore_dirs: frozenset[str] = DEFAULT_IGNORE_DIRS
    prefilter: PrefilterConfig = field(default_factory=PrefilterConfig)
    report_rg_usage: bool = False


def load_config(
    config_path: Path, environ: Mapping[str, str] | None = None
) -> PrintFunctionConfig:
    """Load configuration from disk, then apply environment overrides."""
    env = os.environ if environ is None else environ
    config_file = _resolve_config_path(config_path)
    root = config_file.parent.resolve()

    config = PrintFunctionConfig(root=root)
    if config_file.exists():
        data = _read_config(config_file)
        if not isinstance(data, dict):
            raise ConfigError(f"{CONFIG_FILENAME} must contain a mapping at the root")
        _apply_file_settings(config, data)

    if _env_flag(env.get(DISABLE_RG_ENV)):
        config.prefilter.enabled = False
    config.report_rg_usage = _env_flag(env.get(REPORT_RG_ENV))
    return config


def _apply_file_settings(config: PrintFunctionConfig, data: Dict[str, Any]) -> None:
    extra_dirs = _as_str_list(data.get("ignore_dirs"))
    if extra_dirs:
        config.ignore_dirs = DEFAULT_IGNORE_DIRS | frozenset(extra_dirs)
    unignore = _as_str_list(data.get("unignore_dirs"))
    if unignore:
        config.ignore_dirs = config.ignore_dirs - frozenset(unignore)

    prefilter_data = _as_dict(data.get("prefilter"))
    if not prefilter_data:
        return
    prefilter = config.prefilter
    enabled = _as_bool(prefilter_data.get("enabled"))
    if enabled is not None:
        prefilter.enabled = enabled
    executable = _as_str(prefilter_data.get("executable"))
    if executable:
        prefilter.executable = executable
    timeout = _as_float(prefilter_data.get("timeout"))
    if timeout is not None:
        if timeout <= 0:
            raise ConfigError("prefilter.timeout must be a positive number of seconds")
        prefilter.timeout = timeout
    batch_size = _as_int(prefilter_data.get("batch_size"))
    if batch_size is not None:
        if batch_size < 1:
            raise ConfigError("prefilter.batch_size must be at least 1")
        prefilter.batch_size = batch_size


def _resolve_config_path(config_path: Path) -> Path:
    config_path = config_path.expanduser()
    if config_path.is_dir():
        return (config_path / CONFIG_FILENAME).resolve()
    return config_path.resolve()


def _read_config(path: Path) -> Dict[str, Any]:
    text = path.read_text(encoding="utf-8")
    if not text.strip():
        return {}
    try:
        loaded = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Failed to parse {path.name}: {exc}") from exc
    return loaded or {}


def _env_flag(value: Optional[str]) -> bool:
    if value is None:
        return False
    return value.strip().lower() not in {"", "0", "false", "no"}


def _as_dict(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _as_str(value: Any) -> Optional[str]:
    return str(value) if isinstance(value, (str, int, float)) and not isinstance(value, bool) else None


def _as_float(value: Any) -> Optional[float]:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value)
        except ValueError:
            return None
    return None


def _as_int(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        try:
            return int(value)
        except ValueError:
            return None
    return None


def _as_bool(value: Any) -> Optional[bool]:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in {"true", "yes", "1", "on"}:
            return True
        if lowered in {"false", "no", "0", "off"}:
            return False
    return None


def _as_str_list(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    if isinstance(value, Sequence):
        return [str(item) for item in value if isinstance(item, (str, int, float))]
    return []


__all__ = [
    "CONFIG_FILENAME",
    "ConfigError",
    "DEFAULT_IGNORE_DIRS",
    "PrefilterConfig",
    "PrintFunctionConfig",
    "load_config",
]
