"""Configuration loading for codebundle (.codebundle.yml)."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

import yaml

CONFIG_FILENAME = ".codebundle.yml"

DEFAULT_OUTPUT_DIR = Path("~/Downloads")
DEFAULT_ARTIFACT_EXTENSION = "ts"
DEFAULT_WATCH_INTERVAL = 1.0
DEFAULT_WATCH_DEBOUNCE = 2.0


class ConfigError(RuntimeError):
    """Raised when configuration is missing or cannot be parsed."""


@dataclass
class RoleConfig:
    """A fixed companion location (subdirectory plus file suffix)."""

    directory: str
    suffix: str


@dataclass
class BatchConfig:
    """Where batch artifacts are written."""

    output_dir: Path = DEFAULT_OUTPUT_DIR
    extension: str = DEFAULT_ARTIFACT_EXTENSION


@dataclass
class WatchConfig:
    """Polling settings for watch mode."""

    directories: List[Path] = field(default_factory=list)
    interval: float = DEFAULT_WATCH_INTERVAL
    debounce: float = DEFAULT_WATCH_DEBOUNCE


@dataclass
class BundleConfig:
    """Represents the settings defined in .codebundle.yml."""

    root: Path
    extensions: List[str] = field(default_factory=list)
    exclude_prefixes: List[str] = field(default_factory=list)
    extra_roots: List[Path] = field(default_factory=list)
    schema: Optional[Path] = None
    comment_prefix: str = "//"
    roles: Optional[List[RoleConfig]] = None
    prune_dirs: Optional[List[str]] = None
    batch: BatchConfig = field(default_factory=BatchConfig)
    watch: WatchConfig = field(default_factory=WatchConfig)


def load_config(config_path: Path) -> BundleConfig:
    """Load configuration from disk."""
    config_file = _resolve_config_path(config_path)
    root = config_file.parent.resolve()

    if not config_file.exists():
        return BundleConfig(root=root)

    data = _read_config(config_file)
    if not isinstance(data, dict):
        raise ConfigError(f"{CONFIG_FILENAME} must contain a mapping at the root")

    schema_str = _as_str(data.get("schema"))
    comment_prefix = _as_str(data.get("comment_prefix")) or "//"

    roles: Optional[List[RoleConfig]] = None
    if "roles" in data:
        roles = []
        for entry in data.get("roles") or []:
            entry_map = _as_dict(entry)
            directory = _as_str(entry_map.get("directory"))
            suffix = _as_str(entry_map.get("suffix"))
            if not directory or suffix is None:
                raise ConfigError("Each role needs a 'directory' and a 'suffix'")
            roles.append(RoleConfig(directory=directory, suffix=suffix))

    prune_dirs = (
        _as_str_list(data.get("prune_dirs")) if "prune_dirs" in data else None
    )

    batch = BatchConfig()
    batch_data = _as_dict(data.get("batch"))
    if batch_data:
        output_dir = _as_str(batch_data.get("output_dir"))
        if output_dir:
            batch.output_dir = _resolve_relative(root, output_dir)
        extension = _as_str(batch_data.get("extension"))
        if extension:
            batch.extension = extension.lstrip(".")

    watch = WatchConfig()
    watch_data = _as_dict(data.get("watch"))
    if watch_data:
        watch.directories = [
            _resolve_relative(root, item)
            for item in _as_str_list(watch_data.get("directories"))
        ]
        interval = _as_float(watch_data.get("interval"))
        if interval is not None:
            watch.interval = interval
        debounce = _as_float(watch_data.get("debounce"))
        if debounce is not None:
            watch.debounce = debounce

    return BundleConfig(
        root=root,
        extensions=_as_str_list(data.get("extensions")),
        exclude_prefixes=_as_str_list(data.get("exclude_prefixes")),
        extra_roots=[
            _resolve_relative(root, item)
            for item in _as_str_list(data.get("extra_roots"))
        ],
        schema=_resolve_relative(root, schema_str) if schema_str else None,
        comment_prefix=comment_prefix,
        roles=roles,
        prune_dirs=prune_dirs,
        batch=batch,
        watch=watch,
    )


def _resolve_config_path(config_path: Path) -> Path:
    config_path = config_path.expanduser()
    if config_path.is_dir():
        return (config_path / CONFIG_FILENAME).resolve()
    return config_path.resolve()


def _resolve_relative(root: Path, value: str) -> Path:
    path = Path(value).expanduser()
    if path.is_absolute():
        return path
    return root / path


def _read_config(path: Path) -> Any:
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigError(f"Cannot read {path}: {exc}") from exc
    if not text.strip():
        return {}
    try:
        loaded = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Failed to parse {path.name}: {exc}") from exc
    return loaded if loaded is not None else {}


def _as_dict(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _as_str(value: Any) -> Optional[str]:
    return str(value) if isinstance(value, (str, int, float, bool)) else None


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


def _as_str_list(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    if isinstance(value, Sequence):
        return [str(item) for item in value if isinstance(item, (str, int, float))]
    return []


__all__ = [
    "BatchConfig",
    "BundleConfig",
    "CONFIG_FILENAME",
    "ConfigError",
    "RoleConfig",
    "WatchConfig",
    "load_config",
]
