"""Configuration loading for resolvergen (.resolvergen.yml)."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

import yaml

from .discovery import DEFAULT_EXCLUDED_SEGMENTS
from .generators import BUILTIN_GENERATORS, LOOKUP_MODES, normalise_kind

CONFIG_FILENAME = ".resolvergen.yml"


class ConfigError(RuntimeError):
    """Raised when the configuration file cannot be parsed."""


@dataclass
class GeneratorConfig:
    """Per-kind overrides from the ``generators`` block."""

    lookup: Optional[str] = None
    resolver_namespace: Optional[str] = None

    def as_overrides(self) -> Dict[str, str]:
        overrides: Dict[str, str] = {}
        if self.lookup:
            overrides["lookup"] = self.lookup
        if self.resolver_namespace:
            overrides["resolver_namespace"] = self.resolver_namespace
        return overrides


@dataclass
class ResolverGenConfig:
    """Represents the settings defined in .resolvergen.yml."""

    root: Path
    enabled_generators: List[str] = field(default_factory=list)
    generators: Dict[str, GeneratorConfig] = field(default_factory=dict)
    exclude_segments: List[str] = field(default_factory=lambda: list(DEFAULT_EXCLUDED_SEGMENTS))
    exclude_paths: List[str] = field(default_factory=list)
    enabled_frontends: List[str] = field(default_factory=list)
    output_dir: Optional[Path] = None
    templates_dir: Optional[Path] = None
    debug_dump: Optional[Path] = None
    workers: int = 1

    def generator_overrides(self) -> Dict[str, Dict[str, str]]:
        return {key: value.as_overrides() for key, value in self.generators.items()}


def load_config(config_path: Path) -> ResolverGenConfig:
    """Load configuration from disk; missing files yield defaults."""
    config_file = _resolve_config_path(config_path)
    root = config_file.parent.resolve()

    if not config_file.exists():
        return ResolverGenConfig(root=root)

    data = _read_config(config_file)
    if not isinstance(data, dict):
        raise ConfigError(f"{CONFIG_FILENAME} must contain a mapping at the root")

    config = ResolverGenConfig(root=root)

    generators_data = _as_dict(data.get("generators"))
    config.enabled_generators = [
        normalise_kind(name) for name in _as_str_list(generators_data.get("enabled"))
    ]
    for key in BUILTIN_GENERATORS:
        kind_data = _as_dict(generators_data.get(key) or generators_data.get(key.replace("_", "-")))
        if not kind_data:
            continue
        lookup = _as_str(kind_data.get("lookup"))
        if lookup is not None and lookup not in LOOKUP_MODES:
            raise ConfigError(
                f"generators.{key}.lookup must be one of {', '.join(LOOKUP_MODES)} (got {lookup!r})"
            )
        config.generators[key] = GeneratorConfig(
            lookup=lookup,
            resolver_namespace=_as_str(kind_data.get("resolver_namespace")),
        )

    if "exclude_segments" in data:
        config.exclude_segments = _as_str_list(data.get("exclude_segments"))
    config.exclude_paths = _as_str_list(data.get("exclude_paths"))

    frontend_data = _as_dict(data.get("frontends"))
    config.enabled_frontends = _as_str_list(frontend_data.get("enabled"))

    config.output_dir = _as_path(root, data.get("output_dir"))
    config.templates_dir = _as_path(root, data.get("templates_dir"))
    config.debug_dump = _as_path(root, data.get("debug_dump"))

    workers = _as_workers(data.get("workers"))
    if workers is not None:
        config.workers = workers

    return config


def _resolve_config_path(config_path: Path) -> Path:
    config_path = config_path.expanduser()
    if config_path.is_dir():
        return (config_path / CONFIG_FILENAME).resolve()
    if config_path.name != CONFIG_FILENAME:
        return (config_path.parent / CONFIG_FILENAME).resolve()
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


def _as_dict(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _as_str(value: Any) -> Optional[str]:
    if isinstance(value, (str, int, float)):
        return str(value)
    return None


def _as_workers(value: Any) -> Optional[int]:
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, (int, str)):
        raise ConfigError(f"workers must be a positive integer (got {value!r})")
    try:
        workers = int(value)
    except ValueError as exc:
        raise ConfigError(f"workers must be a positive integer (got {value!r})") from exc
    if workers < 1:
        raise ConfigError(f"workers must be a positive integer (got {value!r})")
    return workers


def _as_path(root: Path, value: Any) -> Optional[Path]:
    text = _as_str(value)
    if not text:
        return None
    path = Path(text).expanduser()
    return path if path.is_absolute() else root / path


def _as_str_list(value: Any) -> List[str]:
    items = [value] if isinstance(value, str) else value
    if not isinstance(items, Sequence):
        return []
    return [text for text in map(_as_str, items) if text is not None]


__all__ = [
    "CONFIG_FILENAME",
    "ConfigError",
    "GeneratorConfig",
    "ResolverGenConfig",
    "load_config",
]
