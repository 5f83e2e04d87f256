"""Frontend plugins and discovery utilities."""

from __future__ import annotations

from importlib import metadata
from typing import Callable, Iterable, List, Sequence, Set

from .base import Frontend, FrontendUnavailableError
from .csharp import CSharpFrontend

_ENTRY_POINT_GROUP = "resolvergen.frontends"

_BUILTIN_FACTORIES: dict[str, Callable[[], Frontend]] = {
    "csharp": CSharpFrontend,
}


def discover_frontends(enabled: Sequence[str] | None = None) -> List[Frontend]:
    """Return instantiated frontends, honoring optional enabled names."""

    enabled_set: Set[str] | None = None
    if enabled:
        enabled_set = {name.lower() for name in enabled}

    frontends: List[Frontend] = []
    seen: Set[str] = set()

    def _add(name: str, factory: Callable[[], Frontend]) -> None:
        key = name.lower()
        if enabled_set is not None and key not in enabled_set:
            return
        if key in seen:
            return
        instance = factory()
        if not isinstance(instance, Frontend):
            raise TypeError(f"Frontend factory for '{name}' did not return a Frontend instance")
        frontends.append(instance)
        seen.add(key)

    for name, factory in _BUILTIN_FACTORIES.items():
        _add(name, factory)

    for entry in _iter_entry_points():
        try:
            loaded = entry.load()
        except Exception as exc:  # pragma: no cover - third-party plugin failure
            raise RuntimeError(f"Failed to load frontend entry point '{entry.name}': {exc}") from exc

        def _factory(obj: object = loaded) -> Frontend:
            return _coerce_frontend(obj)

        _add(entry.name, _factory)

    if enabled_set:
        missing = enabled_set - seen
        if missing:
            raise ValueError(f"Unknown frontends requested: {', '.join(sorted(missing))}")

    return frontends


def _coerce_frontend(obj: object) -> Frontend:
    if isinstance(obj, Frontend):
        return obj
    if isinstance(obj, type) and issubclass(obj, Frontend):
        return obj()
    if callable(obj):
        instance = obj()
        if isinstance(instance, Frontend):
            return instance
    raise TypeError("Frontend entry point must be a Frontend subclass or factory")


def _iter_entry_points() -> Iterable[metadata.EntryPoint]:
    return metadata.entry_points(group=_ENTRY_POINT_GROUP)


__all__ = [
    "CSharpFrontend",
    "Frontend",
    "FrontendUnavailableError",
    "discover_frontends",
]
