"""Generator kinds: which marker to look for and what to emit for it."""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Dict, Iterable, List, Mapping, Optional, Tuple

from .models import FieldDeclaration, Marker

LOOKUP_BY_TYPE = "type"
LOOKUP_BY_PATH = "path"
LOOKUP_MODES = (LOOKUP_BY_TYPE, LOOKUP_BY_PATH)

# Extra usings the lookup expression itself needs.
_LOOKUP_IMPORTS: Dict[str, Tuple[str, ...]] = {
    LOOKUP_BY_TYPE: ("using System.Linq;",),
    LOOKUP_BY_PATH: (),
}


@dataclass(frozen=True)
class GeneratorKind:
    """Static description of one resolver generator."""

    key: str
    marker: str
    interface: str
    method: str
    resolver_namespace: str
    lookup: str
    hint_suffix: str

    def matches(self, marker: Marker) -> bool:
        name = marker.name.strip()
        if name.startswith("global::"):
            name = name[len("global::") :]
        simple = name.rsplit(".", 1)[-1]
        return simple in (self.marker, f"{self.marker}Attribute")

    def marker_on(self, field: FieldDeclaration) -> Optional[Marker]:
        for marker in field.markers:
            if self.matches(marker):
                return marker
        return None

    def has_marked_field(self, fields: Iterable[FieldDeclaration]) -> bool:
        return any(self.marker_on(field) is not None for field in fields)

    @property
    def resolver_imports(self) -> List[str]:
        statements = [f"using {self.resolver_namespace};"]
        statements.extend(_LOOKUP_IMPORTS.get(self.lookup, ()))
        return statements

    def hint_name(self, namespace: str, type_name: str) -> str:
        return f"{namespace}_{type_name}_{self.hint_suffix}.g"


DEPENDENCY = GeneratorKind(
    key="dependency",
    marker="InjectDependency",
    interface="IDependencyResolver",
    method="ResolveDependencies",
    resolver_namespace="Codartesien.SourceGenerators.DependencyResolver",
    lookup=LOOKUP_BY_TYPE,
    hint_suffix="DependencyResolver",
)

SCENE_NODE = GeneratorKind(
    key="scene_node",
    marker="SceneNode",
    interface="ISceneNodeResolver",
    method="ResolveNodes",
    resolver_namespace="Codartesien.SourceGenerators.SceneNodeResolver",
    lookup=LOOKUP_BY_PATH,
    hint_suffix="SceneNodeResolver",
)

BUILTIN_GENERATORS: Dict[str, GeneratorKind] = {
    DEPENDENCY.key: DEPENDENCY,
    SCENE_NODE.key: SCENE_NODE,
}

_OVERRIDABLE = ("lookup", "resolver_namespace")


def normalise_kind(name: str) -> str:
    """Accept ``scene-node``/``SceneNode`` spellings for ``scene_node``."""
    lowered = name.strip().replace("-", "_").lower()
    if lowered == "scenenode":
        return SCENE_NODE.key
    return lowered


def select_generators(
    enabled: Iterable[str] | None = None,
    overrides: Mapping[str, Mapping[str, str]] | None = None,
) -> List[GeneratorKind]:
    """Return generator kinds in builtin order, honoring enabled names and overrides.

    ``overrides`` maps a kind key to ``lookup`` / ``resolver_namespace``
    replacements read from the project configuration.
    """
    wanted = None
    if enabled is not None:
        wanted = {normalise_kind(name) for name in enabled}
        unknown = wanted - set(BUILTIN_GENERATORS)
        if unknown:
            raise ValueError(f"Unknown generator kinds requested: {', '.join(sorted(unknown))}")

    selected: List[GeneratorKind] = []
    for key, kind in BUILTIN_GENERATORS.items():
        if wanted is not None and key not in wanted:
            continue
        raw = (overrides or {}).get(key, {})
        changes = {name: raw[name] for name in _OVERRIDABLE if raw.get(name)}
        lookup = changes.get("lookup")
        if lookup is not None and lookup not in LOOKUP_MODES:
            raise ValueError(f"Unsupported lookup mode for {key}: {lookup}")
        selected.append(replace(kind, **changes) if changes else kind)
    return selected


__all__ = [
    "BUILTIN_GENERATORS",
    "DEPENDENCY",
    "GeneratorKind",
    "LOOKUP_BY_PATH",
    "LOOKUP_BY_TYPE",
    "LOOKUP_MODES",
    "SCENE_NODE",
    "normalise_kind",
    "select_generators",
]
