"""Core data models shared across resolvergen components."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

GLOBAL_NAMESPACE = "Global"

_ACCESS_MODIFIERS = ("public", "protected", "internal", "private", "file")


@dataclass(frozen=True)
class Marker:
    """Attribute attached to a field, as written in source."""

    name: str
    arguments: Tuple[str, ...] = ()

    @property
    def lookup_key(self) -> str:
        """First argument as the body of a regular C# string literal.

        Verbatim literals such as ``@"Panel\\Title"`` are re-escaped so the key
        can be emitted between plain double quotes.
        """
        if not self.arguments:
            return ""
        text = self.arguments[0].strip()
        if len(text) >= 3 and text.startswith('@"') and text.endswith('"'):
            body = text[2:-1].replace('""', '"')
            return body.replace("\\", "\\\\").replace('"', '\\"')
        return text.strip('"')


@dataclass(frozen=True)
class FieldDeclaration:
    """Field declared directly on a type."""

    type_text: str
    name: str
    markers: Tuple[Marker, ...] = ()
    line: int = 0


@dataclass(frozen=True)
class ImportDirective:
    """A ``using`` directive of a source unit."""

    text: str
    target: str
    scope: str = ""
    kind: str = "namespace"
    alias: str = ""
    is_global: bool = False


@dataclass(frozen=True)
class SourceUnit:
    """One parsed source file and its using directives."""

    path: str
    imports: Tuple[ImportDirective, ...] = ()
    namespaces: Tuple[str, ...] = ()


@dataclass(frozen=True)
class TypeReference:
    """Reference to a type as written, e.g. ``Base<int>`` or ``global::A.B``."""

    text: str

    @property
    def name(self) -> str:
        text = self.text.strip()
        if text.startswith("global::"):
            text = text[len("global::") :]
        depth = 0
        chars: List[str] = []
        for char in text:
            if char == "<":
                depth += 1
                continue
            if char == ">":
                depth -= 1
                continue
            if depth == 0 and not char.isspace():
                chars.append(char)
        return "".join(chars).rstrip("?")

    @property
    def arity(self) -> int:
        depth = 0
        count = 0
        for char in self.text:
            if char == "<":
                depth += 1
                if depth == 1:
                    count += 1
            elif char == ">":
                depth -= 1
            elif char == "," and depth == 1:
                count += 1
        return count


@dataclass(frozen=True)
class TypeDeclaration:
    """A named class declaration located in a source unit."""

    name: str
    unit_path: str
    namespace: Optional[str] = None
    fields: Tuple[FieldDeclaration, ...] = ()
    base_types: Tuple[TypeReference, ...] = ()
    modifiers: Tuple[str, ...] = ()
    type_parameters: Tuple[str, ...] = ()
    containing_types: Tuple[str, ...] = ()
    kind: str = "class"
    line: int = 0

    @property
    def qualified_name(self) -> str:
        parts = [self.namespace] if self.namespace else []
        parts.extend(self.containing_types)
        parts.append(self.name)
        return ".".join(parts)

    @property
    def display_namespace(self) -> str:
        return self.namespace or GLOBAL_NAMESPACE

    @property
    def key(self) -> Tuple[str, int]:
        return (self.qualified_name, len(self.type_parameters))

    @property
    def base_type(self) -> Optional[TypeReference]:
        return self.base_types[0] if self.base_types else None

    @property
    def is_partial(self) -> bool:
        return "partial" in self.modifiers

    @property
    def is_static(self) -> bool:
        return "static" in self.modifiers

    @property
    def is_abstract(self) -> bool:
        return "abstract" in self.modifiers

    @property
    def is_nested(self) -> bool:
        return bool(self.containing_types)

    @property
    def accessibility(self) -> Tuple[str, ...]:
        return tuple(mod for mod in self.modifiers if mod in _ACCESS_MODIFIERS)


@dataclass(frozen=True)
class MarkedField:
    """A field selected for assignment by a generated resolver."""

    type_text: str
    name: str
    lookup_key: str
    declared_in: str


@dataclass
class WalkResult:
    """Fields and imports gathered along a candidate's hierarchy chain."""

    fields: List[MarkedField] = field(default_factory=list)
    imports: List[str] = field(default_factory=list)
    chain: List[TypeDeclaration] = field(default_factory=list)


@dataclass(frozen=True)
class GeneratedUnit:
    """Generated source text published under a unique hint name."""

    hint_name: str
    text: str
    kind: str
    type_name: str
    source_path: str

    @property
    def file_name(self) -> str:
        return f"{self.hint_name}.cs"


@dataclass(frozen=True)
class CandidateFailure:
    """A candidate whose generation was rejected with a reported error."""

    kind: str
    type_name: str
    source_path: str
    error: str
    message: str

    def describe(self) -> str:
        return f"{self.source_path}: {self.type_name} [{self.kind}] {self.error}: {self.message}"


@dataclass
class GenerationResult:
    """Outcome of one driver run."""

    units: List[GeneratedUnit] = field(default_factory=list)
    failures: List[CandidateFailure] = field(default_factory=list)

    def extend(self, other: "GenerationResult") -> None:
        self.units.extend(other.units)
        self.failures.extend(other.failures)

    @property
    def ok(self) -> bool:
        return not self.failures


_IDENTIFIER = re.compile(r"[A-Za-z_][A-Za-z0-9_]*")


def identifiers_in(type_text: str) -> List[str]:
    """Return the identifiers mentioned in a type expression."""
    return _IDENTIFIER.findall(type_text)
