"""Immutable index of parsed declarations with cross-file symbol resolution."""

from __future__ import annotations

from collections import defaultdict
from typing import Dict, Iterable, List, Optional, Protocol, Sequence, Set, Tuple

from .models import ImportDirective, SourceUnit, TypeDeclaration, TypeReference


class SymbolResolver(Protocol):
    """Capability that maps a base-type reference to its declaration."""

    def resolve(
        self, reference: TypeReference, context: TypeDeclaration
    ) -> Optional[TypeDeclaration]:
        """Return the declaration ``reference`` names when seen from ``context``."""


def _enclosing_scopes(namespace: str) -> List[str]:
    """``A.B`` -> ``["A.B", "A", ""]``."""
    scopes: List[str] = []
    parts = namespace.split(".") if namespace else []
    while parts:
        scopes.append(".".join(parts))
        parts.pop()
    scopes.append("")
    return scopes


def _join(prefix: str, name: str) -> str:
    return f"{prefix}.{name}" if prefix else name


class Corpus:
    """Source units and type declarations visible to one generation run.

    Declarations keep the order they were supplied in; frontends feed them
    sorted by path and source position so every lookup is deterministic.
    """

    def __init__(
        self,
        units: Iterable[SourceUnit] = (),
        declarations: Iterable[TypeDeclaration] = (),
    ) -> None:
        self._units: Dict[str, SourceUnit] = {}
        for unit in units:
            self._units[unit.path] = unit
        self._declarations: Tuple[TypeDeclaration, ...] = tuple(declarations)
        self._index: Dict[Tuple[str, int], List[TypeDeclaration]] = defaultdict(list)
        self._namespaces: Set[str] = set()
        for declaration in self._declarations:
            self._index[declaration.key].append(declaration)
            self._add_namespace(declaration.namespace)
        for unit in self._units.values():
            for namespace in unit.namespaces:
                self._add_namespace(namespace)
        self._global_imports: Tuple[ImportDirective, ...] = tuple(
            directive
            for unit in self._units.values()
            for directive in unit.imports
            if directive.is_global
        )

    @property
    def declarations(self) -> Tuple[TypeDeclaration, ...]:
        return self._declarations

    @property
    def units(self) -> Tuple[SourceUnit, ...]:
        return tuple(self._units.values())

    def unit_for(self, declaration: TypeDeclaration) -> SourceUnit:
        return self._units.get(declaration.unit_path) or SourceUnit(path=declaration.unit_path)

    def is_namespace(self, name: str) -> bool:
        return name in self._namespaces

    def lookup(self, qualified_name: str, arity: int = 0) -> Optional[TypeDeclaration]:
        """Return the first declaration (partial part) of a fully-qualified type."""
        matches = self._index.get((qualified_name, arity))
        return matches[0] if matches else None

    # ------------------------------------------------------------------
    # Symbol resolution

    def resolve(
        self, reference: TypeReference, context: TypeDeclaration
    ) -> Optional[TypeDeclaration]:
        name = reference.name
        if not name:
            return None
        arity = reference.arity
        if reference.text.strip().startswith("global::"):
            return self.lookup(name, arity)

        namespace = context.namespace or ""
        # Members of enclosing types shadow namespace members.
        for depth in range(len(context.containing_types), 0, -1):
            prefix = _join(namespace, ".".join(context.containing_types[:depth]))
            found = self.lookup(_join(prefix, name), arity)
            if found is not None:
                return found

        unit = self.unit_for(context)
        for scope in _enclosing_scopes(namespace):
            found = self.lookup(_join(scope, name), arity)
            if found is not None:
                return found
            found = self._resolve_through_imports(name, arity, unit, scope)
            if found is not None:
                return found
        return None

    def _resolve_through_imports(
        self, name: str, arity: int, unit: SourceUnit, scope: str
    ) -> Optional[TypeDeclaration]:
        directives = [d for d in unit.imports if d.scope == scope and not d.is_global]
        if scope == "":
            directives.extend(self._global_imports)
        head, _, rest = name.partition(".")
        for directive in directives:
            if directive.kind == "alias" and directive.alias == head:
                target = _join(directive.target, rest) if rest else directive.target
                for candidate_scope in _enclosing_scopes(scope):
                    found = self.lookup(_join(candidate_scope, target), arity)
                    if found is not None:
                        return found
        for directive in directives:
            if directive.kind != "namespace":
                continue
            namespace = self.resolve_namespace(directive) or directive.target
            found = self.lookup(_join(namespace, name), arity)
            if found is not None:
                return found
        return None

    # ------------------------------------------------------------------
    # Imports

    def resolve_namespace(self, directive: ImportDirective) -> Optional[str]:
        """Return the fully-qualified namespace a ``using N;`` names, if declared here."""
        if directive.kind != "namespace":
            return None
        for scope in _enclosing_scopes(directive.scope):
            candidate = _join(scope, directive.target)
            if candidate in self._namespaces:
                return candidate
        return None

    def normalise_import(self, directive: ImportDirective) -> Optional[str]:
        """Render a directive for re-emission; ``None`` for global usings."""
        if directive.is_global:
            return None
        namespace = self.resolve_namespace(directive)
        if namespace is not None:
            return f"using {namespace};"
        return " ".join(directive.text.split())

    def imports_for(self, declaration: TypeDeclaration) -> List[str]:
        """Normalized, de-duplicated using statements of a declaration's unit."""
        statements: List[str] = []
        for directive in self.unit_for(declaration).imports:
            statement = self.normalise_import(directive)
            if statement is not None and statement not in statements:
                statements.append(statement)
        return statements

    def _add_namespace(self, namespace: Optional[str]) -> None:
        if not namespace:
            return
        parts = namespace.split(".")
        for index in range(1, len(parts) + 1):
            self._namespaces.add(".".join(parts[:index]))


def dedupe(statements: Sequence[str]) -> List[str]:
    """Exact-text de-duplication preserving first occurrence."""
    return list(dict.fromkeys(statements))


__all__ = ["Corpus", "SymbolResolver", "dedupe"]
