"""Hierarchy walk: marked fields and imports along the base-type chain."""

from __future__ import annotations

from typing import List, Optional, Set, Tuple

from .corpus import Corpus, SymbolResolver, dedupe
from .errors import HierarchyCycleError, UnrenderableFieldTypeError
from .generators import GeneratorKind
from .logging import get_logger
from .models import MarkedField, TypeDeclaration, WalkResult, identifiers_in

_LOGGER = get_logger("hierarchy")


def walk_hierarchy(
    candidate: TypeDeclaration,
    corpus: Corpus,
    generator: GeneratorKind,
    resolver: Optional[SymbolResolver] = None,
) -> WalkResult:
    """Collect marked fields derived-to-base and the imports of every visited unit.

    Only the first base-type reference of each level is followed. The walk
    stops quietly at a missing, unresolvable or non-class base and raises
    ``HierarchyCycleError`` when a base resolves to a type already visited.
    """
    resolver = resolver or corpus
    result = WalkResult()
    imports: List[str] = []
    visited: Set[Tuple[str, int]] = set()

    current: Optional[TypeDeclaration] = candidate
    while current is not None:
        visited.add(current.key)
        result.chain.append(current)
        result.fields.extend(_marked_fields(current, generator, candidate))
        imports.extend(corpus.imports_for(current))

        reference = current.base_type
        if reference is None:
            break
        parent = resolver.resolve(reference, current)
        if parent is None:
            _LOGGER.debug(
                "Base type %s of %s not found in corpus; stopping walk",
                reference.text,
                current.qualified_name,
            )
            break
        if parent.kind != "class":
            _LOGGER.debug(
                "Base type %s of %s is a %s; stopping walk",
                reference.text,
                current.qualified_name,
                parent.kind,
            )
            break
        if parent.key in visited:
            names = [level.qualified_name for level in result.chain]
            names.append(parent.qualified_name)
            raise HierarchyCycleError(candidate.qualified_name, candidate.unit_path, names)
        current = parent

    result.imports = dedupe(imports)
    return result


def _marked_fields(
    declaration: TypeDeclaration,
    generator: GeneratorKind,
    candidate: TypeDeclaration,
) -> List[MarkedField]:
    fields: List[MarkedField] = []
    open_parameters = set(declaration.type_parameters)
    for field in declaration.fields:
        marker = generator.marker_on(field)
        if marker is None:
            continue
        # Open generic field types have no concrete lookup type.
        used = open_parameters.intersection(identifiers_in(field.type_text))
        if used:
            raise UnrenderableFieldTypeError(
                candidate.qualified_name,
                candidate.unit_path,
                field.name,
                f"has open generic type '{field.type_text}' "
                f"(type parameter {', '.join(sorted(used))} of {declaration.name})",
            )
        fields.append(
            MarkedField(
                type_text=field.type_text,
                name=field.name,
                lookup_key=marker.lookup_key,
                declared_in=declaration.qualified_name,
            )
        )
    return fields


__all__ = ["walk_hierarchy"]
