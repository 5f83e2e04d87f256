"""Candidate discovery: which declarations get a generated resolver."""

from __future__ import annotations

from typing import List, Sequence

from .corpus import Corpus
from .generators import GeneratorKind
from .models import TypeDeclaration

DEFAULT_EXCLUDED_SEGMENTS = ("addons/",)


def is_excluded_path(path: str, excluded_segments: Sequence[str]) -> bool:
    """True when a unit path lies under a vendored segment such as ``addons/``."""
    normalised = "/" + path.replace("\\", "/").lstrip("/")
    for segment in excluded_segments:
        cleaned = segment.replace("\\", "/").strip("/")
        if cleaned and f"/{cleaned}/" in normalised:
            return True
    return False


def is_candidate(
    declaration: TypeDeclaration,
    generator: GeneratorKind,
    excluded_segments: Sequence[str] = DEFAULT_EXCLUDED_SEGMENTS,
) -> bool:
    if declaration.kind != "class" or declaration.is_nested:
        return False
    if not declaration.is_partial or declaration.is_static or declaration.is_abstract:
        return False
    if is_excluded_path(declaration.unit_path, excluded_segments):
        return False
    return generator.has_marked_field(declaration.fields)


def discover_candidates(
    corpus: Corpus,
    generator: GeneratorKind,
    excluded_segments: Sequence[str] = DEFAULT_EXCLUDED_SEGMENTS,
) -> List[TypeDeclaration]:
    """Return candidate declarations in corpus order.

    Only fields declared directly on a type make it a candidate; a type that
    merely inherits marked fields is skipped.
    """
    return [
        declaration
        for declaration in corpus.declarations
        if is_candidate(declaration, generator, excluded_segments)
    ]


__all__ = ["DEFAULT_EXCLUDED_SEGMENTS", "discover_candidates", "is_candidate", "is_excluded_path"]
