"""Renders resolver units from Jinja templates."""

from __future__ import annotations

from pathlib import Path
from typing import List, Optional

from jinja2 import Environment, FileSystemLoader

from .errors import UnrenderableFieldTypeError
from .generators import GeneratorKind
from .models import MarkedField, TypeDeclaration, WalkResult

_TEMPLATE_NAME = "resolver.cs.j2"


class ResolverEmitter:
    """Turns a walk result into the text of one generated unit.

    The emitter does not check that the lookup expressions type-check; the
    downstream compiler does.
    """

    def __init__(self, templates_dir: Path | None = None) -> None:
        self._env = self._create_env(templates_dir)

    def render(
        self,
        candidate: TypeDeclaration,
        walk: WalkResult,
        generator: GeneratorKind,
    ) -> str:
        assignments = [
            self._render_assignment(candidate, field, generator) for field in walk.fields
        ]
        template = self._env.get_template(_TEMPLATE_NAME)
        return template.render(
            kind=generator.key,
            namespace=candidate.namespace,
            imports=walk.imports,
            resolver_imports=generator.resolver_imports,
            declaration=self._declaration_header(candidate),
            interface=generator.interface,
            method=generator.method,
            assignments=assignments,
        )

    def render_lookup(self, field: MarkedField, generator: GeneratorKind) -> str:
        template = self._env.get_template(f"lookups/{generator.lookup}.j2")
        return template.render(field=field).strip()

    def _render_assignment(
        self,
        candidate: TypeDeclaration,
        field: MarkedField,
        generator: GeneratorKind,
    ) -> str:
        type_text = field.type_text.strip()
        if not type_text or "\n" in type_text or type_text == "var":
            raise UnrenderableFieldTypeError(
                candidate.qualified_name,
                candidate.unit_path,
                field.name,
                f"has no emittable type ({field.type_text!r})",
            )
        return f"this.{field.name} = {self.render_lookup(field, generator)};"

    @staticmethod
    def _declaration_header(candidate: TypeDeclaration) -> str:
        parts: List[str] = list(candidate.accessibility)
        parts.extend(["partial", "class", candidate.name])
        header = " ".join(parts)
        if candidate.type_parameters:
            header += "<" + ", ".join(candidate.type_parameters) + ">"
        return header

    @staticmethod
    def _create_env(templates_dir: Optional[Path]) -> Environment:
        directories = []
        if templates_dir:
            directories.append(str(templates_dir))
        directories.append(str(Path(__file__).with_name("templates")))
        loader = FileSystemLoader(list(dict.fromkeys(directories)))
        return Environment(
            loader=loader,
            autoescape=False,
            trim_blocks=True,
            lstrip_blocks=True,
            keep_trailing_newline=True,
        )


__all__ = ["ResolverEmitter"]
