"""Tree-sitter powered C# frontend."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Tuple

from ..corpus import Corpus
from ..logging import get_logger
from ..models import FieldDeclaration, ImportDirective, Marker, SourceUnit, TypeDeclaration, TypeReference
from ..source_scanner import SourceManifest
from .base import Frontend, FrontendUnavailableError

try:  # pragma: no cover - optional dependency
    import tree_sitter_c_sharp
    from tree_sitter import Language, Parser

    TREE_SITTER_AVAILABLE = True
except ModuleNotFoundError:  # pragma: no cover - optional dependency
    tree_sitter_c_sharp = None  # type: ignore[assignment]
    Language = None  # type: ignore[assignment]
    Parser = None  # type: ignore[assignment]
    TREE_SITTER_AVAILABLE = False


_TYPE_KINDS = {
    "class_declaration": "class",
    "struct_declaration": "struct",
    "interface_declaration": "interface",
    "record_declaration": "record",
}

_NAME_NODES = {"identifier", "qualified_name", "generic_name", "alias_qualified_name"}


@dataclass
class ParsedSource:
    """Unit and declarations extracted from one file."""

    unit: SourceUnit
    declarations: List[TypeDeclaration] = field(default_factory=list)


class CSharpFrontend(Frontend):
    """Extracts class declarations, marked fields and usings from C# files."""

    name = "csharp"

    def __init__(self, enabled: Optional[bool] = None) -> None:
        self._enabled = TREE_SITTER_AVAILABLE if enabled is None else enabled
        self._parser: Optional[Parser] = None
        self.logger = get_logger("frontends.csharp")

    def supports(self, manifest: SourceManifest) -> bool:
        if not self._enabled:
            return False
        return any(meta.path.lower().endswith(".cs") for meta in manifest.files)

    def load(self, manifest: SourceManifest) -> Corpus:
        units: List[SourceUnit] = []
        declarations: List[TypeDeclaration] = []
        for meta in manifest.files:
            if not meta.path.lower().endswith(".cs"):
                continue
            path = Path(manifest.root) / meta.path
            try:
                # utf-8-sig: Visual Studio writes a BOM by default.
                source = path.read_text(encoding="utf-8-sig")
            except (OSError, UnicodeDecodeError) as exc:
                self.logger.warning("Skipping unreadable source %s: %s", meta.path, exc)
                continue
            parsed = self.parse_source(meta.path, source)
            units.append(parsed.unit)
            declarations.extend(parsed.declarations)
        self.logger.debug(
            "Parsed %d units with %d type declarations", len(units), len(declarations)
        )
        return Corpus(units, declarations)

    def parse_source(self, path: str, source: str) -> ParsedSource:
        parser = self._get_parser()
        source_bytes = source.encode("utf-8")
        tree = parser.parse(source_bytes)
        if tree.root_node.has_error:
            self.logger.debug("Syntax errors in %s; using the recoverable parts", path)
        visitor = _UnitVisitor(path, source_bytes)
        visitor.visit(tree.root_node)
        unit = SourceUnit(
            path=path,
            imports=tuple(visitor.imports),
            namespaces=tuple(dict.fromkeys(visitor.namespaces)),
        )
        return ParsedSource(unit=unit, declarations=visitor.declarations)

    def _get_parser(self) -> Parser:
        if self._parser is not None:
            return self._parser
        if not self._enabled or not TREE_SITTER_AVAILABLE:
            raise FrontendUnavailableError(
                "The C# frontend needs the tree_sitter and tree_sitter_c_sharp packages"
            )
        parser = Parser(Language(tree_sitter_c_sharp.language()))
        self._parser = parser
        return parser


class _UnitVisitor:
    """Walks one compilation unit, tracking the enclosing namespace."""

    def __init__(self, path: str, source_bytes: bytes) -> None:
        self.path = path
        self.source_bytes = source_bytes
        self.imports: List[ImportDirective] = []
        self.namespaces: List[str] = []
        self.declarations: List[TypeDeclaration] = []

    def visit(self, root) -> None:  # type: ignore[no-untyped-def]
        self._visit_members(root, "")

    def _text(self, node) -> str:  # type: ignore[no-untyped-def]
        return self.source_bytes[node.start_byte : node.end_byte].decode("utf-8", errors="ignore")

    def _visit_members(self, node, namespace: str) -> None:  # type: ignore[no-untyped-def]
        current = namespace
        for child in node.named_children:
            if child.type == "using_directive":
                self._add_using(child, current)
            elif child.type == "namespace_declaration":
                qualified = self._enter_namespace(child, namespace)
                body = child.child_by_field_name("body") or _first_of(child, "declaration_list")
                if body is not None:
                    self._visit_members(body, qualified)
            elif child.type == "file_scoped_namespace_declaration":
                # Older grammars make the following members siblings, newer
                # ones nest them; both end up in the same namespace.
                current = self._enter_namespace(child, namespace)
                self._visit_members(child, current)
            elif child.type in _TYPE_KINDS:
                self._add_type(child, current, ())

    def _enter_namespace(self, node, parent: str) -> str:  # type: ignore[no-untyped-def]
        name_node = node.child_by_field_name("name") or _first_of(node, *_NAME_NODES)
        name = "".join(self._text(name_node).split()) if name_node is not None else ""
        qualified = f"{parent}.{name}" if parent and name else (name or parent)
        if qualified:
            self.namespaces.append(qualified)
        return qualified

    def _add_using(self, node, scope: str) -> None:  # type: ignore[no-untyped-def]
        tokens = {child.type for child in node.children}
        alias = ""
        name_equals = _first_of(node, "name_equals")
        if name_equals is not None:
            alias_node = _first_of(name_equals, "identifier")
            alias = self._text(alias_node) if alias_node is not None else ""
        elif "=" in tokens:
            alias_node = node.child_by_field_name("name") or _first_of(node, "identifier")
            alias = self._text(alias_node) if alias_node is not None else ""
        targets = [
            child
            for child in node.named_children
            if child.type not in {"name_equals", "comment"}
        ]
        target = "".join(self._text(targets[-1]).split()) if targets else ""
        if alias:
            kind = "alias"
        elif "static" in tokens:
            kind = "static"
        else:
            kind = "namespace"
        self.imports.append(
            ImportDirective(
                text=" ".join(self._text(node).split()),
                target=target,
                scope=scope,
                kind=kind,
                alias=alias,
                is_global="global" in tokens,
            )
        )

    def _add_type(self, node, namespace: str, containing: Tuple[str, ...]) -> None:  # type: ignore[no-untyped-def]
        name_node = node.child_by_field_name("name") or _first_of(node, "identifier")
        if name_node is None:
            return
        name = self._text(name_node)
        body = node.child_by_field_name("body") or _first_of(node, "declaration_list")

        fields: List[FieldDeclaration] = []
        nested = []
        if body is not None:
            for member in body.named_children:
                if member.type == "field_declaration":
                    parsed = self._field(member)
                    if parsed is not None:
                        fields.append(parsed)
                elif member.type in _TYPE_KINDS:
                    nested.append(member)

        self.declarations.append(
            TypeDeclaration(
                name=name,
                unit_path=self.path,
                namespace=namespace or None,
                fields=tuple(fields),
                base_types=self._base_types(node),
                modifiers=tuple(
                    self._text(child) for child in node.children if child.type == "modifier"
                ),
                type_parameters=self._type_parameters(node),
                containing_types=containing,
                kind=_TYPE_KINDS[node.type],
                line=node.start_point[0] + 1,
            )
        )
        for member in nested:
            self._add_type(member, namespace, containing + (name,))

    def _base_types(self, node) -> Tuple[TypeReference, ...]:  # type: ignore[no-untyped-def]
        base_list = _first_of(node, "base_list")
        if base_list is None:
            return ()
        references: List[TypeReference] = []
        for child in base_list.named_children:
            if child.type == "comment":
                continue
            if child.type == "primary_constructor_base_type" and child.named_children:
                child = child.named_children[0]
            if child.type == "argument_list":
                continue
            references.append(TypeReference(self._text(child)))
        return tuple(references)

    def _type_parameters(self, node) -> Tuple[str, ...]:  # type: ignore[no-untyped-def]
        parameter_list = node.child_by_field_name("type_parameters") or _first_of(
            node, "type_parameter_list"
        )
        if parameter_list is None:
            return ()
        names: List[str] = []
        for parameter in parameter_list.named_children:
            if parameter.type != "type_parameter":
                continue
            name_node = parameter.child_by_field_name("name") or _last_of(parameter, "identifier")
            if name_node is not None:
                names.append(self._text(name_node))
        return tuple(names)

    def _field(self, node) -> Optional[FieldDeclaration]:  # type: ignore[no-untyped-def]
        declaration = _first_of(node, "variable_declaration")
        if declaration is None:
            return None
        type_node = declaration.child_by_field_name("type") or (
            declaration.named_children[0] if declaration.named_children else None
        )
        declarator = _first_of(declaration, "variable_declarator")
        if type_node is None or declarator is None:
            return None
        # Only the first declarator of `T a, b;` is honoured.
        name_node = declarator.child_by_field_name("name") or _first_of(declarator, "identifier")
        if name_node is None:
            return None
        return FieldDeclaration(
            type_text=" ".join(self._text(type_node).split()),
            name=self._text(name_node),
            markers=self._markers(node),
            line=node.start_point[0] + 1,
        )

    def _markers(self, node) -> Tuple[Marker, ...]:  # type: ignore[no-untyped-def]
        markers: List[Marker] = []
        for attribute_list in node.children:
            if attribute_list.type != "attribute_list":
                continue
            for attribute in attribute_list.named_children:
                if attribute.type != "attribute":
                    continue
                name_node = attribute.child_by_field_name("name") or _first_of(attribute, *_NAME_NODES)
                if name_node is None:
                    continue
                arguments: List[str] = []
                argument_list = _first_of(attribute, "attribute_argument_list")
                if argument_list is not None:
                    for argument in argument_list.named_children:
                        if argument.type != "attribute_argument":
                            continue
                        value = argument.named_children[-1] if argument.named_children else argument
                        arguments.append(self._text(value))
                markers.append(Marker(name=self._text(name_node), arguments=tuple(arguments)))
        return tuple(markers)


def _first_of(node, *types: str):  # type: ignore[no-untyped-def]
    for child in node.children:
        if child.type in types:
            return child
    return None


def _last_of(node, *types: str):  # type: ignore[no-untyped-def]
    found = None
    for child in node.children:
        if child.type in types:
            found = child
    return found


__all__ = ["CSharpFrontend", "ParsedSource", "TREE_SITTER_AVAILABLE"]
