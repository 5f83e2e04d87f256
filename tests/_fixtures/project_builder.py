"""Helper utilities for constructing temporary C# projects in tests."""

from __future__ import annotations

import textwrap
from pathlib import Path
from typing import Mapping

from resolvergen.source_scanner import SourceManifest, SourceScanner


class ProjectBuilder:
    """Writes files into a throwaway project directory and rescans it."""

    def __init__(self, tmp_path: Path) -> None:
        self.root = tmp_path / "project"
        self.root.mkdir()
        self._scanner = SourceScanner()

    def write(self, files: Mapping[str, str]) -> None:
        """Write `path -> contents` entries into the project."""
        for relative, content in files.items():
            path = self.root / relative
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(textwrap.dedent(content).lstrip("\n"), encoding="utf-8")

    def scan(self) -> SourceManifest:
        return self._scanner.scan(self.root)

    def path(self) -> Path:
        return self.root


__all__ = ["ProjectBuilder"]
