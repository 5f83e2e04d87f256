"""Project scanning: finds the C# sources a generation run reads."""

from __future__ import annotations

import hashlib
import os
from dataclasses import dataclass, field
from fnmatch import fnmatchcase
from pathlib import Path
from typing import Iterable, Iterator, List, Optional, Sequence

from .config import ConfigError, load_config
from .logging import get_logger

# Build output and editor state never hold hand-written sources.
_SKIPPED_DIRS = frozenset(
    {
        ".git",
        ".hg",
        ".svn",
        ".godot",
        ".mono",
        ".import",
        ".vs",
        ".idea",
        ".resolvergen",
        "bin",
        "obj",
        "node_modules",
    }
)

_LANGUAGES = {".cs": "C#"}

# Roslyn and Godot name their outputs like this; never feed them back in.
_GENERATED_SUFFIXES = (".g.cs", ".generated.cs", ".designer.cs")


@dataclass
class SourceFile:
    """A source file selected for parsing."""

    path: str
    size: int
    language: str
    hash: str


@dataclass
class SourceManifest:
    """Sorted view of a project's C# sources, relative to ``root``."""

    root: str
    files: List[SourceFile] = field(default_factory=list)

    def fingerprint(self) -> str:
        """Digest over paths and content hashes; stable across runs."""
        digest = hashlib.sha256()
        for meta in sorted(self.files, key=lambda item: item.path):
            digest.update(f"{meta.path}\0{meta.hash}\0".encode("utf-8"))
        return digest.hexdigest()


@dataclass(frozen=True)
class ExcludePattern:
    """One gitignore-style pattern from ``.gitignore`` or ``exclude_paths``."""

    glob: str
    negated: bool = False
    dir_only: bool = False
    anchored: bool = False

    def matches(self, rel_path: str, is_dir: bool) -> bool:
        if self.dir_only and not is_dir:
            return False
        if self.anchored or "/" in self.glob:
            return fnmatchcase(rel_path, self.glob)
        return any(fnmatchcase(segment, self.glob) for segment in rel_path.split("/"))


def parse_pattern(line: str) -> Optional[ExcludePattern]:
    """Parse one pattern line; blank lines and comments yield ``None``."""
    text = line.strip()
    if not text or text.startswith("#"):
        return None
    negated = text.startswith("!")
    text = text.lstrip("!")
    dir_only = text.endswith("/")
    anchored = text.startswith("/")
    glob = text.strip("/")
    if not glob:
        return None
    return ExcludePattern(glob=glob, negated=negated, dir_only=dir_only, anchored=anchored)


class PathFilter:
    """Applies exclude patterns in order; the last matching pattern decides."""

    def __init__(self, patterns: Iterable[ExcludePattern] = ()) -> None:
        self.patterns = list(patterns)

    @classmethod
    def for_project(cls, root: Path, extra: Sequence[str] = ()) -> "PathFilter":
        lines: List[str] = []
        gitignore = root / ".gitignore"
        if gitignore.is_file():
            lines.extend(gitignore.read_text(encoding="utf-8").splitlines())
        lines.extend(extra)
        return cls(pattern for pattern in map(parse_pattern, lines) if pattern is not None)

    def excluded(self, rel_path: str, is_dir: bool) -> bool:
        verdict = False
        for pattern in self.patterns:
            if pattern.matches(rel_path, is_dir):
                verdict = not pattern.negated
        return verdict


def _is_source(filename: str) -> bool:
    lowered = filename.lower()
    return Path(lowered).suffix in _LANGUAGES and not lowered.endswith(_GENERATED_SUFFIXES)


def _walk_sources(root: Path, path_filter: PathFilter) -> Iterator[str]:
    """Yield POSIX paths relative to ``root``, pruning excluded directories."""
    for dirpath, dirnames, filenames in os.walk(root):
        prefix = Path(dirpath).relative_to(root).as_posix()
        prefix = "" if prefix == "." else f"{prefix}/"
        dirnames[:] = [
            name
            for name in sorted(dirnames)
            if name not in _SKIPPED_DIRS and not path_filter.excluded(prefix + name, True)
        ]
        for filename in sorted(filenames):
            rel_path = prefix + filename
            if _is_source(filename) and not path_filter.excluded(rel_path, False):
                yield rel_path


class SourceScanner:
    """Walks a project to produce a sorted manifest of C# sources."""

    def __init__(self, exclude_paths: Sequence[str] | None = None) -> None:
        self._exclude_paths = list(exclude_paths) if exclude_paths is not None else None
        self.logger = get_logger("scanner")

    def scan(self, root: str | Path) -> SourceManifest:
        root_path = Path(root).expanduser().resolve()
        if not root_path.exists():
            raise FileNotFoundError(f"Project path not found: {root}")
        if not root_path.is_dir():
            raise NotADirectoryError(f"Project path is not a directory: {root}")

        path_filter = PathFilter.for_project(root_path, self._excludes_for(root_path))
        manifest = SourceManifest(root=str(root_path))
        for rel_path in _walk_sources(root_path, path_filter):
            data = (root_path / rel_path).read_bytes()
            manifest.files.append(
                SourceFile(
                    path=rel_path,
                    size=len(data),
                    language=_LANGUAGES[Path(rel_path).suffix.lower()],
                    hash=hashlib.sha256(data).hexdigest(),
                )
            )
        manifest.files.sort(key=lambda meta: meta.path)
        self.logger.debug("Scanner found %d source files under %s", len(manifest.files), root_path)
        return manifest

    def _excludes_for(self, root: Path) -> List[str]:
        if self._exclude_paths is not None:
            return self._exclude_paths
        try:
            return load_config(root).exclude_paths
        except ConfigError:
            return []


__all__ = [
    "ExcludePattern",
    "PathFilter",
    "SourceFile",
    "SourceManifest",
    "SourceScanner",
    "parse_pattern",
]
