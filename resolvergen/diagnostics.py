"""Buffered debug dump for a generation run."""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Sequence

from .logging import get_logger
from .models import GeneratedUnit, WalkResult

_RUN_HEADER = "=== GENERATION RUN ==="
_UNIT_FOOTER = "===================="


@dataclass
class CandidateDiagnostics:
    """Diagnostic lines produced while generating one candidate."""

    type_name: str
    lines: List[str] = field(default_factory=list)

    def record_walk(self, walk: WalkResult) -> None:
        names = ", ".join(f.name for f in walk.fields)
        self.lines.append(f"Found {len(walk.fields)} fields for class {self.type_name}: {names}")
        chain = ", ".join(level.name for level in walk.chain)
        self.lines.append(f"Classes looked at: {chain}")

    def record_unit(self, unit: GeneratedUnit) -> None:
        self.lines.append(f"=== {unit.hint_name} ===")
        self.lines.append(unit.text.rstrip("\n"))
        self.lines.append(_UNIT_FOOTER)

    def record_failure(self, message: str) -> None:
        self.lines.append(f"!!! {self.type_name}: {message}")


class DiagnosticsCollector:
    """Collects per-candidate diagnostics and writes them once, best effort.

    Workers hand finished ``CandidateDiagnostics`` to ``add``; nothing touches
    the dump file until ``flush``.
    """

    def __init__(self, path: Optional[Path] = None) -> None:
        self.path = path
        self._entries: List[CandidateDiagnostics] = []
        self._lock = threading.Lock()
        self.logger = get_logger("diagnostics")

    @property
    def enabled(self) -> bool:
        return self.path is not None

    def add(self, entry: CandidateDiagnostics) -> None:
        with self._lock:
            self._entries.append(entry)

    def extend(self, entries: Sequence[CandidateDiagnostics]) -> None:
        with self._lock:
            self._entries.extend(entries)

    @property
    def entries(self) -> List[CandidateDiagnostics]:
        with self._lock:
            return list(self._entries)

    def render(self) -> str:
        lines = [_RUN_HEADER]
        for entry in self.entries:
            lines.extend(entry.lines)
        return "\n".join(lines) + "\n"

    def flush(self) -> bool:
        """Rewrite the dump file; returns False (and logs) when it cannot be written."""
        if self.path is None:
            return False
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.write_text(self.render(), encoding="utf-8")
        except OSError as exc:
            self.logger.warning("Could not write debug dump %s: %s", self.path, exc)
            return False
        self.logger.debug("Wrote debug dump to %s", self.path)
        return True


__all__ = ["CandidateDiagnostics", "DiagnosticsCollector"]
