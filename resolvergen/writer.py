"""Writes generated units to disk and removes units a previous run left behind."""

from __future__ import annotations

import hashlib
import json
from dataclasses import dataclass, field
from datetime import UTC, datetime
from pathlib import Path
from typing import Dict, List, Optional, Sequence

from .logging import get_logger
from .models import GeneratedUnit

MANIFEST_FILENAME = ".resolvergen-manifest.json"
_MANIFEST_VERSION = 2


@dataclass
class WriteReport:
    """Files touched by one ``OutputWriter.write`` call."""

    written: List[Path] = field(default_factory=list)
    unchanged: List[Path] = field(default_factory=list)
    removed: List[Path] = field(default_factory=list)


@dataclass(frozen=True)
class ManifestEntry:
    digest: str
    kind: str


class OutputWriter:
    """Publishes units as ``<hint>.cs`` files inside ``output_dir``.

    Files whose content is already identical are left alone so incremental
    builds see unchanged timestamps. A small JSON manifest remembers which
    files the writer owns and which generator kind produced each; only those
    files are ever deleted, and only when their kind took part in the run.
    """

    def __init__(self, output_dir: Path) -> None:
        self.output_dir = output_dir
        self.logger = get_logger("writer")

    @property
    def manifest_path(self) -> Path:
        return self.output_dir / MANIFEST_FILENAME

    def write(
        self, units: Sequence[GeneratedUnit], kinds: Optional[Sequence[str]] = None
    ) -> WriteReport:
        """Write ``units`` and prune stale files of the given ``kinds``.

        ``kinds`` lists the generator kinds that ran; ``None`` means every kind.
        Entries of other kinds are carried over untouched.
        """
        report = WriteReport()
        self.output_dir.mkdir(parents=True, exist_ok=True)
        previous = self._load_manifest()

        entries: Dict[str, ManifestEntry] = {}
        for unit in units:
            target = self.output_dir / unit.file_name
            payload = unit.text.encode("utf-8")
            digest = _hash_bytes(payload)
            entries[unit.file_name] = ManifestEntry(digest=digest, kind=unit.kind)
            if target.exists() and _hash_bytes(target.read_bytes()) == digest:
                report.unchanged.append(target)
                continue
            target.write_bytes(payload)
            report.written.append(target)

        active = None if kinds is None else set(kinds)
        for name in sorted(set(previous) - set(entries)):
            if active is not None and previous[name].kind not in active:
                entries[name] = previous[name]
                continue
            stale = self.output_dir / name
            try:
                stale.unlink()
            except FileNotFoundError:
                continue
            report.removed.append(stale)

        self._store_manifest(entries)
        self.logger.info(
            "Output %s: %d written, %d unchanged, %d removed",
            self.output_dir,
            len(report.written),
            len(report.unchanged),
            len(report.removed),
        )
        return report

    def _load_manifest(self) -> Dict[str, ManifestEntry]:
        try:
            payload = json.loads(self.manifest_path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            return {}
        except (OSError, ValueError):
            self.logger.debug("Ignoring unreadable manifest %s", self.manifest_path)
            return {}
        if not isinstance(payload, dict) or payload.get("version") != _MANIFEST_VERSION:
            return {}
        files = payload.get("files")
        if not isinstance(files, dict):
            return {}
        entries: Dict[str, ManifestEntry] = {}
        for name, record in files.items():
            # Names with separators would let a tampered manifest delete outside output_dir.
            if not isinstance(name, str) or "/" in name or "\\" in name:
                continue
            if not isinstance(record, dict):
                continue
            digest, kind = record.get("digest"), record.get("kind")
            if isinstance(digest, str) and isinstance(kind, str):
                entries[name] = ManifestEntry(digest=digest, kind=kind)
        return entries

    def _store_manifest(self, entries: Dict[str, ManifestEntry]) -> None:
        payload = {
            "version": _MANIFEST_VERSION,
            "updated_at": datetime.now(UTC).isoformat().replace("+00:00", "Z"),
            "files": {
                name: {"digest": entry.digest, "kind": entry.kind}
                for name, entry in entries.items()
            },
        }
        self.manifest_path.write_text(
            json.dumps(payload, indent=2, sort_keys=True), encoding="utf-8"
        )


def _hash_bytes(data: bytes) -> str:
    return hashlib.sha256(data).hexdigest()


__all__ = ["MANIFEST_FILENAME", "ManifestEntry", "OutputWriter", "WriteReport"]
