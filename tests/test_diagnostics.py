from __future__ import annotations

from pathlib import Path

from resolvergen.diagnostics import CandidateDiagnostics, DiagnosticsCollector
from resolvergen.models import GeneratedUnit, MarkedField, TypeDeclaration, WalkResult


def _walk() -> WalkResult:
    return WalkResult(
        fields=[
            MarkedField("Inventory", "inventory", "", "Game.Player"),
            MarkedField("Stats", "stats", "", "Game.Actor"),
        ],
        chain=[
            TypeDeclaration(name="Player", unit_path="scripts/Player.cs"),
            TypeDeclaration(name="Actor", unit_path="scripts/Actor.cs"),
        ],
    )


def test_candidate_diagnostics_lines() -> None:
    entry = CandidateDiagnostics("Player")
    entry.record_walk(_walk())
    entry.record_unit(
        GeneratedUnit("Game_Player_DependencyResolver.g", "body\n", "dependency", "Game.Player", "scripts/Player.cs")
    )

    assert entry.lines == [
        "Found 2 fields for class Player: inventory, stats",
        "Classes looked at: Player, Actor",
        "=== Game_Player_DependencyResolver.g ===",
        "body",
        "====================",
    ]


def test_disabled_collector_does_not_write() -> None:
    collector = DiagnosticsCollector()

    assert not collector.enabled
    assert collector.flush() is False


def test_flush_rewrites_dump_file(tmp_path: Path) -> None:
    dump = tmp_path / "logs" / "resolvergen.txt"
    dump.parent.mkdir()
    dump.write_text("stale contents\n", encoding="utf-8")
    collector = DiagnosticsCollector(dump)
    entry = CandidateDiagnostics("Enemy")
    entry.record_failure("cyclic base-type chain: Game.Enemy -> Game.Enemy")
    collector.add(entry)

    assert collector.flush() is True
    assert dump.read_text(encoding="utf-8") == (
        "=== GENERATION RUN ===\n"
        "!!! Enemy: cyclic base-type chain: Game.Enemy -> Game.Enemy\n"
    )


def test_flush_failure_is_swallowed(tmp_path: Path) -> None:
    # A directory where the file should be makes the write fail.
    dump = tmp_path / "dump.txt"
    dump.mkdir()
    collector = DiagnosticsCollector(dump)
    collector.add(CandidateDiagnostics("Player", ["line"]))

    assert collector.flush() is False
    assert dump.is_dir()
