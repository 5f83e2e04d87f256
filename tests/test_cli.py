from __future__ import annotations

import logging
from pathlib import Path

import pytest

from resolvergen import cli
from resolvergen.cli import _build_parser
from resolvergen.orchestrator import Orchestrator
from tests._fixtures.corpus_builder import CorpusBuilder, inject
from tests._fixtures.fake_frontend import StaticFrontend
from tests._fixtures.project_builder import ProjectBuilder


@pytest.fixture(autouse=True)
def _reset_logging():  # type: ignore[no-untyped-def]
    yield
    logger = logging.getLogger("resolvergen")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.propagate = True
    logger.setLevel(logging.NOTSET)


def test_generate_defaults() -> None:
    args = _build_parser().parse_args(["generate"])

    assert args.command == "generate"
    assert args.path == "."
    assert args.kinds is None
    assert args.output is None
    assert args.dry_run is False
    assert args.debug_dump is None
    assert args.workers is None
    assert args.log_file is None
    assert args.verbose is False


def test_generate_accepts_all_options() -> None:
    args = _build_parser().parse_args(
        [
            "generate",
            "game",
            "--kind",
            "dependency",
            "-k",
            "scene_node",
            "-o",
            "out",
            "--dry-run",
            "--debug-dump",
            "dump.txt",
            "--workers",
            "4",
            "--log-file",
            "run.log",
            "-v",
        ]
    )

    assert args.path == "game"
    assert args.kinds == ["dependency", "scene_node"]
    assert args.output == Path("out")
    assert args.dry_run is True
    assert args.debug_dump == Path("dump.txt")
    assert args.workers == 4
    assert args.log_file == Path("run.log")
    assert args.verbose is True


def test_verbose_before_subcommand_is_kept() -> None:
    args = _build_parser().parse_args(["-v", "list"])

    assert args.command == "list"
    assert args.verbose is True


def test_command_is_required() -> None:
    with pytest.raises(SystemExit):
        _build_parser().parse_args([])


@pytest.fixture
def static_orchestrator(monkeypatch: pytest.MonkeyPatch, corpus_builder: CorpusBuilder):  # type: ignore[no-untyped-def]
    def _install(corpus_builder: CorpusBuilder = corpus_builder) -> None:
        frontend = StaticFrontend(corpus_builder.build())
        monkeypatch.setattr(cli, "Orchestrator", lambda: Orchestrator(frontends=[frontend]))

    return _install


def test_main_generate_prints_written_units(
    project_builder: ProjectBuilder,
    corpus_builder: CorpusBuilder,
    static_orchestrator,  # type: ignore[no-untyped-def]
    capsys: pytest.CaptureFixture[str],
) -> None:
    project_builder.write({"Player.cs": "class Player {}\n"})
    corpus_builder.type("Player", inject("Inventory", "inventory"))
    static_orchestrator()

    cli.main(["generate", str(project_builder.path()), "--kind", "dependency"])

    out = capsys.readouterr().out
    assert "generated" in out
    assert "Game_Player_DependencyResolver.g.cs" in out
    assert (project_builder.path() / "Generated" / "Game_Player_DependencyResolver.g.cs").exists()


def test_main_generate_dry_run(
    project_builder: ProjectBuilder,
    corpus_builder: CorpusBuilder,
    static_orchestrator,  # type: ignore[no-untyped-def]
    capsys: pytest.CaptureFixture[str],
) -> None:
    project_builder.write({"Player.cs": "class Player {}\n"})
    corpus_builder.type("Player", inject("Inventory", "inventory"))
    static_orchestrator()

    cli.main(["generate", str(project_builder.path()), "--dry-run"])

    assert "would write" in capsys.readouterr().out
    assert not (project_builder.path() / "Generated").exists()


def test_main_generate_exits_non_zero_on_failures(
    project_builder: ProjectBuilder,
    corpus_builder: CorpusBuilder,
    static_orchestrator,  # type: ignore[no-untyped-def]
    capsys: pytest.CaptureFixture[str],
) -> None:
    project_builder.write({"Loop.cs": "class Loop {}\n"})
    corpus_builder.type("Loop", inject("X", "x"), base="Loop")
    corpus_builder.type("Player", inject("Inventory", "inventory"))
    static_orchestrator()

    with pytest.raises(SystemExit) as excinfo:
        cli.main(["generate", str(project_builder.path())])

    assert excinfo.value.code == 1
    captured = capsys.readouterr()
    assert "Game_Player_DependencyResolver.g.cs" in captured.out
    assert "error: scripts/Loop.cs: Game.Loop [dependency] HierarchyCycleError" in captured.err
    assert "1 candidate(s) failed" in captured.err


def test_main_list_prints_candidates(
    project_builder: ProjectBuilder,
    corpus_builder: CorpusBuilder,
    static_orchestrator,  # type: ignore[no-untyped-def]
    capsys: pytest.CaptureFixture[str],
) -> None:
    project_builder.write({"Player.cs": "class Player {}\n"})
    corpus_builder.type("Player", inject("Inventory", "inventory"), path="Player.cs")
    static_orchestrator()

    cli.main(["list", str(project_builder.path())])

    out = capsys.readouterr().out
    assert "dependency:\n  Game.Player (Player.cs:0)\n" in out
    assert "scene_node:\n  (none)\n" in out


def test_main_reports_missing_path(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    with pytest.raises(SystemExit) as excinfo:
        cli.main(["generate", str(tmp_path / "missing")])

    assert excinfo.value.code == 1
    assert "Project path not found" in capsys.readouterr().err


def test_main_rejects_non_positive_workers(tmp_path: Path) -> None:
    with pytest.raises(SystemExit) as excinfo:
        cli.main(["generate", str(tmp_path), "--workers", "0"])

    assert excinfo.value.code == 2


def test_main_reports_unknown_kind(
    project_builder: ProjectBuilder,
    static_orchestrator,  # type: ignore[no-untyped-def]
    capsys: pytest.CaptureFixture[str],
) -> None:
    static_orchestrator()

    with pytest.raises(SystemExit) as excinfo:
        cli.main(["list", str(project_builder.path()), "--kind", "signals"])

    assert excinfo.value.code == 1
    assert "resolvergen list failed: Unknown generator kinds requested: signals" in capsys.readouterr().err
