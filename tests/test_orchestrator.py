from __future__ import annotations

from pathlib import Path

import pytest

from resolvergen.config import CONFIG_FILENAME, ConfigError
from resolvergen.frontends import FrontendUnavailableError
from resolvergen.orchestrator import DEFAULT_OUTPUT_DIR, Orchestrator
from tests._fixtures.corpus_builder import CorpusBuilder, inject, scene_node
from tests._fixtures.fake_frontend import RefusingFrontend, StaticFrontend
from tests._fixtures.project_builder import ProjectBuilder


@pytest.fixture
def game_project(project_builder: ProjectBuilder, corpus_builder: CorpusBuilder) -> StaticFrontend:
    project_builder.write({"scripts/Player.cs": "public partial class Player {}\n"})
    corpus_builder.type("Player", inject("Inventory", "inventory"), base="Actor")
    corpus_builder.type("Actor", inject("Stats", "stats"))
    corpus_builder.type("Hud", scene_node("Label", "title", '"Title"'))
    return StaticFrontend(corpus_builder.build())


def test_generate_writes_units_for_every_kind(project_builder: ProjectBuilder, game_project: StaticFrontend) -> None:
    outcome = Orchestrator(frontends=[game_project]).run_generate(project_builder.path())

    output = project_builder.path().resolve() / DEFAULT_OUTPUT_DIR
    assert outcome.output_dir == output
    assert outcome.kinds == ["dependency", "scene_node"]
    assert outcome.result.ok
    assert sorted(path.name for path in outcome.report.written) == [
        "Game_Actor_DependencyResolver.g.cs",
        "Game_Hud_SceneNodeResolver.g.cs",
        "Game_Player_DependencyResolver.g.cs",
    ]
    text = (output / "Game_Player_DependencyResolver.g.cs").read_text(encoding="utf-8")
    assert "this.stats = GetTree().Root.GetChildren().OfType<Stats>().FirstOrDefault();" in text
    assert [meta.path for meta in game_project.loaded[0].files] == ["scripts/Player.cs"]


def test_single_kind_run_keeps_units_of_other_kinds(
    project_builder: ProjectBuilder, game_project: StaticFrontend
) -> None:
    orchestrator = Orchestrator(frontends=[game_project])
    orchestrator.run_generate(project_builder.path())

    outcome = orchestrator.run_generate(project_builder.path(), kinds=["dependency"])

    output = project_builder.path().resolve() / DEFAULT_OUTPUT_DIR
    assert outcome.report.removed == []
    assert (output / "Game_Hud_SceneNodeResolver.g.cs").exists()
    assert (output / "Game_Player_DependencyResolver.g.cs").exists()


def test_dry_run_writes_nothing(project_builder: ProjectBuilder, game_project: StaticFrontend) -> None:
    outcome = Orchestrator(frontends=[game_project]).run_generate(
        project_builder.path(), kinds=["scene-node"], dry_run=True
    )

    assert outcome.report is None
    assert [unit.hint_name for unit in outcome.result.units] == ["Game_Hud_SceneNodeResolver.g"]
    assert not (project_builder.path() / DEFAULT_OUTPUT_DIR).exists()


def test_config_drives_output_overrides_and_dump(
    project_builder: ProjectBuilder, game_project: StaticFrontend
) -> None:
    project_builder.write(
        {
            CONFIG_FILENAME: """
            generators:
              enabled: [dependency]
              dependency:
                lookup: path
            output_dir: build/gen
            debug_dump: build/resolvergen.log
            """
        }
    )

    outcome = Orchestrator(frontends=[game_project]).run_generate(project_builder.path())

    root = project_builder.path().resolve()
    assert outcome.output_dir == root / "build/gen"
    assert outcome.kinds == ["dependency"]
    text = (root / "build/gen/Game_Player_DependencyResolver.g.cs").read_text(encoding="utf-8")
    assert 'this.inventory = this.GetNode<Inventory>("");' in text
    dump = (root / "build/resolvergen.log").read_text(encoding="utf-8")
    assert dump.startswith("=== GENERATION RUN ===")


def test_explicit_arguments_override_config(
    project_builder: ProjectBuilder, game_project: StaticFrontend, tmp_path: Path
) -> None:
    project_builder.write({CONFIG_FILENAME: "output_dir: build/gen\n"})
    target = tmp_path / "elsewhere"

    outcome = Orchestrator(frontends=[game_project]).run_generate(
        project_builder.path(), output_dir=target, workers=3
    )

    assert outcome.output_dir == target
    assert (target / "Game_Hud_SceneNodeResolver.g.cs").exists()


def test_failures_are_reported_alongside_units(
    project_builder: ProjectBuilder, corpus_builder: CorpusBuilder
) -> None:
    project_builder.write({"Loop.cs": "class Loop {}\n"})
    corpus_builder.type("Loop", inject("X", "x"), base="Loop")
    corpus_builder.type("Player", inject("Inventory", "inventory"))
    frontend = StaticFrontend(corpus_builder.build())

    outcome = Orchestrator(frontends=[frontend]).run_generate(project_builder.path(), kinds=["dependency"])

    assert [unit.type_name for unit in outcome.result.units] == ["Game.Player"]
    assert [failure.type_name for failure in outcome.result.failures] == ["Game.Loop"]


def test_list_returns_candidates_per_kind(project_builder: ProjectBuilder, game_project: StaticFrontend) -> None:
    candidates = Orchestrator(frontends=[game_project]).run_list(project_builder.path())

    assert {kind: [d.name for d in decls] for kind, decls in candidates.items()} == {
        "dependency": ["Player", "Actor"],
        "scene_node": ["Hud"],
    }


def test_project_without_sources_yields_empty_result(project_builder: ProjectBuilder) -> None:
    outcome = Orchestrator(frontends=[RefusingFrontend()]).run_generate(project_builder.path(), dry_run=True)

    assert outcome.result.units == []
    assert outcome.result.failures == []


def test_missing_frontend_raises(project_builder: ProjectBuilder) -> None:
    project_builder.write({"Player.cs": "class Player {}\n"})

    with pytest.raises(FrontendUnavailableError):
        Orchestrator(frontends=[RefusingFrontend()]).run_generate(project_builder.path())


def test_unknown_kind_raises_value_error(project_builder: ProjectBuilder, game_project: StaticFrontend) -> None:
    with pytest.raises(ValueError, match="signals"):
        Orchestrator(frontends=[game_project]).run_list(project_builder.path(), kinds=["signals"])


def test_broken_config_raises(project_builder: ProjectBuilder, game_project: StaticFrontend) -> None:
    project_builder.write({CONFIG_FILENAME: "workers: [\n"})

    with pytest.raises(ConfigError):
        Orchestrator(frontends=[game_project]).run_generate(project_builder.path())
