"""Pipeline orchestration for the generate/list commands."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Sequence

from .config import ResolverGenConfig, load_config
from .corpus import Corpus
from .diagnostics import DiagnosticsCollector
from .driver import GenerationDriver
from .emitter import ResolverEmitter
from .frontends import Frontend, FrontendUnavailableError, discover_frontends
from .generators import GeneratorKind, select_generators
from .logging import get_logger
from .models import GenerationResult, TypeDeclaration
from .source_scanner import SourceManifest, SourceScanner
from .writer import OutputWriter, WriteReport

DEFAULT_OUTPUT_DIR = "Generated"


@dataclass
class GenerateOutcome:
    """Result of a generate run."""

    root: Path
    output_dir: Path
    result: GenerationResult
    report: Optional[WriteReport] = None
    dry_run: bool = False
    kinds: List[str] = field(default_factory=list)


class Orchestrator:
    """Coordinates scanning, parsing and per-kind generation for a project."""

    def __init__(
        self,
        scanner: SourceScanner | None = None,
        frontends: Optional[Iterable[Frontend]] = None,
        emitter: ResolverEmitter | None = None,
    ) -> None:
        self._scanner = scanner
        self._frontend_overrides = list(frontends) if frontends is not None else None
        self._emitter = emitter
        self.logger = get_logger("orchestrator")

    def run_generate(
        self,
        path: str | Path,
        *,
        kinds: Sequence[str] | None = None,
        output_dir: Path | None = None,
        dry_run: bool = False,
        debug_dump: Path | None = None,
        workers: int | None = None,
    ) -> GenerateOutcome:
        """Generate resolver units for a project and write them unless ``dry_run``."""
        root = Path(path).expanduser().resolve()
        self.logger.info("Starting generate run for %s", root)
        config = load_config(root)
        corpus = self.load_corpus(root, config)
        generators = self._select_generators(config, kinds)

        diagnostics = DiagnosticsCollector(debug_dump or config.debug_dump)
        emitter = self._emitter or ResolverEmitter(config.templates_dir)
        result = GenerationResult()
        for generator in generators:
            driver = GenerationDriver(
                generator,
                emitter=emitter,
                excluded_segments=config.exclude_segments,
                max_workers=workers or config.workers,
                diagnostics=diagnostics,
            )
            result.extend(driver.run(corpus))

        target_dir = output_dir or config.output_dir or root / DEFAULT_OUTPUT_DIR
        report = None
        if dry_run:
            self.logger.info("Dry run: %d unit(s) not written", len(result.units))
        else:
            report = OutputWriter(target_dir).write(
                result.units, kinds=[generator.key for generator in generators]
            )

        # Dump problems must never fail the run.
        if diagnostics.enabled:
            diagnostics.flush()

        return GenerateOutcome(
            root=root,
            output_dir=target_dir,
            result=result,
            report=report,
            dry_run=dry_run,
            kinds=[generator.key for generator in generators],
        )

    def run_list(
        self, path: str | Path, *, kinds: Sequence[str] | None = None
    ) -> Dict[str, List[TypeDeclaration]]:
        """Return the candidates each generator kind would process."""
        root = Path(path).expanduser().resolve()
        config = load_config(root)
        corpus = self.load_corpus(root, config)
        candidates: Dict[str, List[TypeDeclaration]] = {}
        for generator in self._select_generators(config, kinds):
            driver = GenerationDriver(generator, excluded_segments=config.exclude_segments)
            candidates[generator.key] = driver.candidates(corpus)
        return candidates

    def load_corpus(self, root: Path, config: ResolverGenConfig) -> Corpus:
        scanner = self._scanner or SourceScanner(config.exclude_paths)
        manifest = scanner.scan(root)
        self.logger.debug("Scanner discovered %d source files", len(manifest.files))
        if not manifest.files:
            self.logger.warning("No C# sources found under %s", root)
            return Corpus()
        frontend = self._select_frontend(config, manifest)
        return frontend.load(manifest)

    def _select_frontend(self, config: ResolverGenConfig, manifest: SourceManifest) -> Frontend:
        if self._frontend_overrides is not None:
            frontends = self._frontend_overrides
        else:
            frontends = discover_frontends(config.enabled_frontends or None)
        for frontend in frontends:
            if frontend.supports(manifest):
                self.logger.debug("Using frontend %s", frontend.__class__.__name__)
                return frontend
        raise FrontendUnavailableError(
            "No frontend can parse the project sources; install tree_sitter and tree_sitter_c_sharp"
        )

    @staticmethod
    def _select_generators(
        config: ResolverGenConfig, kinds: Sequence[str] | None
    ) -> List[GeneratorKind]:
        enabled = list(kinds) if kinds else (config.enabled_generators or None)
        return select_generators(enabled, config.generator_overrides())


__all__ = ["DEFAULT_OUTPUT_DIR", "GenerateOutcome", "Orchestrator"]
