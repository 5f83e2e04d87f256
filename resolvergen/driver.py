"""Per-kind generation driver: discovery, walk, emit, publish."""

from __future__ import annotations

from collections import defaultdict
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence

from .corpus import Corpus, SymbolResolver
from .diagnostics import CandidateDiagnostics, DiagnosticsCollector
from .discovery import DEFAULT_EXCLUDED_SEGMENTS, discover_candidates
from .emitter import ResolverEmitter
from .errors import GenerationError, HintNameCollisionError
from .generators import GeneratorKind
from .hierarchy import walk_hierarchy
from .logging import get_logger
from .models import CandidateFailure, GeneratedUnit, GenerationResult, TypeDeclaration


@dataclass
class _Outcome:
    candidate: TypeDeclaration
    unit: Optional[GeneratedUnit]
    failure: Optional[CandidateFailure]
    diagnostics: CandidateDiagnostics


class GenerationDriver:
    """Runs the pipeline for every candidate of one generator kind.

    Candidates share nothing but the read-only corpus, so ``max_workers`` > 1
    fans them out over a thread pool. Results are merged in candidate order,
    which keeps output identical to a serial run.
    """

    def __init__(
        self,
        generator: GeneratorKind,
        *,
        emitter: ResolverEmitter | None = None,
        excluded_segments: Sequence[str] = DEFAULT_EXCLUDED_SEGMENTS,
        max_workers: int = 1,
        diagnostics: DiagnosticsCollector | None = None,
        resolver: SymbolResolver | None = None,
    ) -> None:
        self.generator = generator
        self.emitter = emitter or ResolverEmitter()
        self.excluded_segments = tuple(excluded_segments)
        self.max_workers = max(1, max_workers)
        self.diagnostics = diagnostics
        self.resolver = resolver
        self.logger = get_logger("driver")

    def candidates(self, corpus: Corpus) -> List[TypeDeclaration]:
        return discover_candidates(corpus, self.generator, self.excluded_segments)

    def run(self, corpus: Corpus) -> GenerationResult:
        candidates = self.candidates(corpus)
        self.logger.debug(
            "Discovered %d %s candidates", len(candidates), self.generator.key
        )

        if self.max_workers > 1 and len(candidates) > 1:
            with ThreadPoolExecutor(
                max_workers=self.max_workers,
                thread_name_prefix=f"resolvergen-{self.generator.key}",
            ) as pool:
                outcomes = list(pool.map(lambda c: self._generate(corpus, c), candidates))
        else:
            outcomes = [self._generate(corpus, candidate) for candidate in candidates]

        if self.diagnostics is not None:
            self.diagnostics.extend([outcome.diagnostics for outcome in outcomes])

        result = self._aggregate(outcomes)
        for failure in result.failures:
            self.logger.warning("Skipped %s", failure.describe())
        self.logger.info(
            "Generated %d %s unit(s), %d failure(s)",
            len(result.units),
            self.generator.key,
            len(result.failures),
        )
        return result

    def _generate(self, corpus: Corpus, candidate: TypeDeclaration) -> _Outcome:
        diagnostics = CandidateDiagnostics(candidate.name)
        try:
            walk = walk_hierarchy(candidate, corpus, self.generator, self.resolver)
            diagnostics.record_walk(walk)
            text = self.emitter.render(candidate, walk, self.generator)
        except GenerationError as exc:
            diagnostics.record_failure(exc.detail)
            return _Outcome(candidate, None, self._failure(candidate, exc), diagnostics)

        unit = GeneratedUnit(
            hint_name=self.generator.hint_name(candidate.display_namespace, candidate.name),
            text=text,
            kind=self.generator.key,
            type_name=candidate.qualified_name,
            source_path=candidate.unit_path,
        )
        diagnostics.record_unit(unit)
        return _Outcome(candidate, unit, None, diagnostics)

    def _aggregate(self, outcomes: Sequence[_Outcome]) -> GenerationResult:
        owners: Dict[str, List[_Outcome]] = defaultdict(list)
        for outcome in outcomes:
            if outcome.unit is not None:
                owners[outcome.unit.hint_name].append(outcome)

        result = GenerationResult()
        for outcome in outcomes:
            if outcome.failure is not None:
                result.failures.append(outcome.failure)
                continue
            unit = outcome.unit
            if unit is None:
                continue
            sharing = owners[unit.hint_name]
            if len(sharing) > 1:
                others = [
                    f"{other.candidate.qualified_name} ({other.candidate.unit_path})"
                    for other in sharing
                    if other is not outcome
                ]
                error = HintNameCollisionError(
                    outcome.candidate.qualified_name,
                    outcome.candidate.unit_path,
                    unit.hint_name,
                    others,
                )
                result.failures.append(self._failure(outcome.candidate, error))
                continue
            result.units.append(unit)
        return result

    def _failure(self, candidate: TypeDeclaration, error: GenerationError) -> CandidateFailure:
        return CandidateFailure(
            kind=self.generator.key,
            type_name=candidate.qualified_name,
            source_path=candidate.unit_path,
            error=error.__class__.__name__,
            message=error.detail,
        )


__all__ = ["GenerationDriver"]
