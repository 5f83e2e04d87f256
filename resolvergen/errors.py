"""Per-candidate generation errors."""

from __future__ import annotations

from typing import Sequence


class GenerationError(RuntimeError):
    """Raised when one candidate cannot be generated.

    The driver turns these into ``CandidateFailure`` records; they never stop
    generation of unrelated candidates.
    """

    def __init__(self, type_name: str, source_path: str, message: str) -> None:
        super().__init__(f"{type_name}: {message}")
        self.type_name = type_name
        self.source_path = source_path
        self.detail = message


class HierarchyCycleError(GenerationError):
    """Raised when a base-type chain leads back to a type already visited."""

    def __init__(self, type_name: str, source_path: str, chain: Sequence[str]) -> None:
        self.chain = list(chain)
        super().__init__(
            type_name,
            source_path,
            "cyclic base-type chain: " + " -> ".join(self.chain),
        )


class UnrenderableFieldTypeError(GenerationError):
    """Raised when a marked field's type cannot be emitted as a lookup."""

    def __init__(self, type_name: str, source_path: str, field_name: str, reason: str) -> None:
        self.field_name = field_name
        super().__init__(type_name, source_path, f"field '{field_name}' {reason}")


class HintNameCollisionError(GenerationError):
    """Raised when two candidates would publish under the same hint name."""

    def __init__(self, type_name: str, source_path: str, hint_name: str, others: Sequence[str]) -> None:
        self.hint_name = hint_name
        self.others = list(others)
        super().__init__(
            type_name,
            source_path,
            f"hint name '{hint_name}' is also produced by " + ", ".join(self.others),
        )


__all__ = [
    "GenerationError",
    "HierarchyCycleError",
    "HintNameCollisionError",
    "UnrenderableFieldTypeError",
]
