from __future__ import annotations

from pathlib import Path

import pytest

from tests._fixtures.corpus_builder import CorpusBuilder
from tests._fixtures.project_builder import ProjectBuilder


@pytest.fixture
def corpus_builder() -> CorpusBuilder:
    """Provide an empty in-memory corpus builder."""
    return CorpusBuilder()


@pytest.fixture
def project_builder(tmp_path: Path) -> ProjectBuilder:
    """Provide a reusable project builder rooted at the pytest tmp_path."""
    return ProjectBuilder(tmp_path)
