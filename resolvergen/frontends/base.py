"""Base classes for corpus frontends."""

from abc import ABC, abstractmethod

from ..corpus import Corpus
from ..source_scanner import SourceManifest


class FrontendUnavailableError(RuntimeError):
    """Raised when a frontend's parser dependency is not installed."""


class Frontend(ABC):
    """Contract for frontends that turn scanned sources into a corpus."""

    name: str = ""

    @abstractmethod
    def supports(self, manifest: SourceManifest) -> bool:
        """Return True when this frontend can parse files in the manifest."""

    @abstractmethod
    def load(self, manifest: SourceManifest) -> Corpus:
        """Parse the manifest's sources into type declarations and units."""
