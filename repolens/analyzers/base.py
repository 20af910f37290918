"""Base classes for analyzer plugins."""

from abc import ABC, abstractmethod
from typing import Generic, TypeVar

from ..models import RepoSnapshot

T = TypeVar("T")


class Analyzer(ABC, Generic[T]):
    """Contract for analyzers that derive structured facts from a snapshot."""

    name: str = "analyzer"

    def supports(self, snapshot: RepoSnapshot) -> bool:
        """Return True when this analyzer has anything to look at."""
        return not snapshot.is_empty

    @abstractmethod
    def analyze(self, snapshot: RepoSnapshot) -> T:
        """Produce the analyzer's result; must not mutate the snapshot."""
