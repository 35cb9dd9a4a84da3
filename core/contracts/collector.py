from typing import Protocol

from core.contracts.models import GenerationContext


class Collector(Protocol):
    """A protocol for classes that build the generation context of a repository."""

    def collect(self, repo_path: str) -> GenerationContext:
        """Collects the pending changes of `repo_path`. Must not raise."""
        ...
