from typing import Optional, Protocol

from core.contracts.models import CommitMessage, GenerationContext
from utils.secrets import Secret


class LLMProvider(Protocol):
    """A protocol for commit message backends."""

    async def generate(
        self,
        context: GenerationContext,
        credential: Optional[Secret],
        model: str,
        timeout_sec: float,
    ) -> Optional[CommitMessage]:
        """
        Generates a commit message for the given context.

        Args:
            context: The collected change set and diff.
            credential: The API key for hosted backends, None for local ones.
            model: The model identifier to request.
            timeout_sec: Upper bound for the whole HTTP exchange.

        Returns:
            The parsed commit message, or None on timeouts, transport errors,
            non-success statuses and unparseable output.
        """
        ...
