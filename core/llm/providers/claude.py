from typing import Any, Dict, Optional

from core.contracts.models import CommitMessage, GenerationContext
from core.llm.providers.base import HTTPProvider
from core.parser.response_parser import parse_response
from core.prompts.builder import build_prompt
from core.registry import provider_registry
from utils.secrets import Secret

ANTHROPIC_URL = "https://api.anthropic.com/v1/messages"
ANTHROPIC_VERSION = "2023-06-01"


@provider_registry.register("claude")
class ClaudeProvider(HTTPProvider):
    """
    A provider for the Anthropic Messages API.
    """

    display_name = "Anthropic"
    api_key_env = "ANTHROPIC_API_KEY"

    def __init__(self, url: str = ANTHROPIC_URL, temperature: float = 0.2):
        self.url = url
        self.temperature = temperature

    def _build_payload(self, context: GenerationContext, model: str) -> Dict[str, Any]:
        """
        Builds the request payload for the API.
        """
        prompt = build_prompt(context)
        return {
            "model": model or "claude-3-5-sonnet-latest",
            "max_tokens": 1024,  # Anthropic requires max_tokens
            "temperature": self.temperature,
            "system": prompt.system,
            "messages": [{"role": "user", "content": prompt.user}],
        }

    @staticmethod
    def _extract_text(data: Any) -> str:
        # The response holds a list of content blocks; the first text block is the answer.
        if not isinstance(data, dict):
            return ""
        for block in data.get("content") or []:
            if isinstance(block, dict) and isinstance(block.get("text"), str):
                return block["text"]
        return ""

    async def generate(
        self,
        context: GenerationContext,
        credential: Optional[Secret],
        model: str,
        timeout_sec: float,
    ) -> Optional[CommitMessage]:
        """
        Generates a commit message with a Claude model.
        """
        payload = self._build_payload(context, model)
        api_key = credential.reveal() if credential else ""
        try:
            data = await self._post(
                self.url,
                payload,
                headers={
                    "x-api-key": api_key,
                    "anthropic-version": ANTHROPIC_VERSION,
                    "Content-Type": "application/json",
                },
                timeout_sec=timeout_sec,
            )
        finally:
            api_key = ""

        if data is None:
            return None
        return parse_response(self._extract_text(data))
