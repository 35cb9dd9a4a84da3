from typing import Any, Dict, Optional

from core.contracts.models import CommitMessage, GenerationContext
from core.llm.providers.base import HTTPProvider
from core.parser.response_parser import parse_response
from core.prompts.builder import build_prompt
from core.registry import provider_registry
from utils.secrets import Secret

OPENAI_URL = "https://api.openai.com/v1/chat/completions"


@provider_registry.register("openai")
class OpenAIProvider(HTTPProvider):
    """
    A provider for OpenAI's chat completions API.
    """

    display_name = "OpenAI"
    api_key_env = "OPENAI_API_KEY"

    def __init__(self, url: str = OPENAI_URL, temperature: float = 0.2):
        self.url = url
        self.temperature = temperature

    def _build_payload(self, context: GenerationContext, model: str) -> Dict[str, Any]:
        prompt = build_prompt(context)
        return {
            "model": model or "gpt-4o-mini",
            "messages": [
                {"role": "system", "content": prompt.system},
                {"role": "user", "content": prompt.user},
            ],
            "temperature": self.temperature,
            "max_tokens": 512,
            "response_format": {"type": "json_object"},
        }

    @staticmethod
    def _extract_text(data: Any) -> str:
        try:
            text = data["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError):
            return ""
        return text if isinstance(text, str) else ""

    async def generate(
        self,
        context: GenerationContext,
        credential: Optional[Secret],
        model: str,
        timeout_sec: float,
    ) -> Optional[CommitMessage]:
        """
        Generates a commit message with an OpenAI chat model in JSON mode.
        """
        payload = self._build_payload(context, model)
        api_key = credential.reveal() if credential else ""
        try:
            data = await self._post(
                self.url,
                payload,
                headers={
                    "Authorization": f"Bearer {api_key}",
                    "Content-Type": "application/json",
                },
                timeout_sec=timeout_sec,
            )
        finally:
            api_key = ""

        if data is None:
            return None
        return parse_response(self._extract_text(data))
