from typing import Any, Callable, Dict, List, Optional, Tuple

from core.contracts.models import CommitMessage, GenerationContext
from core.llm.providers.base import HTTPProvider
from core.parser.response_parser import parse_response
from core.prompts.builder import build_prompt
from core.registry import provider_registry
from utils.errors import ProviderError
from utils.logger import logger
from utils.secrets import Secret

GEMINI_URL = "https://generativelanguage.googleapis.com/v1beta/models/{model}:generateContent"

# Diffs are regularly flagged as unsafe content, so the filters are disabled.
SAFETY_SETTINGS = [
    {"category": "HARM_CATEGORY_HARASSMENT", "threshold": "BLOCK_NONE"},
    {"category": "HARM_CATEGORY_HATE_SPEECH", "threshold": "BLOCK_NONE"},
    {"category": "HARM_CATEGORY_SEXUALLY_EXPLICIT", "threshold": "BLOCK_NONE"},
    {"category": "HARM_CATEGORY_DANGEROUS_CONTENT", "threshold": "BLOCK_NONE"},
]

RESPONSE_SCHEMA = {
    "type": "OBJECT",
    "properties": {
        "title": {"type": "STRING"},
        "body": {"type": "STRING"},
    },
    "required": ["title"],
}


def _text_from_candidates(candidates: Any) -> Optional[str]:
    if not isinstance(candidates, list) or not candidates:
        return None
    first = candidates[0]
    if not isinstance(first, dict):
        return None
    content = first.get("content")
    parts = content.get("parts") if isinstance(content, dict) else None
    if not isinstance(parts, list):
        # A candidate without parts was stopped (e.g. by a safety filter).
        return ""
    return "".join(p["text"] for p in parts if isinstance(p, dict) and isinstance(p.get("text"), str))


def decode_flat_text(data: Dict[str, Any]) -> Optional[str]:
    """`{"text": "..."}` as produced by SDK-style proxies."""
    text = data.get("text")
    return text if isinstance(text, str) else None


def decode_candidates(data: Dict[str, Any]) -> Optional[str]:
    """The REST shape: `{"candidates": [{"content": {"parts": [{"text": ...}]}}]}`."""
    if "candidates" not in data:
        return None
    return _text_from_candidates(data["candidates"])


def decode_wrapped_response(data: Dict[str, Any]) -> Optional[str]:
    """A result object wrapping the REST shape: `{"response": {...}}`."""
    inner = data.get("response")
    if not isinstance(inner, dict):
        return None
    return decode_flat_text(inner) if "text" in inner else decode_candidates(inner)


RESPONSE_DECODERS: Tuple[Callable[[Dict[str, Any]], Optional[str]], ...] = (
    decode_flat_text,
    decode_candidates,
    decode_wrapped_response,
)


def extract_text(data: Any) -> str:
    """
    Runs the response decoders in order and returns the first match.

    Raises:
        ProviderError: If there is no response object, no decoder recognises
            the envelope, or the model returned no text.
    """
    if not data:
        raise ProviderError("No response object returned from Gemini.")
    if not isinstance(data, dict):
        raise ProviderError(f"Failed to extract text from Gemini response: unexpected {type(data).__name__}")

    for decoder in RESPONSE_DECODERS:
        text = decoder(data)
        if text is None:
            continue
        if not text.strip():
            block_reason = (data.get("promptFeedback") or {}).get("blockReason")
            reason = f" (blocked: {block_reason})" if block_reason else ""
            raise ProviderError(
                "Gemini returned empty text. This might be due to safety filters "
                f"or an internal model error{reason}."
            )
        return text

    raise ProviderError(f"Failed to extract text from Gemini response with keys {sorted(data.keys())}")


@provider_registry.register("gemini")
class GeminiProvider(HTTPProvider):
    """
    A provider for Google's Gemini `generateContent` REST API.

    Unlike the other backends, a response that cannot be read at all raises
    `ProviderError`, because it points at a configuration problem rather than
    a bad generation.
    """

    display_name = "Gemini"
    api_key_env = "GEMINI_API_KEY"

    def __init__(self, url_template: str = GEMINI_URL, temperature: float = 0.2):
        self.url_template = url_template
        self.temperature = temperature

    def _build_payload(self, context: GenerationContext) -> Dict[str, Any]:
        prompt = build_prompt(context)
        contents: List[Dict[str, Any]] = [
            {"role": "user", "parts": [{"text": f"{prompt.system}\n\n---\n\n{prompt.user}"}]}
        ]
        return {
            "contents": contents,
            "generationConfig": {
                "temperature": self.temperature,
                "maxOutputTokens": 1024,
                "responseMimeType": "application/json",
                "responseSchema": RESPONSE_SCHEMA,
            },
            "safetySettings": SAFETY_SETTINGS,
        }

    async def generate(
        self,
        context: GenerationContext,
        credential: Optional[Secret],
        model: str,
        timeout_sec: float,
    ) -> Optional[CommitMessage]:
        """
        Generates a commit message with a Gemini model.

        Raises:
            ProviderError: If the response has no readable text.
        """
        url = self.url_template.format(model=model or "gemini-1.5-flash")
        payload = self._build_payload(context)
        api_key = credential.reveal() if credential else ""
        try:
            data = await self._post(
                url,
                payload,
                headers={
                    "x-goog-api-key": api_key,
                    "Content-Type": "application/json",
                },
                timeout_sec=timeout_sec,
            )
        finally:
            api_key = ""

        if data is None:
            return None

        text = extract_text(data)
        message = parse_response(text)
        if message is None:
            logger.warning(f"Failed to parse Gemini JSON: {text[:100]}...")
        return message
