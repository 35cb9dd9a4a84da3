from typing import Any, Dict, Optional

from core.contracts.models import CommitMessage, GenerationContext
from core.llm.providers.base import HTTPProvider
from core.parser.response_parser import parse_response
from core.prompts.builder import build_prompt
from core.registry import provider_registry
from utils.secrets import Secret

DEFAULT_LOCAL_URL = "http://localhost:11434/api/generate"
RAW_GENERATE_PATH = "/api/generate"


@provider_registry.register("local")
class LocalProvider(HTTPProvider):
    """
    一个用于本地推理服务的 Provider。

    Ollama 的 /api/generate 接口使用原始 prompt 格式，其他地址 (如 LM Studio
    的 /v1/chat/completions) 使用 OpenAI 兼容的 chat 格式。
    """

    display_name = "local provider"

    def __init__(self, base_url: Optional[str] = None):
        self.base_url = base_url or DEFAULT_LOCAL_URL

    @property
    def is_raw_generate(self) -> bool:
        return RAW_GENERATE_PATH in self.base_url

    def _build_payload(self, context: GenerationContext, model: str) -> Dict[str, Any]:
        """
        构建请求体。
        """
        prompt = build_prompt(context)
        if self.is_raw_generate:
            return {
                "model": model or "qwen2.5-coder:7b",
                "prompt": prompt.combined(),
                "stream": False,
                # Ollama 支持 format: json 强制输出 JSON
                "format": "json",
            }
        return {
            "model": model or "local-model",
            "messages": [
                {"role": "system", "content": prompt.system},
                {"role": "user", "content": prompt.user},
            ],
            "temperature": 0.2,
        }

    def _extract_text(self, data: Any) -> str:
        if not isinstance(data, dict):
            return ""
        if self.is_raw_generate:
            text = data.get("response")
        else:
            try:
                text = data["choices"][0]["message"]["content"]
            except (KeyError, IndexError, TypeError):
                text = None
        return text if isinstance(text, str) else ""

    async def generate(
        self,
        context: GenerationContext,
        credential: Optional[Secret],
        model: str,
        timeout_sec: float,
    ) -> Optional[CommitMessage]:
        """
        从本地 LLM 生成提交信息。本地服务不需要凭据。
        """
        payload = self._build_payload(context, model)
        data = await self._post(
            self.base_url,
            payload,
            headers={"Content-Type": "application/json"},
            timeout_sec=timeout_sec,
        )
        if data is None:
            return None
        return parse_response(self._extract_text(data))
