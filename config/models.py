from typing import Optional

from pydantic import BaseModel, Field, SecretStr, field_validator

from core.contracts.models import BackendKind, Persona


class AIConfig(BaseModel):
    provider: BackendKind = Field(BackendKind.OFFLINE, description="生成后端: offline, local 或 cloud")
    cloud_model: str = Field("gpt-4o-mini", description="云端模型名称，按名称匹配 OpenAI / Anthropic / Gemini")
    local_model: str = Field("qwen2.5-coder:7b", description="本地模型名称")
    local_url: str = Field("http://localhost:11434/api/generate", description="本地推理服务地址")
    persona: Persona = Field(Persona.STANDARD, description="提示词风格: standard 或 security")
    redaction_enabled: bool = Field(True, description="发送前是否脱敏 diff 中的密钥")
    timeout_sec: int = Field(8, description="单次请求超时时间（秒），<= 0 时使用默认值 20 秒")
    temperature: float = Field(0.2, description="云端模型的采样温度")
    api_key: Optional[SecretStr] = Field(None, description="云端 API 密钥，建议使用 ${ENV_VAR} 引用环境变量")

    @field_validator("persona", mode="before")
    @classmethod
    def _legacy_persona(cls, value):
        # 旧版配置使用 "cybersecurity"
        if isinstance(value, str) and value.lower() == "cybersecurity":
            return Persona.SECURITY
        return value


class DiffConfig(BaseModel):
    limit_lines: int = Field(400, description="diff 最大行数，<= 0 时使用默认值")
    limit_kb: int = Field(80, description="diff 最大大小（KB），<= 0 时使用默认值")


class RateLimitConfig(BaseModel):
    max_requests: int = Field(15, gt=0, description="每个时间窗口内允许的云端请求数")
    window_sec: int = Field(60, gt=0, description="滑动窗口长度（秒）")


class Config(BaseModel):
    ai: AIConfig = Field(default_factory=AIConfig, description="生成后端相关配置")
    diff: DiffConfig = Field(default_factory=DiffConfig, description="diff 截断相关配置")
    rate_limit: RateLimitConfig = Field(default_factory=RateLimitConfig, description="云端请求限流配置")
