from dataclasses import dataclass
from typing import Optional, Tuple

from config.models import AIConfig
from core.contracts.models import BackendDescriptor, BackendKind
from core.contracts.provider import LLMProvider
from core.llm.providers import claude, gemini, local, openai  # noqa: F401  (registers the providers)
from core.registry import provider_registry
from utils.logger import logger

# Checked in order; the first family whose marker appears in the model name wins.
CLOUD_FAMILIES: Tuple[Tuple[str, Tuple[str, ...]], ...] = (
    ("gemini", ("gemini",)),
    ("claude", ("claude",)),
    ("openai", ("gpt", "o1", "o3")),
)
DEFAULT_CLOUD_FAMILY = "openai"


@dataclass(frozen=True)
class BackendSelection:
    descriptor: BackendDescriptor
    provider: LLMProvider
    provider_name: str


def get_provider(name: str, **kwargs) -> LLMProvider:
    """
    Builds the adapter registered under `name` (e.g. "openai", "local").

    Raises:
        ProviderError: If the provider is not found or fails to be created.
    """
    provider = provider_registry.build(name, **kwargs)
    logger.debug(f"Using provider adapter '{name}' ({type(provider).__name__})")
    return provider


def match_cloud_family(model: str) -> str:
    """Maps a hosted model name to a provider name by case-insensitive substring."""
    lowered = (model or "").lower()
    for family, markers in CLOUD_FAMILIES:
        if any(marker in lowered for marker in markers):
            return family
    return DEFAULT_CLOUD_FAMILY


def select_backend(config: AIConfig) -> Optional[BackendSelection]:
    """
    Picks the backend for the configured provider kind.

    Recomputed on every call so that settings changes apply immediately.

    Returns:
        None for the offline provider, otherwise the descriptor and a bound adapter.
    """
    if config.provider == BackendKind.OFFLINE:
        return None

    if config.provider == BackendKind.LOCAL:
        provider = get_provider("local", base_url=config.local_url)
        return BackendSelection(
            descriptor=BackendDescriptor(kind=BackendKind.LOCAL, model_id=config.local_model, requires_credential=False),
            provider=provider,
            provider_name="local",
        )

    family = match_cloud_family(config.cloud_model)
    provider = get_provider(family, temperature=config.temperature)
    return BackendSelection(
        descriptor=BackendDescriptor(kind=BackendKind.CLOUD, model_id=config.cloud_model, requires_credential=True),
        provider=provider,
        provider_name=family,
    )
