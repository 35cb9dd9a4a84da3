import pytest

from config.models import AIConfig
from core.contracts.models import BackendKind
from core.llm.providers.claude import ClaudeProvider
from core.llm.providers.gemini import GeminiProvider
from core.llm.providers.local import LocalProvider
from core.llm.providers.openai import OpenAIProvider
from core.llm.router import get_provider, match_cloud_family, select_backend
from utils.errors import ProviderError


@pytest.mark.parametrize("model, family", [
    ("gpt-4o-mini", "openai"),
    ("o1-preview", "openai"),
    ("o3-mini", "openai"),
    ("claude-3-5-sonnet-latest", "claude"),
    ("Gemini-1.5-Pro", "gemini"),
    ("mistral-large", "openai"),
    ("", "openai"),
])
def test_match_cloud_family(model, family):
    assert match_cloud_family(model) == family


def test_offline_selects_nothing():
    assert select_backend(AIConfig(provider="offline")) is None


def test_local_selection():
    selection = select_backend(AIConfig(provider="local", local_model="llama3", local_url="http://127.0.0.1:1234/v1/chat/completions"))
    assert selection.provider_name == "local"
    assert isinstance(selection.provider, LocalProvider)
    assert selection.provider.base_url == "http://127.0.0.1:1234/v1/chat/completions"
    assert selection.descriptor.kind == BackendKind.LOCAL
    assert selection.descriptor.model_id == "llama3"
    assert not selection.descriptor.requires_credential


@pytest.mark.parametrize("model, provider_class", [
    ("gpt-4o-mini", OpenAIProvider),
    ("claude-3-5-haiku-latest", ClaudeProvider),
    ("gemini-1.5-flash", GeminiProvider),
])
def test_cloud_selection(model, provider_class):
    selection = select_backend(AIConfig(provider="cloud", cloud_model=model, temperature=0.7))
    assert isinstance(selection.provider, provider_class)
    assert selection.provider.temperature == 0.7
    assert selection.descriptor.kind == BackendKind.CLOUD
    assert selection.descriptor.model_id == model
    assert selection.descriptor.requires_credential


def test_get_provider_unknown():
    with pytest.raises(ProviderError, match="Unknown provider 'deepseek'"):
        get_provider("deepseek")


def test_get_provider_bad_arguments():
    with pytest.raises(ProviderError, match="Failed to create provider 'openai'"):
        get_provider("openai", unexpected=True)
