import httpx
import pytest

from core.contracts.models import ChangeFile, GenerationContext
from core.llm.providers.local import DEFAULT_LOCAL_URL, LocalProvider
from core.llm.router import get_provider

CHAT_URL = "http://localhost:1234/v1/chat/completions"


@pytest.fixture
def context():
    """Fixture for a small change set."""
    return GenerationContext(branch="main", files=[ChangeFile(path="src/app.py")], diff="+print('hi')")


def test_get_provider_local():
    """Tests that the router returns a LocalProvider instance."""
    provider = get_provider("local", base_url=CHAT_URL)
    assert isinstance(provider, LocalProvider)
    assert provider.base_url == CHAT_URL


def test_local_provider_default_url():
    provider = LocalProvider()
    assert provider.base_url == DEFAULT_LOCAL_URL
    assert provider.is_raw_generate
    assert not LocalProvider(CHAT_URL).is_raw_generate


@pytest.mark.asyncio
async def test_local_provider_raw_generate(context, mocker):
    """Tests the raw-generate dialect used by Ollama."""
    mock_response = mocker.MagicMock(spec=httpx.Response)
    mock_response.status_code = 200
    mock_response.json.return_value = {"response": '{"title": "chore: print greeting", "body": null}'}

    mock_post = mocker.patch("httpx.AsyncClient.post", return_value=mock_response)

    provider = LocalProvider()
    result = await provider.generate(context, None, "llama3", 8)

    assert result.title == "chore: print greeting"
    mock_post.assert_called_once()
    assert mock_post.call_args[0][0] == DEFAULT_LOCAL_URL
    payload = mock_post.call_args[1]['json']
    assert payload['model'] == "llama3"
    assert payload['stream'] is False
    assert payload['format'] == "json"
    assert "src/app.py" in payload['prompt']
    assert "Authorization" not in mock_post.call_args[1]['headers']


@pytest.mark.asyncio
async def test_local_provider_chat_completions(context, mocker):
    """Tests the OpenAI-compatible chat dialect."""
    mock_response = mocker.MagicMock(spec=httpx.Response)
    mock_response.status_code = 200
    mock_response.json.return_value = {
        "choices": [{"message": {"content": '{"title": "feat: add greeting"}'}}]
    }

    mock_post = mocker.patch("httpx.AsyncClient.post", return_value=mock_response)

    provider = LocalProvider(CHAT_URL)
    result = await provider.generate(context, None, "", 8)

    assert result.title == "feat: add greeting"
    payload = mock_post.call_args[1]['json']
    assert payload['model'] == "local-model"
    assert [m['role'] for m in payload['messages']] == ["system", "user"]
    assert payload['temperature'] == 0.2


@pytest.mark.asyncio
async def test_local_provider_unparseable_output(context, mocker):
    mock_response = mocker.MagicMock(spec=httpx.Response)
    mock_response.json.return_value = {"response": "I cannot help with that."}
    mocker.patch("httpx.AsyncClient.post", return_value=mock_response)

    assert await LocalProvider().generate(context, None, "llama3", 8) is None


@pytest.mark.asyncio
@pytest.mark.parametrize("error", [
    httpx.TimeoutException("timed out"),
    httpx.ConnectError("Connection refused"),
])
async def test_local_provider_network_error(context, mocker, error):
    """Tests that network errors become None instead of raising."""
    mocker.patch("httpx.AsyncClient.post", side_effect=error)

    assert await LocalProvider().generate(context, None, "llama3", 8) is None
