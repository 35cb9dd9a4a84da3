import io

import pytest

from config import logic
from config.loader import load_config
from config.logic import deep_merge, load_and_merge_configs
from config.models import AIConfig, Config
from core.contracts.models import BackendKind, Persona
from utils.errors import ConfigError


@pytest.fixture
def isolated(monkeypatch, tmp_path):
    """Keeps user and project config files on this machine out of the merge."""
    monkeypatch.setattr(logic, "USER_CONFIG_PATH", tmp_path / "missing" / "config.yaml")
    monkeypatch.setattr(logic, "find_project_config", lambda start_dir: None)
    return tmp_path


def test_load_config_substitutes_env(monkeypatch):
    monkeypatch.setenv("SAFECOMMIT_TEST_KEY", "sk-from-env")
    config = load_config(io.StringIO("ai:\n  api_key: ${SAFECOMMIT_TEST_KEY}\n"))
    assert config == {"ai": {"api_key": "sk-from-env"}}


def test_load_config_env_default(monkeypatch):
    monkeypatch.delenv("SAFECOMMIT_TEST_URL", raising=False)
    config = load_config(io.StringIO("url: http://${SAFECOMMIT_TEST_URL:-localhost}:11434\n"))
    assert config == {"url": "http://localhost:11434"}


def test_load_config_missing_env(monkeypatch):
    monkeypatch.delenv("SAFECOMMIT_TEST_MISSING", raising=False)
    with pytest.raises(ConfigError, match="SAFECOMMIT_TEST_MISSING"):
        load_config(io.StringIO("key: ${SAFECOMMIT_TEST_MISSING}\n"))


def test_load_config_empty_and_invalid():
    assert load_config(io.StringIO("")) == {}
    with pytest.raises(ConfigError, match="mapping"):
        load_config(io.StringIO("- a\n- b\n"))
    with pytest.raises(ConfigError, match="parse"):
        load_config(io.StringIO("ai: [unclosed\n"))


def test_deep_merge():
    target = {"ai": {"provider": "offline", "timeout_sec": 8}, "diff": {"limit_lines": 400}}
    merged = deep_merge(target, {"ai": {"provider": "cloud"}, "extra": [1]})
    assert merged == {
        "ai": {"provider": "cloud", "timeout_sec": 8},
        "diff": {"limit_lines": 400},
        "extra": [1],
    }


def test_defaults(isolated):
    config = load_and_merge_configs(repo_path=str(isolated))
    assert config.ai.provider == BackendKind.OFFLINE
    assert config.ai.cloud_model == "gpt-4o-mini"
    assert config.ai.local_model == "qwen2.5-coder:7b"
    assert config.ai.local_url == "http://localhost:11434/api/generate"
    assert config.ai.redaction_enabled is True
    assert config.ai.timeout_sec == 8
    assert config.ai.api_key is None
    assert (config.diff.limit_lines, config.diff.limit_kb) == (400, 80)
    assert (config.rate_limit.max_requests, config.rate_limit.window_sec) == (15, 60)


def test_custom_config_wins(isolated):
    custom = isolated / "custom.yaml"
    custom.write_text("ai:\n  provider: cloud\n  cloud_model: claude-3-5-haiku-latest\n  persona: cybersecurity\n")

    config = load_and_merge_configs(custom_config_path=str(custom), repo_path=str(isolated))

    assert config.ai.provider == BackendKind.CLOUD
    assert config.ai.cloud_model == "claude-3-5-haiku-latest"
    assert config.ai.persona == Persona.SECURITY
    assert config.ai.local_model == "qwen2.5-coder:7b"


def test_project_config_is_merged(monkeypatch, tmp_path):
    monkeypatch.setattr(logic, "USER_CONFIG_PATH", tmp_path / "missing" / "config.yaml")
    (tmp_path / ".git").mkdir()
    (tmp_path / ".safecommit.yaml").write_text("diff:\n  limit_lines: 50\n")
    nested = tmp_path / "src" / "pkg"
    nested.mkdir(parents=True)

    config = load_and_merge_configs(repo_path=str(nested))

    assert config.diff.limit_lines == 50
    assert config.diff.limit_kb == 80


def test_custom_config_not_found(isolated):
    with pytest.raises(ConfigError, match="not found"):
        load_and_merge_configs(custom_config_path=str(isolated / "nope.yaml"))


def test_invalid_values(isolated):
    custom = isolated / "bad.yaml"
    custom.write_text("rate_limit:\n  max_requests: 0\n")
    with pytest.raises(ConfigError, match="validation failed"):
        load_and_merge_configs(custom_config_path=str(custom), repo_path=str(isolated))


def test_api_key_is_secret():
    config = Config(ai=AIConfig(api_key="sk-secret"))
    assert "sk-secret" not in repr(config)
    assert config.ai.api_key.get_secret_value() == "sk-secret"
