import pytest
from click.testing import CliRunner

import cli as cli_module
from config.models import Config
from core.contracts.models import (
    BackendKind,
    CommitMessage,
    GenerationErrorKind,
    GenerationResult,
    MessageSource,
    Persona,
)


@pytest.fixture
def runner():
    return CliRunner()


def test_apply_cli_overrides():
    config = cli_module.apply_cli_overrides(Config(), "cloud", "claude-3-5-haiku-latest", "security")
    assert config.ai.provider == BackendKind.CLOUD
    assert config.ai.cloud_model == "claude-3-5-haiku-latest"
    assert config.ai.persona == Persona.SECURITY


def test_model_override_targets_local_backend():
    config = cli_module.apply_cli_overrides(Config(), "local", "llama3", None)
    assert config.ai.local_model == "llama3"
    assert config.ai.cloud_model == "gpt-4o-mini"


def test_format_message():
    assert cli_module.format_message(CommitMessage(title="fix: x")) == "fix: x"
    assert cli_module.format_message(CommitMessage(title="fix: x", body="- a")) == "fix: x\n\n- a"


def test_generate_and_commit(runner, mocker):
    message = CommitMessage(title="feat: add x", body="- Add a/x.py")
    mocker.patch("cli.is_git_repository", return_value=True)
    mocker.patch("cli.load_and_merge_configs", return_value=Config())
    mocker.patch("cli.run_generation", return_value=GenerationResult.success(message, MessageSource.OFFLINE))
    mock_commit = mocker.patch("cli.commit")

    with runner.isolated_filesystem():
        result = runner.invoke(cli_module.cli, ["generate", "--commit"])

    assert result.exit_code == 0, result.output
    assert "feat: add x" in result.output
    mock_commit.assert_called_once_with("feat: add x\n\n- Add a/x.py", repo_path=".")


def test_generate_error_result_exits_non_zero(runner, mocker):
    mocker.patch("cli.is_git_repository", return_value=True)
    mocker.patch("cli.load_and_merge_configs", return_value=Config())
    mocker.patch(
        "cli.run_generation",
        return_value=GenerationResult.failure(GenerationErrorKind.MISSING_CREDENTIAL),
    )
    mock_commit = mocker.patch("cli.commit")

    with runner.isolated_filesystem():
        result = runner.invoke(cli_module.cli, ["generate", "--commit"])

    assert result.exit_code == 1
    assert "Error: Missing API Key" in result.output
    mock_commit.assert_not_called()


def test_generate_outside_repository(runner, mocker):
    mocker.patch("cli.is_git_repository", return_value=False)

    with runner.isolated_filesystem():
        result = runner.invoke(cli_module.cli, ["generate"])

    assert result.exit_code == 1
    assert "Git" in result.output


def test_check_local(runner, mocker):
    mocker.patch("cli.load_and_merge_configs", return_value=Config())
    probe = mocker.patch("cli.check_local_backend", return_value=True)

    with runner.isolated_filesystem():
        result = runner.invoke(cli_module.cli, ["check-local", "--model", "llama3"])

    assert result.exit_code == 0, result.output
    probe.assert_called_once_with("http://localhost:11434/api/generate", "llama3")
