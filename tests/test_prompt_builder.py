import pytest

from core.contracts.models import ChangeFile, GenerationContext, Persona
from core.prompts.builder import PromptBuilder, build_prompt


@pytest.fixture
def context():
    return GenerationContext(
        branch="feature/login",
        files=[ChangeFile(path="src/auth.py", status="M"), ChangeFile(path="docs/login.md", status="A")],
        diff="+def login():\n+    pass",
    )


def test_system_prompt_describes_output_contract():
    system = PromptBuilder().system_text()
    assert '"title": "string"' in system
    assert "feat, fix, refactor, style, docs, chore, test, perf, security" in system
    assert "Max 4 bullets" in system
    assert "Do NOT invent file names" in system


def test_user_prompt_lists_branch_files_and_diff(context):
    user = PromptBuilder().user_text(context)
    assert "Branch: feature/login" in user
    assert "- M src/auth.py\n- A docs/login.md\n" in user
    assert "+def login():" in user
    assert "ADDITIONAL INSTRUCTIONS" not in user


def test_user_prompt_unknown_branch():
    user = PromptBuilder().user_text(GenerationContext.empty())
    assert "Branch: unknown" in user


def test_security_persona_adds_instructions(context):
    security = context.model_copy(update={"persona": Persona.SECURITY})
    user = PromptBuilder().user_text(security)
    assert "ADDITIONAL INSTRUCTIONS" in user
    assert "security implications" in user


def test_build_prompt_combined(context):
    prompt = build_prompt(context)
    assert prompt.combined() == f"{prompt.system}\n{prompt.user}"
    assert prompt.user.startswith("Branch: feature/login")


def test_custom_template_dir(tmp_path, context):
    (tmp_path / "system.j2").write_text("SYSTEM {{ max_bullets }}")
    (tmp_path / "user.j2").write_text("{{ files | length }} files on {{ branch }}")
    prompt = PromptBuilder(template_dir=str(tmp_path)).build(context)
    assert prompt.system == "SYSTEM 4"
    assert prompt.user == "2 files on feature/login"
