from pathlib import Path
from typing import Optional

from jinja2 import Environment, FileSystemLoader

from core.contracts.models import GenerationContext, MAX_TITLE_LENGTH, Persona, Prompt
from utils.errors import ConfigError

COMMIT_TYPES = ("feat", "fix", "refactor", "style", "docs", "chore", "test", "perf", "security")
MAX_PROMPT_BULLETS = 4
PREFERRED_TITLE_LENGTH = 72


class PromptBuilder:
    """
    Renders the system and user prompt text from Jinja2 templates.
    """

    def __init__(
        self,
        template_dir: Optional[str] = None,
        system_template: str = "system.j2",
        user_template: str = "user.j2",
    ):
        if template_dir is None:
            # Default template directory relative to this file
            template_dir = str(Path(__file__).parent / "templates")

        self.template_dir = template_dir
        self.system_template = system_template
        self.user_template = user_template
        try:
            self.env = Environment(
                loader=FileSystemLoader(self.template_dir),
                trim_blocks=True,
                lstrip_blocks=True,
                keep_trailing_newline=True,
            )
        except Exception as e:
            raise ConfigError(f"Failed to initialize Jinja2 environment: {e}") from e

    def system_text(self) -> str:
        template = self.env.get_template(self.system_template)
        return template.render(
            commit_types=COMMIT_TYPES,
            max_bullets=MAX_PROMPT_BULLETS,
            max_title_length=MAX_TITLE_LENGTH,
            preferred_title_length=PREFERRED_TITLE_LENGTH,
        )

    def user_text(self, context: GenerationContext) -> str:
        template = self.env.get_template(self.user_template)
        return template.render(
            branch=context.branch,
            files=context.files,
            diff=context.diff,
            security=context.persona == Persona.SECURITY,
        )

    def build(self, context: GenerationContext) -> Prompt:
        return Prompt(system=self.system_text(), user=self.user_text(context))


_default_builder: Optional[PromptBuilder] = None


def build_prompt(context: GenerationContext) -> Prompt:
    """
    Builds the prompt pair sent to every backend.

    The builder only reads the context; it never sees configuration or
    credentials.
    """
    global _default_builder
    if _default_builder is None:
        _default_builder = PromptBuilder()
    return _default_builder.build(context)
