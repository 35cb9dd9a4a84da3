from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, field_validator

MAX_TITLE_LENGTH = 200
MAX_BODY_BULLETS = 5


class Persona(str, Enum):
    STANDARD = "standard"
    SECURITY = "security"


class ChangeFile(BaseModel):
    model_config = ConfigDict(frozen=True)

    path: str
    status: str = "M"  # A, M, D, R or ? (unknown)


class GenerationContext(BaseModel):
    model_config = ConfigDict(frozen=True)

    branch: Optional[str] = None
    files: List[ChangeFile] = []
    diff: str = ""
    persona: Persona = Persona.STANDARD

    @classmethod
    def empty(cls, persona: Persona = Persona.STANDARD) -> "GenerationContext":
        """The context used when the repository could not be inspected."""
        return cls(branch=None, files=[], diff="", persona=persona)

    @property
    def paths(self) -> List[str]:
        return [f.path for f in self.files]


class CommitMessage(BaseModel):
    """
    A commit title with an optional bullet-list body.

    The title is trimmed, loses any trailing period and must be between 1 and
    200 characters. Bodies keep at most five bullet lines.
    """
    model_config = ConfigDict(frozen=True)

    title: str
    body: Optional[str] = None

    @field_validator("title")
    @classmethod
    def _normalize_title(cls, value: str) -> str:
        title = value.strip().rstrip(".").rstrip()
        if not title:
            raise ValueError("title must not be empty")
        if len(title) > MAX_TITLE_LENGTH:
            raise ValueError(f"title must be at most {MAX_TITLE_LENGTH} characters")
        return title

    @field_validator("body")
    @classmethod
    def _normalize_body(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        body = value.strip()
        if not body:
            return None

        lines = []
        bullets = 0
        for line in body.splitlines():
            if line.lstrip().startswith(("- ", "* ")):
                bullets += 1
                if bullets > MAX_BODY_BULLETS:
                    continue
            lines.append(line)
        return "\n".join(lines).strip() or None


class BackendKind(str, Enum):
    OFFLINE = "offline"
    LOCAL = "local"
    CLOUD = "cloud"


class BackendDescriptor(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: BackendKind
    model_id: str
    requires_credential: bool = False


class GenerationErrorKind(str, Enum):
    RATE_LIMITED = "rate_limited"
    MISSING_CREDENTIAL = "missing_credential"
    GENERATION_EXCEPTION = "generation_exception"


class MessageSource(str, Enum):
    OFFLINE = "offline"
    LOCAL = "local"
    CLOUD = "cloud"


_ERROR_MESSAGES = {
    GenerationErrorKind.RATE_LIMITED: (
        "Error: Rate limit exceeded",
        "Please wait a minute before trying again.",
    ),
    GenerationErrorKind.MISSING_CREDENTIAL: (
        "Error: Missing API Key",
        "Set ai.api_key in your config or the SAFECOMMIT_AI_API_KEY environment variable.",
    ),
    GenerationErrorKind.GENERATION_EXCEPTION: (
        "Error: Generation Exception",
        "The backend failed unexpectedly.",
    ),
}


class GenerationResult(BaseModel):
    """
    Outcome of one generation call: either a message or an error kind.

    `render()` turns an error into the "Error: ..." commit message shape for
    callers that can only display a title/body pair.
    """
    model_config = ConfigDict(frozen=True)

    message: Optional[CommitMessage] = None
    error: Optional[GenerationErrorKind] = None
    detail: Optional[str] = None
    source: Optional[MessageSource] = None

    @property
    def ok(self) -> bool:
        return self.error is None and self.message is not None

    @classmethod
    def success(cls, message: CommitMessage, source: MessageSource) -> "GenerationResult":
        return cls(message=message, source=source)

    @classmethod
    def failure(cls, error: GenerationErrorKind, detail: Optional[str] = None) -> "GenerationResult":
        return cls(error=error, detail=detail)

    def render(self) -> CommitMessage:
        if self.ok:
            return self.message
        kind = self.error or GenerationErrorKind.GENERATION_EXCEPTION
        title, body = _ERROR_MESSAGES[kind]
        return CommitMessage(title=title, body=self.detail or body)


class Prompt(BaseModel):
    model_config = ConfigDict(frozen=True)

    system: str
    user: str

    def combined(self) -> str:
        """System and user text as one string, for single-prompt dialects."""
        return f"{self.system}\n{self.user}"

