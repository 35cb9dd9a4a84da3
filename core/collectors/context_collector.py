from typing import List

from config.models import DiffConfig
from core.contracts.collector import Collector
from core.contracts.models import ChangeFile, GenerationContext, Persona
from core.safety.redactor import redact_secrets
from utils import git
from utils.errors import GitError
from utils.logger import logger

DEFAULT_DIFF_LINES = 400
DEFAULT_DIFF_BYTES = 80 * 1024
TRUNCATION_MARKER = "[TRUNCATED]"

# Porcelain codes that are not one of A, M, D, R, ?
_STATUS_ALIASES = {"C": "A", "U": "M", "T": "M", "!": "?"}


def truncate_diff(text: str, max_lines: int, max_bytes: int) -> str:
    """
    Keeps whole lines until either limit would be exceeded, then appends a marker.

    Args:
        text: The diff text.
        max_lines: Maximum number of lines to keep.
        max_bytes: Maximum UTF-8 size of the kept lines, newlines included.
    """
    if not text:
        return ""
    result: List[str] = []
    size = 0
    for line in text.split("\n"):
        next_size = size + len(line.encode("utf-8")) + 1
        if len(result) >= max_lines or next_size > max_bytes:
            result.append(TRUNCATION_MARKER)
            break
        result.append(line)
        size = next_size
    return "\n".join(result)


def resolve_status(index_status: str, working_status: str) -> str:
    """Single-letter status, preferring the working tree column over the index column."""
    for code in (working_status, index_status):
        code = (code or "").strip()
        if code:
            return _STATUS_ALIASES.get(code, code)
    return "M"


class ContextCollector(Collector):
    """
    Builds the generation context from the repository's pending changes.

    Staged changes win: when anything is staged, only staged files and the
    cached diff are used.
    """

    def __init__(self, diff_config: DiffConfig, redact: bool = True, persona: Persona = Persona.STANDARD):
        self.max_lines = diff_config.limit_lines if diff_config.limit_lines > 0 else DEFAULT_DIFF_LINES
        self.max_bytes = diff_config.limit_kb * 1024 if diff_config.limit_kb > 0 else DEFAULT_DIFF_BYTES
        self.redact = redact
        self.persona = persona

    def _diff_args(self, repo_path: str, staged: bool) -> List[str]:
        if staged:
            return ["--cached"]
        if git.has_commits(repo_path):
            return ["HEAD"]
        return []

    def collect(self, repo_path: str) -> GenerationContext:
        """
        Collects branch, changed files and a truncated diff.

        Never raises: any failure produces an empty context.
        """
        try:
            return self._collect(repo_path)
        except Exception as e:
            logger.warning(f"Context collection failed, continuing with an empty context: {e}")
            return GenerationContext.empty(self.persona)

    def _collect(self, repo_path: str) -> GenerationContext:
        status = git.get_status(repo_path)

        staged = set(status.staged_paths)
        selected = [f for f in status.files if f.path in staged] if staged else list(status.files)
        files = [ChangeFile(path=f.path, status=resolve_status(f.index_status, f.working_status)) for f in selected]

        try:
            diff = git.get_diff(repo_path, self._diff_args(repo_path, bool(staged)))
        except GitError as e:
            logger.warning(f"Failed to read diff, continuing without it: {e}")
            diff = ""

        if self.redact:
            diff = redact_secrets(diff)
        diff = truncate_diff(diff, self.max_lines, self.max_bytes)

        logger.debug(f"Collected {len(files)} file(s), {len(diff)} chars of diff on branch {status.branch}")
        return GenerationContext(branch=status.branch, files=files, diff=diff, persona=self.persona)
