import re
from typing import AbstractSet, List

from core.contracts.models import CommitMessage
from utils.logger import logger

PATH_PATTERN = re.compile(r"[A-Za-z0-9._-]+(?:/[A-Za-z0-9._-]+)+")
TRAILING_PUNCTUATION = re.compile(r"[.,:;)]$")


def extract_paths(text: str) -> List[str]:
    """Returns every path-like token (at least one "/") found in `text`."""
    return [TRAILING_PUNCTUATION.sub("", match) for match in PATH_PATTERN.findall(text or "")]


def find_unknown_paths(message: CommitMessage, allowed: AbstractSet[str]) -> List[str]:
    """Paths cited by the message's title or body that are not in `allowed`."""
    combined = f"{message.title}\n{message.body or ''}"
    return [path for path in extract_paths(combined) if path not in allowed]


def is_message_safe(message: CommitMessage, allowed: AbstractSet[str]) -> bool:
    """
    Rejects messages that reference files outside the change set.

    Args:
        message: The candidate produced by a backend.
        allowed: The paths of the files actually being committed.

    Returns:
        False if any cited path is unknown.
    """
    unknown = find_unknown_paths(message, allowed)
    if unknown:
        logger.warning(f"Backend referenced {len(unknown)} path(s) outside the change set: {unknown}")
        return False
    return True
