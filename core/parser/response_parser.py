import json
import re
from typing import Any, Optional

from pydantic import ValidationError

from core.contracts.models import CommitMessage
from utils.logger import logger

CODE_FENCE = re.compile(r"```(?:json)?\s*([\s\S]*?)```")
TITLE_FIELD = re.compile(r'"title"\s*:\s*"((?:[^"\\]|\\.)*)"')
DESCRIPTION_FIELD = re.compile(r'"description"\s*:\s*"((?:[^"\\]|\\.)*)"')
BODY_FIELD = re.compile(r'"body"\s*:\s*"((?:[^"\\]|\\.)*)"')


def _strip_wrapping(text: str) -> str:
    """Removes a markdown code fence and any prose around the outermost braces."""
    candidate = text.strip()

    fenced = CODE_FENCE.search(candidate)
    if fenced:
        candidate = fenced.group(1).strip()

    first = candidate.find("{")
    last = candidate.rfind("}")
    if first != -1 and last > first:
        candidate = candidate[first:last + 1]
    return candidate


def _build_message(title: Any, body: Any) -> Optional[CommitMessage]:
    if not isinstance(title, str):
        return None
    try:
        return CommitMessage(title=title, body=body if isinstance(body, str) else None)
    except ValidationError as e:
        logger.debug(f"Rejected parsed message: {e.errors()[0]['msg']}")
        return None


def _from_mapping(data: Any) -> Optional[CommitMessage]:
    if not isinstance(data, dict):
        return None
    body = data.get("description")
    if not isinstance(body, str):
        body = data.get("body")
    return _build_message(data.get("title"), body)


def _escape_control_chars(text: str) -> str:
    """Escapes raw newlines and tabs that appear inside JSON string literals."""
    out = []
    in_string = False
    escaped = False
    for ch in text:
        if in_string:
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == '"':
                in_string = False
            elif ch == "\n":
                out.append("\\n")
                continue
            elif ch == "\r":
                continue
            elif ch == "\t":
                out.append("\\t")
                continue
        elif ch == '"':
            in_string = True
        out.append(ch)
    return "".join(out)


def _unescape(value: str) -> str:
    try:
        return json.loads(f'"{value}"', strict=False)
    except json.JSONDecodeError:
        return value.replace("\\n", "\n").replace('\\"', '"').replace("\\\\", "\\")


def _extract_fields(text: str) -> Optional[CommitMessage]:
    title = TITLE_FIELD.search(text)
    if not title:
        return None
    body = DESCRIPTION_FIELD.search(text) or BODY_FIELD.search(text)
    return _build_message(_unescape(title.group(1)), _unescape(body.group(1)) if body else None)


def parse_response(text: Optional[str]) -> Optional[CommitMessage]:
    """
    Turns raw backend output into a commit message.

    Tries, in order: strict JSON (after removing code fences and surrounding
    prose), JSON with raw newlines inside strings escaped, and finally a regex scan for
    the "title" and "description"/"body" string fields.

    Args:
        text: The raw text returned by a backend.

    Returns:
        The parsed message, or None if no strategy produced a valid title.
    """
    if not text or not text.strip():
        return None

    candidate = _strip_wrapping(text)

    try:
        return _from_mapping(json.loads(candidate))
    except json.JSONDecodeError:
        pass

    try:
        repaired = _escape_control_chars(candidate)
        return _from_mapping(json.loads(repaired))
    except json.JSONDecodeError:
        pass

    message = _extract_fields(candidate)
    if message is None:
        logger.debug(f"All parsing strategies failed on: {candidate[:200]}")
    return message
