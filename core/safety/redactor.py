import re
from typing import List, Tuple

REDACTION = "[REDACTED]"

# Applied in order. None of the patterns can match inside another's replacement.
SECRET_PATTERNS: List[Tuple[re.Pattern, str]] = [
    (
        re.compile(r"-----BEGIN[\s\S]*?PRIVATE KEY-----[\s\S]*?-----END[\s\S]*?PRIVATE KEY-----", re.IGNORECASE),
        REDACTION,
    ),
    (re.compile(r"\bghp_[A-Za-z0-9]{10,}\b"), REDACTION),
    (re.compile(r"\bgithub_pat_[A-Za-z0-9_]{10,}\b"), REDACTION),
    (re.compile(r"\bglpat-[A-Za-z0-9_-]{20,}"), REDACTION),
    (re.compile(r"\bsk-[A-Za-z0-9_-]{10,}"), REDACTION),
    (re.compile(r"\bxoxb-[A-Za-z0-9-]{10,}"), REDACTION),
    (re.compile(r"\bAIza[0-9A-Za-z_-]{10,}"), REDACTION),
    (re.compile(r"\bAKIA[0-9A-Z]{16}\b"), REDACTION),
    (re.compile(r"\b(password)\s*=\s*(?!\[REDACTED\])\S+", re.IGNORECASE), rf"\1={REDACTION}"),
    (re.compile(r"\b(secret)\s*=\s*(?!\[REDACTED\])\S+", re.IGNORECASE), rf"\1={REDACTION}"),
    (re.compile(r"\b(api[_-]?key)\s*=\s*(?!\[REDACTED\])\S+", re.IGNORECASE), rf"\1={REDACTION}"),
]


def redact_secrets(text: str) -> str:
    """
    Replaces private keys, vendor tokens and password/secret/api key
    assignments with a redaction marker.

    Args:
        text: Arbitrary text, typically a diff.

    Returns:
        The text with every matched secret replaced by "[REDACTED]".
    """
    if not text:
        return ""
    for pattern, replacement in SECRET_PATTERNS:
        text = pattern.sub(replacement, text)
    return text
