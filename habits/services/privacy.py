from __future__ import annotations

import re
from typing import Any

_MAX_TEXT = 1200
_MAX_KEY = 128

_EMAIL_RE = re.compile(r"\b[A-Za-z0-9._%+\-]+@[A-Za-z0-9.\-]+\.[A-Za-z]{2,}\b")
# Phone numbers are stored for scheduled check-in calls.
_PHONE_RE = re.compile(
    r"(?<!\d)(?:\+?\d{1,3}[-.\s]?)?(?:\d{2,4}[-.\s]?\d{3,4}[-.\s]?\d{4})(?!\d)"
)

_BEARER_RE = re.compile(r"(?i)\bBearer\s+[A-Za-z0-9\-._~+/]+=*")
_JWT_RE = re.compile(r"\b[A-Za-z0-9\-_]{20,}\.[A-Za-z0-9\-_]{20,}\.[A-Za-z0-9\-_]{20,}\b")
_WEBPUSH_KEY_RE = re.compile(r"\b[A-Za-z0-9\-_]{60,}={0,2}")

_PII_PATTERNS: tuple[tuple[re.Pattern[str], str], ...] = (
    (_EMAIL_RE, "[REDACTED_EMAIL]"),
    (_PHONE_RE, "[REDACTED_PHONE]"),
)
_SECRET_PATTERNS: tuple[tuple[re.Pattern[str], str], ...] = (
    (_BEARER_RE, "Bearer [REDACTED_TOKEN]"),
    (_JWT_RE, "[REDACTED_JWT]"),
    (_WEBPUSH_KEY_RE, "[REDACTED_KEY]"),
)


def _apply(text: str, patterns: tuple[tuple[re.Pattern[str], str], ...]) -> str:
    for pattern, replacement in patterns:
        text = pattern.sub(replacement, text)
    return text


def mask_pii_text(text: str) -> str:
    return _apply(text, _PII_PATTERNS) if text else text


def redact_secrets_text(text: str) -> str:
    return _apply(text, _SECRET_PATTERNS) if text else text


def sanitize_for_log(value: Any) -> Any:
    if value is None or isinstance(value, (bool, int, float)):
        return value
    if isinstance(value, str):
        return redact_secrets_text(mask_pii_text(value))[:_MAX_TEXT]
    if isinstance(value, (list, tuple)):
        return [sanitize_for_log(v) for v in value]
    if isinstance(value, dict):
        return {str(k)[:_MAX_KEY]: sanitize_for_log(v) for k, v in value.items()}
    return sanitize_for_log(str(value))
