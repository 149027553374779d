"""Utility functions for logging tool arguments and remote payloads."""

import re
from typing import Any

SENSITIVE_KEYS = frozenset({
    'api_key', 'key', 'secret', 'password', 'token',
    'authorization', 'auth', 'credential'
})

_PATTERNS = [
    (r'key=[\w\-]+', 'key=****'),
    (r'Bearer\s+[\w\-\.]+', 'Bearer ****'),
    (r'password=[\w\-]+', 'password=****'),
    (r'token=[\w\-\.]+', 'token=****'),
    (r'secret=[\w\-]+', 'secret=****'),
]


def _mask(value: Any) -> Any:
    if isinstance(value, str):
        if len(value) > 8:
            return f"{value[:4]}...{value[-4:]}"
        return "****"
    return "[REDACTED]"


def redact_sensitive_data(data: Any) -> Any:
    """Redact sensitive values from tool arguments before they are logged.

    Keys are matched case-insensitively by substring, so ``tabApiKey`` and
    ``AUTH_TOKEN`` are both masked. Nested mappings and lists are walked.

    Args:
        data: Argument mapping (or any JSON-like value)

    Returns:
        A copy of the value with sensitive leaves masked
    """
    if isinstance(data, list):
        return [redact_sensitive_data(item) for item in data]
    if not isinstance(data, dict):
        return data

    redacted = {}
    for key, value in data.items():
        if isinstance(value, (dict, list)):
            redacted[key] = redact_sensitive_data(value)
        elif any(sensitive in str(key).lower() for sensitive in SENSITIVE_KEYS):
            redacted[key] = _mask(value)
        else:
            redacted[key] = value
    return redacted


def sanitize_log_message(message: str) -> str:
    """Remove credential-looking fragments from an error or response string.

    Args:
        message: Text about to be logged

    Returns:
        Sanitized text
    """
    result = message
    for pattern, replacement in _PATTERNS:
        result = re.sub(pattern, replacement, result)
    return result


def truncate(text: str, limit: int = 500) -> str:
    """Shorten long response bodies for debug output."""
    if len(text) <= limit:
        return text
    return f"{text[:limit]}... ({len(text) - limit} more chars)"
