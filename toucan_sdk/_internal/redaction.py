"""Masking of notification tokens and signatures before payloads are logged."""

from typing import Any

# Compared case-insensitively, so camelCase wire names are listed lowercased.
REDACT_KEYS: frozenset[str] = frozenset({
    "token",
    "nottoken",
    "api_token",
    "apitoken",
    "apphashsignature",
    "hashsignature",
    "authorization",
})

REDACTED_VALUE = "[REDACTED]"


def is_sensitive(key: Any) -> bool:
    return isinstance(key, str) and key.lower() in REDACT_KEYS


def redact_payload(payload: dict[str, Any]) -> dict[str, Any]:
    """Return a copy of a request payload that is safe to log.

    Registration data is nested under ``data`` and tags arrive as lists, so
    the whole structure is walked. The input is left untouched.
    """
    return _mask(payload)


def _mask(value: Any) -> Any:
    if isinstance(value, dict):
        return {k: REDACTED_VALUE if is_sensitive(k) else _mask(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_mask(item) for item in value]
    return value
