"""Request signing primitives.

The backend recomputes every digest independently, so the delimiter, the
sentinel and the field order below are part of the wire protocol.
"""

import hashlib
import logging
from collections.abc import Callable, Iterable

logger = logging.getLogger(__name__)

# Joins canonical fields. Values containing it are refused, see check_field().
FIELD_DELIMITER = ";#;"
# Stands in for an absent (or empty) string field.
NONE_SENTINEL = "NONE"
KEY_SEPARATOR = "/"

Digest = Callable[[str], str]


def sha1_digest(data: str) -> str:
    """Lowercase hex SHA-1 of the UTF-8 encoding of ``data``."""
    return hashlib.sha1(data.encode("utf-8")).hexdigest()


def safe_digest(digest: Digest, data: str) -> str | None:
    """Run ``digest``, returning None instead of raising.

    A None signature means the request must not be sent.
    """
    try:
        return digest(data)
    except Exception as e:
        logger.error("Digest computation failed: %s", e)
        return None


def app_hash_signature(public_key: str, api_token: str, digest: Digest = sha1_digest) -> str | None:
    """Authenticate the app/installation pair: ``digest(public_key + api_token)``."""
    return safe_digest(digest, public_key + api_token)


def security_hash(key: str, data_string: str, digest: Digest = sha1_digest) -> str | None:
    """Authenticate a payload: ``digest(key + "/" + data_string)``."""
    return safe_digest(digest, key + KEY_SEPARATOR + data_string)


def check_field(value: str) -> str:
    """Refuse a value that would shift field boundaries in a data string.

    Raises:
        ValueError: If ``value`` contains ``FIELD_DELIMITER``.
    """
    if FIELD_DELIMITER in value:
        raise ValueError(f"Field value contains the reserved delimiter {FIELD_DELIMITER!r}")
    return value


def render_field(value: str | int | None) -> str:
    """Render one canonical field."""
    if value is None or value == "":
        return NONE_SENTINEL
    return check_field(str(value))


def join_fields(values: Iterable[str | int | None]) -> str:
    return FIELD_DELIMITER.join(render_field(v) for v in values)


def join_tags(tags: Iterable[str]) -> str:
    """Tags are joined verbatim; an empty list yields an empty string."""
    return FIELD_DELIMITER.join(check_field(tag) for tag in tags)
