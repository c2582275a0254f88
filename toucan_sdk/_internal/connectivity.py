"""Default connectivity probe."""

import socket
from collections.abc import Callable
from urllib.parse import urlsplit

ConnectivityProbe = Callable[[], bool]

DEFAULT_PROBE_TIMEOUT = 3.0


def tcp_probe(base_url: str, *, timeout: float = DEFAULT_PROBE_TIMEOUT) -> ConnectivityProbe:
    """Build a probe that reports whether the API host accepts TCP connections."""
    parts = urlsplit(base_url)
    host = parts.hostname or ""
    port = parts.port or (443 if parts.scheme == "https" else 80)

    def probe() -> bool:
        try:
            with socket.create_connection((host, port), timeout=timeout):
                return True
        except OSError:
            return False

    return probe
