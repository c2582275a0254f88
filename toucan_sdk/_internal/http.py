"""Shared HTTP client configuration."""

import httpx

from toucan_sdk._version import __version__

DEFAULT_TIMEOUT = 15.0


def create_http_client(
    *,
    timeout: float = DEFAULT_TIMEOUT,
    verify: bool = True,
    api_token: str | None = None,
) -> httpx.Client:
    """Create configured HTTP client.

    Args:
        timeout: Connect/read timeout in seconds.
        verify: Whether TLS certificates are validated. Only disabled when the
            client was explicitly configured to ignore SSL errors.
        api_token: Optional API token sent as a bearer credential.

    Returns:
        Configured httpx.Client instance.
    """
    headers = {"User-Agent": f"toucan-sdk/{__version__}"}
    if api_token:
        headers["Authorization"] = f"Bearer {api_token}"
    return httpx.Client(timeout=timeout, verify=verify, headers=headers)
