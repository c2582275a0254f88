"""Public exceptions for the Toucan SDK."""


class ToucanError(Exception):
    """Base exception for all Toucan SDK errors."""


class ToucanConfigError(ToucanError):
    """Configuration error (missing env vars, invalid config)."""


class SigningError(ToucanError):
    """A request signature could not be computed.

    The request is never sent or queued when this is raised.
    """


class TransportError(ToucanError):
    """Network, TLS or HTTP error during an attempted API call."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        *,
        retryable: bool = False,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.retryable = retryable


class PersistenceError(ToucanError):
    """A pending job could not be written to or read from local storage."""


class PreconditionError(ToucanError):
    """An operation was invoked before the client state allows it."""
