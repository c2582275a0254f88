"""Asynchronous result notification for Toucan operations.

A callback is bound to exactly one ``OperationKind`` and is invoked at most
once per execution attempt of its job, from a worker thread.

Example:
    from toucan_sdk.callbacks import ApiResponse, ResponseCallback

    class RegistrationDone(ResponseCallback):
        def on_success(self, response: ApiResponse) -> None:
            print("registered", response.status_code)

        def on_failure(self, operation, error) -> None:
            print("registration failed", error)
"""

import logging
import threading
from typing import Any

from pydantic import BaseModel

from toucan_sdk.exceptions import ToucanError
from toucan_sdk.operations import OperationKind

logger = logging.getLogger(__name__)


class ApiResponse(BaseModel):
    """Successful API call result handed to ``on_success``."""

    operation: OperationKind
    job_id: str
    status_code: int
    body: str = ""
    data: Any = None


class ResponseCallback:
    """Base class for operation callbacks.

    Subclasses override ``on_success`` and ``on_failure``. The client binds the
    callback to the operation it was passed to; a callback cannot be reused
    for a different operation kind.
    """

    def __init__(self) -> None:
        self._operation: OperationKind | None = None
        self._lock = threading.Lock()

    @property
    def operation(self) -> OperationKind | None:
        return self._operation

    def bind(self, operation: OperationKind) -> "ResponseCallback":
        with self._lock:
            if self._operation is not None and self._operation != operation:
                raise ValueError(
                    f"Callback already bound to {self._operation.value}, cannot bind to {operation.value}"
                )
            self._operation = operation
        return self

    def on_success(self, response: ApiResponse) -> None:
        pass

    def on_failure(self, operation: OperationKind, error: ToucanError) -> None:
        pass


class LoggingCallback(ResponseCallback):
    """Safe default handler: records the outcome in the log only."""

    def on_success(self, response: ApiResponse) -> None:
        logger.info(
            "%s succeeded (job %s, status %s)",
            response.operation.value,
            response.job_id,
            response.status_code,
        )

    def on_failure(self, operation: OperationKind, error: ToucanError) -> None:
        logger.warning("%s failed: %s", operation.value, error)


class CallbackRegistry:
    """Per-operation handlers for results nobody is waiting on anymore.

    Jobs replayed after a restart no longer have the callback they were
    submitted with. Their results go to the handler registered for the
    operation kind, or to a ``LoggingCallback``.
    """

    def __init__(self, default: ResponseCallback | None = None) -> None:
        self._default = default or LoggingCallback()
        self._handlers: dict[OperationKind, ResponseCallback] = {}
        self._lock = threading.Lock()

    def register(self, operation: OperationKind, callback: ResponseCallback) -> None:
        callback.bind(operation)
        with self._lock:
            self._handlers[operation] = callback

    def unregister(self, operation: OperationKind) -> None:
        with self._lock:
            self._handlers.pop(operation, None)

    def for_operation(self, operation: OperationKind) -> ResponseCallback:
        with self._lock:
            return self._handlers.get(operation, self._default)
