"""Offline queue for jobs that could not be dispatched, and its driver."""

from toucan_sdk._internal.pending.driver import CallbackRouter, DeliveryDriver, DeliveryReport
from toucan_sdk._internal.pending.store import (
    CACHED_REQUEST_FILE_PREFIX,
    DEAD_REQUEST_FILE_PREFIX,
    PendingJobStore,
)

__all__ = [
    "PendingJobStore",
    "DeliveryDriver",
    "DeliveryReport",
    "CallbackRouter",
    "CACHED_REQUEST_FILE_PREFIX",
    "DEAD_REQUEST_FILE_PREFIX",
]
