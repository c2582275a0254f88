"""Toucan SDK for Python.

Device-side client for the Toucan push-notification API: device
registration, delivery/read acknowledgements and tag-based targeting, with
an offline queue that replays operations once the network is back.

Public API:
    ToucanClient - User-facing client
    ToucanConfig - Immutable client configuration
    DeviceInfo - Description of the device the client runs on
    ResponseCallback, LoggingCallback, CallbackRegistry - Result callbacks
    OperationKind - Operation tags

Internal (not for direct use):
    _internal.requests - Request building and signing
    _internal.dispatch - Dispatch jobs and workers
    _internal.pending - Offline queue and delivery driver
"""

from toucan_sdk._version import __version__
from toucan_sdk.callbacks import ApiResponse, CallbackRegistry, LoggingCallback, ResponseCallback
from toucan_sdk.client import ToucanClient
from toucan_sdk.config import DeviceInfo, ToucanConfig
from toucan_sdk.operations import OperationKind

__all__ = [
    "__version__",
    "ToucanClient",
    "ToucanConfig",
    "DeviceInfo",
    "ApiResponse",
    "ResponseCallback",
    "LoggingCallback",
    "CallbackRegistry",
    "OperationKind",
]
