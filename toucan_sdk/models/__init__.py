"""Public models of the Toucan SDK.

The wire models are re-exported here so applications can inspect what the
client sends, for example in tests:

    from toucan_sdk.models import DeviceRegistrationRequest
"""

from toucan_sdk._internal.dispatch.models import GetJob, PostJob
from toucan_sdk._internal.pending.driver import DeliveryReport
from toucan_sdk._internal.requests.builder import (
    NOTIFICATION_MESSAGE_ID,
    NOTIFICATION_MESSAGE_REF,
    NOTIFICATION_MESSAGE_TEXT,
    NOTIFICATION_MESSAGE_TS,
)
from toucan_sdk._internal.requests.models import (
    AckRequest,
    DeviceRegistrationBean,
    DeviceRegistrationRequest,
    TagsOperationRequest,
)
from toucan_sdk.callbacks import ApiResponse

__all__ = [
    "DeviceRegistrationBean",
    "DeviceRegistrationRequest",
    "AckRequest",
    "TagsOperationRequest",
    "GetJob",
    "PostJob",
    "DeliveryReport",
    "ApiResponse",
    "NOTIFICATION_MESSAGE_TEXT",
    "NOTIFICATION_MESSAGE_REF",
    "NOTIFICATION_MESSAGE_ID",
    "NOTIFICATION_MESSAGE_TS",
]
