"""Operation kinds understood by the Toucan notification API.

Every job, request and callback is tagged with exactly one ``OperationKind``.
The enum values double as the operation names the API and the pending-job
file names use, so they must never change.
"""

from enum import Enum
from typing import Literal

HttpMethod = Literal["GET", "POST"]

NOTIFICATION_API_PATH = "/PushNOTApi/NOTPushApi"
ACK_REPORT_PATH = "/PushNOTApi/ackreport"


class OperationKind(str, Enum):
    """High-level API action a job or callback corresponds to."""

    DEVICE_REGISTRATION = "DeviceRegistration"
    DEVICE_UNREGISTRATION = "DeviceUnRegistration"
    DEVICE_ENABLE = "DeviceEnableRegistered"
    INFORM_REFERRAL = "InformReferral"
    ADD_TAGS = "AddTags"
    REMOVE_TAGS = "RemoveTags"
    LIST_TAGS = "ListTags"
    RESET_TAGS = "ResetTags"
    ACK_RECEIVED = "NotificationReceivedACK"
    ACK_READ = "NotificationReadACK"


# (path, query discriminator, method)
ENDPOINTS: dict[OperationKind, tuple[str, str, HttpMethod]] = {
    OperationKind.DEVICE_REGISTRATION: (NOTIFICATION_API_PATH, "dr", "POST"),
    OperationKind.INFORM_REFERRAL: (NOTIFICATION_API_PATH, "dr", "POST"),
    OperationKind.DEVICE_UNREGISTRATION: (NOTIFICATION_API_PATH, "du", "GET"),
    OperationKind.DEVICE_ENABLE: (NOTIFICATION_API_PATH, "de", "GET"),
    OperationKind.ADD_TAGS: (NOTIFICATION_API_PATH, "dta", "POST"),
    OperationKind.REMOVE_TAGS: (NOTIFICATION_API_PATH, "dtr", "POST"),
    OperationKind.LIST_TAGS: (NOTIFICATION_API_PATH, "dtl", "GET"),
    OperationKind.RESET_TAGS: (NOTIFICATION_API_PATH, "dtrs", "POST"),
    OperationKind.ACK_RECEIVED: (ACK_REPORT_PATH, "op=2", "POST"),
    OperationKind.ACK_READ: (ACK_REPORT_PATH, "op=1", "POST"),
}


def method_for(kind: OperationKind) -> HttpMethod:
    """Return the HTTP method an operation is sent with."""
    return ENDPOINTS[kind][2]
