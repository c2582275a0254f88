"""Signed request construction for the Toucan API."""

from toucan_sdk._internal.requests.builder import RequestBuilder, encode_get_params
from toucan_sdk._internal.requests.models import (
    AckRequest,
    DeviceRegistrationBean,
    DeviceRegistrationRequest,
    SignedRequest,
    TagsOperationRequest,
)
from toucan_sdk._internal.requests.signing import app_hash_signature, security_hash, sha1_digest

__all__ = [
    "RequestBuilder",
    "encode_get_params",
    "SignedRequest",
    "DeviceRegistrationBean",
    "DeviceRegistrationRequest",
    "AckRequest",
    "TagsOperationRequest",
    "app_hash_signature",
    "security_hash",
    "sha1_digest",
]
