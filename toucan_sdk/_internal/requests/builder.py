"""Builds signed requests for each operation kind."""

import base64
import logging
from collections.abc import Mapping
from typing import TypeVar
from urllib.parse import quote_plus

from toucan_sdk._internal.requests.models import (
    AckRequest,
    DeviceRegistrationBean,
    DeviceRegistrationRequest,
    SignedRequest,
    TagsOperationRequest,
)
from toucan_sdk._internal.requests.signing import Digest, app_hash_signature, sha1_digest
from toucan_sdk.config import DeviceInfo, ToucanConfig
from toucan_sdk.exceptions import SigningError
from toucan_sdk.operations import ENDPOINTS, OperationKind

logger = logging.getLogger(__name__)

# Keys of a received notification payload.
NOTIFICATION_MESSAGE_TEXT = "message"
NOTIFICATION_MESSAGE_REF = "nRef"
NOTIFICATION_MESSAGE_ID = "nId"
NOTIFICATION_MESSAGE_TS = "ts"

R = TypeVar("R", bound=SignedRequest)


def encode_get_params(params: str) -> str:
    """Base64 (MIME lines, newline-terminated) then form-style URL encoding."""
    encoded = base64.encodebytes(params.encode("utf-8")).decode("ascii")
    return quote_plus(encoded)


class RequestBuilder:
    """Produces self-verifying requests for one app/device pair.

    Every method returns a request whose signatures match its fields, or
    raises ``SigningError`` when the digest is unavailable.
    """

    def __init__(
        self,
        config: ToucanConfig,
        device_id: str,
        device_info: DeviceInfo,
        *,
        digest: Digest = sha1_digest,
    ) -> None:
        self._config = config
        self._device_id = device_id
        self._device_info = device_info
        self._digest = digest

    @property
    def app_key(self) -> str:
        return self._config.app_public_key

    def app_signature(self) -> str | None:
        return app_hash_signature(self._config.app_public_key, self._config.api_token, self._digest)

    def _checked(self, request: R, operation: OperationKind) -> R:
        if not request.is_signed:
            raise SigningError(f"Could not sign {operation.value} request")
        return request

    def registration(
        self,
        notification_token: str,
        *,
        external_id: int = 0,
        external_group_id: int = 0,
        install_referral: str | None = None,
        nonzero_ids: bool = False,
        operation: OperationKind = OperationKind.DEVICE_REGISTRATION,
    ) -> DeviceRegistrationRequest:
        """Build a registration request.

        ``external_id`` / ``external_group_id`` are applied only when >= 1, or
        when non-zero with ``nonzero_ids``. ``install_referral`` is applied only
        when non-empty. Each one re-signs the request.
        """

        def applies(value: int) -> bool:
            return value != 0 if nonzero_ids else value >= 1

        info = self._device_info
        data = DeviceRegistrationBean(
            dev_id=self._device_id,
            app_version=info.app_version,
            dev_res_type=info.resolution_type,
            dev_locale=info.locale,
            dev_os=info.os_info,
            dev_extra=info.device_extra,
            not_token=notification_token,
        )
        request = DeviceRegistrationRequest(
            app_key=self.app_key,
            app_hash_signature=self.app_signature(),
            data=data,
        ).signed(self.app_key, self._digest)

        if install_referral:
            request = request.with_data(self.app_key, self._digest, install_referral=install_referral)
        if applies(external_id):
            request = request.with_data(self.app_key, self._digest, ext_id=external_id)
        if applies(external_group_id):
            request = request.with_data(self.app_key, self._digest, group_id=external_group_id)

        return self._checked(request, operation)

    def ack(
        self,
        notification: Mapping[str, str | None],
        notification_token: str,
        operation: OperationKind,
    ) -> AckRequest:
        request = AckRequest(
            app_key=self.app_key,
            app_hash_signature=self.app_signature(),
            dev_id=self._device_id,
            n_id=notification.get(NOTIFICATION_MESSAGE_ID),
            n_ref=notification.get(NOTIFICATION_MESSAGE_REF),
            token=notification_token,
        ).signed(self.app_key, self._digest)
        return self._checked(request, operation)

    def tags(self, tags: list[str], operation: OperationKind) -> TagsOperationRequest:
        request = TagsOperationRequest(
            app_key=self.app_key,
            app_hash_signature=self.app_signature(),
            dev_id=self._device_id,
            tags=tuple(tags),
        ).signed(self.app_key, self._digest)
        return self._checked(request, operation)

    def get_url(self, operation: OperationKind) -> str:
        """Fully encoded URL for a GET operation (list tags, unregister, enable)."""
        if ENDPOINTS[operation][2] != "GET":
            raise ValueError(f"{operation.value} is not a GET operation")

        signature = self.app_signature()
        if not signature:
            raise SigningError(f"Could not sign {operation.value} request")

        params = f"dUId={self._device_id}&appPubKey={self.app_key}&appHashSignature={signature}"
        return f"{self._config.endpoint(operation)}={encode_get_params(params)}"
