"""Pydantic models for signed Toucan API requests.

Python attributes are snake_case; the JSON the backend receives is camelCase
(``devId``, ``appHashSignature``...). All request models are frozen: changing
a signed field goes through ``with_data`` / ``with_tags``, which return a
re-signed copy, so a request can never carry a stale ``hashSignature``.
"""

import logging
from abc import abstractmethod
from datetime import datetime
from typing import Any, Self

from pydantic import BaseModel, ConfigDict, field_validator
from pydantic.alias_generators import to_camel

from toucan_sdk._internal.requests.signing import (
    Digest,
    join_fields,
    join_tags,
    security_hash,
    sha1_digest,
)

logger = logging.getLogger(__name__)

# =============================================================================
# Base
# =============================================================================


class WireModel(BaseModel):
    """Frozen model serialized with camelCase keys, omitting None values."""

    model_config = ConfigDict(
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )

    def to_payload(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


def _blank_to_none(v: Any) -> Any:
    if isinstance(v, str) and not v:
        return None
    return v


class SignedRequest(WireModel):
    """Common envelope of every signed request.

    Fields:
        app_key: Application public key
        app_hash_signature: digest(app_key + api_token)
        hash_signature: digest(app_key + "/" + data string); None when the
            digest could not be computed, in which case the request must not
            be sent
    """

    app_key: str
    app_hash_signature: str | None = None
    hash_signature: str | None = None

    @abstractmethod
    def data_string(self) -> str:
        """Canonical string the ``hash_signature`` is computed over."""

    def signed(self, key: str, digest: Digest = sha1_digest) -> Self:
        """Return a copy whose ``hash_signature`` matches the current fields.

        A field holding the reserved delimiter leaves the copy unsigned.
        """
        try:
            data = self.data_string()
        except ValueError as e:
            logger.error("Refusing to sign %s: %s", type(self).__name__, e)
            return self.model_copy(update={"hash_signature": None})
        return self.model_copy(update={"hash_signature": security_hash(key, data, digest)})

    @property
    def is_signed(self) -> bool:
        return bool(self.app_hash_signature) and bool(self.hash_signature)


# =============================================================================
# Device Registration
# =============================================================================


class DeviceRegistrationBean(WireModel):
    """Device registration information.

    ``ext_id`` and ``group_id`` link the device with an external back-end
    user and group; 0 means unset.
    """

    id: int = 0
    app_version: int = 0
    ext_id: int = 0
    group_id: int = 0
    not_token: str | None = None
    dev_id: str | None = None
    dev_os: str | None = None
    dev_extra: str | None = None
    dev_locale: str | None = None
    dev_res_type: str | None = None
    install_referral: str | None = None
    ts_creation: datetime | None = None
    ts_update: datetime | None = None

    @field_validator(
        "not_token",
        "dev_id",
        "dev_os",
        "dev_extra",
        "dev_locale",
        "dev_res_type",
        "install_referral",
        mode="before",
    )
    @classmethod
    def blank_is_absent(cls, v: Any) -> Any:
        return _blank_to_none(v)

    def data_string(self) -> str:
        """Canonical form: numeric fields first, then the string fields."""
        return join_fields([
            self.app_version,
            self.ext_id,
            self.group_id,
            self.dev_id,
            self.dev_locale,
            self.dev_os,
            self.dev_extra,
            self.dev_res_type,
            self.install_referral,
            self.not_token,
        ])


class DeviceRegistrationRequest(SignedRequest):
    """Registration (and referral / external id update) request."""

    data: DeviceRegistrationBean

    def data_string(self) -> str:
        return self.data.data_string()

    def with_data(self, key: str, digest: Digest = sha1_digest, **changes: Any) -> "DeviceRegistrationRequest":
        """Return a copy with updated registration fields, re-signed."""
        data = DeviceRegistrationBean.model_validate({**self.data.model_dump(), **changes})
        return self.model_copy(update={"data": data}).signed(key, digest)


# =============================================================================
# Acknowledgements
# =============================================================================


class AckRequest(SignedRequest):
    """Notification received/read acknowledgement."""

    dev_id: str | None = None
    n_id: str | None = None
    n_ref: str | None = None
    token: str | None = None

    @field_validator("dev_id", "n_id", "n_ref", "token", mode="before")
    @classmethod
    def blank_is_absent(cls, v: Any) -> Any:
        return _blank_to_none(v)

    def data_string(self) -> str:
        return join_fields([self.dev_id, self.n_id, self.n_ref, self.token])


# =============================================================================
# Tags
# =============================================================================


class TagsOperationRequest(SignedRequest):
    """Add, remove or reset the tags of an application/device pair."""

    dev_id: str | None = None
    tags: tuple[str, ...] = ()

    def data_string(self) -> str:
        return join_tags(self.tags)

    def with_tags(self, tags: list[str], key: str, digest: Digest = sha1_digest) -> "TagsOperationRequest":
        """Return a copy carrying ``tags``, re-signed."""
        return self.model_copy(update={"tags": tuple(tags)}).signed(key, digest)
