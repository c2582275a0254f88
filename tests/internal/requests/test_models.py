"""Tests for signed request models."""

import hashlib

import pytest
from pydantic import ValidationError

from toucan_sdk._internal.requests.models import (
    AckRequest,
    DeviceRegistrationBean,
    DeviceRegistrationRequest,
    SignedRequest,
    TagsOperationRequest,
)


def _sha1(data: str) -> str:
    return hashlib.sha1(data.encode("utf-8")).hexdigest()


def _registration() -> DeviceRegistrationRequest:
    data = DeviceRegistrationBean(
        app_version=3,
        dev_id="dev-1",
        dev_locale="es",
        dev_os="Python 3.12",
        not_token="TOK1",
    )
    return DeviceRegistrationRequest(app_key="PK", app_hash_signature="app-sig", data=data).signed("PK")


class TestDeviceRegistrationBean:
    """Tests for DeviceRegistrationBean."""

    def test_data_string_field_order(self):
        """Should render fields in the fixed canonical order."""
        bean = DeviceRegistrationBean(
            app_version=3,
            ext_id=10,
            group_id=20,
            dev_id="dev-1",
            dev_locale="es",
            dev_os="os",
            dev_extra="extra",
            dev_res_type="HIGH",
            install_referral="ref",
            not_token="TOK1",
        )
        assert bean.data_string() == "3;#;10;#;20;#;dev-1;#;es;#;os;#;extra;#;HIGH;#;ref;#;TOK1"

    def test_data_string_absent_fields(self):
        """Should render absent strings as NONE and unset ints as 0."""
        bean = DeviceRegistrationBean()
        assert bean.data_string() == "0;#;0;#;0;#;NONE;#;NONE;#;NONE;#;NONE;#;NONE;#;NONE;#;NONE"

    def test_blank_strings_normalized(self):
        """Should treat empty strings as absent so body and digest agree."""
        bean = DeviceRegistrationBean(install_referral="", dev_id="d")
        assert bean.install_referral is None
        assert "installReferral" not in bean.to_payload()

    def test_camel_case_payload(self):
        """Should serialize with camelCase wire names."""
        bean = DeviceRegistrationBean(app_version=1, not_token="T", dev_res_type="LOW")
        payload = bean.to_payload()
        assert payload["appVersion"] == 1
        assert payload["notToken"] == "T"
        assert payload["devResType"] == "LOW"
        assert payload["extId"] == 0
        assert "devOs" not in payload

    def test_accepts_wire_names(self):
        """Should accept camelCase keys on input."""
        bean = DeviceRegistrationBean.model_validate({"appVersion": 5, "devId": "x"})
        assert bean.app_version == 5
        assert bean.dev_id == "x"

    def test_frozen(self):
        """Should reject in-place modification."""
        bean = DeviceRegistrationBean()
        with pytest.raises(ValidationError):
            bean.ext_id = 4


class TestDeviceRegistrationRequest:
    """Tests for DeviceRegistrationRequest."""

    def test_signed(self):
        """Should sign key + '/' + data string."""
        request = _registration()
        assert request.hash_signature == _sha1("PK/" + request.data.data_string())
        assert request.is_signed

    def test_with_data_resigns(self):
        """Should recompute hashSignature when a signed field changes."""
        request = _registration()
        updated = request.with_data("PK", ext_id=42)
        assert updated.data.ext_id == 42
        assert updated.hash_signature == _sha1("PK/" + updated.data.data_string())
        assert updated.hash_signature != request.hash_signature
        assert request.data.ext_id == 0

    def test_with_data_referral_and_group(self):
        """Should re-sign for referral and group id added after build."""
        request = _registration().with_data("PK", install_referral="utm=x").with_data("PK", group_id=9)
        assert "utm=x" in request.data_string()
        assert request.data_string().startswith("3;#;0;#;9;#;")
        assert request.hash_signature == _sha1("PK/" + request.data_string())

    def test_deterministic(self):
        """Should derive the same signature from identical fields."""
        assert _registration().hash_signature == _registration().hash_signature

    def test_payload(self):
        """Should produce the JSON body the backend expects."""
        payload = _registration().to_payload()
        assert payload["appKey"] == "PK"
        assert payload["appHashSignature"] == "app-sig"
        assert payload["hashSignature"]
        assert payload["data"]["notToken"] == "TOK1"

    def test_unsigned_when_digest_fails(self):
        """Should leave the signature unset when the digest fails."""

        def broken(data):
            raise RuntimeError("boom")

        request = _registration().signed("PK", broken)
        assert request.hash_signature is None
        assert not request.is_signed
        assert "hashSignature" not in request.to_payload()


class TestAckRequest:
    """Tests for AckRequest."""

    def test_data_string(self):
        """Should join devId, nId, nRef and token."""
        ack = AckRequest(app_key="PK", dev_id="d", n_id="1", n_ref="r", token="T")
        assert ack.data_string() == "d;#;1;#;r;#;T"

    def test_missing_reference(self):
        """Should render a missing notification reference as NONE."""
        ack = AckRequest(app_key="PK", dev_id="d", n_id="1", token="T")
        assert ack.data_string() == "d;#;1;#;NONE;#;T"

    def test_wire_names(self):
        """Should serialize nId/nRef with their wire names."""
        payload = AckRequest(app_key="PK", n_id="1", n_ref="r").to_payload()
        assert payload == {"appKey": "PK", "nId": "1", "nRef": "r"}


class TestTagsOperationRequest:
    """Tests for TagsOperationRequest."""

    def test_empty_tags_data_string(self):
        """Should render an empty tag list as an empty data string."""
        request = TagsOperationRequest(app_key="PK", dev_id="d", tags=())
        assert request.data_string() == ""

    def test_tags_data_string(self):
        """Should join tags in order."""
        request = TagsOperationRequest(app_key="PK", dev_id="d", tags=("a", "b"))
        assert request.data_string() == "a;#;b"

    def test_with_tags_resigns(self):
        """Should produce different signatures for different tags only."""
        added = TagsOperationRequest(app_key="PK", dev_id="d", tags=("a", "b")).signed("PK")
        reset = added.with_tags([], "PK")
        assert reset.app_key == added.app_key
        assert reset.dev_id == added.dev_id
        assert reset.hash_signature == _sha1("PK/")
        assert reset.hash_signature != added.hash_signature

    def test_tags_payload_is_list(self):
        """Should serialize tags as a JSON array."""
        payload = TagsOperationRequest(app_key="PK", dev_id="d", tags=("a",)).to_payload()
        assert payload["tags"] == ["a"]
        assert payload["devId"] == "d"


class TestSignedRequestBase:
    """Tests for the SignedRequest base."""

    def test_abstract(self):
        """Should not be instantiable without a data string."""
        with pytest.raises(TypeError):
            SignedRequest(app_key="PK")

    def test_delimiter_in_tags_leaves_unsigned(self):
        """Should drop the signature when a tag carries the delimiter."""
        request = TagsOperationRequest(app_key="PK", dev_id="d", tags=("a",)).signed("PK")
        updated = request.with_tags(["a;#;b"], "PK")
        assert request.is_signed
        assert updated.hash_signature is None
        assert "hashSignature" not in updated.to_payload()
