"""Tests for dispatch job models."""

import pytest
from pydantic import ValidationError

from toucan_sdk._internal.dispatch.models import (
    SCHEMA_VERSION,
    GetJob,
    PostDataType,
    PostJob,
    decode_job,
    encode_job,
    new_job_id,
)
from toucan_sdk.operations import OperationKind


class TestNewJobId:
    """Tests for new_job_id()."""

    def test_prefixed_with_operation_name(self):
        """Should start with the operation name followed by digits."""
        job_id = new_job_id(OperationKind.DEVICE_REGISTRATION)
        assert job_id.startswith("DeviceRegistration")
        assert job_id[len("DeviceRegistration"):].isdigit()

    def test_unique_and_increasing(self):
        """Should never repeat, even for ids created back to back."""
        ids = [new_job_id(OperationKind.ADD_TAGS) for _ in range(500)]
        stamps = [int(i[len("AddTags"):]) for i in ids]
        assert len(set(ids)) == len(ids)
        assert stamps == sorted(stamps)
        assert all(b > a for a, b in zip(stamps, stamps[1:]))


class TestJobs:
    """Tests for GetJob and PostJob."""

    def test_get_job_defaults(self):
        """Should default to zero attempts and no backoff."""
        job = GetJob(job_id="ListTags1", operation=OperationKind.LIST_TAGS, url="http://x/?dtl=abc")
        assert job.method == "GET"
        assert job.attempts == 0
        assert job.next_attempt_at is None
        assert job.ignore_ssl_errors is False
        assert job.schema_version == SCHEMA_VERSION

    def test_post_job_requires_payload(self):
        """Should reject a POST job without payload."""
        with pytest.raises(ValidationError):
            PostJob(
                job_id="AddTags1",
                operation=OperationKind.ADD_TAGS,
                endpoint="http://x/?dta",
                data_type=PostDataType.TAGS,
            )

    def test_unknown_operation_rejected(self):
        """Should reject operation names the API does not know."""
        with pytest.raises(ValidationError):
            GetJob(job_id="x1", operation="Nope", url="http://x")


class TestEncoding:
    """Tests for encode_job()/decode_job()."""

    def test_post_job_round_trip(self):
        """Should decode a POST job back to an equal PostJob."""
        job = PostJob(
            job_id="DeviceRegistration1",
            operation=OperationKind.DEVICE_REGISTRATION,
            endpoint="http://x/PushNOTApi/NOTPushApi?dr",
            data_type=PostDataType.REGISTRATION,
            payload={"appKey": "PK", "data": {"notToken": "T"}},
            attempts=2,
            next_attempt_at=123.5,
        )
        decoded = decode_job(encode_job(job))
        assert isinstance(decoded, PostJob)
        assert decoded == job

    def test_discriminator_selects_get(self):
        """Should pick GetJob from the method tag."""
        raw = (
            '{"method": "GET", "job_id": "DeviceEnableRegistered5", '
            '"operation": "DeviceEnableRegistered", "url": "http://x/?de=abc"}'
        )
        job = decode_job(raw)
        assert isinstance(job, GetJob)
        assert job.url == "http://x/?de=abc"

    def test_missing_method_rejected(self):
        """Should reject an envelope without a method tag."""
        with pytest.raises(ValidationError):
            decode_job('{"job_id": "x", "operation": "ListTags", "url": "u"}')

    def test_garbage_rejected(self):
        """Should reject data that is not JSON."""
        with pytest.raises(ValidationError):
            decode_job(b"\x00not json")
