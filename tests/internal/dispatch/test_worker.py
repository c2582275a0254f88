"""Tests for execute_job and DispatchWorker."""

from concurrent.futures import ThreadPoolExecutor
from unittest.mock import patch

import httpx
import pytest
import respx

from toucan_sdk._internal.dispatch.models import GetJob, JobState, PostDataType, PostJob
from toucan_sdk._internal.dispatch.worker import DispatchWorker, execute_job
from toucan_sdk.exceptions import TransportError
from toucan_sdk.operations import OperationKind

ENDPOINT = "http://toucan.test/PushNOTApi/NOTPushApi?dta"
GET_URL = "http://toucan.test/PushNOTApi/NOTPushApi?dtl=ZFVJZD0x%0A"


def _post_job(**kwargs) -> PostJob:
    return PostJob(
        job_id="AddTags1",
        operation=OperationKind.ADD_TAGS,
        endpoint=ENDPOINT,
        data_type=PostDataType.TAGS,
        payload={"appKey": "PK", "devId": "d", "tags": ["a"], "hashSignature": "h"},
        **kwargs,
    )


def _get_job() -> GetJob:
    return GetJob(job_id="ListTags1", operation=OperationKind.LIST_TAGS, url=GET_URL)


class TestExecuteJob:
    """Tests for execute_job()."""

    @respx.mock
    def test_post_sends_json(self):
        """Should POST the payload as JSON with the bearer token."""
        route = respx.post(ENDPOINT).mock(return_value=httpx.Response(200, json={"ok": True}))

        response = execute_job(_post_job(), api_token="AT")

        assert route.called
        request = route.calls[0].request
        assert request.headers["Content-Type"] == "application/json"
        assert request.headers["Authorization"] == "Bearer AT"
        assert request.headers["User-Agent"].startswith("toucan-sdk/")
        assert b'"tags":["a"]' in request.content.replace(b" ", b"")
        assert response.status_code == 200
        assert response.data == {"ok": True}
        assert response.operation == OperationKind.ADD_TAGS
        assert response.job_id == "AddTags1"

    @respx.mock
    def test_get_uses_prebuilt_url(self):
        """Should GET the exact pre-encoded URL."""
        route = respx.get(GET_URL).mock(return_value=httpx.Response(200, text="a;b"))

        response = execute_job(_get_job())

        assert route.called
        assert response.body == "a;b"
        assert response.data is None

    @respx.mock
    def test_server_error_is_retryable(self):
        """Should raise a retryable TransportError for 5xx."""
        respx.post(ENDPOINT).mock(return_value=httpx.Response(503))

        with pytest.raises(TransportError) as exc_info:
            execute_job(_post_job())
        assert exc_info.value.status_code == 503
        assert exc_info.value.retryable is True

    @respx.mock
    def test_client_error_not_retryable(self):
        """Should raise a non-retryable TransportError for 4xx."""
        respx.post(ENDPOINT).mock(return_value=httpx.Response(403))

        with pytest.raises(TransportError) as exc_info:
            execute_job(_post_job())
        assert exc_info.value.status_code == 403
        assert exc_info.value.retryable is False

    @respx.mock
    def test_timeout(self):
        """Should raise a retryable TransportError on timeout."""
        respx.post(ENDPOINT).mock(side_effect=httpx.ReadTimeout("timed out"))

        with pytest.raises(TransportError) as exc_info:
            execute_job(_post_job())
        assert exc_info.value.retryable is True
        assert exc_info.value.status_code is None

    @respx.mock
    def test_connection_error(self):
        """Should raise a retryable TransportError when the host is unreachable."""
        respx.post(ENDPOINT).mock(side_effect=httpx.ConnectError("refused"))

        with pytest.raises(TransportError) as exc_info:
            execute_job(_post_job())
        assert exc_info.value.retryable is True

    @pytest.mark.parametrize(("ignore_ssl_errors", "verify"), [(False, True), (True, False)])
    def test_tls_verification_follows_job(self, ignore_ssl_errors, verify):
        """Should only disable certificate checks when the job asks for it."""
        with patch("toucan_sdk._internal.dispatch.worker.create_http_client") as factory:
            client = factory.return_value.__enter__.return_value
            client.post.return_value = httpx.Response(200)
            execute_job(_post_job(ignore_ssl_errors=ignore_ssl_errors))
        assert factory.call_args.kwargs["verify"] is verify


class TestDispatchWorker:
    """Tests for DispatchWorker."""

    @respx.mock
    def test_success(self, recording_callback):
        """Should end SUCCEEDED and call on_success once."""
        respx.post(ENDPOINT).mock(return_value=httpx.Response(200))
        worker = DispatchWorker(_post_job(), recording_callback)

        assert worker.state == JobState.CREATED
        assert worker.run() is True
        assert worker.state == JobState.SUCCEEDED
        assert len(recording_callback.successes) == 1
        assert recording_callback.failures == []

    @respx.mock
    def test_failure(self, recording_callback):
        """Should end FAILED and call on_failure once."""
        respx.post(ENDPOINT).mock(return_value=httpx.Response(500))
        worker = DispatchWorker(_post_job(), recording_callback)

        assert worker.run() is False
        assert worker.state == JobState.FAILED
        assert isinstance(worker.error, TransportError)
        assert recording_callback.successes == []
        assert len(recording_callback.failures) == 1
        operation, error = recording_callback.failures[0]
        assert operation == OperationKind.ADD_TAGS
        assert error is worker.error

    @respx.mock
    def test_cannot_run_twice(self, recording_callback):
        """Should refuse to leave a terminal state."""
        respx.post(ENDPOINT).mock(return_value=httpx.Response(200))
        worker = DispatchWorker(_post_job(), recording_callback)
        worker.run()

        with pytest.raises(RuntimeError):
            worker.run()
        assert len(recording_callback.successes) == 1

    @respx.mock
    def test_callback_exception_contained(self, make_callback):
        """Should not propagate exceptions raised by the callback."""
        respx.post(ENDPOINT).mock(return_value=httpx.Response(200))

        class Exploding(make_callback):
            def on_success(self, response):
                raise RuntimeError("boom")

        worker = DispatchWorker(_post_job(), Exploding())
        assert worker.run() is True
        assert worker.state == JobState.SUCCEEDED

    @respx.mock
    def test_start_on_executor(self, recording_callback):
        """Should run on the given executor without blocking the caller."""
        respx.get(GET_URL).mock(return_value=httpx.Response(200))
        worker = DispatchWorker(_get_job(), recording_callback)

        with ThreadPoolExecutor(max_workers=1) as executor:
            future = worker.start(executor)
            assert future.result(timeout=5) is True
        assert recording_callback.called.is_set()
