"""Dispatch worker: executes exactly one Toucan API call."""

import logging
import threading
from concurrent.futures import Executor, Future

import httpx

from toucan_sdk._internal.dispatch.models import GetJob, JobState, PostJob
from toucan_sdk._internal.http import DEFAULT_TIMEOUT, create_http_client
from toucan_sdk._internal.redaction import redact_payload
from toucan_sdk.callbacks import ApiResponse, ResponseCallback
from toucan_sdk.exceptions import ToucanError, TransportError

logger = logging.getLogger(__name__)


def execute_job(
    job: GetJob | PostJob,
    *,
    api_token: str | None = None,
    timeout: float = DEFAULT_TIMEOUT,
) -> ApiResponse:
    """Perform the network call a job describes.

    Returns:
        The API response for any 2xx status.

    Raises:
        TransportError: On connection/TLS/timeout errors (retryable), 5xx
            (retryable) or any other non-2xx status.
    """
    try:
        with create_http_client(
            timeout=timeout,
            verify=not job.ignore_ssl_errors,
            api_token=api_token,
        ) as client:
            if isinstance(job, GetJob):
                logger.debug("GET %s (%s)", job.operation.value, job.job_id)
                response = client.get(job.url)
            else:
                logger.debug(
                    "POST %s (%s): %s",
                    job.operation.value,
                    job.job_id,
                    redact_payload(job.payload),
                )
                response = client.post(
                    job.endpoint,
                    json=job.payload,
                    headers={"Content-Type": "application/json"},
                )
    except httpx.TimeoutException as e:
        raise TransportError(f"{job.operation.value} timed out: {e}", retryable=True) from e
    except httpx.HTTPError as e:
        raise TransportError(f"{job.operation.value} transport error: {e}", retryable=True) from e

    if not 200 <= response.status_code < 300:
        raise TransportError(
            f"{job.operation.value} failed with status {response.status_code}",
            status_code=response.status_code,
            retryable=response.status_code >= 500,
        )

    try:
        data = response.json()
    except ValueError:
        data = None

    return ApiResponse(
        operation=job.operation,
        job_id=job.job_id,
        status_code=response.status_code,
        body=response.text,
        data=data,
    )


class DispatchWorker:
    """Runs one job and reports the outcome to its callback exactly once.

    State machine: CREATED -> RUNNING -> SUCCEEDED | FAILED (terminal).
    """

    def __init__(
        self,
        job: GetJob | PostJob,
        callback: ResponseCallback,
        *,
        api_token: str | None = None,
        timeout: float = DEFAULT_TIMEOUT,
    ) -> None:
        self.job = job
        self.callback = callback
        self.response: ApiResponse | None = None
        self.error: ToucanError | None = None
        self._api_token = api_token
        self._timeout = timeout
        self._state = JobState.CREATED
        self._lock = threading.Lock()

    @property
    def job_id(self) -> str:
        return self.job.job_id

    @property
    def state(self) -> JobState:
        return self._state

    def _transition(self, expected: JobState, new: JobState) -> None:
        with self._lock:
            if self._state is not expected:
                raise RuntimeError(
                    f"Worker {self.job_id} cannot go {self._state.value} -> {new.value}"
                )
            self._state = new

    def start(self, executor: Executor) -> "Future[bool]":
        """Run on ``executor``; the caller does not wait."""
        return executor.submit(self.run)

    def run(self) -> bool:
        """Execute the job on the current thread.

        Returns:
            True if the call succeeded, False otherwise.
        """
        self._transition(JobState.CREATED, JobState.RUNNING)
        try:
            self.response = execute_job(self.job, api_token=self._api_token, timeout=self._timeout)
        except ToucanError as e:
            self.error = e
        except Exception as e:
            self.error = TransportError(f"{self.job.operation.value} error: {e}")

        if self.error is None:
            self._transition(JobState.RUNNING, JobState.SUCCEEDED)
            logger.debug("%s succeeded (%s)", self.job.operation.value, self.job_id)
        else:
            self._transition(JobState.RUNNING, JobState.FAILED)
            logger.debug("%s failed (%s): %s", self.job.operation.value, self.job_id, self.error)

        self._notify()
        return self.error is None

    def _notify(self) -> None:
        try:
            if self.response is not None:
                self.callback.on_success(self.response)
            else:
                self.callback.on_failure(self.job.operation, self.error)  # type: ignore[arg-type]
        except Exception:
            logger.exception("Callback for %s (%s) raised", self.job.operation.value, self.job_id)
