"""Delivery driver: replays pending jobs once connectivity is back.

A pass enumerates the pending store once and attempts each job found at
pass start at most once. Jobs are independent; no ordering is kept between
them. A job id is claimed for the duration of its attempt, so overlapping
passes never run the same job twice at the same time.
"""

import logging
import threading
import time
from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor

from pydantic import BaseModel, Field

from toucan_sdk._internal.dispatch.models import GetJob, PostJob
from toucan_sdk._internal.dispatch.worker import DispatchWorker
from toucan_sdk._internal.http import DEFAULT_TIMEOUT
from toucan_sdk._internal.pending.store import PendingJobStore
from toucan_sdk.callbacks import CallbackRegistry, ResponseCallback
from toucan_sdk.config import DEFAULT_BACKOFF_BASE_SECONDS, DEFAULT_BACKOFF_MAX_SECONDS, DEFAULT_MAX_ATTEMPTS
from toucan_sdk.exceptions import PersistenceError

logger = logging.getLogger(__name__)


class DeliveryReport(BaseModel):
    """Outcome of one driver pass, by job id."""

    delivered: list[str] = Field(default_factory=list)
    failed: list[str] = Field(default_factory=list)
    skipped: list[str] = Field(default_factory=list)
    dead_lettered: list[str] = Field(default_factory=list)

    @property
    def attempted(self) -> list[str]:
        return self.delivered + self.failed


class CallbackRouter:
    """Routes replayed results back to whoever asked for them.

    Callbacks passed to the client live here, keyed by job id, until their job
    is delivered or dead-lettered. Jobs whose caller is gone (for example
    after a restart) fall back to the registry.
    """

    def __init__(self, registry: CallbackRegistry | None = None) -> None:
        self.registry = registry or CallbackRegistry()
        self._callbacks: dict[str, ResponseCallback] = {}
        self._lock = threading.Lock()

    def remember(self, job_id: str, callback: ResponseCallback) -> None:
        with self._lock:
            self._callbacks[job_id] = callback

    def forget(self, job_id: str) -> None:
        with self._lock:
            self._callbacks.pop(job_id, None)

    def resolve(self, job: GetJob | PostJob) -> ResponseCallback:
        with self._lock:
            callback = self._callbacks.get(job.job_id)
        return callback or self.registry.for_operation(job.operation)


def backoff_delay(attempts: int, base: float, maximum: float) -> float:
    """Seconds to wait before attempt ``attempts + 1``."""
    if attempts <= 0:
        return 0.0
    return min(maximum, base * (2 ** (attempts - 1)))


class DeliveryDriver:
    """Drains the pending store."""

    def __init__(
        self,
        store: PendingJobStore,
        *,
        router: CallbackRouter | None = None,
        api_token: str | None = None,
        timeout: float = DEFAULT_TIMEOUT,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        backoff_base_seconds: float = DEFAULT_BACKOFF_BASE_SECONDS,
        backoff_max_seconds: float = DEFAULT_BACKOFF_MAX_SECONDS,
        max_concurrency: int = 1,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._store = store
        self._router = router or CallbackRouter()
        self._api_token = api_token
        self._timeout = timeout
        self._max_attempts = max_attempts
        self._backoff_base = backoff_base_seconds
        self._backoff_max = backoff_max_seconds
        self._max_concurrency = max(1, max_concurrency)
        self._clock = clock
        self._in_flight: set[str] = set()
        self._in_flight_lock = threading.Lock()

    @property
    def in_flight(self) -> frozenset[str]:
        with self._in_flight_lock:
            return frozenset(self._in_flight)

    def _claim(self, job_id: str) -> bool:
        with self._in_flight_lock:
            if job_id in self._in_flight:
                return False
            self._in_flight.add(job_id)
            return True

    def _release(self, job_id: str) -> None:
        with self._in_flight_lock:
            self._in_flight.discard(job_id)

    def run_pass(self, now: float | None = None) -> DeliveryReport:
        """Attempt every job pending at pass start once.

        Returns after all attempted jobs finished.
        """
        now = self._clock() if now is None else now
        report = DeliveryReport()
        ready: list[GetJob | PostJob] = []

        for job_id in self._store.job_ids():
            if not self._claim(job_id):
                logger.debug("Job %s already in flight, skipping", job_id)
                report.skipped.append(job_id)
                continue

            job = self._load(job_id, report)
            if job is None:
                self._release(job_id)
                continue
            if job.next_attempt_at is not None and job.next_attempt_at > now:
                logger.debug("Job %s backing off until %s", job_id, job.next_attempt_at)
                report.skipped.append(job_id)
                self._release(job_id)
                continue
            ready.append(job)

        if not ready:
            return report

        logger.debug("Delivering %d pending job(s)", len(ready))
        if self._max_concurrency == 1 or len(ready) == 1:
            for job in ready:
                self._deliver(job, now, report)
        else:
            with ThreadPoolExecutor(
                max_workers=min(self._max_concurrency, len(ready)),
                thread_name_prefix="toucan-delivery",
            ) as pool:
                for job in ready:
                    pool.submit(self._deliver, job, now, report)

        return report

    def _load(self, job_id: str, report: DeliveryReport) -> GetJob | PostJob | None:
        try:
            return self._store.load(job_id)
        except PersistenceError as e:
            if not self._store.path_for(job_id).exists():
                # Delivered by someone else since enumeration.
                report.skipped.append(job_id)
                return None
            logger.error("Unreadable pending job %s: %s", job_id, e)
            self._store.dead_letter(job_id)
            report.dead_lettered.append(job_id)
            return None

    def _deliver(self, job: GetJob | PostJob, now: float, report: DeliveryReport) -> None:
        try:
            worker = DispatchWorker(
                job,
                self._router.resolve(job),
                api_token=self._api_token,
                timeout=self._timeout,
            )
            if worker.run():
                self._store.delete(job.job_id)
                self._router.forget(job.job_id)
                report.delivered.append(job.job_id)
                logger.info("Delivered pending job %s", job.job_id)
            else:
                self._reschedule(job, now, report)
        except Exception:
            logger.exception("Unexpected error delivering job %s", job.job_id)
        finally:
            self._release(job.job_id)

    def _reschedule(self, job: GetJob | PostJob, now: float, report: DeliveryReport) -> None:
        report.failed.append(job.job_id)
        attempts = job.attempts + 1
        if attempts >= self._max_attempts:
            logger.error("Job %s failed %d times, giving up", job.job_id, attempts)
            self._store.dead_letter(job.job_id)
            self._router.forget(job.job_id)
            report.dead_lettered.append(job.job_id)
            return

        retry_at = now + backoff_delay(attempts, self._backoff_base, self._backoff_max)
        try:
            self._store.save(job.model_copy(update={"attempts": attempts, "next_attempt_at": retry_at}))
        except PersistenceError as e:
            # The unchanged file is still on disk and will be retried without backoff.
            logger.error("Could not record attempt for job %s: %s", job.job_id, e)
