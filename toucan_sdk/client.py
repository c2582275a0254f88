"""User-facing client for the Toucan push-notification API.

Example usage:
    from toucan_sdk import ToucanClient, ToucanConfig

    config = ToucanConfig(api_token="...", app_public_key="...")
    with ToucanClient(config) as client:
        client.register_device("fcm-token", external_id=42)
        client.add_tags(["news", "sports"])

Every operation returns immediately. Signing, the connectivity check and the
API call itself run on the client's worker pool; results arrive through the
callback. When the device is offline the job is written to the pending store
and replayed by ``deliver_pending()``.
"""

import logging
import uuid
from collections.abc import Callable, Mapping
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Any

from toucan_sdk._internal.connectivity import ConnectivityProbe, tcp_probe
from toucan_sdk._internal.debug import enable_debug_logging
from toucan_sdk._internal.dispatch.models import GetJob, PostDataType, PostJob, new_job_id
from toucan_sdk._internal.dispatch.worker import DispatchWorker
from toucan_sdk._internal.pending.driver import CallbackRouter, DeliveryDriver, DeliveryReport
from toucan_sdk._internal.pending.store import PendingJobStore
from toucan_sdk._internal.prefs import (
    PREF_KEY_DEVICE_NOT_TOKEN,
    PREF_KEY_DEVICE_UNIQUEID,
    JsonFilePreferenceStore,
    PreferenceStore,
)
from toucan_sdk._internal.requests.builder import RequestBuilder
from toucan_sdk._internal.requests.models import SignedRequest
from toucan_sdk._internal.requests.signing import Digest, sha1_digest
from toucan_sdk.callbacks import CallbackRegistry, ResponseCallback
from toucan_sdk.config import DeviceInfo, ToucanConfig
from toucan_sdk.exceptions import (
    PersistenceError,
    PreconditionError,
    SigningError,
    ToucanError,
    TransportError,
)
from toucan_sdk.operations import OperationKind

logger = logging.getLogger(__name__)

JobFactory = Callable[[], GetJob | PostJob]


class ToucanClient:
    """Device-side client: registration, acknowledgements and tags.

    Args:
        config: Immutable client configuration.
        prefs: Durable key-value store for the device id and notification
            token. Defaults to a JSON file under ``config.storage_dir``.
        device_info: Description of the device. Defaults to
            ``DeviceInfo.detect()``.
        is_network_available: Connectivity probe. Defaults to a TCP probe of
            the API host.
        schedule_delivery: Hook asking the host to run ``deliver_pending()``
            soon; called after a job is queued. Best effort.
        registry: Handlers for results of replayed jobs whose callback is gone.
        digest: Digest primitive used for request signatures.
    """

    def __init__(
        self,
        config: ToucanConfig,
        *,
        prefs: PreferenceStore | None = None,
        device_info: DeviceInfo | None = None,
        is_network_available: ConnectivityProbe | None = None,
        schedule_delivery: Callable[[], Any] | None = None,
        registry: CallbackRegistry | None = None,
        digest: Digest = sha1_digest,
    ) -> None:
        if config.debug:
            enable_debug_logging()

        self._config = config
        self._prefs = prefs if prefs is not None else JsonFilePreferenceStore(config.storage_dir)
        self._is_network_available = is_network_available or tcp_probe(config.base_url)
        self._schedule_delivery = schedule_delivery

        device_id = self._prefs.get(PREF_KEY_DEVICE_UNIQUEID)
        if not device_id:
            device_id = uuid.uuid4().hex
            self._prefs.set(PREF_KEY_DEVICE_UNIQUEID, device_id)
        self._device_id = device_id
        self._notification_token = self._prefs.get(PREF_KEY_DEVICE_NOT_TOKEN)

        self._builder = RequestBuilder(
            config,
            device_id,
            device_info or DeviceInfo.detect(),
            digest=digest,
        )
        self._router = CallbackRouter(registry)
        self._store = PendingJobStore(config.pending_dir)
        self._driver = DeliveryDriver(
            self._store,
            router=self._router,
            api_token=config.api_token,
            timeout=config.timeout_seconds,
            max_attempts=config.max_attempts,
            backoff_base_seconds=config.backoff_base_seconds,
            backoff_max_seconds=config.backoff_max_seconds,
            max_concurrency=config.delivery_concurrency,
        )
        self._executor = ThreadPoolExecutor(
            max_workers=config.max_workers,
            thread_name_prefix="toucan-worker",
        )
        self._closed = False

    # =========================================================================
    # State
    # =========================================================================

    @property
    def config(self) -> ToucanConfig:
        return self._config

    @property
    def device_id(self) -> str:
        return self._device_id

    @property
    def notification_token(self) -> str | None:
        return self._notification_token

    @property
    def registry(self) -> CallbackRegistry:
        return self._router.registry

    @property
    def store(self) -> PendingJobStore:
        return self._store

    def pending_job_ids(self) -> list[str]:
        return self._store.job_ids()

    # =========================================================================
    # Registration
    # =========================================================================

    def register_device(
        self,
        notification_token: str,
        *,
        external_id: int = 0,
        external_group_id: int = 0,
        install_referral: str | None = None,
        callback: ResponseCallback | None = None,
    ) -> bool:
        """Register the device with a push notification token.

        Args:
            notification_token: Token issued by the push provider.
            external_id: Links the device to an external back-end user (>= 1).
            external_group_id: Links the device to an external group (>= 1).
            install_referral: Installation referral data, if any.
            callback: Receives the outcome.

        Returns:
            True if the operation was accepted, False otherwise.
        """
        self._notification_token = notification_token

        def build() -> PostJob:
            self._prefs.set(PREF_KEY_DEVICE_NOT_TOKEN, notification_token)
            request = self._builder.registration(
                notification_token,
                external_id=external_id,
                external_group_id=external_group_id,
                install_referral=install_referral,
            )
            return self._post_job(OperationKind.DEVICE_REGISTRATION, PostDataType.REGISTRATION, request)

        return self._submit(OperationKind.DEVICE_REGISTRATION, build, callback)

    def inform_install_referral(
        self,
        install_referral: str,
        callback: ResponseCallback | None = None,
    ) -> bool:
        """Send installation referral data for an already registered device."""
        operation = OperationKind.INFORM_REFERRAL
        token = self._require_token(operation, callback)
        if token is None:
            return False

        def build() -> PostJob:
            request = self._builder.registration(
                token,
                install_referral=install_referral,
                operation=operation,
            )
            return self._post_job(operation, PostDataType.REGISTRATION, request)

        return self._submit(operation, build, callback)

    def inform_external_ids(
        self,
        external_id: int = 0,
        external_group_id: int = 0,
        callback: ResponseCallback | None = None,
    ) -> bool:
        """Link the registered device with an external user and/or group id.

        Any non-zero id is applied, negative ones included.
        """
        operation = OperationKind.DEVICE_REGISTRATION
        token = self._require_token(operation, callback)
        if token is None:
            return False

        def build() -> PostJob:
            request = self._builder.registration(
                token,
                external_id=external_id,
                external_group_id=external_group_id,
                nonzero_ids=True,
            )
            return self._post_job(operation, PostDataType.REGISTRATION, request)

        return self._submit(operation, build, callback)

    def unregister_device(self, callback: ResponseCallback | None = None) -> bool:
        """Stop notifications from being delivered to this device."""
        return self._submit_get(OperationKind.DEVICE_UNREGISTRATION, callback)

    def enable_device(self, callback: ResponseCallback | None = None) -> bool:
        """Re-enable a previously registered device."""
        return self._submit_get(OperationKind.DEVICE_ENABLE, callback)

    # =========================================================================
    # Acknowledgements
    # =========================================================================

    def report_received(
        self,
        notification: Mapping[str, str | None],
        callback: ResponseCallback | None = None,
    ) -> bool:
        """Acknowledge that a notification was received.

        Args:
            notification: Notification payload carrying ``nId`` and ``nRef``.
            callback: Receives the outcome.
        """
        return self._submit_ack(OperationKind.ACK_RECEIVED, notification, callback)

    def report_read(
        self,
        notification: Mapping[str, str | None],
        callback: ResponseCallback | None = None,
    ) -> bool:
        """Acknowledge that a notification was read."""
        return self._submit_ack(OperationKind.ACK_READ, notification, callback)

    def _submit_ack(
        self,
        operation: OperationKind,
        notification: Mapping[str, str | None],
        callback: ResponseCallback | None,
    ) -> bool:
        token = self._require_token(operation, callback)
        if token is None:
            return False
        snapshot = dict(notification)

        def build() -> PostJob:
            request = self._builder.ack(snapshot, token, operation)
            return self._post_job(operation, PostDataType.ACK, request)

        return self._submit(operation, build, callback)

    # =========================================================================
    # Tags
    # =========================================================================

    def add_tags(self, tags: list[str], callback: ResponseCallback | None = None) -> bool:
        """Add tags to this application/device pair."""
        return self._submit_tags(OperationKind.ADD_TAGS, tags, callback)

    def remove_tags(self, tags: list[str], callback: ResponseCallback | None = None) -> bool:
        """Remove the given tags from this application/device pair."""
        return self._submit_tags(OperationKind.REMOVE_TAGS, tags, callback)

    def reset_tags(self, tags: list[str], callback: ResponseCallback | None = None) -> bool:
        """Replace all current tags with ``tags`` (an empty list clears them)."""
        return self._submit_tags(OperationKind.RESET_TAGS, tags, callback)

    def list_tags(self, callback: ResponseCallback | None = None) -> bool:
        """Fetch the tags of this application/device pair."""
        if self._require_token(OperationKind.LIST_TAGS, callback) is None:
            return False
        return self._submit_get(OperationKind.LIST_TAGS, callback)

    def _submit_tags(
        self,
        operation: OperationKind,
        tags: list[str],
        callback: ResponseCallback | None,
    ) -> bool:
        if self._require_token(operation, callback) is None:
            return False
        snapshot = list(tags)

        def build() -> PostJob:
            request = self._builder.tags(snapshot, operation)
            return self._post_job(operation, PostDataType.TAGS, request)

        return self._submit(operation, build, callback)

    # =========================================================================
    # Pending delivery
    # =========================================================================

    def deliver_pending(self) -> "Future[DeliveryReport]":
        """Run one delivery pass over the pending store on the worker pool.

        Call it when connectivity is restored, at process start, or
        periodically.
        """
        if self._closed:
            raise RuntimeError("Client is closed")
        return self._executor.submit(self._driver.run_pass)

    def close(self, wait: bool = True) -> None:
        """Stop accepting operations and wait for in-flight ones."""
        self._closed = True
        self._executor.shutdown(wait=wait)

    def __enter__(self) -> "ToucanClient":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    # =========================================================================
    # Internals
    # =========================================================================

    def _callback_for(self, operation: OperationKind, callback: ResponseCallback | None) -> ResponseCallback:
        if callback is None:
            return self._router.registry.for_operation(operation)
        return callback.bind(operation)

    def _fail(self, callback: ResponseCallback, operation: OperationKind, error: ToucanError) -> None:
        try:
            callback.on_failure(operation, error)
        except Exception:
            logger.exception("Callback for %s raised", operation.value)

    def _require_token(self, operation: OperationKind, callback: ResponseCallback | None) -> str | None:
        token = self._notification_token
        if token:
            return token
        error = PreconditionError(
            f"{operation.value.upper()} Error. Notification token not established. "
            "Please, execute 'register_device()' first."
        )
        logger.info("%s", error)
        self._fail(self._callback_for(operation, callback), operation, error)
        return None

    def _post_job(self, operation: OperationKind, data_type: PostDataType, request: SignedRequest) -> PostJob:
        return PostJob(
            job_id=new_job_id(operation),
            operation=operation,
            endpoint=self._config.endpoint(operation),
            data_type=data_type,
            payload=request.to_payload(),
            ignore_ssl_errors=self._config.ignore_ssl_errors,
        )

    def _submit_get(self, operation: OperationKind, callback: ResponseCallback | None) -> bool:
        def build() -> GetJob:
            return GetJob(
                job_id=new_job_id(operation),
                operation=operation,
                url=self._builder.get_url(operation),
                ignore_ssl_errors=self._config.ignore_ssl_errors,
            )

        return self._submit(operation, build, callback)

    def _submit(self, operation: OperationKind, build: JobFactory, callback: ResponseCallback | None) -> bool:
        bound = self._callback_for(operation, callback)
        if self._closed:
            self._fail(bound, operation, ToucanError("Client is closed"))
            return False
        try:
            self._executor.submit(self._process, operation, build, bound)
        except RuntimeError as e:
            # close() ran after the check above.
            self._fail(bound, operation, ToucanError(f"Client is closed: {e}"))
            return False
        return True

    def _process(self, operation: OperationKind, build: JobFactory, callback: ResponseCallback) -> None:
        """Sign, then dispatch or queue. Runs on the worker pool."""
        try:
            job = build()
        except SigningError as e:
            logger.error("Error doing operation %s: %s", operation.value.upper(), e)
            self._fail(callback, operation, e)
            return
        except Exception as e:
            logger.exception("Error preparing operation %s", operation.value.upper())
            self._fail(callback, operation, ToucanError(f"Could not prepare {operation.value}: {e}"))
            return

        if not self._network_available():
            self._enqueue(job, callback)
            return

        worker = DispatchWorker(
            job,
            callback,
            api_token=self._config.api_token,
            timeout=self._config.timeout_seconds,
        )
        if worker.run():
            return
        error = worker.error
        if self._config.queue_on_transport_error and isinstance(error, TransportError) and error.retryable:
            logger.info("Queueing %s after transport failure", job.job_id)
            self._enqueue(job, callback)

    def _network_available(self) -> bool:
        try:
            return bool(self._is_network_available())
        except Exception as e:
            logger.warning("Connectivity probe failed: %s", e)
            return False

    def _enqueue(self, job: GetJob | PostJob, callback: ResponseCallback) -> None:
        self._router.remember(job.job_id, callback)
        try:
            self._store.save(job)
        except PersistenceError as e:
            self._router.forget(job.job_id)
            logger.error("Operation request could not be cached, it is lost: %s", e)
            self._fail(callback, job.operation, e)
            return
        self._request_delivery()

    def _request_delivery(self) -> None:
        if self._schedule_delivery is None:
            logger.debug("No delivery scheduler configured; pending jobs wait for deliver_pending()")
            return
        try:
            self._schedule_delivery()
        except Exception as e:
            logger.warning("Could not schedule pending delivery: %s", e)
