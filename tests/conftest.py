"""Shared fixtures for the Toucan SDK tests."""

import threading

import pytest

from toucan_sdk.callbacks import ApiResponse, ResponseCallback
from toucan_sdk.config import DeviceInfo, ToucanConfig

BASE_URL = "http://toucan.test"


class RecordingCallback(ResponseCallback):
    """Callback that records every invocation."""

    def __init__(self) -> None:
        super().__init__()
        self.successes: list[ApiResponse] = []
        self.failures: list[tuple] = []
        self.called = threading.Event()

    def on_success(self, response):
        self.successes.append(response)
        self.called.set()

    def on_failure(self, operation, error):
        self.failures.append((operation, error))
        self.called.set()


@pytest.fixture
def config(tmp_path):
    return ToucanConfig(
        api_token="AT",
        app_public_key="PK",
        base_url=BASE_URL,
        storage_dir=tmp_path,
        backoff_base_seconds=10.0,
        backoff_max_seconds=100.0,
        max_attempts=3,
    )


@pytest.fixture
def device_info():
    return DeviceInfo(
        app_version=7,
        os_info="Python 3.12 - (Linux 6.1)",
        device_extra="x86_64",
        locale="en",
        resolution_type="NORMAL",
    )


@pytest.fixture
def recording_callback():
    return RecordingCallback()


@pytest.fixture
def make_callback():
    return RecordingCallback
