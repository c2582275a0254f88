"""Dispatch jobs and the worker that executes them.

WARNING: This is an internal module used by ToucanClient.
Do not call directly from user code.
"""

from toucan_sdk._internal.dispatch.models import (
    DispatchJob,
    GetJob,
    JobState,
    PostDataType,
    PostJob,
    decode_job,
    encode_job,
    new_job_id,
)
from toucan_sdk._internal.dispatch.worker import DispatchWorker, execute_job

__all__ = [
    "DispatchWorker",
    "execute_job",
    "DispatchJob",
    "GetJob",
    "PostJob",
    "PostDataType",
    "JobState",
    "new_job_id",
    "encode_job",
    "decode_job",
]
