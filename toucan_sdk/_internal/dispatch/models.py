"""Pydantic models for dispatch jobs.

A job is one durable unit of outbound work. It is a tagged union on
``method``: ``GetJob`` carries a fully pre-encoded URL, ``PostJob`` carries
the endpoint and the signed request JSON. The same models are the persisted
envelope of a pending job, so field names are part of the on-disk format.
"""

import threading
import time
from enum import Enum
from typing import Annotated, Any, Literal

from pydantic import BaseModel, Field, TypeAdapter

from toucan_sdk.operations import OperationKind

# =============================================================================
# Constants
# =============================================================================

SCHEMA_VERSION = 1

# =============================================================================
# Job identifiers
# =============================================================================

_id_lock = threading.Lock()
_last_ns = 0


def new_job_id(operation: OperationKind) -> str:
    """Operation name plus a nanosecond timestamp.

    The timestamp part is strictly increasing within a process, so two jobs
    never share an id even when created in the same clock tick.
    """
    global _last_ns
    with _id_lock:
        now = time.time_ns()
        _last_ns = now if now > _last_ns else _last_ns + 1
        return f"{operation.value}{_last_ns}"


# =============================================================================
# Jobs
# =============================================================================


class PostDataType(str, Enum):
    """Kind of signed request a POST job carries."""

    REGISTRATION = "REGISTRATION"
    ACK = "ACK"
    TAGS = "TAGS"


class JobState(str, Enum):
    CREATED = "CREATED"
    RUNNING = "RUNNING"
    SUCCEEDED = "SUCCEEDED"
    FAILED = "FAILED"


class BaseJob(BaseModel):
    """Fields shared by every job.

    ``attempts`` and ``next_attempt_at`` only change while the job sits in
    the pending store; they drive replay backoff.
    """

    job_id: str
    operation: OperationKind
    ignore_ssl_errors: bool = False
    attempts: int = 0
    next_attempt_at: float | None = None
    created_at: float = Field(default_factory=time.time)
    schema_version: int = SCHEMA_VERSION


class GetJob(BaseJob):
    method: Literal["GET"] = "GET"
    url: str


class PostJob(BaseJob):
    method: Literal["POST"] = "POST"
    endpoint: str
    data_type: PostDataType
    payload: dict[str, Any]


DispatchJob = Annotated[GetJob | PostJob, Field(discriminator="method")]

_job_adapter: TypeAdapter[GetJob | PostJob] = TypeAdapter(DispatchJob)


def encode_job(job: GetJob | PostJob) -> bytes:
    """Stable JSON encoding of a job."""
    return job.model_dump_json().encode("utf-8")


def decode_job(raw: bytes | str) -> GetJob | PostJob:
    """Inverse of ``encode_job``; the ``method`` field selects the variant."""
    return _job_adapter.validate_json(raw)
