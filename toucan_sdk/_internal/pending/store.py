"""Durable store of jobs that could not be dispatched immediately.

One file per job, named ``<prefix><job_id>``. The directory is the only
record of pending work; nothing is cached in memory. Writes go through a
temporary file and ``os.replace`` so a reader never sees a partial job.
"""

import logging
import os
import tempfile
from pathlib import Path

from pydantic import ValidationError

from toucan_sdk._internal.dispatch.models import GetJob, PostJob, decode_job, encode_job
from toucan_sdk.exceptions import PersistenceError

logger = logging.getLogger(__name__)

CACHED_REQUEST_FILE_PREFIX = "toucan_client_pending_request_"
DEAD_REQUEST_FILE_PREFIX = "toucan_client_dead_request_"
_TMP_PREFIX = ".tmp-"


class PendingJobStore:
    """File-per-job persistence for dispatch jobs."""

    def __init__(self, directory: Path) -> None:
        self._directory = Path(directory)

    @property
    def directory(self) -> Path:
        return self._directory

    def path_for(self, job_id: str) -> Path:
        return self._directory / f"{CACHED_REQUEST_FILE_PREFIX}{job_id}"

    def save(self, job: GetJob | PostJob) -> Path:
        """Persist (or overwrite) a job.

        Raises:
            PersistenceError: If the job could not be encoded or written.
        """
        path = self.path_for(job.job_id)
        try:
            data = encode_job(job)
            self._directory.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(prefix=_TMP_PREFIX, dir=self._directory)
            try:
                with os.fdopen(fd, "wb") as fh:
                    fh.write(data)
                    fh.flush()
                    os.fsync(fh.fileno())
                os.replace(tmp_name, path)
            except BaseException:
                Path(tmp_name).unlink(missing_ok=True)
                raise
        except (OSError, ValueError) as e:
            raise PersistenceError(f"Could not persist job {job.job_id}: {e}") from e

        logger.info("Saved pending operation request to disk (%s/%s)", job.operation.value, job.job_id)
        return path

    def load(self, job_id: str) -> GetJob | PostJob:
        """Read a pending job back.

        Raises:
            PersistenceError: If the file is missing or does not decode.
        """
        try:
            raw = self.path_for(job_id).read_bytes()
            return decode_job(raw)
        except (OSError, ValidationError) as e:
            raise PersistenceError(f"Could not load job {job_id}: {e}") from e

    def delete(self, job_id: str) -> bool:
        """Remove a job. Returns False if it was already gone."""
        try:
            self.path_for(job_id).unlink()
        except FileNotFoundError:
            return False
        return True

    def job_ids(self) -> list[str]:
        """Ids of every pending job currently on disk."""
        if not self._directory.is_dir():
            return []
        return sorted(
            entry.name[len(CACHED_REQUEST_FILE_PREFIX):]
            for entry in self._directory.iterdir()
            if entry.is_file() and entry.name.startswith(CACHED_REQUEST_FILE_PREFIX)
        )

    def dead_letter(self, job_id: str) -> Path | None:
        """Move a job out of the pending set, keeping it for inspection."""
        target = self._directory / f"{DEAD_REQUEST_FILE_PREFIX}{job_id}"
        try:
            os.replace(self.path_for(job_id), target)
        except FileNotFoundError:
            return None
        logger.warning("Moved pending job %s to %s", job_id, target.name)
        return target

    def dead_job_ids(self) -> list[str]:
        if not self._directory.is_dir():
            return []
        return sorted(
            entry.name[len(DEAD_REQUEST_FILE_PREFIX):]
            for entry in self._directory.iterdir()
            if entry.name.startswith(DEAD_REQUEST_FILE_PREFIX)
        )
