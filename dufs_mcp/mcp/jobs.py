"""
Background upload jobs and the store that owns them.

A job is an ordered batch of upload tasks. The store hands out deep copies
to readers and applies every write through ``mutate`` under the job's own
lock, so a poller never sees a half-applied transition and writers of
different jobs never wait on each other.
"""

import itertools
import logging
import threading
import time
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple, TypeVar

from pydantic import BaseModel, Field

logger = logging.getLogger("DufsMcp.mcp.jobs")

T = TypeVar("T")


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class TaskStatus(str, Enum):
    PENDING = "pending"
    RUNNING = "running"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


class JobStatus(str, Enum):
    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"


TASK_TERMINAL_STATUSES = {TaskStatus.SUCCEEDED, TaskStatus.FAILED}
JOB_TERMINAL_STATUSES = {JobStatus.COMPLETED, JobStatus.FAILED}


class JobNotFoundError(LookupError):
    def __init__(self, job_id: str):
        super().__init__(f"job {job_id} not found")
        self.job_id = job_id


class InvalidTransitionError(RuntimeError):
    """Raised when a status change would move a job or task backwards."""


class UploadTask(BaseModel):
    local_path: str
    requested_remote_path: Optional[str] = None
    resolved_remote_path: Optional[str] = None
    status: TaskStatus = TaskStatus.PENDING
    message: Optional[str] = None
    error: Optional[str] = None
    http_status: Optional[int] = None
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None

    def _require(self, expected: TaskStatus, target: TaskStatus) -> None:
        if self.status != expected:
            raise InvalidTransitionError(
                f"task {self.local_path!r} cannot move from {self.status.value} to {target.value}"
            )

    def mark_running(self, now: datetime) -> None:
        self._require(TaskStatus.PENDING, TaskStatus.RUNNING)
        self.status = TaskStatus.RUNNING
        self.started_at = now

    def mark_succeeded(self, resolved_remote_path: str, http_status: int, now: datetime) -> None:
        self._require(TaskStatus.RUNNING, TaskStatus.SUCCEEDED)
        self.status = TaskStatus.SUCCEEDED
        self.resolved_remote_path = resolved_remote_path
        self.message = f"uploaded to {resolved_remote_path}"
        self.http_status = http_status
        self.completed_at = now

    def mark_failed(
        self,
        error: str,
        http_status: Optional[int],
        now: datetime,
        resolved_remote_path: Optional[str] = None,
    ) -> None:
        self._require(TaskStatus.RUNNING, TaskStatus.FAILED)
        self.status = TaskStatus.FAILED
        self.error = error
        self.http_status = http_status
        if resolved_remote_path:
            self.resolved_remote_path = resolved_remote_path
        self.completed_at = now


class UploadJob(BaseModel):
    id: str
    status: JobStatus = JobStatus.PENDING
    error: Optional[str] = None
    created_at: datetime = Field(default_factory=utc_now)
    completed_at: Optional[datetime] = None
    tasks: List[UploadTask] = Field(default_factory=list)

    @property
    def is_terminal(self) -> bool:
        return self.status in JOB_TERMINAL_STATUSES

    def _require_open(self, target: JobStatus) -> None:
        if self.is_terminal:
            raise InvalidTransitionError(
                f"job {self.id} cannot move from {self.status.value} to {target.value}"
            )

    def mark_running(self) -> None:
        self._require_open(JobStatus.RUNNING)
        self.status = JobStatus.RUNNING

    def mark_completed(self, now: datetime) -> None:
        self._require_open(JobStatus.COMPLETED)
        unfinished = [t.local_path for t in self.tasks if t.status != TaskStatus.SUCCEEDED]
        if unfinished:
            raise InvalidTransitionError(
                f"job {self.id} cannot complete with unfinished tasks: {unfinished}"
            )
        self.status = JobStatus.COMPLETED
        self.completed_at = now

    def mark_failed(self, error: str, now: datetime) -> None:
        self._require_open(JobStatus.FAILED)
        self.status = JobStatus.FAILED
        if self.error is None:
            self.error = error
        self.completed_at = now

    def to_public(self) -> Dict[str, Any]:
        return self.model_dump(mode="json")


class _JobEntry:
    __slots__ = ("job", "lock")

    def __init__(self, job: UploadJob):
        self.job = job
        self.lock = threading.Lock()


class JobStore:
    """
    Process-local registry of upload jobs.

    Locking: ``_registry_lock`` guards only the id -> entry map; each entry
    carries its own lock for reads and writes of that job. The only nesting
    is registry -> entry (during eviction), never the reverse.
    """

    def __init__(self, max_retained: int = 0, clock: Callable[[], datetime] = utc_now):
        self.max_retained = max(0, int(max_retained))
        self._clock = clock
        self._entries: Dict[str, _JobEntry] = {}
        self._registry_lock = threading.Lock()
        self._sequence = itertools.count(1)

    def __len__(self) -> int:
        with self._registry_lock:
            return len(self._entries)

    def count(self) -> int:
        return len(self)

    def ids(self) -> Tuple[str, ...]:
        with self._registry_lock:
            return tuple(self._entries)

    def _next_job_id_locked(self) -> str:
        # The sequence alone guarantees uniqueness within the process; the
        # timestamp keeps ids distinct across restarts.
        return f"job-{time.time_ns()}-{next(self._sequence)}"

    def create(self, tasks: Iterable[UploadTask]) -> str:
        job_tasks = [task.model_copy(deep=True) for task in tasks]
        for task in job_tasks:
            if task.status != TaskStatus.PENDING:
                raise ValueError(f"new job tasks must be pending, got {task.status.value}")
        with self._registry_lock:
            job_id = self._next_job_id_locked()
            job = UploadJob(id=job_id, created_at=self._clock(), tasks=job_tasks)
            self._entries[job_id] = _JobEntry(job)
            self._evict_locked()
        logger.info("Accepted upload job %s with %d task(s)", job_id, len(job_tasks))
        return job_id

    def _entry(self, job_id: str) -> _JobEntry:
        with self._registry_lock:
            entry = self._entries.get(job_id)
        if entry is None:
            raise JobNotFoundError(job_id)
        return entry

    def get(self, job_id: str) -> UploadJob:
        """Return an isolated snapshot of the job."""
        entry = self._entry(job_id)
        with entry.lock:
            return entry.job.model_copy(deep=True)

    def mutate(self, job_id: str, fn: Callable[[UploadJob], T]) -> T:
        """
        Apply ``fn`` to the job under its lock.

        ``fn`` works on a private copy that replaces the stored job only if it
        returns normally, so a failed transition leaves no partial state.
        """
        entry = self._entry(job_id)
        with entry.lock:
            working = entry.job.model_copy(deep=True)
            result = fn(working)
            entry.job = working
            return result

    def _evict_locked(self) -> None:
        if not self.max_retained or len(self._entries) <= self.max_retained:
            return
        finished: List[Tuple[datetime, str]] = []
        for job_id, entry in self._entries.items():
            with entry.lock:
                job = entry.job
                if job.is_terminal:
                    finished.append((job.completed_at or job.created_at, job_id))
        finished.sort()
        for _, job_id in finished:
            if len(self._entries) <= self.max_retained:
                break
            self._entries.pop(job_id, None)
            logger.debug("Evicted finished upload job %s", job_id)
