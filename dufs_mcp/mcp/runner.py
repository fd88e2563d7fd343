"""
dufs-mcp Job Runner
-------------------
Executes upload jobs in the background on a bounded thread pool.

Tasks of one job run strictly in order and stop at the first failure; the
remaining tasks stay pending. Every state change goes through
``JobStore.mutate`` so pollers only ever observe whole transitions.
"""

import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from datetime import datetime
from typing import Callable

from .jobs import JobStore, TaskStatus, UploadJob, utc_now
from .uploads import Uploader, UploadError, UploadOutcome

logger = logging.getLogger("DufsMcp.mcp.runner")


class JobRunner:
    def __init__(
        self,
        store: JobStore,
        uploader: Uploader,
        max_workers: int = 4,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.store = store
        self.uploader = uploader
        self._clock = clock
        self._executor = ThreadPoolExecutor(
            max_workers=max(1, max_workers),
            thread_name_prefix="dufs-mcp-job",
        )
        self._closed = False
        self._lock = threading.Lock()

    def submit(self, job_id: str) -> Future:
        """Schedule ``job_id``; returns immediately."""
        with self._lock:
            if self._closed:
                raise RuntimeError("job runner is shut down")
            return self._executor.submit(self._run_guarded, job_id)

    def shutdown(self, wait: bool = True) -> None:
        with self._lock:
            self._closed = True
        self._executor.shutdown(wait=wait)

    def _run_guarded(self, job_id: str) -> None:
        try:
            self.run_job(job_id)
        except Exception as exc:
            logger.exception("Upload job %s crashed", job_id)
            self._fail_unfinished(job_id, f"internal error: {exc}")

    def _fail_unfinished(self, job_id: str, error: str) -> None:
        def apply(job: UploadJob) -> None:
            if job.is_terminal:
                return
            now = self._clock()
            for task in job.tasks:
                if task.status == TaskStatus.RUNNING:
                    task.mark_failed(error, None, now)
            job.mark_failed(error, now)

        try:
            self.store.mutate(job_id, apply)
        except Exception:
            logger.exception("Could not record failure for upload job %s", job_id)

    def run_job(self, job_id: str) -> None:
        """Run every task of ``job_id`` in order on the calling thread."""
        task_count = self.store.mutate(job_id, _start_job)
        logger.info("Upload job %s started (%d task(s))", job_id, task_count)

        for index in range(task_count):
            local_path, requested = self.store.mutate(
                job_id, lambda job: self._start_task(job, index)
            )
            try:
                outcome = self.uploader.upload(local_path, requested)
            except UploadError as exc:
                self.store.mutate(job_id, lambda job: self._fail_task(job, index, exc))
                logger.warning(
                    "Upload job %s failed on %s: %s", job_id, local_path, exc.message
                )
                return
            self.store.mutate(job_id, lambda job: self._finish_task(job, index, outcome))

        self.store.mutate(job_id, lambda job: job.mark_completed(self._clock()))
        logger.info("Upload job %s completed", job_id)

    def _start_task(self, job: UploadJob, index: int):
        task = job.tasks[index]
        task.mark_running(self._clock())
        return task.local_path, task.requested_remote_path

    def _finish_task(self, job: UploadJob, index: int, outcome: UploadOutcome) -> None:
        job.tasks[index].mark_succeeded(outcome.remote_path, outcome.status_code, self._clock())

    def _fail_task(self, job: UploadJob, index: int, exc: UploadError) -> None:
        now = self._clock()
        job.tasks[index].mark_failed(exc.message, exc.status_code, now, exc.remote_path)
        job.mark_failed(exc.message, now)


def _start_job(job: UploadJob) -> int:
    job.mark_running()
    return len(job.tasks)

