"""Job queue adapters: inline execution and a background thread pool."""

import uuid
import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Any, Callable, Optional

from ports.job_queue import JobQueuePort

logger = logging.getLogger(__name__)


@dataclass
class _JobRecord:
    status: str = "pending"
    result: Any = None
    error: Optional[BaseException] = None


class _TrackedJobs(JobQueuePort):
    """Shared bookkeeping; subclasses decide where the callable runs."""

    def __init__(self):
        self._jobs: dict[str, _JobRecord] = {}
        self._lock = threading.Lock()

    def _register(self, job_id: Optional[str]) -> str:
        job_id = job_id or uuid.uuid4().hex[:12]
        with self._lock:
            self._jobs[job_id] = _JobRecord()
        return job_id

    def _run(self, job_id: str, func: Callable[..., Any], args: tuple, kwargs: dict) -> None:
        with self._lock:
            self._jobs[job_id].status = "processing"
        try:
            result = func(*args, **kwargs)
        except Exception as e:
            logger.error(f"[{job_id}] job failed: {e}", exc_info=True)
            with self._lock:
                self._jobs[job_id].status = "failed"
                self._jobs[job_id].error = e
            return
        with self._lock:
            self._jobs[job_id].status = "completed"
            self._jobs[job_id].result = result

    def status(self, job_id: str) -> str:
        with self._lock:
            record = self._jobs.get(job_id)
        return record.status if record else "unknown"

    def result(self, job_id: str) -> Optional[Any]:
        with self._lock:
            record = self._jobs.get(job_id)
        return record.result if record and record.status == "completed" else None

    def error(self, job_id: str) -> Optional[BaseException]:
        with self._lock:
            record = self._jobs.get(job_id)
        return record.error if record else None


class SyncJobAdapter(_TrackedJobs):
    """Executes jobs synchronously. No queue, no background processing."""

    def submit(self, func: Callable[..., Any], *args, job_id: Optional[str] = None, **kwargs) -> str:
        job_id = self._register(job_id)
        self._run(job_id, func, args, kwargs)
        return job_id


class ThreadPoolJobAdapter(_TrackedJobs):
    """Runs each job on a worker thread; jobs are independent of each other."""

    def __init__(self, max_workers: int = 2):
        super().__init__()
        self._executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="ingest")

    def submit(self, func: Callable[..., Any], *args, job_id: Optional[str] = None, **kwargs) -> str:
        job_id = self._register(job_id)
        self._executor.submit(self._run, job_id, func, args, kwargs)
        return job_id

    def shutdown(self, wait: bool = True) -> None:
        self._executor.shutdown(wait=wait)
