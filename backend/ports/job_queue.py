"""JobQueuePort — abstract interface for background job submission and tracking."""

from abc import ABC, abstractmethod
from typing import Any, Callable, Optional


class JobQueuePort(ABC):
    @abstractmethod
    def submit(self, func: Callable[..., Any], *args, job_id: Optional[str] = None, **kwargs) -> str:
        """Submit a callable for execution. Returns job ID."""

    @abstractmethod
    def status(self, job_id: str) -> str:
        """Return job status: 'pending', 'processing', 'completed', 'failed' or 'unknown'."""

    @abstractmethod
    def result(self, job_id: str) -> Optional[Any]:
        """Return job result if completed, None otherwise."""

    @abstractmethod
    def error(self, job_id: str) -> Optional[BaseException]:
        """Return the exception a failed job raised, None otherwise."""
