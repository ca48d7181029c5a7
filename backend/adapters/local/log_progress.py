"""LogProgressAdapter — reports pipeline stages through the logging module."""

import logging
from typing import Optional

from ports.progress import ProgressPort

logger = logging.getLogger(__name__)


class LogProgressAdapter(ProgressPort):
    def report(
        self,
        job_id: str,
        stage: str,
        progress: float = 0.0,
        detail: Optional[str] = None,
    ) -> None:
        parts = [f"[{job_id}] stage={stage}"]
        if progress > 0:
            parts.append(f"{progress:.0%}")
        if detail:
            parts.append(f"({detail})")
        logger.info(" ".join(parts))
