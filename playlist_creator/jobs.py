from __future__ import annotations

import logging
import threading
import time
from concurrent.futures import Executor, ThreadPoolExecutor
from enum import Enum
from typing import Any, Dict, Optional, Tuple

from playlist_creator.errors import ErrorKind, PlaylistCreatorError
from playlist_creator.models import PlaylistRequest, PlaylistResult
from playlist_creator.ticker import StatusTicker


logger = logging.getLogger(__name__)

# Finished jobs nobody came back for are dropped after this long
FINISHED_JOB_TTL_SECONDS = 3600
MAX_JOBS = 1024


class JobState(str, Enum):
    PENDING = "pending"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


class GenerationJob:
    """One playlist generation request and its waiting state."""

    def __init__(self, request: PlaylistRequest, ticker: StatusTicker):
        self.request = request
        self.ticker = ticker
        self.state = JobState.PENDING
        self.result: Optional[PlaylistResult] = None
        self.error_kind: Optional[ErrorKind] = None
        self.error_message: Optional[str] = None
        self.discarded = False
        self.finished_at: Optional[float] = None
        self._lock = threading.Lock()
        self._done = threading.Event()

    @property
    def message(self) -> str:
        return self.ticker.message

    @property
    def done(self) -> bool:
        return self._done.is_set()

    def wait(self, timeout: Optional[float] = None) -> bool:
        return self._done.wait(timeout)

    def run(self, backend, token: str) -> None:
        try:
            result = backend.generate_playlist(token, self.request)
        except PlaylistCreatorError as exc:
            logger.warning("Playlist generation failed (%s): %s", exc.kind.value, exc)
            self._finish(JobState.FAILED, error_kind=exc.kind, error_message=str(exc))
        except Exception as exc:
            logger.exception("Unexpected error during playlist generation")
            self._finish(JobState.FAILED, error_kind=ErrorKind.OTHER_FAILURE, error_message=str(exc))
        else:
            logger.info("Playlist %r created", result.name)
            self._finish(JobState.SUCCEEDED, result=result)

    def fail(self, kind: ErrorKind, message: str) -> None:
        self._finish(JobState.FAILED, error_kind=kind, error_message=message)

    def discard(self) -> None:
        """Stop the waiting state; a late backend answer is dropped."""
        with self._lock:
            self.discarded = True
        self.ticker.cancel()

    def _finish(self, state: JobState, **outcome: Any) -> None:
        # The ticker stops before the outcome becomes visible
        self.ticker.cancel()
        with self._lock:
            if not self.discarded:
                self.state = state
                self.result = outcome.get("result")
                self.error_kind = outcome.get("error_kind")
                self.error_message = outcome.get("error_message")
            self.finished_at = time.monotonic()
        self._done.set()

    def snapshot(self) -> Dict[str, Any]:
        with self._lock:
            data: Dict[str, Any] = {"state": self.state.value}
            if self.state is JobState.PENDING:
                data["message"] = self.ticker.message
            elif self.state is JobState.SUCCEEDED and self.result is not None:
                data["playlist"] = {"name": self.result.name, "url": self.result.url}
            else:
                data["error_kind"] = self.error_kind.value if self.error_kind else ErrorKind.OTHER_FAILURE.value
            return data


class JobRegistry:
    """Holds at most one generation job per browser session."""

    def __init__(
        self,
        backend,
        interval: float,
        executor: Optional[Executor] = None,
        max_workers: int = 4,
        finished_ttl_seconds: float = FINISHED_JOB_TTL_SECONDS,
        max_jobs: int = MAX_JOBS,
    ):
        self.backend = backend
        self.interval = interval
        self.finished_ttl_seconds = finished_ttl_seconds
        self.max_jobs = max_jobs
        self._executor = executor or ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="playlist-job")
        self._jobs: Dict[str, GenerationJob] = {}
        self._lock = threading.Lock()

    def get(self, session_id: str) -> Optional[GenerationJob]:
        with self._lock:
            return self._jobs.get(session_id)

    def submit(self, session_id: str, token: str, request: PlaylistRequest) -> Tuple[GenerationJob, bool]:
        """Start a job unless one is already pending for this session.

        Returns ``(job, created)``.
        """
        with self._lock:
            current = self._jobs.get(session_id)
            if current is not None and current.state is JobState.PENDING:
                return current, False
            self._evict_finished()
            job = GenerationJob(request, StatusTicker(self.interval))
            self._jobs[session_id] = job
        job.ticker.start()
        try:
            self._executor.submit(job.run, self.backend, token)
        except RuntimeError as exc:
            # executor already shut down
            job.fail(ErrorKind.OTHER_FAILURE, str(exc))
        return job, True

    def __len__(self) -> int:
        with self._lock:
            return len(self._jobs)

    def _evict_finished(self) -> None:
        # caller holds self._lock; pending jobs are never evicted
        now = time.monotonic()
        finished = sorted(
            ((job.finished_at, sid) for sid, job in self._jobs.items() if job.finished_at is not None),
        )
        for finished_at, sid in finished:
            if now - finished_at >= self.finished_ttl_seconds or len(self._jobs) >= self.max_jobs:
                del self._jobs[sid]

    def clear_finished(self, session_id: str) -> bool:
        with self._lock:
            job = self._jobs.get(session_id)
            if job is None or job.state is JobState.PENDING:
                return False
            del self._jobs[session_id]
            return True

    def discard(self, session_id: str) -> None:
        with self._lock:
            job = self._jobs.pop(session_id, None)
        if job is not None:
            job.discard()

    def shutdown(self) -> None:
        with self._lock:
            jobs = list(self._jobs.values())
            self._jobs.clear()
        for job in jobs:
            job.discard()
        self._executor.shutdown(wait=False)
