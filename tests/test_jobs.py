import threading

from playlist_creator.errors import ErrorKind, GenerationError
from playlist_creator.jobs import JobRegistry, JobState
from playlist_creator.models import PlaylistRequest


class BlockingBackend:
    def __init__(self, outcome):
        self.outcome = outcome
        self.release = threading.Event()
        self.calls = 0

    def generate_playlist(self, token, request):
        self.calls += 1
        self.release.wait(5)
        if isinstance(self.outcome, Exception):
            raise self.outcome
        return self.outcome


def _request():
    return PlaylistRequest(duration_minutes=20, style="lofi")


def test_job_lifecycle_success(backend):
    registry = JobRegistry(backend, interval=0.05)
    try:
        job, created = registry.submit("sid", "tok", _request())
        assert created
        assert job.wait(2)
        assert job.state is JobState.SUCCEEDED
        assert job.result.name == "Chill 45"
        assert not job.ticker.active
    finally:
        registry.shutdown()


def test_failure_records_kind_and_stops_ticker():
    blocking = BlockingBackend(GenerationError.from_status(500))
    registry = JobRegistry(blocking, interval=0.01)
    try:
        job, _ = registry.submit("sid", "tok", _request())
        assert job.ticker.active
        blocking.release.set()
        assert job.wait(2)
        assert job.state is JobState.FAILED
        assert job.error_kind is ErrorKind.SERVER_FAULT
        assert not job.ticker.active
    finally:
        registry.shutdown()


def test_second_submit_while_pending_reuses_job():
    blocking = BlockingBackend(GenerationError("nope"))
    registry = JobRegistry(blocking, interval=1)
    try:
        first, created = registry.submit("sid", "tok", _request())
        second, created_again = registry.submit("sid", "tok", _request())
        assert created and not created_again
        assert first is second
        blocking.release.set()
        assert first.wait(2)
        assert blocking.calls == 1
    finally:
        registry.shutdown()


def test_sessions_are_independent(backend):
    registry = JobRegistry(backend, interval=1)
    try:
        a, _ = registry.submit("a", "tok", _request())
        b, _ = registry.submit("b", "tok", _request())
        assert a is not b
        assert registry.get("a") is a
        assert registry.get("b") is b
    finally:
        registry.shutdown()


def test_clear_finished_only_drops_completed_jobs():
    blocking = BlockingBackend(GenerationError("nope"))
    registry = JobRegistry(blocking, interval=1)
    try:
        job, _ = registry.submit("sid", "tok", _request())
        assert not registry.clear_finished("sid")
        blocking.release.set()
        assert job.wait(2)
        assert registry.clear_finished("sid")
        assert registry.get("sid") is None
        assert not registry.clear_finished("sid")
    finally:
        registry.shutdown()


def test_discarded_job_drops_late_result(backend):
    backend.release.clear()
    registry = JobRegistry(backend, interval=0.01)
    try:
        job, _ = registry.submit("sid", "tok", _request())
        registry.discard("sid")
        assert not job.ticker.active
        backend.release.set()
        assert job.wait(2)
        assert job.result is None
        assert job.state is JobState.PENDING
    finally:
        registry.shutdown()


def test_submit_after_shutdown_fails_visibly(backend):
    registry = JobRegistry(backend, interval=1)
    registry.shutdown()
    job, created = registry.submit("sid", "tok", _request())
    assert created
    assert job.state is JobState.FAILED
    assert job.error_kind is ErrorKind.OTHER_FAILURE
    assert not job.ticker.active


def test_finished_jobs_do_not_accumulate(backend):
    registry = JobRegistry(backend, interval=1, max_jobs=10)
    try:
        for i in range(30):
            job, _ = registry.submit(f"sid-{i}", "tok", _request())
            assert job.wait(2)
        assert len(registry) <= 10
        assert registry.get("sid-29") is not None
        assert registry.get("sid-0") is None
    finally:
        registry.shutdown()


def test_stale_finished_jobs_expire(backend):
    registry = JobRegistry(backend, interval=1, finished_ttl_seconds=0)
    try:
        old, _ = registry.submit("old", "tok", _request())
        assert old.wait(2)
        registry.submit("new", "tok", _request())
        assert registry.get("old") is None
        assert registry.get("new") is not None
    finally:
        registry.shutdown()


def test_pending_jobs_survive_eviction():
    blocking = BlockingBackend(GenerationError("nope"))
    registry = JobRegistry(blocking, interval=1, max_jobs=2, finished_ttl_seconds=0)
    try:
        first, _ = registry.submit("a", "tok", _request())
        registry.submit("b", "tok", _request())
        registry.submit("c", "tok", _request())
        assert registry.get("a") is first
        assert len(registry) == 3
    finally:
        blocking.release.set()
        registry.shutdown()
