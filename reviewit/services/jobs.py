"""Background jobs: each runs in its own daemon thread.

Callers get a Job handle back right away and never have to wait on it. The
supervisor keeps the outcome (result or error) on the handle and logs every
job that ends with an exception, so failures do not vanish silently.
"""

import logging
import threading
from typing import Any, Callable

LOG = logging.getLogger("reviewit.services.jobs")


class Job:
    """Handle on one background job."""

    def __init__(self, name: str) -> None:
        self.name = name
        self.result: Any = None
        self.error: BaseException | None = None
        self._done = threading.Event()

    @property
    def done(self) -> bool:
        return self._done.is_set()

    @property
    def failed(self) -> bool:
        return self.error is not None

    def wait(self, timeout: float | None = None) -> bool:
        """Block until the job finished. Returns False on timeout."""
        return self._done.wait(timeout)

    def _finish(self, result: Any = None, error: BaseException | None = None) -> None:
        self.result = result
        self.error = error
        self._done.set()


class JobSupervisor:
    """Starts jobs and observes how they end."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._jobs: list[Job] = []

    def spawn(self, name: str, target: Callable[..., Any], *args: Any) -> Job:
        """Run target(*args) in a daemon thread and return its Job."""
        job = Job(name)
        with self._lock:
            self._jobs.append(job)
        thread = threading.Thread(target=self._run, args=(job, target, args), name=name, daemon=True)
        thread.start()
        return job

    def _run(self, job: Job, target: Callable[..., Any], args: tuple) -> None:
        LOG.debug("Job %s started", job.name)
        try:
            result = target(*args)
        except Exception as e:
            LOG.exception("Job %s failed: %s", job.name, e)
            job._finish(error=e)
        else:
            LOG.debug("Job %s finished: %s", job.name, result)
            job._finish(result=result)
        finally:
            with self._lock:
                if job in self._jobs:
                    self._jobs.remove(job)

    def running(self) -> list[Job]:
        """Jobs that have not finished yet."""
        with self._lock:
            return list(self._jobs)

    def wait_all(self, timeout: float | None = None) -> bool:
        """Wait for every running job; used on shutdown and in tests."""
        return all(job.wait(timeout) for job in self.running())
