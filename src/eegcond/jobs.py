"""Background execution of loading, filtering and artifact removal.

Each job runs on its own daemon thread and sends at most one message into a single-slot
queue. The caller polls the slot without blocking, typically once per UI tick. Starting
a job of a kind that is still running abandons the older job: its thread keeps running
but its result can no longer be observed.

Examples:
    runner = JobRunner()
    runner.start(JobKind.FILTER, apply_filters, data.copy(), sfreq, settings)
    ...
    outcome = runner.poll(JobKind.FILTER)
    if outcome.status is JobStatus.DELIVERED:
        install(outcome.payload)
"""

import itertools
import queue
import threading
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum, auto
from typing import Any

from ._logging import logger
from .errors import UnexpectedDisconnect


class JobKind(Enum):
    """Kinds of background work. At most one job per kind is observable at a time."""

    LOAD = auto()
    FILTER = auto()
    ARTIFACT_REMOVAL = auto()


class JobStatus(Enum):
    """Result of polling a job slot."""

    IDLE = auto()
    PENDING = auto()
    DELIVERED = auto()
    FAILED = auto()
    DISCONNECTED = auto()


@dataclass(frozen=True)
class JobOutcome:
    """What a poll observed.

    Attributes:
        status: Poll result.
        payload: Return value of the job function when ``status`` is ``DELIVERED``.
        error: Exception raised by the job function when ``status`` is ``FAILED``,
            or an :class:`UnexpectedDisconnect` when ``status`` is ``DISCONNECTED``.
        generation: Generation of the job that was polled, ``None`` when idle.
    """

    status: JobStatus
    payload: Any = None
    error: BaseException | None = None
    generation: int | None = None

    @property
    def finished(self) -> bool:
        return self.status in (JobStatus.DELIVERED, JobStatus.FAILED, JobStatus.DISCONNECTED)


@dataclass
class _Job:
    kind: JobKind
    generation: int
    thread: threading.Thread
    slot: queue.Queue


def _run(func: Callable[..., Any], args: tuple, kwargs: dict, slot: queue.Queue) -> None:
    """Thread target: run ``func`` and send exactly one tagged message on normal exit."""
    try:
        result = func(*args, **kwargs)
    except Exception as e:
        slot.put(("error", e))
    else:
        slot.put(("ok", result))


class JobRunner:
    """Runs one-shot jobs on background threads, one observable job per kind.

    The runner does not lock anything shared with the caller: job functions must receive
    private copies of their inputs. Results are applied by the caller after a poll.
    """

    def __init__(self):
        self._jobs: dict[JobKind, _Job] = {}
        self._generations = itertools.count(1)
        self._lock = threading.Lock()

    def start(self, kind: JobKind, func: Callable[..., Any], *args: Any, **kwargs: Any) -> int:
        """Spawn a thread running ``func(*args, **kwargs)`` and make it the current job of ``kind``.

        A job of the same kind that is still running is abandoned first.

        Returns:
            Generation number identifying the new job.
        """
        with self._lock:
            if kind in self._jobs:
                self._abandon_locked(kind)
            generation = next(self._generations)
            slot: queue.Queue = queue.Queue(maxsize=1)
            thread = threading.Thread(
                target=_run,
                args=(func, args, kwargs, slot),
                name=f"{kind.name.lower()}-job-{generation}",
                daemon=True,
            )
            self._jobs[kind] = _Job(kind, generation, thread, slot)
            # Started under the lock so a poll never sees a registered but unstarted thread
            thread.start()
        logger.debug(f"Started {kind.name} job (generation {generation})")
        return generation

    def abandon(self, kind: JobKind) -> bool:
        """Drop the current job of ``kind`` without stopping its thread.

        Returns:
            True if a job was abandoned, False if the kind was idle.
        """
        with self._lock:
            return self._abandon_locked(kind)

    def _abandon_locked(self, kind: JobKind) -> bool:
        job = self._jobs.pop(kind, None)
        if job is None:
            return False
        logger.info(f"Abandoned {kind.name} job (generation {job.generation}), its result will be discarded")
        return True

    def is_running(self, kind: JobKind) -> bool:
        """Whether a job of ``kind`` occupies its slot (running or finished but not yet polled)."""
        with self._lock:
            return kind in self._jobs

    def generation(self, kind: JobKind) -> int | None:
        """Generation of the current job of ``kind``, or None when idle."""
        with self._lock:
            job = self._jobs.get(kind)
            return job.generation if job else None

    def poll(self, kind: JobKind) -> JobOutcome:
        """Check the slot of ``kind`` without blocking.

        Returns:
            ``IDLE`` when no job of this kind is current, ``PENDING`` while it runs,
            otherwise the final outcome; the slot is then cleared.
        """
        with self._lock:
            job = self._jobs.get(kind)
            if job is None:
                return JobOutcome(JobStatus.IDLE)

            # A message is put before the thread ends, so check liveness first
            alive = job.thread.is_alive()
            try:
                tag, value = job.slot.get_nowait()
            except queue.Empty:
                if alive:
                    return JobOutcome(JobStatus.PENDING, generation=job.generation)
                del self._jobs[kind]
                error = UnexpectedDisconnect(f"{kind.name} job ended without delivering a result")
                return JobOutcome(JobStatus.DISCONNECTED, error=error, generation=job.generation)

            del self._jobs[kind]

        if tag == "ok":
            return JobOutcome(JobStatus.DELIVERED, payload=value, generation=job.generation)
        return JobOutcome(JobStatus.FAILED, error=value, generation=job.generation)

    def join(self, kind: JobKind, timeout: float | None = None) -> JobOutcome:
        """Block until the current job of ``kind`` finishes, then poll it.

        Meant for scripts and tests; interactive callers should use :meth:`poll`.
        """
        with self._lock:
            job = self._jobs.get(kind)
        if job is not None:
            job.thread.join(timeout)
        return self.poll(kind)
