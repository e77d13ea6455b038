"""Job slots: one visible job state per purpose, with stale-result rejection.

Starting a job bumps the slot's generation and replaces its state.  A job
that was superseded keeps running but everything it reports (log lines,
final result) carries its old generation and is dropped by the slot.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Generic, TypeVar, Union

from tzmeta.core.errors import TzmetaError

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class JobIdle:
    generation: int = 0


@dataclass(frozen=True)
class JobInProgress:
    generation: int
    log: tuple[str, ...] = ()


@dataclass(frozen=True)
class JobDone(Generic[T]):
    generation: int
    value: T | None = None
    error: str | None = None
    log: tuple[str, ...] = ()

    @property
    def ok(self) -> bool:
        return self.error is None


JobState = Union[JobIdle, JobInProgress, JobDone[T]]


class JobFailed(TzmetaError):
    """Raised by job work to end the job with a human-readable error."""


class JobSlot(Generic[T]):
    def __init__(self, name: str) -> None:
        self.name = name
        self._generation = 0
        self.state: JobState[T] = JobIdle()

    @property
    def generation(self) -> int:
        return self._generation

    def is_current(self, generation: int) -> bool:
        return generation == self._generation

    def start(self) -> int:
        self._generation += 1
        self.state = JobInProgress(self._generation)
        return self._generation

    def append_log(self, generation: int, line: str) -> None:
        if not self.is_current(generation):
            logger.debug("Slot %s: dropping log line from stale job %d", self.name, generation)
            return
        if isinstance(self.state, JobInProgress):
            self.state = JobInProgress(generation, (*self.state.log, line))

    def finish(self, outcome: JobDone[T]) -> bool:
        """Record ``outcome`` unless a newer job took over the slot."""
        if not self.is_current(outcome.generation):
            logger.debug("Slot %s: discarding stale result of job %d", self.name, outcome.generation)
            return False
        self.state = outcome
        return True

    async def run(self, work: Callable[[Callable[[str], None]], Awaitable[T]]) -> JobDone[T]:
        """Run ``work`` as the slot's new job and return its own outcome.

        ``work`` receives a log function.  Library errors end the job with
        their message; unexpected errors are logged with their traceback.
        """
        generation = self.start()
        lines: list[str] = []

        def _log(line: str) -> None:
            lines.append(line)
            self.append_log(generation, line)

        try:
            value = await work(_log)
        except TzmetaError as e:
            outcome: JobDone[T] = JobDone(generation, error=str(e), log=tuple(lines))
        except Exception as e:
            logger.exception("Slot %s: job %d crashed", self.name, generation)
            outcome = JobDone(generation, error=f"{type(e).__name__}: {e}", log=tuple(lines))
        else:
            outcome = JobDone(generation, value=value, log=tuple(lines))
        self.finish(outcome)
        return outcome
