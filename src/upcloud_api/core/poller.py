"""
UpCloud API - Resource State Poller

This module waits for an asynchronous provider operation to settle by
repeatedly fetching a resource until a predicate holds, the resource
disappears, or a deadline elapses. The result is a tagged outcome, never a
stale snapshot.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Generic, Optional, TypeVar, Union

from .exceptions import (
    ApplicationError,
    ParseError,
    PollCancelledError,
    PollTimeoutError,
    ResourceDisappearedError,
    TransportError,
    ValidationError,
)

logger = logging.getLogger("upcloud-api")

T = TypeVar("T")


@dataclass(frozen=True)
class Reached(Generic[T]):
    """The predicate held on the returned snapshot."""

    snapshot: T
    attempts: int
    elapsed: float

    def unwrap(self) -> T:
        return self.snapshot


@dataclass(frozen=True)
class Disappeared:
    """The fetch accessor reported that the resource no longer exists."""

    attempts: int
    elapsed: float
    description: str = "resource"

    def unwrap(self):
        raise ResourceDisappearedError(
            f"{self.description} disappeared while waiting",
            context={"attempts": self.attempts, "elapsed": round(self.elapsed, 3)},
        )


@dataclass(frozen=True)
class TimedOut:
    """The deadline elapsed before the predicate held."""

    attempts: int
    elapsed: float
    timeout: float
    description: str = "resource"
    last_snapshot: Any = None
    last_error: Optional[Exception] = field(default=None, compare=False)

    def unwrap(self):
        raise PollTimeoutError(
            f"{self.description} did not reach the wanted state within {self.timeout}s",
            context={
                "attempts": self.attempts,
                "elapsed": round(self.elapsed, 3),
                "last_error": str(self.last_error) if self.last_error else None,
            },
        )


PollOutcome = Union[Reached, Disappeared, TimedOut]


def is_transient_error(error: Exception) -> bool:
    """Errors that mean "not known yet" rather than "will never succeed"."""
    if isinstance(error, (TransportError, ParseError)):
        return True
    if isinstance(error, ApplicationError):
        return error.status_code == 429 or error.status_code >= 500
    return False


async def _sleep(delay: float, cancel_event: Optional[asyncio.Event]) -> None:
    if cancel_event is None:
        await asyncio.sleep(delay)
        return
    try:
        await asyncio.wait_for(cancel_event.wait(), timeout=delay)
    except asyncio.TimeoutError:
        return


def _check_cancelled(cancel_event: Optional[asyncio.Event], description: str, attempts: int) -> None:
    if cancel_event is not None and cancel_event.is_set():
        logger.info(f"Polling {description} cancelled after {attempts} attempt(s)")
        raise PollCancelledError(
            f"Polling {description} was cancelled",
            context={"attempts": attempts},
        )


async def poll_until(
    fetch: Callable[[], Awaitable[Optional[T]]],
    predicate: Callable[[T], bool],
    *,
    timeout: float,
    poll_interval: float,
    description: str = "resource",
    cancel_event: Optional[asyncio.Event] = None,
    is_transient: Callable[[Exception], bool] = is_transient_error,
) -> PollOutcome:
    """Poll a resource until a predicate holds, it disappears, or time runs out.

    Returns within timeout + poll_interval + one fetch latency.

    Args:
        fetch: Async accessor returning the current snapshot, or None if the
            resource no longer exists
        predicate: Terminal condition evaluated on each snapshot
        timeout: Maximum seconds to keep polling
        poll_interval: Seconds to wait between unsuccessful attempts, must be > 0
        description: Human readable name of the polled resource for logs/errors
        cancel_event: Optional event; once set polling stops with PollCancelledError
        is_transient: Decides which fetch errors are retried until the deadline

    Returns:
        Reached(snapshot), Disappeared or TimedOut

    Raises:
        ValidationError: If poll_interval is not positive or timeout is negative
        PollCancelledError: If cancel_event was set
        Exception: Any fetch error that is not transient
    """
    if poll_interval <= 0:
        raise ValidationError(
            f"poll_interval must be greater than zero, got {poll_interval}",
            context={"poll_interval": poll_interval},
        )
    if timeout < 0:
        raise ValidationError(
            f"timeout must not be negative, got {timeout}",
            context={"timeout": timeout},
        )

    loop = asyncio.get_running_loop()
    started = loop.time()
    attempts = 0
    last_snapshot = None
    last_error = None

    while True:
        _check_cancelled(cancel_event, description, attempts)
        attempts += 1

        try:
            snapshot = await fetch()
        except Exception as e:
            if not is_transient(e):
                raise
            last_error = e
            logger.info(f"Attempt {attempts} to read {description} failed, will retry: {e!s}")
        else:
            if snapshot is None:
                elapsed = loop.time() - started
                logger.warning(f"{description} disappeared after {attempts} attempt(s)")
                return Disappeared(attempts=attempts, elapsed=elapsed, description=description)

            last_snapshot = snapshot
            if predicate(snapshot):
                elapsed = loop.time() - started
                logger.info(f"{description} reached wanted state after {attempts} attempt(s)")
                return Reached(snapshot=snapshot, attempts=attempts, elapsed=elapsed)

            logger.debug(f"{description} not in wanted state yet (attempt {attempts})")

        elapsed = loop.time() - started
        remaining = timeout - elapsed
        if remaining <= 0:
            logger.warning(f"Timed out after {elapsed:.1f}s waiting for {description}")
            return TimedOut(
                attempts=attempts,
                elapsed=elapsed,
                timeout=timeout,
                description=description,
                last_snapshot=last_snapshot,
                last_error=last_error,
            )

        await _sleep(min(poll_interval, remaining), cancel_event)


def state_is(*states: str) -> Callable[[Any], bool]:
    """Predicate matching snapshots whose state is one of the given values."""
    wanted = frozenset(states)

    def predicate(snapshot: Any) -> bool:
        return getattr(snapshot, "state", None) in wanted

    return predicate
