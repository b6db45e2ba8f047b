"""Per-call cancellation and deadline carrier.

An :class:`ExecutionContext` is threaded through every runtime call and
readiness wait of one ``run``/``info``/``terminate`` call. It is built
fresh per call from execution options and never persisted.
"""

import asyncio
import time
from dataclasses import dataclass, field
from typing import Awaitable, Callable, Optional, TypeVar

from ..models.errors import DeadlineExceededError, ExecutionCancelledError

T = TypeVar("T")


@dataclass
class ExecutionContext:
    """Cancellation/deadline signal for one pipeline call.

    Args:
        timeout: Seconds from construction until the deadline, or None
        cancel_event: Event that aborts in-flight work when set
    """

    timeout: Optional[float] = None
    cancel_event: Optional[asyncio.Event] = None
    deadline: Optional[float] = field(default=None, init=False)

    def __post_init__(self):
        if self.timeout is not None:
            if self.timeout < 0:
                raise ValueError("timeout must be non-negative")
            self.deadline = time.monotonic() + self.timeout

    @property
    def cancelled(self) -> bool:
        return self.cancel_event is not None and self.cancel_event.is_set()

    def cancel(self) -> None:
        """Abort work bound to this context."""
        if self.cancel_event is None:
            self.cancel_event = asyncio.Event()
        self.cancel_event.set()

    def remaining(self) -> Optional[float]:
        """Seconds left until the deadline, None when there is none."""
        if self.deadline is None:
            return None
        return max(0.0, self.deadline - time.monotonic())

    def check(self) -> None:
        """Raise if the context is already cancelled or past its deadline."""
        if self.cancelled:
            raise ExecutionCancelledError()
        remaining = self.remaining()
        if remaining is not None and remaining <= 0:
            raise DeadlineExceededError()

    async def bound(self, awaitable: Awaitable[T]) -> T:
        """Await ``awaitable`` unless the context is cancelled or expires first.

        The in-flight work is cancelled when the context fires.

        Raises:
            ExecutionCancelledError: Cancel event set before completion
            DeadlineExceededError: Deadline passed before completion
        """
        try:
            self.check()
        except ExecutionCancelledError:
            if asyncio.iscoroutine(awaitable):
                awaitable.close()
            raise

        if self.cancel_event is None and self.deadline is None:
            return await awaitable

        work = asyncio.ensure_future(awaitable)
        waiters = {work}
        cancel_waiter = None
        if self.cancel_event is not None:
            cancel_waiter = asyncio.ensure_future(self.cancel_event.wait())
            waiters.add(cancel_waiter)

        try:
            done, _ = await asyncio.wait(
                waiters, timeout=self.remaining(), return_when=asyncio.FIRST_COMPLETED
            )
        finally:
            if cancel_waiter is not None:
                cancel_waiter.cancel()
            if not work.done():
                work.cancel()

        if work in done:
            return work.result()
        if cancel_waiter is not None and cancel_waiter in done:
            raise ExecutionCancelledError()
        raise DeadlineExceededError()


ExecutionOption = Callable[["ExecutionConfiguration"], None]


@dataclass
class ExecutionConfiguration:
    """Per-call options; currently only the execution context."""

    context: ExecutionContext = field(default_factory=ExecutionContext)

    @classmethod
    def build(cls, *options: ExecutionOption) -> "ExecutionConfiguration":
        """Apply ``options`` in call order to a fresh default configuration."""
        conf = cls()
        for option in options:
            option(conf)
        return conf


def with_context(ctx: ExecutionContext) -> ExecutionOption:
    """Use ``ctx`` as the call's cancellation/deadline context."""

    def option(conf: ExecutionConfiguration) -> None:
        conf.context = ctx

    return option


def with_timeout(seconds: float) -> ExecutionOption:
    """Give the call a deadline ``seconds`` from now."""

    def option(conf: ExecutionConfiguration) -> None:
        conf.context = ExecutionContext(
            timeout=seconds, cancel_event=conf.context.cancel_event
        )

    return option


def with_cancel_event(event: asyncio.Event) -> ExecutionOption:
    """Abort the call when ``event`` is set."""

    def option(conf: ExecutionConfiguration) -> None:
        ctx = ExecutionContext(cancel_event=event)
        ctx.deadline = conf.context.deadline
        conf.context = ctx

    return option
