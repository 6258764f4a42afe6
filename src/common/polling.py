"""
Polling helpers.

Blocking waits with an injectable clock and sleep function, so callers
can be driven by a fake clock in tests.
"""

from __future__ import annotations

import logging
import threading
import time
from typing import Any, Callable, Optional, Type

from .exceptions import OperationCancelled, WaitTimeout

logger = logging.getLogger(__name__)

Clock = Callable[[], float]
Sleep = Callable[[float], None]


class Deadline:
    """
    A point in time after which a wait should give up.

    A ``None`` timeout never expires.
    """

    def __init__(self, timeout: Optional[float], clock: Clock = time.monotonic):
        self.timeout = timeout
        self._clock = clock
        self._start = clock()

    @property
    def elapsed(self) -> float:
        return self._clock() - self._start

    @property
    def expired(self) -> bool:
        if self.timeout is None:
            return False
        return self.elapsed >= self.timeout

    def remaining(self) -> Optional[float]:
        if self.timeout is None:
            return None
        return max(0.0, self.timeout - self.elapsed)


def wait_for(
    predicate: Callable[[], Any],
    timeout: float,
    interval: float = 1.0,
    clock: Clock = time.monotonic,
    sleep: Sleep = time.sleep,
    cancel: Optional[threading.Event] = None,
    error: Type[WaitTimeout] = WaitTimeout,
    description: str = "condition",
) -> Any:
    """
    Call ``predicate`` until it returns something truthy.

    The predicate is evaluated immediately, then once per ``interval``
    until ``timeout`` seconds have passed.

    Returns:
        The first truthy value returned by the predicate.

    Raises:
        error: If the timeout expires first (a ``WaitTimeout`` subclass)
        OperationCancelled: If ``cancel`` is set between attempts
    """
    deadline = Deadline(timeout, clock)
    attempt = 0

    while True:
        attempt += 1
        result = predicate()
        if result:
            logger.debug(f"{description} met after {attempt} attempt(s)")
            return result

        if deadline.expired:
            raise error(
                f"Timed out after {timeout}s waiting for {description}",
                timeout=timeout,
            )

        if cancel is not None and cancel.is_set():
            raise OperationCancelled(f"waiting for {description}")

        remaining = deadline.remaining()
        sleep(min(interval, remaining) if remaining else interval)
