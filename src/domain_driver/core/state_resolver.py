"""
State Resolver

Reports a domain's state, waiting out the transient shutting-down state
so callers always get a settled answer.
"""

from __future__ import annotations

import logging
import threading
import time
from typing import Optional

from common.exceptions import OperationCancelled, StateWaitTimeout
from common.polling import Clock, Deadline, Sleep

from .constants import STATE_POLL_INTERVAL
from .hypervisor import DomainState
from .locator import DomainLocator, LookupStatus

logger = logging.getLogger(__name__)


class StateResolver:
    """
    Polls a domain until its state is stable.

    Every poll issues a fresh lookup. Waiting is unbounded unless the
    caller passes a ``timeout`` or a ``cancel`` event.
    """

    def __init__(
        self,
        locator: DomainLocator,
        interval: float = STATE_POLL_INTERVAL,
        sleep: Sleep = time.sleep,
        clock: Clock = time.monotonic,
    ):
        self._locator = locator
        self._interval = interval
        self._sleep = sleep
        self._clock = clock

    def resolve_state(
        self,
        domain_id: str,
        timeout: Optional[float] = None,
        cancel: Optional[threading.Event] = None,
        name: Optional[str] = None,
    ) -> DomainState:
        """
        Get the settled state of a domain.

        A domain that cannot be retrieved on the first lookup, does not
        exist, or has been undefined is ``NOT_CREATED``.

        Args:
            domain_id: Hypervisor domain id (UUID or name)
            timeout: Give up waiting for shutdown after this many seconds
            cancel: Stop waiting once this event is set
            name: Display name for log messages

        Raises:
            StateWaitTimeout: If ``timeout`` expires while shutting down
            OperationCancelled: If ``cancel`` is set while shutting down
            RetrievalError: If a lookup after the first one fails
        """
        label = name or domain_id

        lookup = self._locator.lookup(domain_id)
        if lookup.status is LookupStatus.ERROR:
            logger.debug(f"Domain {label} not retrievable: {lookup.error.message}")
            return DomainState.NOT_CREATED

        deadline = Deadline(timeout, self._clock)
        while True:
            domain = lookup.domain
            if domain is None:
                return DomainState.NOT_CREATED

            state = self._locator.state_of(domain)
            if state is DomainState.TERMINATED:
                return DomainState.NOT_CREATED

            if not state.is_transient:
                return state

            if deadline.expired:
                raise StateWaitTimeout(
                    f"Domain {label} still shutting down after {timeout}s",
                    timeout=timeout,
                )
            if cancel is not None and cancel.is_set():
                raise OperationCancelled(f"waiting on domain {label} to shut down")

            logger.info(f"Waiting on domain {label} to shut down...")
            self._sleep(self._interval)
            lookup = self._locator.lookup(domain_id)
            if lookup.status is LookupStatus.ERROR:
                raise lookup.error
