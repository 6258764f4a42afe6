"""
Address Resolver

Best-effort lookup of a domain's IP address from the lease table, with a
short bounded wait for the first lease to show up.
"""

from __future__ import annotations

import logging
import threading
import time
from typing import Dict, List, Optional

from common.exceptions import AddressWaitTimeout, OperationCancelled
from common.polling import Clock, Sleep, wait_for

from .constants import ADDRESS_POLL_INTERVAL, ADDRESS_WAIT_TIMEOUT
from .locator import DomainLocator

logger = logging.getLogger(__name__)


def first_lease_address(addresses: Dict[str, List[Optional[str]]]) -> Optional[str]:
    """
    Pick an address out of per-interface lease records.

    A record may list several leases separated by newlines, most recent
    first; only the first line of a record is considered.
    """
    for records in addresses.values():
        if not records:
            continue
        record = records[0]
        if not record:
            continue
        latest = record.split("\n")[0].strip()
        if latest:
            return latest
    return None


class AddressResolver:
    """Finds a domain's IP address within a bounded window."""

    def __init__(
        self,
        locator: DomainLocator,
        timeout: float = ADDRESS_WAIT_TIMEOUT,
        interval: float = ADDRESS_POLL_INTERVAL,
        sleep: Sleep = time.sleep,
        clock: Clock = time.monotonic,
    ):
        self._locator = locator
        self._timeout = timeout
        self._interval = interval
        self._sleep = sleep
        self._clock = clock

    def resolve_address(
        self,
        domain_id: str,
        timeout: Optional[float] = None,
        cancel: Optional[threading.Event] = None,
        name: Optional[str] = None,
    ) -> Optional[str]:
        """
        Get the domain's most recent leased address.

        Returns ``None`` straight away if the domain does not exist, and
        after the wait window if no lease appears. Never raises on timeout.

        Raises:
            RetrievalError: If the initial lookup fails for a reason other
                than "no such domain"
        """
        label = name or domain_id
        if timeout is None:
            timeout = self._timeout

        if self._locator.find_domain(domain_id) is None:
            return None

        def poll() -> Optional[str]:
            # Re-resolve on every attempt; the domain may vanish mid-wait
            domain = self._locator.lookup(domain_id).domain
            if domain is None:
                return None
            return first_lease_address(self._locator.addresses_of(domain))

        ip_address = None
        try:
            ip_address = wait_for(
                poll,
                timeout=timeout,
                interval=self._interval,
                clock=self._clock,
                sleep=self._sleep,
                cancel=cancel,
                error=AddressWaitTimeout,
                description=f"an IP address for domain {label}",
            )
        except AddressWaitTimeout:
            logger.info(f"Timed out waiting for an IP address for domain {label}")
        except OperationCancelled:
            logger.info(f"Stopped waiting for an IP address for domain {label}")

        if not ip_address:
            logger.info(f"No lease entry found for domain {label}")
            return None

        return ip_address
