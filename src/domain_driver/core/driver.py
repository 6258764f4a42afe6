"""
Driver - the entry point used by domain lifecycle actions.

Wires the shared connection manager to the locator and both resolvers.
Drivers for different domains share one connection by default.
"""

from __future__ import annotations

import threading
from typing import Any, Optional

from common.logging_config import LogContext

from .address_resolver import AddressResolver
from .connection import ConnectionManager, get_connection_manager
from .hypervisor import DomainState, HypervisorConnection
from .locator import DomainLocator
from .state_resolver import StateResolver


class Driver:
    """
    Read-side view of domains for lifecycle actions.

    Usage:
        driver = Driver()
        if driver.state(machine_id) == DomainState.RUNNING:
            ip = driver.get_ipaddress(machine_id)
    """

    def __init__(
        self,
        connections: Optional[ConnectionManager] = None,
        state_resolver: Optional[StateResolver] = None,
        address_resolver: Optional[AddressResolver] = None,
    ):
        self._connections = connections or get_connection_manager()
        self._locator = DomainLocator(self._connections)
        self._states = state_resolver or StateResolver(self._locator)
        self._addresses = address_resolver or AddressResolver(self._locator)

    @property
    def locator(self) -> DomainLocator:
        return self._locator

    def connection(self) -> HypervisorConnection:
        return self._connections.get_connection()

    def get_domain(self, domain_id: str) -> Optional[Any]:
        return self._locator.find_domain(domain_id)

    def created(self, domain_id: str) -> bool:
        return self._locator.exists(domain_id)

    def state(
        self,
        domain_id: str,
        name: Optional[str] = None,
        timeout: Optional[float] = None,
        cancel: Optional[threading.Event] = None,
    ) -> DomainState:
        with LogContext(domain_id=domain_id):
            return self._states.resolve_state(
                domain_id, timeout=timeout, cancel=cancel, name=name
            )

    def get_ipaddress(
        self,
        domain_id: str,
        name: Optional[str] = None,
        timeout: Optional[float] = None,
        cancel: Optional[threading.Event] = None,
    ) -> Optional[str]:
        with LogContext(domain_id=domain_id):
            return self._addresses.resolve_address(
                domain_id, timeout=timeout, cancel=cancel, name=name
            )
