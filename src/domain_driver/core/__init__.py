"""
Domain driver core - connection, lookup, and state/address resolution.
"""

from .address_resolver import AddressResolver
from .config import ProviderConfig
from .connection import ConnectionManager, get_connection_manager
from .driver import Driver
from .hypervisor import DomainState, Hypervisor, HypervisorConnection
from .locator import DomainLocator, LookupResult, LookupStatus
from .state_resolver import StateResolver

__all__ = [
    "AddressResolver",
    "ConnectionManager",
    "DomainLocator",
    "DomainState",
    "Driver",
    "Hypervisor",
    "HypervisorConnection",
    "LookupResult",
    "LookupStatus",
    "ProviderConfig",
    "StateResolver",
    "get_connection_manager",
]
