"""
Domain Driver

Observes the lifecycle state and network address of libvirt domains.
"""

from .core import DomainState, Driver, ProviderConfig

__version__ = "0.1.0"

__all__ = ["DomainState", "Driver", "ProviderConfig"]
