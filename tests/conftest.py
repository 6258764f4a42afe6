"""
Pytest configuration and shared fixtures for domain driver tests.

Provides an in-memory hypervisor whose domains follow scripted state
sequences, and a fake clock for the polling loops.
"""

import os
import sys
from pathlib import Path
from typing import Dict, List, Optional

import pytest

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from common.exceptions import RetrievalError, TransportError  # noqa: E402
from domain_driver.core.config import ProviderConfig  # noqa: E402
from domain_driver.core.connection import ConnectionManager, reset_connection_manager  # noqa: E402
from domain_driver.core.constants import VIR_ERR_NO_DOMAIN, VIR_ERR_OPERATION_FAILED  # noqa: E402
from domain_driver.core.hypervisor import DomainState, Hypervisor, HypervisorConnection  # noqa: E402
from domain_driver.core.locator import DomainLocator  # noqa: E402

MISSING = object()


class FakeDomain:
    """Snapshot handle returned by one lookup."""

    def __init__(self, domain_id: str, state: DomainState):
        self.domain_id = domain_id
        self.state = state

    def name(self) -> str:
        return self.domain_id


class FakeConnection(HypervisorConnection):
    """
    Scripted hypervisor connection.

    ``states[id]`` is consumed one entry per lookup (the last entry
    repeats). An entry may be a DomainState, ``MISSING`` for "no such
    domain", or an exception instance to raise.
    """

    def __init__(self):
        self.states: Dict[str, list] = {}
        self.addresses: Dict[str, List[dict]] = {}
        self.lookups: List[str] = []
        self.address_queries: List[str] = []

    def script(self, domain_id: str, *states) -> None:
        self.states[domain_id] = list(states)

    def script_addresses(self, domain_id: str, *records: dict) -> None:
        self.addresses[domain_id] = list(records)

    @staticmethod
    def _next(queue: list):
        if len(queue) > 1:
            return queue.pop(0)
        return queue[0]

    def get_domain(self, domain_id: str):
        self.lookups.append(domain_id)
        queue = self.states.get(domain_id)
        entry = self._next(queue) if queue else MISSING
        if entry is MISSING:
            raise RetrievalError(
                f"Domain not found: no domain with matching name '{domain_id}'",
                error_code=VIR_ERR_NO_DOMAIN,
            )
        if isinstance(entry, Exception):
            raise entry
        return FakeDomain(domain_id, entry)

    def get_domain_state(self, domain: FakeDomain) -> DomainState:
        return domain.state

    def get_domain_addresses(self, domain: FakeDomain) -> Dict[str, List[Optional[str]]]:
        self.address_queries.append(domain.domain_id)
        queue = self.addresses.get(domain.domain_id)
        return dict(self._next(queue)) if queue else {}


class FakeHypervisor(Hypervisor):
    def __init__(self, connection: Optional[FakeConnection] = None):
        self.connection = connection or FakeConnection()
        self.connect_calls: List[dict] = []
        self.failures: List[str] = []

    def connect(self, params: Dict[str, str]) -> FakeConnection:
        self.connect_calls.append(params)
        if self.failures:
            raise TransportError(self.failures.pop(0))
        return self.connection


class FakeClock:
    """Monotonic clock that only moves when something sleeps."""

    def __init__(self):
        self.now = 0.0
        self.sleeps: List[float] = []

    def __call__(self) -> float:
        return self.now

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


def retrieval_failure(message: str = "internal error") -> RetrievalError:
    return RetrievalError(message, error_code=VIR_ERR_OPERATION_FAILED)


# ============ Fixtures ============

@pytest.fixture(autouse=True)
def clean_default_manager():
    """Never leak the process-wide connection manager between tests."""
    reset_connection_manager()
    yield
    reset_connection_manager()


@pytest.fixture
def config() -> ProviderConfig:
    return ProviderConfig(uri="qemu:///system")


@pytest.fixture
def fake_connection() -> FakeConnection:
    return FakeConnection()


@pytest.fixture
def fake_hypervisor(fake_connection) -> FakeHypervisor:
    return FakeHypervisor(fake_connection)


@pytest.fixture
def manager(config, fake_hypervisor) -> ConnectionManager:
    return ConnectionManager(config, fake_hypervisor)


@pytest.fixture
def locator(manager) -> DomainLocator:
    return DomainLocator(manager)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def clean_env(monkeypatch):
    for var in ("DOMAIN_DRIVER_URI", "DOMAIN_DRIVER_USERNAME", "DOMAIN_DRIVER_PASSWORD"):
        monkeypatch.delenv(var, raising=False)
    return monkeypatch


# ============ Marker Configuration ============

def pytest_configure(config):
    """Configure custom markers."""
    config.addinivalue_line(
        "markers", "unit: fast unit tests with no external deps"
    )
    config.addinivalue_line(
        "markers", "requires_libvirt: marks tests that need libvirt running"
    )


def pytest_collection_modifyitems(config, items):
    """Skip libvirt tests unless a daemon is reachable."""
    skip_libvirt = pytest.mark.skip(reason="Requires libvirt daemon")

    for item in items:
        if "requires_libvirt" in item.keywords:
            if not os.environ.get("DOMAIN_DRIVER_URI"):
                item.add_marker(skip_libvirt)
                continue
            try:
                import libvirt
                conn = libvirt.open(os.environ["DOMAIN_DRIVER_URI"])
                if conn:
                    conn.close()
            except Exception:
                item.add_marker(skip_libvirt)
