"""
Hypervisor boundary.

The core talks to a hypervisor through two small interfaces:

- ``Hypervisor.connect(params)`` opens a management connection
- ``HypervisorConnection`` looks up domains and reports their state
  and lease-table addresses

``LibvirtHypervisor`` implements them on top of libvirt-python.
"""

from __future__ import annotations

import logging
import shlex
import subprocess
import uuid
from abc import ABC, abstractmethod
from enum import Enum
from typing import Any, Dict, List, Optional
from urllib.parse import urlparse
from xml.etree import ElementTree as ET

try:
    import libvirt
    LIBVIRT_AVAILABLE = True
except ImportError:
    LIBVIRT_AVAILABLE = False
    libvirt = None

from common.exceptions import RetrievalError, TransportError

from .constants import (
    IP_COMMAND,
    IP_COMMAND_TIMEOUT,
    MAC_PLACEHOLDER,
    SSH_BINARY,
    VIR_ERR_NO_DOMAIN,
)

logger = logging.getLogger(__name__)


class DomainState(Enum):
    """
    Domain states as reported to callers.

    ``NOT_CREATED`` is synthesized by the core when no domain can be
    resolved. ``SHUTTING_DOWN`` is transient and ``TERMINATED`` is the
    hypervisor's "undefined/removed" indicator; neither is ever returned
    by ``StateResolver``.
    """
    NOT_CREATED = "not_created"
    NOSTATE = "nostate"
    RUNNING = "running"
    BLOCKED = "blocked"
    PAUSED = "paused"
    SHUTTING_DOWN = "shutting-down"
    SHUTOFF = "shutoff"
    CRASHED = "crashed"
    PMSUSPENDED = "pmsuspended"
    TERMINATED = "terminated"

    @property
    def is_transient(self) -> bool:
        return self is DomainState.SHUTTING_DOWN

    @classmethod
    def from_libvirt(cls, code: int) -> "DomainState":
        """Map a virDomainState integer; unknown values become NOSTATE."""
        if isinstance(code, int) and 0 <= code < len(LIBVIRT_STATES):
            return LIBVIRT_STATES[code]
        return cls.NOSTATE


# Indexed by virDomainState
LIBVIRT_STATES: List[DomainState] = [
    DomainState.NOSTATE,
    DomainState.RUNNING,
    DomainState.BLOCKED,
    DomainState.PAUSED,
    DomainState.SHUTTING_DOWN,
    DomainState.SHUTOFF,
    DomainState.CRASHED,
    DomainState.PMSUSPENDED,
]


class HypervisorConnection(ABC):
    """An established management session."""

    @abstractmethod
    def get_domain(self, domain_id: str) -> Any:
        """
        Look up a domain handle.

        Raises:
            RetrievalError: carrying the hypervisor error code
        """
        pass

    @abstractmethod
    def get_domain_state(self, domain: Any) -> DomainState:
        """Current state of a domain handle."""
        pass

    @abstractmethod
    def get_domain_addresses(self, domain: Any) -> Dict[str, List[Optional[str]]]:
        """
        Lease records per interface type.

        Each record may hold several newline-separated addresses, most
        recent first.
        """
        pass


class Hypervisor(ABC):
    """Factory for management connections."""

    @abstractmethod
    def connect(self, params: Dict[str, str]) -> HypervisorConnection:
        """
        Open a connection.

        Raises:
            TransportError: If the hypervisor is unreachable or rejects
                the credentials
        """
        pass


def _is_uuid(value: str) -> bool:
    try:
        uuid.UUID(str(value))
        return True
    except ValueError:
        return False


class LibvirtConnection(HypervisorConnection):
    """HypervisorConnection backed by a ``libvirt.virConnect``."""

    def __init__(self, conn, uri: str, ip_command: str = IP_COMMAND):
        self._conn = conn
        self._uri = uri
        self._ip_command = ip_command

    @property
    def uri(self) -> str:
        return self._uri

    @property
    def raw(self):
        """The underlying virConnect, for lifecycle actions."""
        return self._conn

    def get_domain(self, domain_id: str):
        try:
            if _is_uuid(domain_id):
                return self._conn.lookupByUUIDString(domain_id)
            return self._conn.lookupByName(domain_id)
        except libvirt.libvirtError as e:
            raise RetrievalError(
                f"Cannot retrieve domain {domain_id}: {e}",
                error_code=e.get_error_code(),
                cause=e,
            ) from e

    def get_domain_state(self, domain) -> DomainState:
        try:
            state, _reason = domain.state()
        except libvirt.libvirtError as e:
            if e.get_error_code() == VIR_ERR_NO_DOMAIN:
                # undefined between lookup and state query
                return DomainState.TERMINATED
            raise RetrievalError(
                f"Cannot read state of domain {domain.name()}: {e}",
                error_code=e.get_error_code(),
                cause=e,
            ) from e
        return DomainState.from_libvirt(state)

    def get_domain_addresses(self, domain) -> Dict[str, List[Optional[str]]]:
        addresses: Dict[str, List[Optional[str]]] = {}
        try:
            tree = ET.fromstring(domain.XMLDesc())
        except libvirt.libvirtError as e:
            logger.debug(f"Cannot read XML of domain {domain.name()}: {e}")
            return addresses

        for interface in tree.findall(".//devices/interface"):
            mac_elem = interface.find("mac")
            if mac_elem is None or not mac_elem.get("address"):
                continue
            output = self._run_ip_command(mac_elem.get("address"))
            addresses.setdefault(interface.get("type", "unknown"), []).append(output)
        return addresses

    def _ip_command_argv(self, mac: str) -> List[str]:
        command = self._ip_command.replace(MAC_PLACEHOLDER, mac)
        parsed = urlparse(self._uri)
        if parsed.scheme.endswith("+ssh") and parsed.hostname:
            target = parsed.hostname
            if parsed.username:
                target = f"{parsed.username}@{target}"
            argv = [SSH_BINARY, "-o", "BatchMode=yes"]
            if parsed.port:
                argv += ["-p", str(parsed.port)]
            return argv + [target, command]
        return ["sh", "-c", command]

    def _run_ip_command(self, mac: str) -> Optional[str]:
        argv = self._ip_command_argv(mac)
        try:
            result = subprocess.run(
                argv,
                capture_output=True,
                text=True,
                timeout=IP_COMMAND_TIMEOUT,
            )
        except subprocess.TimeoutExpired:
            logger.warning(f"Lease lookup for {mac} timed out: {shlex.join(argv)}")
            return None
        except OSError as e:
            logger.warning(f"Lease lookup for {mac} failed: {e}")
            return None

        if result.returncode != 0:
            logger.debug(f"Lease lookup for {mac} exited {result.returncode}: {result.stderr.strip()}")
            return None
        return result.stdout.strip() or None


class LibvirtHypervisor(Hypervisor):
    """Opens libvirt connections, with SASL-style credentials when given."""

    def connect(self, params: Dict[str, str]) -> LibvirtConnection:
        if not LIBVIRT_AVAILABLE:
            raise TransportError(
                "libvirt-python is not installed. "
                "Install with: pip install libvirt-python"
            )

        uri = params["libvirt_uri"]
        username = params.get("libvirt_username")
        password = params.get("libvirt_password")

        try:
            libvirt.registerErrorHandler(_error_handler, None)
            if username or password:
                auth = [
                    [libvirt.VIR_CRED_AUTHNAME, libvirt.VIR_CRED_PASSPHRASE],
                    _credentials_callback(username, password),
                    None,
                ]
                conn = libvirt.openAuth(uri, auth, 0)
            else:
                conn = libvirt.open(uri)
        except libvirt.libvirtError as e:
            raise TransportError(str(e), cause=e) from e

        if conn is None:
            raise TransportError(f"Failed to connect to {uri}")

        return LibvirtConnection(conn, uri, params.get("libvirt_ip_command", IP_COMMAND))


def _credentials_callback(username: Optional[str], password: Optional[str]):
    def request_credentials(credentials, user_data):
        for credential in credentials:
            if credential[0] == libvirt.VIR_CRED_AUTHNAME:
                credential[4] = username or ""
            elif credential[0] == libvirt.VIR_CRED_PASSPHRASE:
                credential[4] = password or ""
            else:
                return -1
        return 0
    return request_credentials


def _error_handler(ctx, error):
    """Keep libvirt from printing expected lookup misses to stderr."""
    if error[0] in (libvirt.VIR_ERR_WARNING, libvirt.VIR_ERR_NO_DOMAIN):
        return
    logger.debug(f"libvirt: {error}")
