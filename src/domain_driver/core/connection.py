"""
Hypervisor Connection Manager

Owns the single management connection shared by every domain in the
process. The connection is opened lazily on first use and kept open.
"""

from __future__ import annotations

import logging
import threading
from typing import Optional

from common.exceptions import (
    ConnectionError,
    InvalidConfigError,
    MissingConfigError,
    TransportError,
)

from .config import ProviderConfig
from .hypervisor import Hypervisor, HypervisorConnection, LibvirtHypervisor

logger = logging.getLogger(__name__)


class ConnectionManager:
    """
    Lazily opens and then reuses one hypervisor connection.

    Creation is guarded by a lock, so concurrent first callers share a
    single connection. A failed attempt leaves nothing behind and the
    next call tries again.
    """

    def __init__(
        self,
        config: Optional[ProviderConfig] = None,
        hypervisor: Optional[Hypervisor] = None,
    ):
        self._config = config or ProviderConfig.from_env()
        self._hypervisor = hypervisor or LibvirtHypervisor()
        self._conn: Optional[HypervisorConnection] = None
        self._lock = threading.Lock()

    @property
    def config(self) -> ProviderConfig:
        return self._config

    @property
    def is_connected(self) -> bool:
        return self._conn is not None

    def get_connection(self) -> HypervisorConnection:
        """
        Return the shared connection, opening it on first call.

        Raises:
            MissingConfigError: If no URI is configured
            InvalidConfigError: If the configuration is malformed
            ConnectionError: If the hypervisor cannot be reached
        """
        conn = self._conn
        if conn is not None:
            return conn

        with self._lock:
            if self._conn is None:
                self._conn = self._open()
            return self._conn

    def reset(self) -> None:
        """Forget the shared connection; the next call reconnects."""
        with self._lock:
            self._conn = None

    def _open(self) -> HypervisorConnection:
        uri = self._config.uri
        if not uri:
            raise MissingConfigError("uri")

        errors = self._config.validate()
        if errors:
            raise InvalidConfigError("provider", uri, "; ".join(errors))

        params = self._config.connection_params()

        logger.info(f"Connecting to libvirt ({uri}) ...")
        try:
            conn = self._hypervisor.connect(params)
        except TransportError as e:
            raise ConnectionError(uri, e.message, cause=e) from e

        logger.debug(f"Connected to libvirt ({uri})")
        return conn


_default_manager: Optional[ConnectionManager] = None
_default_lock = threading.Lock()


def get_connection_manager(
    config: Optional[ProviderConfig] = None,
    hypervisor: Optional[Hypervisor] = None,
) -> ConnectionManager:
    """
    Get or create the process-wide connection manager.

    Arguments only take effect on the call that creates it.
    """
    global _default_manager
    with _default_lock:
        if _default_manager is None:
            _default_manager = ConnectionManager(config, hypervisor)
        return _default_manager


def reset_connection_manager() -> None:
    """Drop the process-wide manager (mainly for testing)."""
    global _default_manager
    with _default_lock:
        _default_manager = None
