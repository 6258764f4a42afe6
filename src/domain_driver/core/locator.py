"""
Domain Locator

Looks up domains by id. "No such domain" is an ordinary outcome, not an
error: ``lookup`` reports it as ``LookupStatus.ABSENT`` and
``find_domain`` returns ``None``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional

from common.exceptions import RetrievalError

from .connection import ConnectionManager
from .constants import VIR_ERR_NO_DOMAIN
from .hypervisor import DomainState

logger = logging.getLogger(__name__)


class LookupStatus(Enum):
    FOUND = "found"
    ABSENT = "absent"
    ERROR = "error"


@dataclass(frozen=True)
class LookupResult:
    """Outcome of a single domain lookup."""
    status: LookupStatus
    domain: Any = None
    error: Optional[RetrievalError] = None

    @property
    def found(self) -> bool:
        return self.status is LookupStatus.FOUND

    def unwrap(self) -> Any:
        """The domain handle, ``None`` if absent; re-raises lookup errors."""
        if self.status is LookupStatus.ERROR:
            raise self.error
        return self.domain


class DomainLocator:
    """Resolves domain ids to fresh handles through the shared connection."""

    def __init__(self, connections: ConnectionManager):
        self._connections = connections

    def lookup(self, domain_id: str) -> LookupResult:
        """
        Look up a domain without raising on retrieval failures.

        Connection failures still raise ``ConnectionError``.
        """
        conn = self._connections.get_connection()
        try:
            domain = conn.get_domain(domain_id)
        except RetrievalError as e:
            if e.error_code == VIR_ERR_NO_DOMAIN:
                logger.debug(f"Domain {domain_id} not found: {e.message}")
                return LookupResult(LookupStatus.ABSENT)
            return LookupResult(LookupStatus.ERROR, error=e)

        if domain is None:
            return LookupResult(LookupStatus.ABSENT)
        return LookupResult(LookupStatus.FOUND, domain=domain)

    def find_domain(self, domain_id: str) -> Optional[Any]:
        """
        Return the domain handle, or ``None`` if it does not exist.

        Raises:
            RetrievalError: For any failure other than "no such domain"
        """
        return self.lookup(domain_id).unwrap()

    def exists(self, domain_id: str) -> bool:
        return self.find_domain(domain_id) is not None

    def state_of(self, domain: Any) -> DomainState:
        return self._connections.get_connection().get_domain_state(domain)

    def addresses_of(self, domain: Any) -> Dict[str, List[Optional[str]]]:
        return self._connections.get_connection().get_domain_addresses(domain)
