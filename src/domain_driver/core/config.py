"""
Provider configuration - where the hypervisor lives and how to log in.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from .constants import (
    DEFAULT_URI,
    ENV_PASSWORD,
    ENV_URI,
    ENV_USERNAME,
    IP_COMMAND,
    PROVIDER_NAME,
)


@dataclass
class ProviderConfig:
    """
    Connection settings for a libvirt provider.

    Only ``uri`` is required. Credentials are passed on to the hypervisor
    when they are set and non-empty.
    """
    uri: str = DEFAULT_URI
    username: Optional[str] = None
    password: Optional[str] = None

    def validate(self) -> List[str]:
        """Validate configuration and return list of errors."""
        errors = []
        if not self.uri:
            errors.append("uri is required")
        elif "://" not in self.uri:
            errors.append(f"uri '{self.uri}' is not a libvirt connection URI")
        if self.password and not self.username:
            errors.append("password is set but username is not")
        return errors

    def connection_params(self) -> Dict[str, str]:
        """Parameters handed to ``Hypervisor.connect``."""
        params = {
            "provider": PROVIDER_NAME,
            "libvirt_uri": self.uri,
        }
        if self.username:
            params["libvirt_username"] = self.username
        if self.password:
            params["libvirt_password"] = self.password
        params["libvirt_ip_command"] = IP_COMMAND
        return params

    def to_dict(self) -> Dict[str, Any]:
        """Serialize without the password."""
        return {
            "uri": self.uri,
            "username": self.username,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ProviderConfig":
        return cls(
            uri=data.get("uri", DEFAULT_URI),
            username=data.get("username"),
            password=data.get("password"),
        )

    @classmethod
    def from_env(cls) -> "ProviderConfig":
        """Build from DOMAIN_DRIVER_URI / _USERNAME / _PASSWORD."""
        return cls(
            uri=os.getenv(ENV_URI, DEFAULT_URI),
            username=os.getenv(ENV_USERNAME) or None,
            password=os.getenv(ENV_PASSWORD) or None,
        )
