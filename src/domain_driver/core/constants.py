"""
Constants shared by the domain driver core.
"""

import os

# libvirt virErrorNumber values
VIR_ERR_OPERATION_FAILED = 9
VIR_ERR_NO_DOMAIN = 42

DEFAULT_URI = "qemu:///system"
PROVIDER_NAME = "libvirt"

# Print the IP column of the neighbour table row matching $mac
IP_COMMAND = 'awk "/$mac/ {print \\$1}" /proc/net/arp'
MAC_PLACEHOLDER = "$mac"

STATE_POLL_INTERVAL = 1.0
ADDRESS_WAIT_TIMEOUT = 2.0
ADDRESS_POLL_INTERVAL = 1.0
IP_COMMAND_TIMEOUT = 10

ENV_URI = "DOMAIN_DRIVER_URI"
ENV_USERNAME = "DOMAIN_DRIVER_USERNAME"
ENV_PASSWORD = "DOMAIN_DRIVER_PASSWORD"

SSH_BINARY = os.getenv("DOMAIN_DRIVER_SSH", "ssh")
