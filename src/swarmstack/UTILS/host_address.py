"""
Utilities for finding the host's primary network address.
"""
import ipaddress
import socket
from typing import Optional

import psutil


def primary_ipv4_address() -> Optional[str]:
    """
    Returns the first non-loopback, non-link-local IPv4 address of the host,
    in interface order, or None when there is none.
    """
    for _, addresses in psutil.net_if_addrs().items():
        for addr in addresses:
            if addr.family != socket.AF_INET:
                continue
            ip = ipaddress.ip_address(addr.address)
            if ip.is_loopback or ip.is_link_local:
                continue
            return addr.address
    return None
