"""
DNS pre-flight: warns about service host names that do not resolve yet.
"""
import socket
from typing import Callable, List

from .console import log, warn

SERVICE_HOSTS = (
    "portainerapp",
    "miniobackapp",
    "miniofrontapp",
    "chatwootapp",
    "evolutionapiapp",
    "n8napp",
    "n8nwebhookapp",
    "rabbitmqapp",
)


def _resolves(hostname: str) -> bool:
    try:
        socket.getaddrinfo(hostname, None)
        return True
    except (socket.gaierror, UnicodeError):
        return False


def check_dns(domain: str, resolves: Callable[[str], bool] = _resolves) -> List[str]:
    """
    Checks every service host name under the domain. Never raises and never blocks the run.

    :param domain: The base domain.
    :param resolves: Resolution check; swapped out in tests.
    :return: Host names that did not resolve.
    """
    log("Checking DNS (missing records do not stop the installation)...")
    missing = []
    for prefix in SERVICE_HOSTS:
        hostname = f"{prefix}.{domain}"
        if resolves(hostname):
            log(f"DNS OK: {hostname}")
        else:
            warn(f"DNS does not resolve yet: {hostname} (create an A record pointing at this host)")
            missing.append(hostname)
    if missing:
        warn("Some DNS records are missing. The install continues, but TLS certificates "
             "will be delayed or fail until they exist.")
    return missing
