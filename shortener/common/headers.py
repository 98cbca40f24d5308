"""Header parsing utilities for URL shortener."""

import ipaddress
from typing import Mapping, Optional, Union

IPNetwork = Union[ipaddress.IPv4Network, ipaddress.IPv6Network]


def get_real_ip(headers: Mapping[str, str]) -> Optional[str]:
    """Get the client address a proxy put in X-Real-IP.

    Args:
        headers: Request headers

    Returns:
        The stripped header value, or None if missing or empty
    """
    for key, value in headers.items():
        if key.lower() == "x-real-ip" and value and value.strip():
            return value.strip()
    return None


def parse_subnet(subnet: Optional[str]) -> Optional[IPNetwork]:
    """Parse a CIDR subnet, returning None when unset or invalid."""
    if not subnet:
        return None
    try:
        return ipaddress.ip_network(subnet.strip(), strict=False)
    except ValueError:
        return None


def ip_in_subnet(ip: str, network: IPNetwork) -> bool:
    """Check whether ip belongs to network. Unparseable addresses never do."""
    try:
        return ipaddress.ip_address(ip) in network
    except ValueError:
        return False
