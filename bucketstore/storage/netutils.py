"""
Network classification helpers.

Used to tell whether a registered backend host is reachable from the
public internet or only from inside a private network.
"""

import ipaddress
from typing import Union

IPAddress = Union[ipaddress.IPv4Address, ipaddress.IPv6Address]

PRIVATE_IP_BLOCKS = tuple(
    ipaddress.ip_network(cidr)
    for cidr in (
        "127.0.0.0/8",  # IPv4 loopback
        "10.0.0.0/8",  # RFC1918
        "172.16.0.0/12",  # RFC1918
        "192.168.0.0/16",  # RFC1918
        "169.254.0.0/16",  # RFC3927 link-local
        "::1/128",  # IPv6 loopback
        "fe80::/10",  # IPv6 link-local
        "fc00::/7",  # IPv6 unique local addr
    )
)

_IPV4_LINK_LOCAL_MULTICAST = ipaddress.ip_network("224.0.0.0/24")


def is_link_local_multicast(ip: IPAddress) -> bool:
    """Check for 224.0.0.0/24 or an IPv6 multicast address of any ``ffX2::`` flags."""
    if isinstance(ip, ipaddress.IPv4Address):
        return ip in _IPV4_LINK_LOCAL_MULTICAST
    packed = ip.packed
    return packed[0] == 0xFF and packed[1] & 0x0F == 0x02


def is_private_ip(ip: Union[str, IPAddress]) -> bool:
    """
    Check whether an IP address is private (not internet-routable).

    Args:
        ip: An IP address object or its textual form. Text that is not an
            IP literal raises ``ValueError``; check with ``is_private_host``
            when the input may be a hostname.

    Returns:
        True for loopback, link-local and reserved private ranges
    """
    if not isinstance(ip, (ipaddress.IPv4Address, ipaddress.IPv6Address)):
        ip = ipaddress.ip_address(ip)

    if isinstance(ip, ipaddress.IPv6Address) and ip.ipv4_mapped is not None:
        ip = ip.ipv4_mapped

    if ip.is_loopback or ip.is_link_local:
        return True

    if is_link_local_multicast(ip):
        return True

    return any(ip in block for block in PRIVATE_IP_BLOCKS if block.version == ip.version)


def split_host_port(host: str) -> str:
    """Strip an optional port and IPv6 brackets from a host string."""
    host = host.strip()
    if host.startswith("["):
        end = host.find("]")
        return host[1:end] if end != -1 else host[1:]

    # Bare IPv6 literals carry several colons and no port
    if host.count(":") == 1:
        return host.split(":", 1)[0]
    return host


def is_private_host(host: str) -> bool:
    """Check whether a ``host[:port]`` string points into a private network."""
    name = split_host_port(host)
    if name.lower() == "localhost":
        return True

    try:
        ip = ipaddress.ip_address(name)
    except ValueError:
        return False
    return is_private_ip(ip)


__all__ = [
    "PRIVATE_IP_BLOCKS",
    "is_link_local_multicast",
    "is_private_host",
    "is_private_ip",
    "split_host_port",
]
