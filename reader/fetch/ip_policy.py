import ipaddress
from typing import Iterable, Union

IPAddress = Union[ipaddress.IPv4Address, ipaddress.IPv6Address]

# ipaddress has no "link-local multicast" predicate
_LINK_LOCAL_MULTICAST = (
    ipaddress.ip_network("224.0.0.0/24"),
    ipaddress.ip_network("ff02::/16"),
)

def is_forbidden(ip: Union[str, IPAddress]) -> bool:
    """
    Decide whether an outbound connection to this address must be refused.

    Forbidden: loopback, private (RFC1918, ULA and the other ranges
    ``ipaddress`` marks as not globally reachable), link-local unicast,
    link-local multicast and the unspecified address.
    """
    if isinstance(ip, str):
        ip = ipaddress.ip_address(ip)

    # ::ffff:127.0.0.1 must be judged as 127.0.0.1
    if isinstance(ip, ipaddress.IPv6Address) and ip.ipv4_mapped is not None:
        ip = ip.ipv4_mapped

    if ip.is_unspecified or ip.is_loopback or ip.is_private or ip.is_link_local:
        return True
    return any(ip.version == net.version and ip in net for net in _LINK_LOCAL_MULTICAST)

def first_forbidden(addresses: Iterable[str]) -> Union[str, None]:
    """Return the first forbidden address of a resolved set, if any"""
    for address in addresses:
        if is_forbidden(address):
            return address
    return None
