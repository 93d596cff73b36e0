from __future__ import annotations

import ipaddress
from typing import Optional, Tuple, Union

IPAddress = Union[ipaddress.IPv4Address, ipaddress.IPv6Address]

# 2001:0000::/32; bytes 10-11 carry a port, bytes 12-15 an IPv4 address.
NAT64_PREFIX = b"\x20\x01\x00\x00"


def unwrap(address: IPAddress) -> Tuple[IPAddress, Optional[int]]:
    """
    Brief: Extract an IPv4 address and port embedded in a prefixed IPv6 address.

    Inputs:
    - address: ipaddress.IPv4Address or ipaddress.IPv6Address

    Outputs:
    - (address, port): the embedded IPv4 address and big-endian port when the
      address starts with NAT64_PREFIX, otherwise the input unchanged and None.

    Example:
        >>> unwrap(ipaddress.ip_address("2001:0:0:0:0:c738:c000:0201"))
        (IPv4Address('192.0.2.1'), 51000)
        >>> unwrap(ipaddress.ip_address("192.0.2.1"))
        (IPv4Address('192.0.2.1'), None)
    """
    if not isinstance(address, ipaddress.IPv6Address):
        return address, None
    packed = address.packed
    if packed[:4] != NAT64_PREFIX:
        return address, None
    v4 = ipaddress.IPv4Address(packed[12:16])
    port = int.from_bytes(packed[10:12], "big")
    return v4, port
