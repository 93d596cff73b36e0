from __future__ import annotations

import ipaddress
import logging
import socket
import threading
from typing import List, Optional, Union

from ..dns_wire import QTYPE_A, QTYPE_AAAA, IPAddress, build_query, parse_response
from ..errors import ResolutionError

logger = logging.getLogger(__name__)

DEFAULT_DNS_SERVER = ipaddress.ip_address("223.5.5.5")
RECV_BUFFER_SIZE = 512

_dns_server: Optional[IPAddress] = None
_dns_server_lock = threading.Lock()


class UDPError(ResolutionError):
    """
    Brief: DNS-over-UDP transport error.

    Inputs:
    - message: description

    Outputs:
    - Exception instance
    """

    pass


def set_dns_server(server: Union[IPAddress, str, None]) -> None:
    """
    Brief: Set the process-wide DNS server used by udp_resolve.

    Inputs:
    - server: address object, IP literal string, or None to restore the default

    Outputs:
    - None

    Raises ValueError when a string is not an IP literal.
    """
    global _dns_server
    value = None if server is None else ipaddress.ip_address(server)
    with _dns_server_lock:
        _dns_server = value


def get_dns_server() -> Optional[IPAddress]:
    """Brief: Return the configured DNS server, or None when left at the default."""
    with _dns_server_lock:
        return _dns_server


def effective_dns_server() -> IPAddress:
    """Brief: Return the configured DNS server, falling back to DEFAULT_DNS_SERVER."""
    return get_dns_server() or DEFAULT_DNS_SERVER


def parse_dns_server(text: Optional[str]) -> Optional[IPAddress]:
    """
    Brief: Validate user-entered DNS server text.

    Inputs:
    - text: IP literal or hostname; surrounding whitespace is ignored

    Outputs:
    - address on success, None when blank or unresolvable

    Example:
        >>> parse_dns_server(" 1.1.1.1 ")
        IPv4Address('1.1.1.1')
        >>> parse_dns_server("") is None
        True
    """
    text = (text or "").strip()
    if not text:
        return None
    try:
        return ipaddress.ip_address(text)
    except ValueError:
        pass
    try:
        infos = socket.getaddrinfo(text, None, proto=socket.IPPROTO_UDP)
    except (OSError, UnicodeError) as e:
        logger.debug("Cannot resolve DNS server %r: %s", text, e)
        return None
    for _family, _type, _proto, _canon, sockaddr in infos:
        try:
            return ipaddress.ip_address(sockaddr[0])
        except ValueError:
            continue
    return None


def udp_exchange(
    server: IPAddress,
    port: int,
    query: bytes,
    *,
    timeout: float = 2.0,
) -> bytes:
    """
    Brief: Send one DNS query datagram and wait for a single reply.

    Inputs:
    - server: DNS server address
    - port: DNS server UDP port
    - query: wire-format DNS query bytes
    - timeout: receive timeout in seconds

    Outputs:
    - bytes: reply datagram (at most RECV_BUFFER_SIZE bytes)
    """
    family = socket.AF_INET6 if server.version == 6 else socket.AF_INET
    try:
        s = socket.socket(family, socket.SOCK_DGRAM)
        try:
            s.settimeout(timeout)
            s.sendto(query, (str(server), int(port)))
            data, _ = s.recvfrom(RECV_BUFFER_SIZE)
            return data
        finally:
            s.close()
    except OSError as e:
        raise UDPError(f"UDP error talking to {server}:{port}: {e}") from e


def udp_resolve(
    domain: str,
    timeout: float = 2.0,
    retries: int = 3,
    port: int = 53,
    *,
    server: Optional[IPAddress] = None,
) -> List[IPAddress]:
    """
    Brief: Look up A then AAAA records for a name over plain UDP DNS.

    Inputs:
    - domain: hostname to resolve
    - timeout: per-attempt receive timeout in seconds
    - retries: attempts per record type; zero makes no queries and returns []
    - port: DNS server UDP port
    - server: explicit DNS server; defaults to effective_dns_server()

    Outputs:
    - List of addresses, A records first

    Notes:
    - Within one record type, failures are retried and only the last one is
      raised, after the attempts are used up. Exhausting A raises before
      AAAA is tried.
    """
    dns = server if server is not None else effective_dns_server()
    logger.info("custom dns server: %s port: %d", dns, port)
    attempts = int(retries)

    results: List[IPAddress] = []
    for qtype in (QTYPE_A, QTYPE_AAAA):
        query = build_query(domain, qtype)
        for attempt in range(attempts):
            try:
                reply = udp_exchange(dns, port, query, timeout=timeout)
                results.extend(parse_response(reply, qtype))
                break
            except ResolutionError as e:
                if attempt == attempts - 1:
                    raise
                logger.debug(
                    "UDP lookup of %s type %d failed (attempt %d/%d): %s",
                    domain,
                    qtype,
                    attempt + 1,
                    attempts,
                    e,
                )
    return results
