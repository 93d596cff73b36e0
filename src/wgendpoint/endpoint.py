"""Peer endpoint value with lazy, time-gated hostname resolution.

Brief:
  An Endpoint is an immutable (host, port) pair. When the host is a DNS name,
  get_resolved() resolves it on demand, caches the numeric result, and
  re-resolves at most once per cooldown window. Numeric endpoints resolve to
  themselves without any I/O.

Inputs:
  - Endpoint text such as "vpn.example.com:51820", "192.0.2.1:51820" or
    "[2001:db8::1]:51820".

Outputs:
  - Endpoint instances; get_resolved() returns a numeric Endpoint or None.
"""

from __future__ import annotations

import ipaddress
import logging
import re
import threading
import time
import urllib.parse
from typing import Callable, Optional

from .errors import ParseError, ResolutionError
from .nat64 import unwrap
from .resolvers import BaseResolver, get_default_resolver

logger = logging.getLogger(__name__)

RESOLUTION_COOLDOWN_SECONDS = 10.0

_BARE_IPV6 = re.compile(r"^[^\[\]]*:[^\[\]]*")
_FORBIDDEN_CHARACTERS = re.compile(r"[/?#]")
_CONTROL_OR_SPACE = re.compile(r"[\x00-\x20\x7f]")
# Registered-name characters: unreserved, sub-delims and percent-escapes.
_REG_NAME = re.compile(r"^(?:[A-Za-z0-9\-._~!$&'()*+,;=]|%[0-9A-Fa-f]{2})+$")

_default_cooldown = RESOLUTION_COOLDOWN_SECONDS


def set_default_cooldown(seconds: float) -> None:
    """Brief: Set the cooldown used by endpoints created without an explicit one."""
    global _default_cooldown
    if seconds < 0:
        raise ValueError("cooldown must be non-negative")
    _default_cooldown = float(seconds)


def get_default_cooldown() -> float:
    return _default_cooldown


def _is_numeric_host(host: str) -> bool:
    if host.startswith("[") and host.endswith("]"):
        host = host[1:-1]
    try:
        ipaddress.ip_address(host)
    except ValueError:
        return False
    return True


class Endpoint:
    """Brief: External endpoint (host and port) used to reach a VPN peer.

    Inputs:
      - host: IP literal (IPv6 may be bracketed) or DNS name.
      - port: int in [0, 65535]. ValueError otherwise.
      - resolver: optional strategy; the process-wide default when None.
      - clock: optional time source returning seconds (default time.time).
      - cooldown: optional seconds between resolution attempts.

    Outputs:
      - Endpoint instance. Equality and hashing use (host, port) only.

    Example:
      >>> ep = Endpoint.parse("192.0.2.1:51820")
      >>> ep.is_numeric, ep.get_resolved() is ep
      (True, True)
    """

    __slots__ = (
        "_host",
        "_port",
        "_is_numeric",
        "_resolver",
        "_clock",
        "_cooldown",
        "_lock",
        "_last_resolution",
        "_resolved",
    )

    def __init__(
        self,
        host: str,
        port: int,
        *,
        resolver: Optional[BaseResolver] = None,
        clock: Optional[Callable[[], float]] = None,
        cooldown: Optional[float] = None,
    ) -> None:
        port = int(port)
        if not 0 <= port <= 65535:
            raise ValueError(f"port out of range: {port}")
        self._host = host
        self._port = port
        self._is_numeric = _is_numeric_host(host)
        self._resolver = resolver
        self._clock = clock or time.time
        self._cooldown = cooldown
        self._lock = threading.Lock()
        # Epoch, so the first lookup always resolves.
        self._last_resolution = 0.0
        self._resolved: Optional[Endpoint] = None

    @classmethod
    def parse(cls, text: str, **kwargs) -> "Endpoint":
        """Brief: Parse "host:port" text into an Endpoint.

        Inputs:
          - text: endpoint text; IPv6 literals must be bracketed.
          - **kwargs: forwarded to Endpoint() (resolver, clock, cooldown).

        Outputs:
          - Endpoint.

        Raises ParseError on forbidden characters (/ ? #), whitespace or
        control characters, a missing or out-of-range port, or a host outside
        the URI registered-name character set.

        Example:
          >>> Endpoint.parse("vpn.example.com:51820").is_numeric
          False
        """

        if _FORBIDDEN_CHARACTERS.search(text):
            raise ParseError(text, "Forbidden characters")
        if _CONTROL_OR_SPACE.search(text):
            raise ParseError(text, "Illegal whitespace or control character")
        try:
            parts = urllib.parse.urlsplit("wg://" + text)
            port = parts.port
        except ValueError as e:
            raise ParseError(text, f"Missing/invalid port number ({e})") from e
        if port is None or not 0 <= port <= 65535:
            raise ParseError(text, "Missing/invalid port number")

        hostport = parts.netloc.rpartition("@")[2]
        host = hostport.rpartition(":")[0]
        if not host:
            raise ParseError(text, "Missing host")
        if host.startswith("["):
            if not host.endswith("]"):
                raise ParseError(text, "Unterminated IPv6 literal")
            try:
                ipaddress.IPv6Address(host[1:-1])
            except ValueError as e:
                raise ParseError(text, f"Invalid IPv6 literal ({e})") from e
        elif ":" in host:
            raise ParseError(text, "IPv6 literal must be enclosed in brackets")
        elif not _REG_NAME.match(host):
            raise ParseError(text, "Illegal character in host")
        return cls(host, port, **kwargs)

    @property
    def host(self) -> str:
        return self._host

    @property
    def port(self) -> int:
        return self._port

    @property
    def is_numeric(self) -> bool:
        return self._is_numeric

    def get_host(self) -> str:
        return self._host

    def get_port(self) -> int:
        return self._port

    def get_resolved(self) -> Optional["Endpoint"]:
        """Brief: Return this endpoint with its host resolved to an address.

        Inputs:
          - None.

        Outputs:
          - Optional[Endpoint]: self when already numeric; otherwise the
            cached numeric endpoint, or None if no resolution succeeded.

        Notes:
          - May block on network I/O, bounded by the transport timeouts.
          - Callers on the same instance are serialized; a new attempt is made
            only once the cooldown has elapsed since the previous attempt,
            whether that attempt succeeded or not.
          - A failed attempt clears the cached value.
        """

        if self._is_numeric:
            return self
        with self._lock:
            now = self._clock()
            cooldown = self._cooldown if self._cooldown is not None else _default_cooldown
            if now - self._last_resolution > cooldown:
                self._resolved = None
                try:
                    self._resolved = self._resolve_once()
                finally:
                    self._last_resolution = self._clock()
            return self._resolved

    def _resolve_once(self) -> Optional["Endpoint"]:
        resolver = self._resolver or get_default_resolver()
        try:
            address = resolver.resolve(self._host)
        except ResolutionError as e:
            logger.info("Failed to resolve %s: %s", self._host, e)
            return None
        if address is None:
            logger.info("No usable address for %s", self._host)
            return None

        logger.info("dns2ip: %s -> %s", self._host, address)
        unwrapped, embedded_port = unwrap(address)
        port = embedded_port if embedded_port is not None else self._port
        return Endpoint(str(unwrapped), port)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Endpoint):
            return NotImplemented
        return self._host == other._host and self._port == other._port

    def __hash__(self) -> int:
        return hash((self._host, self._port))

    def __str__(self) -> str:
        bare_ipv6 = self._is_numeric and _BARE_IPV6.match(self._host) is not None
        host = f"[{self._host}]" if bare_ipv6 else self._host
        return f"{host}:{self._port}"

    def __repr__(self) -> str:
        return f"Endpoint({str(self)!r})"
