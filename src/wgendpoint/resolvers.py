"""Hostname resolution strategies used by Endpoint.

Brief:
  Each strategy turns a hostname into a single address. DoH (JSON API) and
  plain UDP DNS are interchangeable implementations of the same interface,
  and FallbackResolver chains them so that one blocked transport does not
  leave a peer unreachable.

Inputs:
  - Hostnames, plus transport settings supplied at construction.

Outputs:
  - ipaddress objects, or None when a lookup completed without a usable answer.
"""

from __future__ import annotations

import logging
import threading
from typing import TYPE_CHECKING, List, Optional, Sequence

from .dns_wire import IPAddress
from .errors import ResolutionError
from .transports.doh import DEFAULT_DOH_URL, doh_query
from .transports.udp import udp_resolve

if TYPE_CHECKING:  # pragma: no cover
    from .config.config_schema import ResolverSettings

logger = logging.getLogger(__name__)

__all__ = [
    "BaseResolver",
    "DoHResolver",
    "UDPResolver",
    "FallbackResolver",
    "ResolutionError",
    "build_resolver",
    "get_default_resolver",
    "set_default_resolver",
]


class BaseResolver:
    """Brief: Interface for "hostname to one address" strategies.

    Inputs:
      - None.

    Outputs:
      - Subclasses implement resolve().
    """

    name = "base"

    def resolve(self, hostname: str) -> Optional[IPAddress]:
        """Brief: Resolve hostname to a single address.

        Inputs:
          - hostname: DNS name.

        Outputs:
          - address, or None when the lookup yielded nothing usable.

        Raises ResolutionError when the lookup itself failed.
        """

        raise NotImplementedError

    def __repr__(self) -> str:
        return f"<{type(self).__name__}>"


class DoHResolver(BaseResolver):
    """Brief: Resolve via a DoH JSON endpoint, preferring A over AAAA.

    Inputs:
      - url: JSON resolve endpoint.
      - timeout: connect/read timeout in seconds.
      - verify: verify TLS certificates.

    Outputs:
      - DoHResolver instance.
    """

    name = "doh"

    def __init__(
        self, url: str = DEFAULT_DOH_URL, timeout: float = 2.0, verify: bool = True
    ) -> None:
        self.url = url
        self.timeout = float(timeout)
        self.verify = bool(verify)

    def resolve(self, hostname: str) -> Optional[IPAddress]:
        # IPv4 first to sidestep DNS64 and IPv6 NAT issues.
        for rtype in ("A", "AAAA"):
            address = doh_query(
                hostname,
                rtype,
                url=self.url,
                timeout=self.timeout,
                verify=self.verify,
            )
            if address is not None:
                return address
        return None


class UDPResolver(BaseResolver):
    """Brief: Resolve via raw UDP DNS against the process-wide DNS server.

    Inputs:
      - timeout: per-attempt receive timeout in seconds.
      - retries: attempts per record type.
      - port: DNS server UDP port.

    Outputs:
      - UDPResolver instance.
    """

    name = "udp"

    def __init__(self, timeout: float = 2.0, retries: int = 3, port: int = 53) -> None:
        self.timeout = float(timeout)
        self.retries = int(retries)
        self.port = int(port)

    def resolve(self, hostname: str) -> Optional[IPAddress]:
        addresses = udp_resolve(hostname, self.timeout, self.retries, self.port)
        return addresses[0] if addresses else None


class FallbackResolver(BaseResolver):
    """Brief: Try several strategies in order until one yields an address.

    Inputs:
      - resolvers: non-empty sequence of BaseResolver instances.

    Outputs:
      - FallbackResolver instance.

    Notes:
      - A strategy that raises or returns None hands over to the next one.
      - When every strategy fails, the last ResolutionError is re-raised; when
        none raised, None is returned.
    """

    name = "fallback"

    def __init__(self, resolvers: Sequence[BaseResolver]) -> None:
        if not resolvers:
            raise ValueError("FallbackResolver needs at least one resolver")
        self.resolvers: List[BaseResolver] = list(resolvers)

    def resolve(self, hostname: str) -> Optional[IPAddress]:
        last_error: Optional[ResolutionError] = None
        for resolver in self.resolvers:
            try:
                address = resolver.resolve(hostname)
            except ResolutionError as e:
                logger.info("%s lookup of %s failed: %s", resolver.name, hostname, e)
                last_error = e
                continue
            if address is not None:
                return address
            logger.debug("%s lookup of %s returned no address", resolver.name, hostname)
        if last_error is not None:
            raise last_error
        return None

    def __repr__(self) -> str:
        return f"<FallbackResolver {'+'.join(r.name for r in self.resolvers)}>"


def build_resolver(settings: Optional["ResolverSettings"] = None) -> BaseResolver:
    """Brief: Construct the resolver described by validated settings.

    Inputs:
      - settings: ResolverSettings (defaults are used when None).

    Outputs:
      - BaseResolver: a single strategy or a FallbackResolver chain.

    Example:
      >>> build_resolver()
      <FallbackResolver doh+udp>
    """

    if settings is None:
        from .config.config_schema import ResolverSettings

        settings = ResolverSettings()

    def _make(kind: str) -> BaseResolver:
        if kind == "doh":
            return DoHResolver(
                url=settings.doh.url,
                timeout=settings.doh.timeout,
                verify=settings.doh.verify,
            )
        if kind == "udp":
            return UDPResolver(
                timeout=settings.udp.timeout,
                retries=settings.udp.retries,
                port=settings.udp.port,
            )
        raise ValueError(f"Unknown resolution strategy: {kind!r}")

    parts = settings.strategy.split("+")
    if len(parts) == 1:
        return _make(parts[0])
    return FallbackResolver([_make(p) for p in parts])


_default_resolver: Optional[BaseResolver] = None
_default_lock = threading.Lock()


def get_default_resolver() -> BaseResolver:
    """Brief: Return the process-wide resolver, building the default on first use."""
    global _default_resolver
    with _default_lock:
        if _default_resolver is None:
            _default_resolver = build_resolver()
        return _default_resolver


def set_default_resolver(resolver: Optional[BaseResolver]) -> None:
    """Brief: Install (or with None, reset) the process-wide resolver."""
    global _default_resolver
    with _default_lock:
        _default_resolver = resolver
