from __future__ import annotations

import importlib.metadata
import ipaddress
import logging
from typing import Any, Optional, Union

import requests

from ..errors import ResolutionError

logger = logging.getLogger(__name__)

DEFAULT_DOH_URL = "https://223.5.5.5/resolve"
DEFAULT_TIMEOUT = 2.0

IPAddress = Union[ipaddress.IPv4Address, ipaddress.IPv6Address]

try:
    WGENDPOINT_VERSION = importlib.metadata.version("wgendpoint")
except (
    importlib.metadata.PackageNotFoundError
):  # pragma: no cover - running from a source checkout
    WGENDPOINT_VERSION = "unknown"


class DoHError(ResolutionError):
    """
    Brief: DNS-over-HTTPS (JSON API) transport error.

    Inputs:
    - message: Description of the error

    Outputs:
    - Exception instance
    """

    pass


def _first_address(answers: Any) -> Optional[IPAddress]:
    """
    Brief: Pick the first answer entry whose data is an address literal.

    Inputs:
    - answers: decoded "Answer" value (expected to be a list of objects)

    Outputs:
    - address or None

    Notes:
    - Entries with empty data are ignored. Entries whose data is not an
      address (CNAME targets, for instance) are skipped as well.
    """
    if not isinstance(answers, list):
        if answers is not None:
            raise DoHError(f"unexpected Answer type: {type(answers).__name__}")
        return None
    for record in answers:
        if not isinstance(record, dict):
            raise DoHError(f"unexpected Answer entry: {record!r}")
        data = record.get("data")
        if not data:
            continue
        try:
            return ipaddress.ip_address(str(data).strip())
        except ValueError:
            logger.debug("Skipping non-address DoH answer data %r", data)
    return None


def doh_query(
    hostname: str,
    record_type: str = "A",
    *,
    url: str = DEFAULT_DOH_URL,
    timeout: float = DEFAULT_TIMEOUT,
    verify: bool = True,
    session: Optional[requests.Session] = None,
) -> Optional[IPAddress]:
    """
    Brief: Resolve a hostname through a DoH JSON endpoint.

    Inputs:
    - hostname: name to resolve (sent URL-encoded as the "name" parameter)
    - record_type: "A" or "AAAA" (sent as the "type" parameter)
    - url: JSON resolve endpoint, e.g. https://223.5.5.5/resolve
    - timeout: seconds, applied to both connect and read
    - verify: verify TLS certificates
    - session: optional requests.Session to issue the request with

    Outputs:
    - The first usable answer address, or None when the response carries no
      (usable) "Answer" entries.

    Notes:
    - Raises DoHError for network/TLS errors, timeouts, non-2xx statuses and
      bodies that are not a JSON object.

    Example:
        >>> try:
        ...     doh_query("example.com", url="https://example.invalid/resolve")
        ... except DoHError:
        ...     pass
    """
    params = {"name": hostname, "type": record_type}
    headers = {
        "Accept": "application/json",
        "User-Agent": f"wgendpoint/{WGENDPOINT_VERSION}",
    }
    getter = session.get if session is not None else requests.get
    try:
        resp = getter(
            url,
            params=params,
            headers=headers,
            timeout=(timeout, timeout),
            verify=verify,
        )
        resp.raise_for_status()
        body = resp.json()
    except requests.RequestException as e:
        raise DoHError(f"DoH request for {hostname} ({record_type}) failed: {e}") from e
    except ValueError as e:
        raise DoHError(f"DoH response for {hostname} is not JSON: {e}") from e

    if not isinstance(body, dict):
        raise DoHError(f"DoH response for {hostname} is not a JSON object")

    answers = body.get("Answer")
    if answers is not None:
        logger.info("Doh return: %s", answers)
    return _first_address(answers)
