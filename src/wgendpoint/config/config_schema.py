"""Typed configuration models for wgendpoint.

Brief:
  Pydantic models describing the ``resolver`` and ``logging`` sections of the
  YAML configuration file. Defaults reproduce the built-in behavior so an empty
  file is a valid configuration.
"""

from __future__ import annotations

import ipaddress
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field, validator

from ..transports.doh import DEFAULT_DOH_URL

STRATEGIES = ("doh", "udp", "doh+udp", "udp+doh")


class DoHSettings(BaseModel):
    """Brief: Settings for the DoH JSON transport.

    Inputs:
      - url: JSON resolve endpoint (must be http/https).
      - timeout: connect and read timeout in seconds (> 0).
      - verify: verify TLS certificates.

    Outputs:
      - DoHSettings instance.
    """

    url: str = Field(default=DEFAULT_DOH_URL)
    timeout: float = Field(default=2.0, gt=0)
    verify: bool = True

    @validator("url", pre=True)
    def _check_url(cls, v):  # type: ignore[no-untyped-def]
        s = str(v or "").strip()
        if not s.lower().startswith(("https://", "http://")):
            raise ValueError(f"doh.url must be an http(s) URL, got {v!r}")
        return s


class UDPSettings(BaseModel):
    """Brief: Settings for the raw UDP DNS transport.

    Inputs:
      - server: optional DNS server IP literal (None keeps the default).
      - port: DNS server UDP port.
      - timeout: per-attempt receive timeout in seconds.
      - retries: attempts per record type.

    Outputs:
      - UDPSettings instance.
    """

    server: Optional[str] = Field(default=None)
    port: int = Field(default=53, ge=1, le=65535)
    timeout: float = Field(default=2.0, gt=0)
    retries: int = Field(default=3, ge=1)

    @validator("server", pre=True)
    def _check_server(cls, v):  # type: ignore[no-untyped-def]
        """Brief: Accept only IP literals; blank means "use the default".

        Inputs:
          - v: raw server value from YAML/env.

        Outputs:
          - Optional[str]: normalized address text or None.
        """

        if v is None:
            return None
        s = str(v).strip()
        if not s:
            return None
        return str(ipaddress.ip_address(s))


class ResolverSettings(BaseModel):
    """Brief: Resolution policy for endpoints.

    Inputs:
      - strategy: one of "doh", "udp", "doh+udp", "udp+doh".
      - cooldown_seconds: minimum age of a cached result before re-resolving.
      - doh: DoHSettings.
      - udp: UDPSettings.

    Outputs:
      - ResolverSettings instance.
    """

    strategy: str = Field(default="doh+udp")
    cooldown_seconds: float = Field(default=10.0, ge=0)
    doh: DoHSettings = Field(default_factory=DoHSettings)
    udp: UDPSettings = Field(default_factory=UDPSettings)

    @validator("strategy", pre=True)
    def _check_strategy(cls, v):  # type: ignore[no-untyped-def]
        s = str(v or "doh+udp").strip().lower().replace(" ", "")
        if s not in STRATEGIES:
            raise ValueError(
                f"strategy must be one of {', '.join(STRATEGIES)}, got {v!r}"
            )
        return s


class AppConfig(BaseModel):
    """Brief: Top-level configuration document.

    Inputs:
      - logging: mapping passed to init_logging.
      - resolver: ResolverSettings.

    Outputs:
      - AppConfig instance.
    """

    logging: Dict[str, Any] = Field(default_factory=dict)
    resolver: ResolverSettings = Field(default_factory=ResolverSettings)

    @validator("logging", "resolver", pre=True)
    def _none_is_empty(cls, v):  # type: ignore[no-untyped-def]
        return {} if v is None else v
