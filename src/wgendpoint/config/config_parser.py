"""Configuration loading for wgendpoint.

Brief:
  Reads the YAML configuration file, applies environment overrides, validates
  the result into typed settings, and installs the process-wide resolution
  state (DNS server, default strategy, cooldown) at startup.

Inputs:
  - YAML config paths or already-parsed mappings.

Outputs:
  - AppConfig instances and startup side effects.
"""

from __future__ import annotations

import logging
import os
from typing import Any, Dict, Mapping, Optional

import yaml

from ..endpoint import set_default_cooldown
from ..resolvers import BaseResolver, build_resolver, set_default_resolver
from ..transports.udp import set_dns_server
from .config_schema import AppConfig

logger = logging.getLogger(__name__)

ENV_DNS_SERVER = "WGENDPOINT_DNS_SERVER"


def _apply_env_overrides(cfg: Dict[str, Any], environ: Mapping[str, str]) -> None:
    """Brief: Fold supported environment variables into the raw config mapping.

    Inputs:
      - cfg: parsed YAML mapping (mutated in-place).
      - environ: environment mapping.

    Outputs:
      - None.
    """

    server = environ.get(ENV_DNS_SERVER)
    if server is None or not server.strip():
        return
    resolver = cfg.get("resolver")
    resolver = dict(resolver) if isinstance(resolver, dict) else {}
    udp = resolver.get("udp")
    udp = dict(udp) if isinstance(udp, dict) else {}
    udp["server"] = server.strip()
    resolver["udp"] = udp
    cfg["resolver"] = resolver


def parse_config(
    cfg: Optional[Dict[str, Any]],
    *,
    environ: Optional[Mapping[str, str]] = None,
) -> AppConfig:
    """Brief: Validate a parsed configuration mapping.

    Inputs:
      - cfg: mapping from YAML (None is treated as empty).
      - environ: optional environment mapping (defaults to os.environ).

    Outputs:
      - AppConfig.

    Raises:
      - ValueError: when the root is not a mapping or a value is invalid
        (pydantic's ValidationError is a ValueError).

    Example:
      >>> parse_config({}).resolver.strategy
      'doh+udp'
    """

    cfg = {} if cfg is None else cfg
    if not isinstance(cfg, dict):
        raise ValueError("Configuration root must be a mapping")
    cfg = dict(cfg)
    _apply_env_overrides(cfg, os.environ if environ is None else environ)
    return AppConfig(**cfg)


def read_config_file(config_path: str) -> Dict[str, Any]:
    """Brief: Read a YAML configuration file into a mapping.

    Inputs:
      - config_path: path to the YAML file.

    Outputs:
      - dict (empty for an empty file).

    Raises:
      - OSError: when the file cannot be read.
      - ValueError: when the YAML is malformed or its root is not a mapping.
    """

    with open(config_path, "r") as f:
        try:
            raw = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ValueError(f"Invalid YAML in {config_path}: {e}") from e
    if raw is None:
        return {}
    if not isinstance(raw, dict):
        raise ValueError("Configuration root must be a mapping")
    return raw


def load_config(
    config_path: str,
    *,
    environ: Optional[Mapping[str, str]] = None,
) -> AppConfig:
    """Brief: Read and validate a YAML configuration file.

    Inputs:
      - config_path: path to the YAML file.
      - environ: optional environment mapping (defaults to os.environ).

    Outputs:
      - AppConfig.
    """

    return parse_config(read_config_file(config_path), environ=environ)


def apply_config(config: AppConfig) -> BaseResolver:
    """Brief: Install process-wide resolution state from validated settings.

    Inputs:
      - config: AppConfig.

    Outputs:
      - BaseResolver: the resolver installed as the process-wide default.
    """

    settings = config.resolver
    set_dns_server(settings.udp.server)
    set_default_cooldown(settings.cooldown_seconds)
    resolver = build_resolver(settings)
    set_default_resolver(resolver)
    logger.info(
        "Resolver strategy %s (dns server %s)",
        settings.strategy,
        settings.udp.server or "default",
    )
    return resolver
