from __future__ import annotations

import argparse
import logging
from typing import Any, Dict, List

from .config.config_parser import apply_config, parse_config, read_config_file
from .config.config_schema import STRATEGIES
from .config.logging_config import init_logging
from .endpoint import Endpoint
from .errors import ParseError
from .transports.udp import parse_dns_server

EXIT_OK = 0
EXIT_UNRESOLVED = 1
EXIT_PARSE_ERROR = 2


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="wgendpoint",
        description="Resolve VPN peer endpoints (host:port) to numeric addresses",
    )
    parser.add_argument("--config", default=None, help="Path to YAML config")
    parser.add_argument(
        "--dns-server",
        default=None,
        help="DNS server for UDP lookups (IP or hostname); overrides the config",
    )
    parser.add_argument(
        "--strategy",
        choices=STRATEGIES,
        default=None,
        help="Resolution strategy; overrides the config",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        help="Logging level (debug, info, warn, error, crit); overrides the config",
    )
    parser.add_argument("endpoints", nargs="+", metavar="ENDPOINT")
    return parser


def main(argv: List[str] | None = None) -> int:
    """
    Command-line entry point: resolve each ENDPOINT and print the result.

    Args:
        argv: Command-line arguments (defaults to sys.argv[1:]).

    Returns:
        0 when every endpoint resolved, 1 when any did not (or the config was
        invalid), 2 when any endpoint text failed to parse.

    Example use:
        CLI:
            wgendpoint --strategy udp --dns-server 1.1.1.1 vpn.example.com:51820
            vpn.example.com:51820 -> 192.0.2.10:51820
    """
    parser = _build_parser()
    args = parser.parse_args(argv)

    try:
        raw: Dict[str, Any] = read_config_file(args.config) if args.config else {}
    except (OSError, ValueError) as exc:
        print(f"Cannot read config {args.config}: {exc}")
        return EXIT_UNRESOLVED

    resolver_cfg = dict(raw.get("resolver") or {})
    if args.strategy:
        resolver_cfg["strategy"] = args.strategy
    if args.dns_server:
        server = parse_dns_server(args.dns_server)
        if server is None:
            print(f"Invalid DNS server: {args.dns_server}")
            return EXIT_UNRESOLVED
        udp_cfg = dict(resolver_cfg.get("udp") or {})
        udp_cfg["server"] = str(server)
        resolver_cfg["udp"] = udp_cfg
    raw = {**raw, "resolver": resolver_cfg}
    if args.log_level:
        raw["logging"] = {**(raw.get("logging") or {}), "level": args.log_level}

    try:
        # --dns-server wins over the environment override.
        config = parse_config(raw, environ={} if args.dns_server else None)
    except ValueError as exc:
        print(str(exc))
        return EXIT_UNRESOLVED

    init_logging(config.logging)
    logger = logging.getLogger("wgendpoint.main")
    if args.config:
        logger.info("Loaded config from %s", args.config)
    apply_config(config)

    status = EXIT_OK
    for text in args.endpoints:
        try:
            endpoint = Endpoint.parse(text)
        except ParseError as exc:
            print(f"{text}: {exc.reason}")
            status = EXIT_PARSE_ERROR
            continue
        resolved = endpoint.get_resolved()
        if resolved is None:
            print(f"{endpoint} -> unresolved")
            status = max(status, EXIT_UNRESOLVED)
        else:
            print(f"{endpoint} -> {resolved}")
    return status


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
