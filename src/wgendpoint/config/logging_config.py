from __future__ import annotations

import logging
import logging.handlers
import os
import sys
from datetime import datetime, timezone
from typing import Any, Dict, Optional

_LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warn": logging.WARNING,
    "warning": logging.WARNING,
    "error": logging.ERROR,
    "crit": logging.CRITICAL,
    "critical": logging.CRITICAL,
}

_TAGS = {
    logging.DEBUG: "[debug]",
    logging.INFO: "[info]",
    logging.WARNING: "[warn]",
    logging.ERROR: "[error]",
    logging.CRITICAL: "[crit]",
}

# Third-party loggers that are chatty at debug level.
_QUIET_LOGGERS = ("urllib3", "requests")


def _level_tag(levelno: int) -> str:
    return _TAGS.get(levelno, f"[lvl{levelno}]")


def parse_level(value: Any, default: int = logging.INFO) -> int:
    """
    Brief: Map a config level name (debug/info/warn/error/crit) to a logging level.

    Inputs:
      - value: level name (case-insensitive) or None
      - default: level returned for unknown names

    Outputs:
      - int logging level

    Example:
        >>> parse_level("WARN") == logging.WARNING
        True
    """
    return _LEVELS.get(str(value or "").strip().lower(), default)


class SyslogFormatter(logging.Formatter):
    """Formatter for syslog output without timestamps (syslog adds its own)."""

    def __init__(self, tag: Optional[str] = None) -> None:
        super().__init__()
        self.tag = tag

    def format(self, record):
        record.level_tag = _level_tag(record.levelno)
        msg = f"{record.level_tag} {record.name}: {record.getMessage()}"
        return f"{self.tag}: {msg}" if self.tag else msg


class BracketLevelFormatter(logging.Formatter):
    """Formatter with bracketed lowercase level tags and UTC timestamps."""

    def formatTime(self, record, datefmt=None):
        return datetime.fromtimestamp(record.created, timezone.utc).strftime(
            "%Y-%m-%dT%H:%M:%SZ"
        )

    def format(self, record):
        record.level_tag = _level_tag(record.levelno)
        return super().format(record)


def _syslog_handler(syslog_cfg: Any) -> logging.Handler:
    if isinstance(syslog_cfg, dict):
        address = syslog_cfg.get("address", "/dev/log")
        if isinstance(address, list):
            address = tuple(address)
        facility = getattr(
            logging.handlers.SysLogHandler,
            f"LOG_{str(syslog_cfg.get('facility', 'USER')).upper()}",
            logging.handlers.SysLogHandler.LOG_USER,
        )
        tag = syslog_cfg.get("tag", "wgendpoint")
    else:
        address = "/dev/log"
        facility = logging.handlers.SysLogHandler.LOG_USER
        tag = "wgendpoint"
    handler = logging.handlers.SysLogHandler(address=address, facility=facility)
    handler.setFormatter(SyslogFormatter(tag=tag))
    return handler


def init_logging(cfg: Optional[Dict[str, Any]]) -> None:
    """
    Initialize process-wide logging from the ``logging`` config section.

    Args:
        cfg: Logging configuration dictionary with optional keys:
            - level: debug, info, warn, error, crit (default: info)
            - stderr: boolean to log to stderr (default: True)
            - file: string path to log file (optional)
            - syslog: boolean or dict with address/facility/tag (optional)
            - loggers: mapping of logger name -> level, applied after the
              root level (e.g. {"wgendpoint.transports": "debug"})

    Example config:
        {
            "level": "info",
            "file": "./wgendpoint.log",
            "loggers": {"wgendpoint.transports.udp": "debug"}
        }
    """
    cfg = cfg or {}
    level = parse_level(cfg.get("level", "info"))
    formatter = BracketLevelFormatter(fmt="%(asctime)s %(level_tag)s %(name)s: %(message)s")

    root = logging.getLogger()
    root.setLevel(level)
    for h in list(root.handlers):
        root.removeHandler(h)

    if cfg.get("stderr", True):
        stderr_handler = logging.StreamHandler(sys.stderr)
        stderr_handler.setFormatter(formatter)
        root.addHandler(stderr_handler)

    file_path = cfg.get("file")
    if isinstance(file_path, str) and file_path.strip():
        path = os.path.abspath(os.path.expanduser(file_path.strip()))
        os.makedirs(os.path.dirname(path), exist_ok=True)
        file_handler = logging.FileHandler(path, mode="a", encoding="utf-8")
        file_handler.setFormatter(formatter)
        root.addHandler(file_handler)

    syslog_cfg = cfg.get("syslog")
    if syslog_cfg:
        try:
            root.addHandler(_syslog_handler(syslog_cfg))
        except (
            OSError,
            ValueError,
        ) as e:  # pragma: no cover - depends on the host's syslog socket
            root.warning(f"Failed to configure syslog: {e}")

    # Keep urllib3 connection chatter out of debug output unless asked for.
    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))

    loggers = cfg.get("loggers") or {}
    if isinstance(loggers, dict):
        for name, lvl in loggers.items():
            logging.getLogger(str(name)).setLevel(parse_level(lvl, level))

    logging.captureWarnings(True)
