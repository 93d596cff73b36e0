"""
Brief: Tests for wgendpoint.config.logging_config.init_logging and formatters.

Inputs:
  - None

Outputs:
  - None
"""

import logging
import logging.handlers
from pathlib import Path

import pytest

from wgendpoint.config.logging_config import (
    BracketLevelFormatter,
    SyslogFormatter,
    init_logging,
    parse_level,
)


@pytest.fixture(autouse=True)
def restore_root_logger():
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    yield
    for h in list(root.handlers):
        root.removeHandler(h)
    for h in handlers:
        root.addHandler(h)
    root.setLevel(level)
    for name in ("wgendpoint.transports", "urllib3", "requests"):
        logging.getLogger(name).setLevel(logging.NOTSET)
    logging.captureWarnings(False)


def test_init_logging_adds_stderr_handler():
    """
    Brief: init_logging configures the root logger with a stderr handler by default.

    Inputs:
      - cfg: minimal dict with level

    Outputs:
      - None: Asserts StreamHandler present and level applied
    """
    init_logging({"level": "debug"})
    root = logging.getLogger()
    assert root.level == logging.DEBUG
    assert any(isinstance(h, logging.StreamHandler) for h in root.handlers)


def test_init_logging_without_stderr_has_no_handlers():
    init_logging({"stderr": False})
    assert logging.getLogger().handlers == []


def test_init_logging_file_handler_writes(tmp_path):
    log_path = tmp_path / "logs" / "wgendpoint.log"
    init_logging({"level": "info", "stderr": False, "file": str(log_path)})
    logging.getLogger("wgendpoint.test").info("file message")
    for h in logging.getLogger().handlers:
        h.flush()
    content = Path(log_path).read_text()
    assert "file message" in content
    assert "[info] wgendpoint.test:" in content


def test_per_logger_levels_and_quiet_urllib3():
    init_logging(
        {"level": "info", "stderr": False, "loggers": {"wgendpoint.transports": "debug"}}
    )
    assert logging.getLogger("wgendpoint.transports").level == logging.DEBUG
    assert logging.getLogger("urllib3").level == logging.WARNING


def test_init_logging_syslog_uses_tag(monkeypatch):
    """
    Brief: init_logging attaches a syslog handler with the configured tag.

    Inputs:
      - syslog: True or dict

    Outputs:
      - None: Asserts dummy handler built with address/facility/formatter
    """
    created = {}

    class DummySysLogHandler(logging.Handler):
        LOG_USER = 8
        LOG_LOCAL0 = 128

        def __init__(self, address=None, facility=None):
            super().__init__()
            created["address"] = address
            created["facility"] = facility

        def setFormatter(self, fmt):
            created["formatter"] = fmt

    monkeypatch.setattr(logging.handlers, "SysLogHandler", DummySysLogHandler)

    init_logging({"stderr": False, "syslog": True})
    assert created["address"] == "/dev/log"
    assert created["formatter"].tag == "wgendpoint"

    created.clear()
    init_logging(
        {
            "stderr": False,
            "syslog": {"address": ["localhost", 514], "facility": "local0", "tag": "peer"},
        }
    )
    assert created["address"] == ("localhost", 514)
    assert created["facility"] == 128
    assert created["formatter"].tag == "peer"


def test_formatters_produce_expected_tags():
    fmt = BracketLevelFormatter(fmt="%(asctime)s %(level_tag)s %(name)s: %(message)s")
    rec = logging.LogRecord("n", logging.ERROR, __file__, 1, "m", (), None)
    out = fmt.format(rec)
    assert "[error] n: m" in out
    assert out.split(" ", 1)[0].endswith("Z")

    rec2 = logging.LogRecord("n2", logging.WARNING, __file__, 2, "m2", (), None)
    assert SyslogFormatter().format(rec2) == "[warn] n2: m2"
    assert SyslogFormatter(tag="wg").format(rec2) == "wg: [warn] n2: m2"

    rec3 = logging.LogRecord("n3", 25, __file__, 3, "m3", (), None)
    assert SyslogFormatter().format(rec3).startswith("[lvl25]")


def test_parse_level():
    assert parse_level("crit") == logging.CRITICAL
    assert parse_level("Warning") == logging.WARNING
    assert parse_level("bogus") == logging.INFO
    assert parse_level(None, logging.ERROR) == logging.ERROR
