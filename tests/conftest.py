"""
Brief: Global pytest configuration: src on sys.path, per-test 10s timeout,
and a clean process-wide resolver state for every test.

Inputs:
  - None

Outputs:
  - None
"""

import os
import signal
import sys

import pytest

# Ensure 'src' is on sys.path so 'wgendpoint' is importable without installing.
ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), os.pardir))
SRC_DIR = os.path.join(ROOT, "src")
if SRC_DIR not in sys.path:
    sys.path.insert(0, SRC_DIR)


def _alarm_handler(signum, frame):
    """
    Brief: Signal handler that raises TimeoutError when alarm triggers.

    Inputs:
      - signum: signal number (int)
      - frame: current frame (ignored)

    Outputs:
      - None: Raises TimeoutError to fail the test
    """
    raise TimeoutError("Test exceeded 10 seconds")


if hasattr(signal, "SIGALRM"):
    signal.signal(signal.SIGALRM, _alarm_handler)


@pytest.fixture(autouse=True)
def reset_resolution_state():
    """
    Brief: Reset the process-wide DNS server, default resolver and cooldown.

    Inputs:
      - None

    Outputs:
      - None
    """
    from wgendpoint import endpoint, resolvers
    from wgendpoint.transports import udp

    udp.set_dns_server(None)
    resolvers.set_default_resolver(None)
    endpoint.set_default_cooldown(endpoint.RESOLUTION_COOLDOWN_SECONDS)
    yield
    udp.set_dns_server(None)
    resolvers.set_default_resolver(None)
    endpoint.set_default_cooldown(endpoint.RESOLUTION_COOLDOWN_SECONDS)


@pytest.fixture(autouse=True)
def enforce_test_timeout():
    """
    Brief: Enforce a hard 10-second timeout for each test.

    Inputs:
      - None

    Outputs:
      - None: Cancels alarm after test
    """
    if hasattr(signal, "SIGALRM"):
        signal.alarm(10)
        try:
            yield
        finally:
            signal.alarm(0)
    else:
        yield


class FakeClock:
    """Brief: Manually advanced time source for cooldown tests."""

    def __init__(self, start: float = 1_000_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class StubResolver:
    """Brief: Resolver double that records calls and replays scripted results.

    Each entry in ``results`` is either an address/None to return or an
    exception instance to raise; the last entry repeats.
    """

    name = "stub"

    def __init__(self, *results):
        self.results = list(results) or [None]
        self.calls = []

    def resolve(self, hostname):
        self.calls.append(hostname)
        idx = min(len(self.calls) - 1, len(self.results) - 1)
        result = self.results[idx]
        if isinstance(result, BaseException):
            raise result
        return result


@pytest.fixture
def fake_clock():
    return FakeClock()


@pytest.fixture
def make_resolver():
    return StubResolver
