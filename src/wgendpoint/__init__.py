"""wgendpoint: VPN peer endpoint parsing and hostname resolution."""

from .endpoint import RESOLUTION_COOLDOWN_SECONDS, Endpoint
from .errors import ParseError, ResolutionError

__all__ = [
    "Endpoint",
    "ParseError",
    "ResolutionError",
    "RESOLUTION_COOLDOWN_SECONDS",
]
