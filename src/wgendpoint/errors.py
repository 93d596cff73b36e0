"""Exception types shared across endpoint parsing and resolution."""

from __future__ import annotations


class ParseError(ValueError):
    """
    Brief: Endpoint text could not be parsed.

    Inputs:
    - text: the offending endpoint text
    - reason: short description of what was wrong

    Outputs:
    - Exception instance
    """

    def __init__(self, text: str, reason: str) -> None:
        super().__init__(f"Invalid endpoint {text!r}: {reason}")
        self.text = text
        self.reason = reason


class ResolutionError(Exception):
    """
    Brief: A single attempt to resolve a hostname failed.

    Inputs:
    - message: description

    Outputs:
    - Exception instance
    """

    pass
