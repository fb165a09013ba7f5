"""
Errors raised by cursor operations.

There are exactly two kinds: the stream ran out where a token was required,
or a token was present but had the wrong shape or content.
"""

from __future__ import annotations

from typing import Optional


class ParseError(Exception):
    """Base class for cursor failures."""

    def __init__(self, message: str, position: Optional[int] = None):
        super().__init__(message)
        self.position = position

    def __str__(self) -> str:
        message = super().__str__()
        if self.position is None:
            return message
        return f"{message} (at token {self.position})"


class EndOfStream(ParseError):
    """No token was available where one was required."""

    def __init__(self, position: Optional[int] = None):
        super().__init__("End of stream reached", position)


class ExpectedToken(ParseError):
    """A token was available but did not match."""

    def __init__(self, description: str, position: Optional[int] = None):
        super().__init__(f"Expected token: {description}", position)
        self.description = description
