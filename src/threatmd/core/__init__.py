"""
Core token model and parser-combinator cursor.
"""

from .tokens import BlockKind, HeadingLevel, Span, Token, TokenKind
from .errors import EndOfStream, ExpectedToken, ParseError
from .cursor import Cursor
from .buffer import TokenBuffer

__all__ = [
    "BlockKind",
    "HeadingLevel",
    "Span",
    "Token",
    "TokenKind",
    "EndOfStream",
    "ExpectedToken",
    "ParseError",
    "Cursor",
    "TokenBuffer",
]
