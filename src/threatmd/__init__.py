"""
threatmd: parser-combinator extraction of structured records from Markdown.
"""

from .core import (
    BlockKind,
    Cursor,
    EndOfStream,
    ExpectedToken,
    HeadingLevel,
    ParseError,
    Span,
    Token,
    TokenBuffer,
    TokenKind,
)
from .grammar import MetadataError, Threat, ThreatMetadata, parse_threat

__version__ = "0.1.0"

__all__ = [
    "BlockKind",
    "Cursor",
    "EndOfStream",
    "ExpectedToken",
    "HeadingLevel",
    "ParseError",
    "Span",
    "Token",
    "TokenBuffer",
    "TokenKind",
    "MetadataError",
    "Threat",
    "ThreatMetadata",
    "parse_threat",
]
