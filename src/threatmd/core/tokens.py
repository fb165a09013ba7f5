"""
Token and span types shared by the tokenizer, the buffer and the cursor.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum, IntEnum
from typing import Optional


class TokenKind(Enum):
    """Kinds of tokens in a flattened Markdown stream."""
    START = "start"
    END = "end"
    TEXT = "text"
    CODE = "code"
    SOFT_BREAK = "soft_break"
    HARD_BREAK = "hard_break"
    HTML = "html"
    RULE = "rule"


class BlockKind(Enum):
    """Structures delimited by a START/END token pair."""
    METADATA = "metadata"
    HEADING = "heading"
    PARAGRAPH = "paragraph"
    CODE_BLOCK = "code_block"
    LIST = "list"
    ITEM = "item"
    BLOCK_QUOTE = "block_quote"

    # Inline containers
    EMPHASIS = "emphasis"
    STRONG = "strong"
    LINK = "link"
    IMAGE = "image"


class HeadingLevel(IntEnum):
    H1 = 1
    H2 = 2
    H3 = 3
    H4 = 4
    H5 = 5
    H6 = 6


@dataclass(frozen=True)
class Token:
    """
    One atomic unit of a tokenized document.

    Opening and closing tokens carry the same attributes, so a closing
    heading token knows its level and a closing list token knows whether
    the list was ordered.
    """

    kind: TokenKind
    block: Optional[BlockKind] = None
    content: str = ""
    level: Optional[int] = None
    language: Optional[str] = None
    fenced: bool = False
    start_number: Optional[int] = None
    href: Optional[str] = None
    title: Optional[str] = None

    @classmethod
    def start(cls, block: BlockKind, **attrs) -> Token:
        return cls(TokenKind.START, block, **attrs)

    @classmethod
    def text(cls, content: str) -> Token:
        return cls(TokenKind.TEXT, content=content)

    def closing(self) -> Token:
        """Return the END token matching this START token."""
        if self.kind is not TokenKind.START:
            raise ValueError(f"Only opening tokens can be closed, got {self!r}")
        return replace(self, kind=TokenKind.END)

    def is_start(self, block: Optional[BlockKind] = None) -> bool:
        return self.kind is TokenKind.START and (block is None or self.block is block)

    def is_end(self, block: Optional[BlockKind] = None) -> bool:
        return self.kind is TokenKind.END and (block is None or self.block is block)

    @property
    def is_text(self) -> bool:
        return self.kind is TokenKind.TEXT

    def __str__(self) -> str:
        if self.block is None:
            return f"{self.kind.name}({self.content!r})"
        attrs = []
        if self.level is not None:
            attrs.append(f"level={self.level}")
        if self.language:
            attrs.append(f"language={self.language!r}")
        if self.start_number is not None:
            attrs.append(f"start={self.start_number}")
        return f"{self.kind.name}(" + ", ".join([self.block.name] + attrs) + ")"


@dataclass(frozen=True)
class Span:
    """Inclusive range of token positions covering one structural unit."""

    start: int
    end: int

    def __post_init__(self) -> None:
        if self.start < 0 or self.start > self.end:
            raise ValueError(f"Invalid span: {self.start}..={self.end}")

    def __str__(self) -> str:
        return f"{self.start}..={self.end}"

    def __len__(self) -> int:
        return self.end - self.start + 1

    def contains(self, position: int) -> bool:
        """Check if position is within this span."""
        return self.start <= position <= self.end

    def extend(self, end: int) -> Span:
        """Return a span with the same start and a new end."""
        return Span(self.start, end)
