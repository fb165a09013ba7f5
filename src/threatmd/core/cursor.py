"""
Cursor over a token buffer with parser-combinator style extractors.

Every extractor either returns its value or raises a ``ParseError``. The
cursor only moves forward, except that ``alt`` and ``multi`` rewind to a
saved position when an attempt fails.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Callable, List, Optional, Sequence, Tuple, TypeVar

from .errors import EndOfStream, ExpectedToken, ParseError
from .tokens import BlockKind, Span, Token

if TYPE_CHECKING:
    from .buffer import TokenBuffer

T = TypeVar("T")

Predicate = Callable[[Token], bool]
Extractor = Callable[[Token], Optional[T]]
SpanParser = Callable[["Cursor"], Span]

logger = logging.getLogger(__name__)


class Cursor:
    """
    Read-only, position-tracking view over a TokenBuffer.

    The cursor never mutates the buffer; several cursors may walk the
    same buffer independently.
    """

    def __init__(self, buffer: TokenBuffer, position: int = 0):
        self._buffer = buffer
        self._position = 0
        self.rewind(position)

    @property
    def buffer(self) -> TokenBuffer:
        return self._buffer

    @property
    def position(self) -> int:
        """Index of the next token to be read."""
        return self._position

    def rewind(self, position: int) -> None:
        """Move back (or forward) to a position previously read from ``position``."""
        if not 0 <= position <= len(self._buffer):
            raise ValueError(f"Position {position} is outside the buffer (0..{len(self._buffer)})")
        self._position = position

    def at_end(self) -> bool:
        return self._position >= len(self._buffer)

    def _next(self) -> Optional[Tuple[Token, int]]:
        if self.at_end():
            return None
        pos = self._position
        self._position += 1
        return self._buffer[pos], pos

    def _peek(self) -> Optional[Tuple[Token, int]]:
        if self.at_end():
            return None
        return self._buffer[self._position], self._position

    # Primitive operations

    def consume_if(self, predicate: Predicate) -> Tuple[Token, int]:
        """Consume the next token if it satisfies ``predicate``."""
        entry = self._next()
        if entry is None:
            raise EndOfStream(self._position)
        token, pos = entry
        if not predicate(token):
            raise ExpectedToken(f"unexpected {token}", pos)
        return token, pos

    def consume_map(self, extractor: Extractor[T]) -> T:
        """Consume the next token and return ``extractor(token)``; ``None`` means no match."""
        entry = self._next()
        if entry is None:
            raise EndOfStream(self._position)
        token, pos = entry
        value = extractor(token)
        if value is None:
            raise ExpectedToken(f"unexpected {token}", pos)
        return value

    def peek_if(self, predicate: Predicate) -> Tuple[Token, int]:
        """Like ``consume_if`` but leaves the cursor where it is."""
        entry = self._peek()
        if entry is None:
            raise EndOfStream(self._position)
        token, pos = entry
        if not predicate(token):
            raise ExpectedToken(f"unexpected {token}", pos)
        return token, pos

    def consume_text(self) -> str:
        return self.consume_map(lambda token: token.content if token.is_text else None)

    # Structured extractors

    def metadata(self) -> str:
        """Return the raw content of a metadata block."""
        self.consume_if(lambda token: token.is_start(BlockKind.METADATA))
        content = self.consume_text()
        self.consume_if(lambda token: token.is_end(BlockKind.METADATA))
        return content

    def heading(self, level: int) -> str:
        """Return the text of a heading at exactly ``level``."""
        self.consume_if(lambda token: token.is_start(BlockKind.HEADING) and token.level == level)
        content = self.consume_text()
        self.consume_if(lambda token: token.is_end(BlockKind.HEADING) and token.level == level)
        return content

    def named_heading(self, level: int, expected: str) -> None:
        start = self._position
        if self.heading(level) != expected:
            raise ExpectedToken(f"A heading with the content: {expected}", start)

    def _block(self, opening: Predicate, block: BlockKind) -> Span:
        _, start = self.peek_if(opening)
        while True:
            token, pos = self.consume_if(lambda _token: True)
            if token.is_end(block):
                return Span(start, pos)

    def paragraph(self) -> Span:
        return self._block(lambda token: token.is_start(BlockKind.PARAGRAPH), BlockKind.PARAGRAPH)

    def code_block(self) -> Span:
        """Match a fenced code block with any language tag."""
        return self._block(
            lambda token: token.is_start(BlockKind.CODE_BLOCK) and token.fenced,
            BlockKind.CODE_BLOCK,
        )

    def lang_block(self, language: str) -> Span:
        """Match a fenced code block tagged with exactly ``language``."""
        return self._block(
            lambda token: (
                token.is_start(BlockKind.CODE_BLOCK)
                and token.fenced
                and token.language == language
            ),
            BlockKind.CODE_BLOCK,
        )

    def text(self) -> Span:
        """One unit of body content: a paragraph or a fenced code block."""
        return self.alt([Cursor.paragraph, Cursor.code_block])

    def alt(self, parsers: Sequence[SpanParser]) -> Span:
        """
        Return the result of the first parser that succeeds.

        Every alternative starts from the position the cursor had when
        ``alt`` was called.
        """
        start = self._position
        for parser in parsers:
            try:
                return parser(self)
            except ParseError as e:
                logger.debug(f"Alternative {getattr(parser, '__name__', parser)!s} failed: {e}")
                self.rewind(start)
        raise ExpectedToken("Expected either one of the alternatives to match", start)

    def multi(self, parser: SpanParser) -> Optional[Span]:
        """
        Greedily absorb consecutive blocks into one span.

        Starts with a paragraph (``None`` if there is none) and then extends
        the span with every successful ``parser`` call until one fails.
        """
        start = self._position
        try:
            span = self.paragraph()
        except ParseError:
            self.rewind(start)
            return None

        while True:
            mark = self._position
            try:
                following = parser(self)
            except ParseError:
                self.rewind(mark)
                return span
            span = span.extend(following.end)

    def item(self) -> Optional[str]:
        """Return the text of the next list item, or ``None`` at the end of the list."""
        entry = self._peek()
        if entry is None or not entry[0].is_start(BlockKind.ITEM):
            return None
        self._next()

        token = self._expect(lambda token: token.is_text, "expected a Text block")
        self._expect(lambda token: token.is_end(BlockKind.ITEM), "expected the end of an Item")
        return token.content

    def item_list(self) -> List[str]:
        """Return the texts of an unordered list whose items are single text runs."""
        self._expect(
            lambda token: token.is_start(BlockKind.LIST) and token.start_number is None,
            "expected a list block",
        )

        items = []
        while True:
            item = self.item()
            if item is None:
                break
            items.append(item)

        self._expect(
            lambda token: token.is_end(BlockKind.LIST) and token.start_number is None,
            "expected the end of a list",
        )
        return items

    def _expect(self, predicate: Predicate, description: str) -> Token:
        # End of stream is reported as a mismatch, not EndOfStream.
        pos = self._position
        entry = self._next()
        if entry is None or not predicate(entry[0]):
            raise ExpectedToken(description, pos)
        return entry[0]
