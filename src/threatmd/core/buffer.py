"""
Token buffer owning the token sequence of one document.
"""

from __future__ import annotations

from typing import Iterable, Iterator, Optional, Tuple

from .cursor import Cursor
from .tokens import Span, Token


class TokenBuffer:
    """
    Holds the tokens of a single Markdown document.

    Spans handed out by cursors over this buffer are index pairs into it;
    ``render`` and ``literal_text`` turn them back into text.
    """

    def __init__(self, tokens: Iterable[Token]):
        self._tokens: Tuple[Token, ...] = tuple(tokens)

    @classmethod
    def from_markdown(cls, text: str) -> TokenBuffer:
        """Tokenize Markdown text with front matter recognition enabled."""
        from ..converters.markdown_to_tokens import MarkdownToTokensConverter

        return cls(MarkdownToTokensConverter().convert(text))

    @property
    def tokens(self) -> Tuple[Token, ...]:
        return self._tokens

    def __len__(self) -> int:
        return len(self._tokens)

    def __getitem__(self, position: int) -> Token:
        return self._tokens[position]

    def __iter__(self) -> Iterator[Token]:
        return iter(self._tokens)

    def slice(self, span: Span) -> Tuple[Token, ...]:
        """Return the tokens covered by ``span``."""
        if span.end >= len(self._tokens):
            raise IndexError(f"Span {span} exceeds buffer of {len(self._tokens)} tokens")
        return self._tokens[span.start:span.end + 1]

    def render(self, span: Optional[Span]) -> str:
        """Serialize the tokens in ``span`` back to Markdown; no span gives ''."""
        if span is None:
            return ""
        from ..converters.tokens_to_markdown import TokensToMarkdownConverter

        return TokensToMarkdownConverter().convert(self.slice(span))

    def literal_text(self, span: Span) -> str:
        """
        Return the text run right after the opening token of ``span``.

        Only meaningful for blocks holding a single leading text run, such
        as a code block. Returns '' when that token is not text.
        """
        position = span.start + 1
        if not span.contains(position) or position >= len(self._tokens):
            return ""
        token = self._tokens[position]
        if not token.is_text:
            return ""
        return token.content.rstrip()

    def open_cursor(self) -> Cursor:
        """Create a cursor positioned before the first token."""
        return Cursor(self)
