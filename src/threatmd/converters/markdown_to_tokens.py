"""
Converter from Markdown text to a flat token stream.

markdown-it produces a two-level token list (blocks with inline children).
This converter flattens it into the START/END/leaf stream the cursor walks:
1. Front matter becomes a metadata block holding the raw YAML text
2. Hidden paragraphs of tight list items are dropped
3. Inline children are inlined, with adjacent text runs merged
"""

from __future__ import annotations

import logging
from typing import List, Optional

from markdown_it import MarkdownIt
from markdown_it.token import Token as MdToken
from mdit_py_plugins.front_matter import front_matter_plugin

from ..core.tokens import BlockKind, Token, TokenKind


# markdown-it open/close token type prefix -> block kind
_CONTAINERS = {
    "heading": BlockKind.HEADING,
    "paragraph": BlockKind.PARAGRAPH,
    "bullet_list": BlockKind.LIST,
    "ordered_list": BlockKind.LIST,
    "list_item": BlockKind.ITEM,
    "blockquote": BlockKind.BLOCK_QUOTE,
    "em": BlockKind.EMPHASIS,
    "strong": BlockKind.STRONG,
    "link": BlockKind.LINK,
}

_LEAVES = {
    "code_inline": TokenKind.CODE,
    "softbreak": TokenKind.SOFT_BREAK,
    "hardbreak": TokenKind.HARD_BREAK,
    "html_inline": TokenKind.HTML,
    "html_block": TokenKind.HTML,
    "hr": TokenKind.RULE,
}


class MarkdownToTokensConverter:
    """
    Converts Markdown text to the token stream used by TokenBuffer.

    Uses the CommonMark preset of markdown-it with YAML front matter
    recognition enabled.
    """

    def __init__(self):
        self.logger = logging.getLogger(__name__)
        self.md = MarkdownIt("commonmark").use(front_matter_plugin)
        self._tokens: List[Token] = []
        self._open: List[Token] = []

    def convert(self, text: str) -> List[Token]:
        """
        Tokenize a Markdown document.

        Returns:
            Flat list of tokens; every START token has a matching END token.
        """
        self._tokens = []
        self._open = []

        for md_token in self.md.parse(text):
            self._convert_token(md_token)

        self.logger.debug(f"Tokenized {len(text)} characters into {len(self._tokens)} tokens")
        return self._tokens

    def _convert_token(self, md_token: MdToken) -> None:
        """Convert one markdown-it token, recursing into inline children."""
        kind = md_token.type

        if kind == "inline":
            for child in md_token.children or []:
                self._convert_token(child)
        elif kind == "front_matter":
            self._open_block(Token.start(BlockKind.METADATA))
            if md_token.content:
                self._emit_text(md_token.content)
            self._close_block(BlockKind.METADATA)
        elif kind in ("fence", "code_block"):
            fenced = kind == "fence"
            language = md_token.info.strip() if fenced else None
            self._open_block(Token.start(BlockKind.CODE_BLOCK, language=language, fenced=fenced))
            if md_token.content:
                self._tokens.append(Token.text(md_token.content))
            self._close_block(BlockKind.CODE_BLOCK)
        elif kind == "image":
            self._open_block(Token.start(
                BlockKind.IMAGE,
                href=md_token.attrGet("src"),
                title=md_token.attrGet("title") or None,
            ))
            for child in md_token.children or []:
                self._convert_token(child)
            self._close_block(BlockKind.IMAGE)
        elif kind in ("text", "text_special"):
            self._emit_text(md_token.content)
        elif kind in _LEAVES:
            self._tokens.append(Token(_LEAVES[kind], content=md_token.content))
        elif kind.endswith("_open") or kind.endswith("_close"):
            self._convert_container(md_token)
        else:
            self.logger.debug(f"Keeping unsupported markdown-it token {kind!r} as text")
            if md_token.content:
                self._emit_text(md_token.content)

    def _convert_container(self, md_token: MdToken) -> None:
        """Convert an open/close token pair member."""
        name, _, _ = md_token.type.rpartition("_")
        block = _CONTAINERS.get(name)

        if block is None:
            self.logger.debug(f"Skipping unsupported container {md_token.type!r}")
            return

        # Tight list items wrap their text in hidden paragraphs
        if block is BlockKind.PARAGRAPH and md_token.hidden:
            return

        if md_token.nesting < 0:
            self._close_block(block)
        else:
            self._open_block(self._opening_token(name, block, md_token))

    def _opening_token(self, name: str, block: BlockKind, md_token: MdToken) -> Token:
        if block is BlockKind.HEADING:
            return Token.start(block, level=int(md_token.tag[1:]))
        if name == "ordered_list":
            start = md_token.attrGet("start")
            return Token.start(block, start_number=int(start) if start is not None else 1)
        if block is BlockKind.LINK:
            return Token.start(
                block,
                href=md_token.attrGet("href"),
                title=md_token.attrGet("title") or None,
            )
        return Token.start(block)

    def _open_block(self, token: Token) -> None:
        self._open.append(token)
        self._tokens.append(token)

    def _close_block(self, block: BlockKind) -> None:
        opening: Optional[Token] = self._open.pop() if self._open else None
        if opening is None or opening.block is not block:
            raise RuntimeError(f"Unbalanced markdown-it token stream: closing {block.name}")
        self._tokens.append(opening.closing())

    def _emit_text(self, content: str) -> None:
        """Append a text run, merging it with a preceding one."""
        if self._tokens and self._tokens[-1].is_text:
            previous = self._tokens.pop()
            content = previous.content + content
        self._tokens.append(Token.text(content))
