"""
Converter from a token run back to Markdown text.

The output is canonical rather than a byte-for-byte copy of the source:
emphasis always uses '*', lists use '-' or 'N.', code blocks are fenced
with backticks.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import List, Optional, Sequence

from ..core.tokens import BlockKind, Token, TokenKind


_ESCAPE_CHARS = re.compile(r"([\\`*_\[\]<&])")
_LINE_START_MARKERS = re.compile(r"^([#>+=~-])", re.MULTILINE)
_LINE_START_NUMBERS = re.compile(r"^(\d+)([.)])", re.MULTILINE)


@dataclass
class _Node:
    """A token together with the tokens nested inside it."""

    token: Optional[Token]
    children: List[_Node] = field(default_factory=list)

    @property
    def block(self) -> Optional[BlockKind]:
        return self.token.block if self.token is not None else None


class TokensToMarkdownConverter:
    """
    Serializes a run of tokens into Markdown.

    The run is first rebuilt into a tree of containers; unmatched END
    tokens are ignored and unclosed START tokens are closed at the end of
    the run, so any slice of a buffer can be rendered.
    """

    def __init__(self):
        self.logger = logging.getLogger(__name__)

    def convert(self, tokens: Sequence[Token]) -> str:
        root = self._build_tree(tokens)
        return self._render_blocks(root.children)

    def _build_tree(self, tokens: Sequence[Token]) -> _Node:
        root = _Node(None)
        stack = [root]

        for token in tokens:
            if token.kind is TokenKind.START:
                node = _Node(token)
                stack[-1].children.append(node)
                stack.append(node)
            elif token.kind is TokenKind.END:
                if len(stack) > 1 and stack[-1].block is token.block:
                    stack.pop()
                else:
                    self.logger.debug(f"Ignoring unmatched {token}")
            else:
                stack[-1].children.append(_Node(token))

        return root

    # Blocks

    def _render_blocks(self, nodes: List[_Node], separator: str = "\n\n") -> str:
        """Render sibling nodes, grouping consecutive inline nodes into one block."""
        parts: List[str] = []
        inline_run: List[_Node] = []

        for node in nodes:
            if self._is_inline(node):
                inline_run.append(node)
                continue
            if inline_run:
                parts.append(self._render_inlines(inline_run))
                inline_run = []
            parts.append(self._render_block(node))

        if inline_run:
            parts.append(self._render_inlines(inline_run))

        return separator.join(part for part in parts if part)

    def _is_inline(self, node: _Node) -> bool:
        token = node.token
        if token.kind is TokenKind.START:
            return token.block in (BlockKind.EMPHASIS, BlockKind.STRONG, BlockKind.LINK, BlockKind.IMAGE)
        if token.kind is TokenKind.RULE:
            return False
        if token.kind is TokenKind.HTML:
            return "\n" not in token.content
        return True

    def _render_block(self, node: _Node) -> str:
        token = node.token

        if token.kind is TokenKind.RULE:
            return "***"
        if token.kind is TokenKind.HTML:
            return token.content.rstrip("\n")

        block = token.block
        if block is BlockKind.PARAGRAPH:
            return self._render_inlines(node.children)
        if block is BlockKind.HEADING:
            return f"{'#' * (token.level or 1)} {self._render_inlines(node.children)}"
        if block is BlockKind.CODE_BLOCK:
            return self._render_code_block(token, node.children)
        if block is BlockKind.METADATA:
            content = "".join(child.token.content for child in node.children)
            return f"---\n{self._with_newline(content)}---"
        if block is BlockKind.LIST:
            return self._render_list(token, node.children)
        if block is BlockKind.ITEM:
            return self._render_item("- ", node.children)
        if block is BlockKind.BLOCK_QUOTE:
            inner = self._render_blocks(node.children)
            return "\n".join(f"> {line}" if line else ">" for line in inner.split("\n"))

        self.logger.debug(f"No block rendering for {token}")
        return self._render_inlines(node.children)

    def _render_code_block(self, token: Token, children: List[_Node]) -> str:
        content = "".join(child.token.content for child in children)

        if not token.fenced:
            return "\n".join(f"    {line}" if line else "" for line in content.rstrip("\n").split("\n"))

        fence = "```"
        while fence in content:
            fence += "`"
        return f"{fence}{token.language or ''}\n{self._with_newline(content)}{fence}"

    def _render_list(self, token: Token, items: List[_Node]) -> str:
        rendered = []
        number = token.start_number

        for item in items:
            if number is None:
                marker = "- "
            else:
                marker = f"{number}. "
                number += 1
            rendered.append(self._render_item(marker, item.children))

        loose = any(
            child.block in (BlockKind.PARAGRAPH, BlockKind.CODE_BLOCK, BlockKind.BLOCK_QUOTE)
            for item in items
            for child in item.children
        )
        return ("\n\n" if loose else "\n").join(rendered)

    def _render_item(self, marker: str, children: List[_Node]) -> str:
        inner = self._render_blocks(children)
        indent = " " * len(marker)
        lines = inner.split("\n")
        rest = [f"{indent}{line}" if line else "" for line in lines[1:]]
        return "\n".join([f"{marker}{lines[0]}".rstrip()] + rest)

    @staticmethod
    def _with_newline(content: str) -> str:
        if content and not content.endswith("\n"):
            return content + "\n"
        return content

    # Inlines

    def _render_inlines(self, nodes: List[_Node]) -> str:
        text = "".join(self._render_inline(node) for node in nodes)
        text = _LINE_START_MARKERS.sub(r"\\\1", text)
        return _LINE_START_NUMBERS.sub(r"\1\\\2", text)

    def _render_inline(self, node: _Node) -> str:
        token = node.token
        kind = token.kind

        if kind is TokenKind.TEXT:
            return _ESCAPE_CHARS.sub(r"\\\1", token.content)
        if kind is TokenKind.CODE:
            return self._render_code_span(token.content)
        if kind is TokenKind.SOFT_BREAK:
            return "\n"
        if kind is TokenKind.HARD_BREAK:
            return "\\\n"
        if kind is TokenKind.HTML:
            return token.content

        inner = "".join(self._render_inline(child) for child in node.children)
        block = token.block
        if block is BlockKind.EMPHASIS:
            return f"*{inner}*"
        if block is BlockKind.STRONG:
            return f"**{inner}**"
        if block in (BlockKind.LINK, BlockKind.IMAGE):
            prefix = "!" if block is BlockKind.IMAGE else ""
            title = f' "{token.title}"' if token.title else ""
            return f"{prefix}[{inner}]({token.href or ''}{title})"

        self.logger.debug(f"No inline rendering for {token}")
        return inner

    @staticmethod
    def _render_code_span(content: str) -> str:
        ticks = "`"
        while ticks in content:
            ticks += "`"
        if content.startswith("`") or content.endswith("`"):
            return f"{ticks} {content} {ticks}"
        return f"{ticks}{content}{ticks}"
