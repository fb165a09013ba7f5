"""
Conversion between Markdown text and token streams.
"""

from .markdown_to_tokens import MarkdownToTokensConverter
from .tokens_to_markdown import TokensToMarkdownConverter

__all__ = ["MarkdownToTokensConverter", "TokensToMarkdownConverter"]
