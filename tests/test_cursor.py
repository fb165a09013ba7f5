from __future__ import annotations

import pytest

from threatmd.core.buffer import TokenBuffer
from threatmd.core.cursor import Cursor
from threatmd.core.errors import EndOfStream, ExpectedToken, ParseError
from threatmd.core.tokens import BlockKind, HeadingLevel, Span, Token, TokenKind


def cursor_for(markdown: str) -> Cursor:
    return TokenBuffer.from_markdown(markdown).open_cursor()


def cursor_over(*tokens: Token) -> Cursor:
    return TokenBuffer(tokens).open_cursor()


def end(block: BlockKind, **attrs) -> Token:
    return Token(TokenKind.END, block, **attrs)


class TestPrimitives:
    def test_consume_if_returns_token_and_position(self):
        cursor = cursor_for("Hello\n")

        token, position = cursor.consume_if(lambda t: t.is_start(BlockKind.PARAGRAPH))

        assert token.is_start(BlockKind.PARAGRAPH)
        assert position == 0
        assert cursor.position == 1

    def test_consume_if_at_end_of_stream(self):
        cursor = cursor_over()

        with pytest.raises(EndOfStream):
            cursor.consume_if(lambda t: True)

    def test_consume_if_mismatch_still_advances(self):
        cursor = cursor_for("Hello\n")

        with pytest.raises(ExpectedToken) as excinfo:
            cursor.consume_if(lambda t: t.is_text)

        assert excinfo.value.position == 0
        assert "START(PARAGRAPH)" in excinfo.value.description
        assert cursor.position == 1

    def test_peek_if_does_not_advance(self):
        cursor = cursor_for("Hello\n")

        _, position = cursor.peek_if(lambda t: t.is_start(BlockKind.PARAGRAPH))

        assert position == 0
        assert cursor.position == 0

    def test_peek_if_mismatch_and_end(self):
        with pytest.raises(ExpectedToken):
            cursor_for("Hello\n").peek_if(lambda t: t.is_text)
        with pytest.raises(EndOfStream):
            cursor_over().peek_if(lambda t: True)

    def test_consume_map(self):
        cursor = cursor_over(Token.start(BlockKind.HEADING, level=3))

        assert cursor.consume_map(lambda t: t.level) == 3

    def test_consume_map_no_match(self):
        cursor = cursor_over(Token.text("x"))

        with pytest.raises(ExpectedToken):
            cursor.consume_map(lambda t: None)

    def test_consume_map_end_of_stream(self):
        with pytest.raises(EndOfStream):
            cursor_over().consume_map(lambda t: t)

    def test_consume_text(self):
        cursor = cursor_over(Token.text("body"), Token(TokenKind.CODE, content="x"))

        assert cursor.consume_text() == "body"
        with pytest.raises(ExpectedToken):
            cursor.consume_text()

    def test_rewind_bounds(self):
        cursor = cursor_over(Token.text("x"))

        cursor.rewind(1)
        assert cursor.at_end()
        with pytest.raises(ValueError):
            cursor.rewind(2)


class TestHeadings:
    def test_metadata(self, threat_buffer):
        cursor = threat_buffer.open_cursor()

        assert cursor.metadata().startswith("sid: T1")
        assert cursor.position == 3

    def test_metadata_missing(self):
        with pytest.raises(ExpectedToken):
            cursor_for("# Title\n").metadata()

    def test_heading(self):
        cursor = cursor_for("## Example\n")

        assert cursor.heading(HeadingLevel.H2) == "Example"
        assert cursor.at_end()

    def test_heading_accepts_plain_int(self):
        assert cursor_for("### Deep\n").heading(3) == "Deep"

    def test_heading_level_is_exact(self):
        with pytest.raises(ExpectedToken):
            cursor_for("# Example\n").heading(HeadingLevel.H2)

    def test_heading_with_markup_fails(self):
        with pytest.raises(ExpectedToken):
            cursor_for("# *Example*\n").heading(HeadingLevel.H1)

    def test_named_heading(self):
        cursor = cursor_for("## Example\n")

        assert cursor.named_heading(HeadingLevel.H2, "Example") is None

    def test_named_heading_content_mismatch(self):
        with pytest.raises(ExpectedToken) as excinfo:
            cursor_for("## Condition\n").named_heading(HeadingLevel.H2, "Mitigations")

        assert excinfo.value.description == "A heading with the content: Mitigations"


class TestBlocks:
    def test_paragraph_span_includes_close(self):
        cursor = cursor_for("Some *marked* text\n\nNext\n")

        span = cursor.paragraph()

        assert span == Span(0, 6)
        assert cursor.buffer[span.end].is_end(BlockKind.PARAGRAPH)
        assert cursor.position == 7

    def test_paragraph_missing_consumes_nothing(self):
        cursor = cursor_for("# Title\n")

        with pytest.raises(ExpectedToken):
            cursor.paragraph()
        assert cursor.position == 0

    def test_unterminated_paragraph(self):
        cursor = cursor_over(Token.start(BlockKind.PARAGRAPH), Token.text("dangling"))

        with pytest.raises(EndOfStream):
            cursor.paragraph()

    def test_code_block_matches_any_language(self):
        cursor = cursor_for("```sh\nls\n```\n")

        assert cursor.code_block() == Span(0, 2)

    def test_code_block_ignores_indented_code(self):
        with pytest.raises(ExpectedToken):
            cursor_for("    ls\n").code_block()

    def test_lang_block(self):
        assert cursor_for("```python\nx\n```\n").lang_block("python") == Span(0, 2)

    def test_lang_block_wrong_language_consumes_nothing(self):
        cursor = cursor_for("```py\nx\n```\n")

        with pytest.raises(ExpectedToken):
            cursor.lang_block("python")
        assert cursor.position == 0

    def test_text_takes_paragraph_or_code_block(self):
        cursor = cursor_for("Para\n\n```\ncode\n```\n\n# Title\n")

        assert cursor.text() == Span(0, 2)
        assert cursor.text() == Span(3, 5)
        with pytest.raises(ExpectedToken):
            cursor.text()
        assert cursor.position == 6


class TestCombinators:
    def test_alt_restores_position_between_alternatives(self):
        cursor = cursor_for("Para\n")

        def consumes_then_fails(c: Cursor) -> Span:
            c.consume_if(lambda t: True)
            c.consume_if(lambda t: True)
            raise ExpectedToken("never matches", c.position)

        assert cursor.alt([consumes_then_fails, Cursor.paragraph]) == Span(0, 2)

    def test_alt_all_fail_leaves_cursor_in_place(self):
        cursor = cursor_for("# Title\n")

        with pytest.raises(ExpectedToken):
            cursor.alt([Cursor.paragraph, Cursor.code_block])
        assert cursor.position == 0

    def test_alt_recovers_from_end_of_stream(self):
        cursor = cursor_over(Token.start(BlockKind.PARAGRAPH), Token.text("dangling"))

        def first_token(c: Cursor) -> Span:
            _, position = c.consume_if(lambda t: True)
            return Span(position, position)

        assert cursor.alt([Cursor.paragraph, first_token]) == Span(0, 0)

    def test_multi_without_leading_paragraph(self):
        cursor = cursor_for("```\ncode\n```\n")

        assert cursor.multi(Cursor.text) is None
        assert cursor.position == 0

    def test_multi_absorbs_consecutive_blocks(self):
        cursor = cursor_for("One\n\n```\ncode\n```\n\nTwo\n\n## Next\n")

        span = cursor.multi(Cursor.text)

        assert span == Span(0, 8)
        assert cursor.heading(HeadingLevel.H2) == "Next"

    def test_multi_single_paragraph(self):
        cursor = cursor_for("Only\n")

        assert cursor.multi(Cursor.text) == Span(0, 2)
        assert cursor.at_end()

    def test_multi_discards_partial_failure(self):
        cursor = cursor_for("One\n\nTwo\n")

        def half_paragraph(c: Cursor) -> Span:
            c.consume_if(lambda t: t.is_start(BlockKind.PARAGRAPH))
            raise ExpectedToken("stop", c.position)

        assert cursor.multi(half_paragraph) == Span(0, 2)
        assert cursor.position == 3


class TestLists:
    def test_item_list(self):
        cursor = cursor_for("- one\n- two\n")

        assert cursor.item_list() == ["one", "two"]
        assert cursor.at_end()

    def test_empty_item_list(self):
        cursor = cursor_over(Token.start(BlockKind.LIST), end(BlockKind.LIST))

        assert cursor.item_list() == []

    def test_ordered_list_is_rejected(self):
        with pytest.raises(ExpectedToken):
            cursor_for("1. one\n2. two\n").item_list()

    def test_loose_list_is_rejected(self):
        with pytest.raises(ExpectedToken):
            cursor_for("- one\n\n- two\n").item_list()

    def test_item_with_markup_aborts_list(self):
        with pytest.raises(ExpectedToken):
            cursor_for("- one\n- *two*\n").item_list()

    def test_missing_list_close(self):
        cursor = cursor_over(
            Token.start(BlockKind.LIST),
            Token.start(BlockKind.ITEM),
            Token.text("one"),
            end(BlockKind.ITEM),
        )

        with pytest.raises(ExpectedToken):
            cursor.item_list()

    def test_list_close_must_be_unordered(self):
        cursor = cursor_over(Token.start(BlockKind.LIST), end(BlockKind.LIST, start_number=1))

        with pytest.raises(ExpectedToken):
            cursor.item_list()

    def test_item_at_end_of_list(self):
        cursor = cursor_over(end(BlockKind.LIST))

        assert cursor.item() is None
        assert cursor.position == 0

    def test_item_at_end_of_stream(self):
        assert cursor_over().item() is None

    def test_truncated_item(self):
        cursor = cursor_over(Token.start(BlockKind.ITEM), Token.text("one"))

        with pytest.raises(ExpectedToken):
            cursor.item()

    def test_not_a_list(self):
        with pytest.raises(ExpectedToken):
            cursor_for("Para\n").item_list()


def test_cursors_share_buffer_independently(threat_buffer):
    first = threat_buffer.open_cursor()
    second = threat_buffer.open_cursor()

    first.metadata()

    assert second.position == 0
    assert second.metadata() == threat_buffer[1].content


def test_errors_share_base_class():
    assert issubclass(EndOfStream, ParseError)
    assert issubclass(ExpectedToken, ParseError)
