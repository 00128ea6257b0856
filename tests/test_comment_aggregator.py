"""Tests for grouping raw comments into blocks."""

from rbdoc.comment_aggregator import CommentAggregator
from rbdoc.comment_block import RawComment


def _line_comments(*entries: tuple[int, str]) -> list[RawComment]:
    return [RawComment(text, line, line) for line, text in entries]


def test_adjacent_lines_form_one_block() -> None:
    """Verify that comments on consecutive lines are one block targeting the next line."""
    lines = ["# one", "# two", "def foo; end"]
    aggregator = CommentAggregator(_line_comments((1, "# one"), (2, "# two")), lines)
    assert len(aggregator.blocks) == 1
    block = aggregator.blocks[0]
    assert block.text == "# one\n# two"
    assert block.start_line == 1
    assert block.target_line == 3


def test_blank_line_splits_blocks() -> None:
    """Verify that a blank line ends a block."""
    lines = ["# one", "", "# two", "x = 1"]
    aggregator = CommentAggregator(_line_comments((1, "# one"), (3, "# two")), lines)
    assert [b.target_line for b in aggregator.blocks] == [2, 4]


def test_attach_across_blank_lines() -> None:
    """Verify that the option moves the target past blank lines."""
    lines = ["# one", "", "", "class Foo; end"]
    aggregator = CommentAggregator(
        _line_comments((1, "# one")), lines, attach_across_blank_lines=True
    )
    assert aggregator.blocks[0].target_line == 4


def test_trailing_comments_are_modifiers() -> None:
    """Verify that a comment after code is kept by line and never starts a block."""
    lines = ["def foo # :nodoc:", "end"]
    comments = [RawComment("# :nodoc:", 1, 1, trailing=True)]
    aggregator = CommentAggregator(comments, lines)
    assert not aggregator.blocks
    assert aggregator.modifier_comment(1) == "# :nodoc:"
    assert aggregator.modifier_comment(2) is None


def test_embedded_document_is_its_own_block() -> None:
    """Verify that =begin/=end is a separate block with its markers removed."""
    lines = ["# before", "=begin", "Embedded.", "=end", "class Foo; end"]
    comments = [
        RawComment("# before", 1, 1),
        RawComment("=begin\nEmbedded.\n=end", 2, 4, is_block=True),
    ]
    aggregator = CommentAggregator(comments, lines)
    assert len(aggregator.blocks) == 2
    embedded = aggregator.blocks[1]
    assert embedded.text == "Embedded.\n"
    assert embedded.text_line == 3
    assert embedded.target_line == 5


def test_magic_comments_are_skipped() -> None:
    """Verify that a shebang and magic comments before code are not documentation."""
    lines = ["#!/usr/bin/env ruby", "# frozen_string_literal: true", "", "# Doc.", "x = 1"]
    comments = _line_comments(
        (1, "#!/usr/bin/env ruby"), (2, "# frozen_string_literal: true"), (4, "# Doc.")
    )
    aggregator = CommentAggregator(comments, lines, first_code_line=5)
    assert [b.text for b in aggregator.blocks] == ["# Doc."]


def test_meta_block_and_file_comment() -> None:
    """Verify the ## marker and the start line of the file comment."""
    lines = ["##", "# Meta.", "foo :bar"]
    aggregator = CommentAggregator(
        _line_comments((1, "##"), (2, "# Meta.")), lines, first_code_line=3
    )
    assert aggregator.blocks[0].meta
    assert aggregator.leads_file
    assert aggregator.first_non_meta_start_line == 1


def test_pop_take_and_skip() -> None:
    """Verify queue consumption by target line."""
    lines = ["# a", "x", "# b", "y", "# c", "z"]
    aggregator = CommentAggregator(
        _line_comments((1, "# a"), (3, "# b"), (5, "# c")), lines
    )
    assert aggregator.take(4) is None
    assert [b.text for b in aggregator.pop_until(2)] == ["# a"]
    block = aggregator.take(4)
    assert block is not None
    assert block.text == "# b"
    assert aggregator.skip_until(10) == 1
    assert not aggregator.blocks
