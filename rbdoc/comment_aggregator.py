"""Grouping of raw comments into documentation blocks."""

import logging
import re
from collections import deque

from rbdoc.comment_block import CommentBlock, RawComment

logger = logging.getLogger(__name__)

MAGIC_COMMENT_RE = re.compile(
    r"\A#\s*(?:-\*-.*-\*-|(?:en)?coding[:=]|frozen_string_literal:|warn_indent:"
    r"|shareable_constant_value:|typed:)",
    re.IGNORECASE,
)


def _is_blank(line: str) -> bool:
    return not line.strip()


class CommentAggregator:
    """Queue of comment blocks in source order, keyed by the line they target.

    A comment joins the current block only when it starts on the line right
    after the previous one. ``=begin``/``=end`` regions always form a block of
    their own. Comments that follow code on the same line never join a block;
    they are kept in ``modifier_comments`` by line.
    """

    def __init__(
        self,
        comments: list[RawComment],
        lines: list[str],
        first_code_line: int | None = None,
        attach_across_blank_lines: bool = False,
    ) -> None:
        """Aggregate ``comments`` of a file whose source is ``lines``."""
        self.lines = lines
        self.first_code_line = first_code_line
        self.attach_across_blank_lines = attach_across_blank_lines
        self.modifier_comments: dict[int, str] = {}
        self.blocks: deque[CommentBlock] = deque(self._aggregate(comments))
        self.first_block = self.blocks[0] if self.blocks else None

    def _in_leading_region(self, comment: RawComment) -> bool:
        return self.first_code_line is None or comment.start_line < self.first_code_line

    def _aggregate(self, comments: list[RawComment]) -> list[CommentBlock]:
        groups: list[list[RawComment]] = []
        current: list[RawComment] = []
        for comment in comments:
            if comment.trailing:
                self.modifier_comments[comment.start_line] = comment.text
            elif self._in_leading_region(comment) and (
                comment.text.startswith("#!") or MAGIC_COMMENT_RE.match(comment.text)
            ):
                logger.debug("Skipping magic comment on line %d", comment.start_line)
            elif comment.is_block:
                groups.append([comment])
                current = []
            elif current and current[-1].end_line + 1 == comment.start_line:
                current.append(comment)
            else:
                current = [comment]
                groups.append(current)
        return [self._to_block(group) for group in groups]

    def _to_block(self, group: list[RawComment]) -> CommentBlock:
        texts = []
        for comment in group:
            if comment.is_block:
                texts.append("".join(comment.text.splitlines(keepends=True)[1:-1]))
            else:
                texts.append(comment.text)
        text = "\n".join(texts)
        target_line = group[-1].end_line + 1
        if self.attach_across_blank_lines:
            while target_line <= len(self.lines) and _is_blank(self.lines[target_line - 1]):
                target_line += 1
        first_line = text.split("\n", 1)[0].rstrip()
        return CommentBlock(
            text=text,
            start_line=group[0].start_line,
            target_line=target_line,
            text_line=group[0].start_line + (1 if group[0].is_block else 0),
            meta=first_line == "##" and not group[0].is_block,
        )

    @property
    def leads_file(self) -> bool:
        """Return True when only blank lines precede the first block."""
        if self.first_block is None:
            return False
        preceding = self.lines[: self.first_block.start_line - 1]
        return all(_is_blank(line) for line in preceding)

    @property
    def first_non_meta_start_line(self) -> int | None:
        """Return the start of the first block when it precedes all code.

        That block documents the file and is never read as a meta-method
        comment, even when it starts with ``##``.
        """
        if self.first_block is None:
            return None
        if self.first_code_line is None or self.first_block.start_line < self.first_code_line:
            return self.first_block.start_line
        return None

    def pop_until(self, line: int) -> list[CommentBlock]:
        """Remove and return the blocks that target ``line`` or an earlier line."""
        popped = []
        while self.blocks and self.blocks[0].target_line <= line:
            popped.append(self.blocks.popleft())
        return popped

    def take(self, line: int) -> CommentBlock | None:
        """Remove and return the next block when it targets exactly ``line``."""
        if self.blocks and self.blocks[0].target_line == line:
            return self.blocks.popleft()
        return None

    def skip_until(self, line: int) -> int:
        """Discard the blocks that target ``line`` or an earlier line."""
        return len(self.pop_until(line))

    def modifier_comment(self, line: int) -> str | None:
        """Return the trailing comment on ``line``, if any."""
        return self.modifier_comments.get(line)
