"""Data models for raw source comments and aggregated comment blocks."""

from dataclasses import dataclass


@dataclass(frozen=True)
class RawComment:
    """One comment token as found in the source.

    ``is_block`` marks ``=begin``/``=end`` regions and ``trailing`` marks
    comments that share their first line with code.
    """

    text: str
    start_line: int
    end_line: int
    is_block: bool = False
    trailing: bool = False


@dataclass
class CommentBlock:
    """A run of adjacent comment lines and the line it documents.

    ``text_line`` is the source line of the first line of ``text``; it is one
    past ``start_line`` for ``=begin`` regions.
    """

    text: str
    start_line: int
    target_line: int
    text_line: int
    meta: bool = False
