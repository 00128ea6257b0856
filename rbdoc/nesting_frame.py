"""Data model for one open lexical scope."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from rbdoc.models import DocState, Visibility

if TYPE_CHECKING:
    from rbdoc.namespace import Namespace
    from rbdoc.top_level import TopLevel


@dataclass
class NestingFrame:
    """Scope state of the namespace body currently being walked.

    ``block_level`` counts the blocks entered inside this body; anything
    defined while it is positive may run with a different ``self``.
    """

    container: Namespace | TopLevel
    singleton: bool = False
    block_level: int = 0
    visibility: Visibility = Visibility.PUBLIC
    nodoc: bool = False
    doc_state: DocState = DocState.SHOW
