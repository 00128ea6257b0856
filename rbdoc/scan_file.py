"""Scanning one Ruby source file into the store."""

from __future__ import annotations

import logging
from typing import Any

from rbdoc.model_builder import ModelBuilder
from rbdoc.ruby_walker import RubyWalker
from rbdoc.store import Store
from rbdoc.syntax_tree import parse_ruby

logger = logging.getLogger(__name__)


def scan_file(
    store: Store,
    file_name: str,
    source: str,
    config: dict[str, Any],
    hidden_names: set[str] | None = None,
) -> set[str]:
    """Parse ``source`` and add everything it declares to ``store``.

    Returns the qualified names hidden with a plain ``:nodoc:`` in this file.
    """
    scan = config.get("scan", {})
    comments = config.get("comments", {})
    documentation = config.get("documentation", {})

    source = source.expandtabs(scan.get("tab_width", 8))
    parsed = parse_ruby(source)
    if parsed.root.has_error:
        logger.debug("%s has syntax errors; scanning the recoverable parts", file_name)

    hidden = hidden_names if hidden_names is not None else set()
    builder = ModelBuilder(
        store,
        parsed,
        file_name,
        hidden_names=hidden,
        markup=comments.get("markup", "rdoc"),
        attach_across_blank_lines=comments.get("attach_across_blank_lines", False),
        track_visibility=documentation.get("visibility", "protected") != "nodoc",
        rename_initialize=documentation.get("rename_initialize", True),
    )
    RubyWalker(builder).visit(parsed.root)
    builder.process_comments_until(len(parsed.lines) + 1)
    logger.debug("Scanned %s (%d lines)", file_name, len(parsed.lines))
    return hidden
