"""tree-sitter adapter: parsing Ruby source and reading node shapes."""

from __future__ import annotations

from dataclasses import dataclass, field

import tree_sitter
import tree_sitter_ruby

from rbdoc.comment_block import RawComment
from rbdoc.errors import MalformedNodeError
from rbdoc.models import SourceRange

RUBY_LANGUAGE = tree_sitter.Language(tree_sitter_ruby.language())

Node = tree_sitter.Node

CONSTANT_PATH_TYPES = frozenset({"constant", "scope_resolution"})
METHOD_NAME_TYPES = frozenset({"identifier", "constant", "setter", "operator"})
LINE_NODE_TYPES = frozenset({"call", "method", "singleton_method"})
HEADER_FIELDS = ("name", "superclass", "value", "parameters", "object")


@dataclass
class ParsedSource:
    """A parsed file: its tree, source lines and comments in source order."""

    tree: tree_sitter.Tree
    lines: list[str]
    comments: list[RawComment] = field(default_factory=list)
    line_nodes: dict[int, Node] = field(default_factory=dict)

    @property
    def root(self) -> Node:
        """Return the ``program`` node."""
        return self.tree.root_node

    @property
    def first_code_line(self) -> int | None:
        """Return the line of the first statement that is not a comment."""
        for child in self.root.named_children:
            if child.type != "comment":
                return start_line(child)
        return None


def parse_ruby(source: str) -> ParsedSource:
    """Parse ``source`` and collect its comments and per-line declaration nodes."""
    parser = tree_sitter.Parser(RUBY_LANGUAGE)
    data = source.encode("utf-8")
    tree = parser.parse(data)
    parsed = ParsedSource(tree=tree, lines=source.splitlines())
    byte_lines = data.split(b"\n")

    pending = [tree.root_node]
    comments: list[Node] = []
    while pending:
        node = pending.pop()
        if node.type == "comment":
            comments.append(node)
        elif node.type in LINE_NODE_TYPES:
            parsed.line_nodes.setdefault(start_line(node), node)
        pending.extend(reversed(node.children))

    for node in sorted(comments, key=lambda n: n.start_byte):
        parsed.comments.append(_raw_comment(node, byte_lines))
    return parsed


def _raw_comment(node: Node, byte_lines: list[bytes]) -> RawComment:
    text = node_text(node).rstrip("\n")
    row, column = node.start_point
    before = byte_lines[row][:column] if row < len(byte_lines) else b""
    return RawComment(
        text=text,
        start_line=row + 1,
        end_line=end_line(node),
        is_block=text.startswith("=begin"),
        trailing=bool(before.strip()),
    )


def node_text(node: Node | None) -> str:
    """Return the source text of ``node``."""
    if node is None or node.text is None:
        return ""
    return node.text.decode("utf-8", errors="replace")


def start_line(node: Node) -> int:
    """Return the 1-based first line of ``node``."""
    return node.start_point[0] + 1


def end_line(node: Node) -> int:
    """Return the 1-based last line of ``node``, ignoring a trailing newline."""
    row, column = node.end_point
    if column == 0 and row > node.start_point[0]:
        return row
    return row + 1


def source_range(node: Node) -> SourceRange:
    """Return the location of ``node`` for syntax highlighting."""
    return SourceRange(start_line(node), end_line(node), node.start_byte, node.end_byte)


def required_field(node: Node, name: str) -> Node:
    """Return the field ``name`` of ``node`` or raise :class:`MalformedNodeError`."""
    child = node.child_by_field_name(name)
    if child is None:
        raise MalformedNodeError(node.type, start_line(node), name)
    return child


def body_nodes(node: Node) -> list[Node]:
    """Return the statements of a class, module, singleton class or method body."""
    body = node.child_by_field_name("body")
    if body is None:
        body = next((c for c in node.named_children if c.type == "body_statement"), None)
    if body is not None:
        if body.type == "body_statement":
            return list(body.named_children)
        return [body]
    header = set()
    for name in HEADER_FIELDS:
        child = node.child_by_field_name(name)
        if child is not None:
            header.add(child.id)
    return [c for c in node.named_children if c.id not in header]


def statement_nodes(node: Node) -> list[Node]:
    """Return the named children of ``node`` that are not comments."""
    return [c for c in node.named_children if c.type != "comment"]


def constant_path_string(node: Node | None) -> str | None:
    """Return ``A::B`` style text for a constant path, or None for other nodes."""
    if node is None:
        return None
    if node.type == "constant":
        return node_text(node)
    if node.type != "scope_resolution":
        return None
    name = node.child_by_field_name("name")
    if name is None or name.type != "constant":
        return None
    scope = node.child_by_field_name("scope")
    if scope is None:
        return f"::{node_text(name)}"
    scope_name = constant_path_string(scope)
    if scope_name is None:
        return None
    return f"{scope_name}::{node_text(name)}"


def symbol_value(node: Node) -> str | None:
    """Return the name of a ``:sym`` or ``:"sym"`` literal."""
    if node.type == "simple_symbol":
        return node_text(node)[1:]
    if node.type == "delimited_symbol":
        if any(c.type == "interpolation" for c in node.named_children):
            return None
        return "".join(node_text(c) for c in node.named_children if c.type == "string_content")
    return None


def string_value(node: Node) -> str | None:
    """Return the content of a string literal without interpolation."""
    if node.type != "string":
        return None
    if any(c.type == "interpolation" for c in node.named_children):
        return None
    return "".join(node_text(c) for c in node.named_children if c.type == "string_content")


def method_name_value(node: Node) -> str | None:
    """Return a method name written as an identifier or a symbol."""
    if node.type in METHOD_NAME_TYPES:
        return node_text(node)
    return symbol_value(node)


def call_arguments(call: Node) -> list[Node]:
    """Return the argument nodes of a call."""
    arguments = call.child_by_field_name("arguments")
    if arguments is None:
        return []
    return statement_nodes(arguments)


def symbol_arguments(call: Node) -> list[str] | None:
    """Return the arguments of a call when every one of them is a symbol."""
    arguments = call_arguments(call)
    if not arguments:
        return None
    names = [symbol_value(arg) for arg in arguments]
    if any(name is None for name in names):
        return None
    return [name for name in names if name is not None]


def constant_arguments(call: Node) -> list[str] | None:
    """Return the arguments of a call when every one of them is a constant path."""
    arguments = call_arguments(call)
    if not arguments:
        return None
    names = [constant_path_string(arg) for arg in arguments]
    if any(name is None for name in names):
        return None
    return [name for name in names if name is not None]


def name_arguments(call: Node) -> list[str | None]:
    """Return symbol or string argument values, None for other arguments."""
    values = []
    for arg in call_arguments(call):
        value = symbol_value(arg)
        values.append(value if value is not None else string_value(arg))
    return values


def unwrap_parentheses(text: str) -> str:
    """Drop one pair of enclosing parentheses."""
    text = text.strip()
    if text.startswith("(") and text.endswith(")"):
        return text[1:-1].strip()
    return text
