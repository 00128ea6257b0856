"""Visitor over the tree-sitter Ruby tree that drives the model builder."""

from __future__ import annotations

import logging

from rbdoc.errors import MalformedNodeError
from rbdoc.method_signature import scan_signature
from rbdoc.mixin import MixinKind
from rbdoc.model_builder import ATTRIBUTE_MODES, ModelBuilder
from rbdoc.models import DocState, NamespaceKind, Visibility
from rbdoc.namespace import Namespace
from rbdoc.syntax_tree import (
    Node,
    body_nodes,
    call_arguments,
    constant_arguments,
    constant_path_string,
    end_line,
    method_name_value,
    node_text,
    required_field,
    source_range,
    start_line,
    statement_nodes,
    string_value,
    symbol_arguments,
)
from rbdoc.top_level import TopLevel

logger = logging.getLogger(__name__)

VISIBILITIES = {
    "public": Visibility.PUBLIC,
    "protected": Visibility.PROTECTED,
    "private": Visibility.PRIVATE,
}
# Parents under which a bare identifier is a statement rather than a value.
STATEMENT_PARENTS = frozenset(
    {"program", "body_statement", "class", "module", "singleton_class", "then", "else", "begin"}
)
LITERAL_RECEIVERS = {"nil": "NilClass", "true": "TrueClass", "false": "FalseClass"}


class RubyWalker:
    """Visits nodes in source order, one ``visit_<type>`` method per node kind.

    Node kinds without a visitor are not declarations; their children are
    visited. A node with a malformed shape is skipped with a warning.
    """

    def __init__(self, builder: ModelBuilder) -> None:
        """Initialize the walker for the file handled by ``builder``."""
        self.builder = builder
        self.stack = builder.stack

    def visit(self, node: Node) -> None:
        """Dispatch ``node`` to its visitor."""
        visitor = getattr(self, f"visit_{node.type}", self.generic_visit)
        try:
            visitor(node)
        except MalformedNodeError as err:
            logger.debug("Skipping malformed node: %s", err)
            self.builder.warn(err.line, str(err))

    def generic_visit(self, node: Node) -> None:
        """Visit the named children of ``node``."""
        for child in node.named_children:
            self.visit(child)

    def visit_comment(self, node: Node) -> None:
        """Comments are handled by the aggregator."""

    # Blocks

    def visit_block(self, node: Node) -> None:
        """Definitions inside a block may run with another ``self`` and are not documented."""
        with self.stack.with_block():
            self.generic_visit(node)

    visit_do_block = visit_block
    visit_lambda = visit_block

    # Namespaces

    def visit_module(self, node: Node) -> None:
        """Open a module body."""
        name_node = required_field(node, "name")
        self.builder.process_comments_until(start_line(node) - 1)
        path = constant_path_string(name_node)
        namespace, nodoc = None, False
        if path:
            namespace, nodoc = self.builder.add_module_or_class(
                path, start_line(node), end_line(node), NamespaceKind.MODULE
            )
        self._walk_body(node, namespace, nodoc)

    def visit_class(self, node: Node) -> None:
        """Open a class body, resolving its superclass."""
        name_node = required_field(node, "name")
        superclass_node = node.child_by_field_name("superclass")
        superclass_value = None
        if superclass_node is not None:
            values = statement_nodes(superclass_node)
            superclass_value = values[0] if values else None
            if superclass_value is not None:
                self.visit(superclass_value)
        self.builder.process_comments_until(start_line(node) - 1)

        superclass_name = constant_path_string(superclass_value)
        superclass_expr = None
        if superclass_value is not None and superclass_name is None:
            superclass_expr = node_text(superclass_value)
        path = constant_path_string(name_node)
        namespace, nodoc = None, False
        if path:
            namespace, nodoc = self.builder.add_module_or_class(
                path,
                start_line(node),
                end_line(node),
                NamespaceKind.CLASS,
                superclass_name=superclass_name,
                superclass_expr=superclass_expr,
            )
        self._walk_body(node, namespace, nodoc)

    def visit_singleton_class(self, node: Node) -> None:
        """Open a ``class << x`` body as a singleton frame of ``x``."""
        line = start_line(node)
        self.builder.process_comments_until(line - 1)
        if self.builder.has_modifier_nodoc(line):
            self.builder.skip_comments_until(end_line(node))
            return

        expression = required_field(node, "value")
        if expression.type == "parenthesized_statements":
            inner = statement_nodes(expression)
            if len(inner) == 1:
                expression = inner[0]

        namespace: Namespace | TopLevel | None = None
        if expression.type == "assignment":
            left = expression.child_by_field_name("left")
            if left is not None and left.type == "constant":
                namespace = self.builder.open_singleton_constant(node_text(left))
        elif expression.type in ("constant", "scope_resolution"):
            path = constant_path_string(expression)
            if path:
                namespace = self.builder.resolver.find_or_create_namespace_path(
                    path, NamespaceKind.MODULE
                )
        elif expression.type == "self" and self.stack.container is not self.stack.top_level:
            namespace = self.stack.container
        self.visit(expression)
        self._walk_body(node, namespace, False, singleton=True)

    def _walk_body(
        self,
        node: Node,
        namespace: Namespace | TopLevel | None,
        nodoc: bool,
        singleton: bool = False,
    ) -> None:
        last_line = end_line(node)
        if namespace is None:
            self.builder.skip_comments_until(last_line)
            return
        with self.stack.enter(namespace, singleton=singleton):
            if nodoc:
                self.stack.current.doc_state = DocState.TERMINATED
            for child in body_nodes(node):
                self.visit(child)
            self.builder.process_comments_until(last_line)

    # Methods

    def visit_method(self, node: Node) -> None:
        """Document ``def name``."""
        self._visit_definition(node, None)

    def visit_singleton_method(self, node: Node) -> None:
        """Document ``def self.name``, ``def Const.name`` and ``def nil.name``."""
        self._visit_definition(node, required_field(node, "object"))

    def _visit_definition(self, node: Node, receiver: Node | None) -> None:
        location = source_range(node)
        parameters = node.child_by_field_name("parameters")
        args_end_line = end_line(parameters) if parameters is not None else location.start_line
        self.builder.process_comments_until(location.start_line - 1)
        try:
            if self.stack.in_block:
                return
            receiver_name = None
            receiver_kind = NamespaceKind.MODULE
            if receiver is None:
                visibility = self.stack.visibility
                singleton = self.stack.singleton
            elif receiver.type in LITERAL_RECEIVERS:
                visibility = Visibility.PUBLIC
                singleton = False
                receiver_name = LITERAL_RECEIVERS[receiver.type]
                receiver_kind = NamespaceKind.CLASS
            elif receiver.type == "self":
                if self.stack.singleton:
                    return
                visibility = Visibility.PUBLIC
                singleton = True
            elif receiver.type in ("constant", "scope_resolution"):
                receiver_name = constant_path_string(receiver)
                if receiver_name is None:
                    return
                visibility = Visibility.PUBLIC
                singleton = True
            else:
                return

            name = node_text(required_field(node, "name"))
            params, block_params, calls_super = scan_signature(node)
            self.builder.add_method(
                name,
                receiver_name=receiver_name,
                receiver_kind=receiver_kind,
                visibility=visibility,
                singleton=singleton,
                params=params,
                block_params=block_params,
                calls_super=calls_super,
                location=location,
                args_end_line=args_end_line,
            )
        finally:
            self.builder.skip_comments_until(location.end_line)

    def visit_alias(self, node: Node) -> None:
        """Document ``alias new old``."""
        if self.stack.in_block:
            return
        self.builder.process_comments_until(start_line(node) - 1)
        new_node = node.child_by_field_name("name")
        old_node = node.child_by_field_name("alias")
        if new_node is None or old_node is None:
            names = statement_nodes(node)
            if len(names) != 2:
                raise MalformedNodeError(node.type, start_line(node), "name")
            new_node, old_node = names
        new_name = method_name_value(new_node)
        old_name = method_name_value(old_node)
        if new_name and old_name:
            self.builder.add_alias_method(old_name, new_name, start_line(node))

    # Constants

    def visit_assignment(self, node: Node) -> None:
        """Document ``NAME = value``; the value itself is not walked."""
        left = node.child_by_field_name("left")
        if left is None or left.type not in ("constant", "scope_resolution"):
            self.generic_visit(node)
            return
        line = start_line(node)
        self.builder.process_comments_until(line - 1)
        path = constant_path_string(left)
        if path is None:
            return
        right = node.child_by_field_name("right")
        value = constant_path_string(right) or node_text(right)
        self.builder.add_constant(path, value, line, end_line(node))
        self.builder.skip_comments_until(end_line(node))

    # Calls

    def visit_identifier(self, node: Node) -> None:
        """Handle a bare ``private``, ``protected`` or ``public`` statement."""
        name = node_text(node)
        parent = node.parent
        if name not in VISIBILITIES or parent is None or parent.type not in STATEMENT_PARENTS:
            return
        self.builder.process_comments_until(start_line(node) - 1)
        if not self.stack.in_block:
            self.stack.visibility = VISIBILITIES[name]

    def visit_call(self, node: Node) -> None:
        """Recognize the class-body idioms written as receiver-less calls."""
        self.builder.process_comments_until(start_line(node) - 1)
        receiver = node.child_by_field_name("receiver")
        method = node.child_by_field_name("method")
        if receiver is not None or method is None or method.type != "identifier":
            self.generic_visit(node)
            return

        name = node_text(method)
        line = start_line(node)
        if name in ATTRIBUTE_MODES:
            self._visit_attributes(node, name, line)
        elif name == "include":
            self._visit_include(node, line)
        elif name == "extend":
            self._visit_extend(node, line)
        elif name in VISIBILITIES:
            self.generic_visit(node)
            self._visit_visibility(node, VISIBILITIES[name])
        elif name in ("private_constant", "public_constant"):
            self._visit_constant_visibility(node, name)
        elif name == "require":
            self._visit_require(node, line)
        elif name == "alias_method":
            self._visit_alias_method(node, line)
        elif name == "module_function":
            self.generic_visit(node)
            self._visit_module_function(node)
        elif name in ("public_class_method", "private_class_method"):
            self.generic_visit(node)
            self._visit_class_method_visibility(node, name)
        else:
            self.generic_visit(node)

    def _visit_attributes(self, node: Node, name: str, line: int) -> None:
        if self.stack.in_block:
            return
        names = symbol_arguments(node)
        if names:
            self.builder.add_attributes(names, ATTRIBUTE_MODES[name], line)

    def _visit_include(self, node: Node, line: int) -> None:
        if self.stack.in_block:
            return
        names = constant_arguments(node)
        if not names:
            return
        kind = MixinKind.EXTEND if self.stack.singleton else MixinKind.INCLUDE
        self.builder.add_mixins(names, kind, line)

    def _visit_extend(self, node: Node, line: int) -> None:
        if self.stack.in_block or self.stack.singleton:
            return
        names = constant_arguments(node)
        if names:
            self.builder.add_mixins(names, MixinKind.EXTEND, line)

    def _visit_visibility(self, node: Node, visibility: Visibility) -> None:
        if self.stack.in_block:
            return
        if not call_arguments(node):
            self.stack.visibility = visibility
            return
        names = _visibility_arguments(node, singleton=False)
        if names:
            self.builder.change_method_visibility(names, visibility)

    def _visit_constant_visibility(self, node: Node, name: str) -> None:
        if self.stack.in_block or self.stack.singleton:
            return
        names = symbol_arguments(node)
        if names:
            visibility = Visibility.PRIVATE if name == "private_constant" else Visibility.PUBLIC
            self.builder.set_constant_visibility(names, visibility)

    def _visit_require(self, node: Node, line: int) -> None:
        arguments = call_arguments(node)
        if len(arguments) != 1:
            return
        feature = string_value(arguments[0])
        if feature is not None:
            self.builder.add_require(feature, line)

    def _visit_alias_method(self, node: Node, line: int) -> None:
        if self.stack.in_block:
            return
        names = symbol_arguments(node)
        if names and len(names) == 2:
            new_name, old_name = names
            self.builder.add_alias_method(old_name, new_name, line)

    def _visit_module_function(self, node: Node) -> None:
        if self.stack.in_block or self.stack.singleton:
            return
        names = _visibility_arguments(node, singleton=False)
        if names:
            self.builder.change_method_to_module_function(names)

    def _visit_class_method_visibility(self, node: Node, name: str) -> None:
        if self.stack.in_block or self.stack.singleton:
            return
        names = _visibility_arguments(node, singleton=True)
        if names:
            visibility = (
                Visibility.PRIVATE if name == "private_class_method" else Visibility.PUBLIC
            )
            self.builder.change_method_visibility(names, visibility, singleton=True)


def _visibility_arguments(node: Node, singleton: bool) -> list[str] | None:
    """Return the method names of ``private :a, :b`` or ``private def a``."""
    names = symbol_arguments(node)
    if names:
        return names
    arguments = call_arguments(node)
    if len(arguments) != 1:
        return None
    definition = arguments[0]
    if singleton:
        if definition.type != "singleton_method":
            return None
        receiver = definition.child_by_field_name("object")
        if receiver is None or receiver.type != "self":
            return None
    elif definition.type != "method":
        return None
    name = definition.child_by_field_name("name")
    return [node_text(name)] if name is not None else None
