"""Creation and update of documentation entities during a file scan."""

from __future__ import annotations

import dataclasses
import logging
import re

from rbdoc import tomdoc
from rbdoc.comment_aggregator import CommentAggregator
from rbdoc.comment_block import CommentBlock
from rbdoc.directive_processor import Directives, DirectiveProcessor, ParsedComment
from rbdoc.mixin import Mixin, MixinKind
from rbdoc.models import (
    Alias,
    Attribute,
    CodeObject,
    Comment,
    Constant,
    DocumentSelf,
    Method,
    NamespaceKind,
    Require,
    SourceRange,
    Visibility,
)
from rbdoc.name_resolver import NameResolver
from rbdoc.namespace import Namespace
from rbdoc.nesting_stack import NestingStack
from rbdoc.store import Store
from rbdoc.syntax_tree import Node, ParsedSource, name_arguments, source_range, start_line
from rbdoc.top_level import TopLevel

logger = logging.getLogger(__name__)

NODOC = "nodoc"
NODOC_ALL = "nodoc_all"

ATTRIBUTE_MODES = {"attr": "R", "attr_reader": "R", "attr_writer": "W", "attr_accessor": "RW"}
GHOST_DIRECTIVES = frozenset({"method", "singleton-method", *ATTRIBUTE_MODES})
# Directives consumed by the stack or by the builder itself.
NON_OBJECT_DIRECTIVES = frozenset(
    {"nodoc", "startdoc", "stopdoc", "enddoc", "markup", "section", "call-seq", *GHOST_DIRECTIVES}
)
MODIFIER_NODOC_RE = re.compile(r"\A#\s*:nodoc:")
CALL_SEQ_NAME_RE = re.compile(r"\A[^()\s]+")
BLOCK_PARAM_RE = re.compile(r",?\s*&\w*\s*(?=\)$)")

Container = Namespace | TopLevel


class ModelBuilder:
    """Builds the model for one file as the walker reports declarations.

    Every ``add_*`` operation first pulls the comment block that targets the
    declaration's line, applies its control directives to the current frame
    and then creates or updates the entity unless the frame does not accept
    documentation.
    """

    def __init__(
        self,
        store: Store,
        source: ParsedSource,
        file_name: str,
        hidden_names: set[str] | None = None,
        markup: str = "rdoc",
        attach_across_blank_lines: bool = False,
        track_visibility: bool = True,
        rename_initialize: bool = True,
    ) -> None:
        """Initialize the builder for one file of ``store``."""
        self.store = store
        self.file_name = file_name
        self.top_level = store.add_file(file_name)
        self.stack = NestingStack(self.top_level, hidden_names, warn=self.warn)
        self.resolver = NameResolver(self.stack)
        self.processor = DirectiveProcessor()
        self.markup = markup
        self.track_visibility = track_visibility
        self.rename_initialize = rename_initialize
        self.line_nodes = source.line_nodes
        self.aggregator = CommentAggregator(
            source.comments,
            source.lines,
            first_code_line=source.first_code_line,
            attach_across_blank_lines=attach_across_blank_lines,
        )
        self._file_comment_line = self.aggregator.first_non_meta_start_line
        self._read_file_markup()

    def warn(self, line: int | None, message: str) -> None:
        """Record a warning against the file being scanned."""
        self.store.warn(self.file_name, line, message)

    def _read_file_markup(self) -> None:
        first = self.aggregator.first_block
        if first is None or not self.aggregator.leads_file:
            return
        markup, _ = self.processor.parse_comment(first.text, first.text_line).directives.get(
            "markup", (None, None)
        )
        if markup:
            self.markup = markup

    # Comment handling

    def parse_block(self, block: CommentBlock) -> tuple[Comment, Directives] | None:
        """Split ``block`` into a comment and its directives.

        A ``:section:`` comment starts a section of the current container and
        documents nothing else, so None is returned for it.
        """
        parsed = self.processor.parse_comment(block.text, block.text_line)
        self._report(parsed)
        markup, _ = parsed.directives.get("markup", (None, None))
        comment = Comment(
            parsed.text, format=markup or self.markup, file=self.file_name, line=block.start_line
        )
        if "section" in parsed.directives:
            title, _ = parsed.directives["section"]
            container = self.stack.container
            if title is None:
                container.current_section = None
            else:
                container.set_current_section(title, comment)
            return None
        return comment, parsed.directives

    def _report(self, parsed: ParsedComment) -> None:
        for error in parsed.errors:
            self.warn(error.line, str(error))

    def process_comments_until(self, line: int) -> None:
        """Handle the blocks targeting ``line`` or earlier that no declaration took."""
        for block in self.aggregator.pop_until(line):
            parsed = self.parse_block(block)
            if parsed is None:
                continue
            comment, directives = parsed
            if self.markup == "tomdoc" and self._add_tomdoc_method(block, comment):
                continue
            self._handle_standalone(block, comment, directives)

    def skip_comments_until(self, line: int) -> None:
        """Drop the blocks targeting ``line`` or earlier, such as those inside a ``def``."""
        skipped = self.aggregator.skip_until(line)
        if skipped:
            logger.debug("Skipped %d comment block(s) up to line %d", skipped, line)

    def consecutive_comment(self, line: int) -> tuple[Comment | None, Directives]:
        """Take the block that targets ``line`` and split it."""
        block = self.aggregator.take(line)
        if block is None:
            return None, {}
        parsed = self.parse_block(block)
        if parsed is None:
            return None, {}
        return parsed

    def _leading_comment(self, line: int) -> tuple[Comment | None, Directives]:
        comment, directives = self.consecutive_comment(line)
        self.stack.apply_control_directives(directives)
        return comment, directives

    def _handle_standalone(
        self, block: CommentBlock, comment: Comment, directives: Directives
    ) -> None:
        documents_file = block.start_line == self._file_comment_line
        if block.meta and not documents_file:
            self.handle_meta_method_comment(
                comment, directives, self.line_nodes.get(block.target_line)
            )
        elif (
            not documents_file
            and block.target_line not in self.line_nodes
            and GHOST_DIRECTIVES.intersection(directives)
        ):
            self.handle_meta_method_comment(comment, directives, None)
        else:
            self.stack.apply_control_directives(directives)
            self.apply_code_object_directives(self.stack.container, directives)
            if (
                documents_file
                and self.stack.container is self.top_level
                and not comment.empty
                and self.stack.accepts_documentation(self.top_level)
            ):
                self.top_level.comment = comment

    def has_modifier_nodoc(self, line: int) -> bool:
        """Return True when the trailing comment on ``line`` is ``:nodoc:``."""
        text = self.aggregator.modifier_comment(line)
        return text is not None and MODIFIER_NODOC_RE.match(text) is not None

    def handle_modifier_directive(
        self, code_object: CodeObject | Namespace, line: int
    ) -> str | None:
        """Apply the directives of the trailing comment on ``line``.

        Returns ``NODOC`` or ``NODOC_ALL`` when the comment hides the object.
        """
        text = self.aggregator.modifier_comment(line)
        if text is None:
            return None
        parsed = self.processor.parse_comment(text, line)
        self._report(parsed)
        directives = dict(parsed.directives)
        nodoc = directives.pop("nodoc", None)
        self.apply_code_object_directives(code_object, directives)
        if nodoc is None:
            return None
        return NODOC_ALL if nodoc[0] == "all" else NODOC

    def _modifier_nodoc(self, code_object: CodeObject | Namespace, lines: list[int]) -> set[str]:
        found = set()
        for line in dict.fromkeys(lines):
            result = self.handle_modifier_directive(code_object, line)
            if result is not None:
                found.add(result)
        return found

    def apply_code_object_directives(
        self, code_object: CodeObject | Container, directives: Directives
    ) -> None:
        """Apply directives that change a single object rather than the frame."""
        for name, (value, _line) in directives.items():
            if name in NON_OBJECT_DIRECTIVES:
                continue
            if name == "doc":
                if isinstance(code_object, (CodeObject, Namespace)):
                    code_object.document_self = DocumentSelf.SHOW
                    code_object.ignored = False
            elif name == "private" and isinstance(code_object, (Method, Attribute, Constant)):
                code_object.visibility = Visibility.PRIVATE
            elif isinstance(code_object, Method):
                _apply_method_directive(code_object, name, value)

    # Namespaces

    def mark_documentable(self, container: Container | None) -> None:
        """Promote ``container`` and its ignored ancestors to documentable."""
        while isinstance(container, Namespace):
            if container.received_nodoc or not container.ignored:
                return
            self._record_namespace(container)
            container.ignored = False
            container = container.parent

    def _record_namespace(self, namespace: Namespace) -> None:
        self.top_level.add_to_namespaces_in_file(namespace)
        namespace.record_location(self.file_name)

    def add_module_or_class(
        self,
        path: str,
        start_line: int,
        end_line: int,
        kind: NamespaceKind,
        superclass_name: str | None = None,
        superclass_expr: str | None = None,
    ) -> tuple[Namespace | None, bool]:
        """Find or create the namespace opened by ``class`` or ``module``.

        Returns the namespace and whether a trailing ``:nodoc:`` hid its body.
        """
        comment, directives = self._leading_comment(start_line)
        owner, name = self.resolver.find_or_create_constant_owner(path)
        if owner is None:
            return None, False

        if kind is NamespaceKind.CLASS:
            namespace = self._open_class(owner, name, superclass_name, superclass_expr)
        else:
            namespace = owner.get_namespace_named(name)
            if namespace is None:
                namespace = owner.add_namespace(name, NamespaceKind.MODULE)
                namespace.ignored = True

        namespace.line = start_line
        self.apply_code_object_directives(namespace, directives)
        modifiers = self._modifier_nodoc(namespace, [start_line, end_line])

        if self.track_visibility and NODOC_ALL in modifiers:
            namespace.document_self = DocumentSelf.HIDE
            return namespace, True
        if self.track_visibility and NODOC in modifiers:
            self.stack.mark_locally_hidden(namespace.full_name)
            return namespace, True
        if self.stack.accepts_documentation(owner) and not self.stack.is_locally_hidden(namespace):
            self.mark_documentable(owner)
            self.mark_documentable(namespace)
            self._record_namespace(namespace)
            if comment is not None and not comment.empty:
                namespace.add_comment(comment, self.file_name)
        return namespace, False

    def _open_class(
        self,
        owner: Container,
        name: str,
        superclass_name: str | None,
        superclass_expr: str | None,
    ) -> Namespace:
        superclass = None
        superclass_path = None
        if superclass_name:
            superclass_path = self.resolver.resolve_constant_path(superclass_name)
            if superclass_path:
                superclass = self.store.find_namespace(superclass_path)
            superclass_path = (superclass_path or superclass_name).removeprefix("::")

        namespace = owner.get_namespace_named(name)
        if namespace is None or namespace.kind is not NamespaceKind.CLASS:
            created = namespace is None
            namespace = owner.add_namespace(name, NamespaceKind.CLASS)
            if created:
                namespace.ignored = True
                if superclass_expr:
                    namespace.superclass = superclass_expr

        if superclass is not None:
            namespace.superclass = superclass
        elif superclass_path is not None:
            current = namespace.superclass
            if not isinstance(current, Namespace) or current.name == "Object":
                namespace.superclass = superclass_path
        return namespace

    def open_singleton_constant(self, name: str) -> Namespace:
        """Return the namespace of the object bound in ``class << (Name = obj)``."""
        return self.stack.container.add_namespace(name, NamespaceKind.SINGLETON)

    # Methods

    def add_method(
        self,
        name: str,
        *,
        receiver_name: str | None,
        receiver_kind: NamespaceKind,
        visibility: Visibility,
        singleton: bool,
        params: str,
        block_params: str | None,
        calls_super: bool,
        location: SourceRange,
        args_end_line: int,
    ) -> Method | None:
        """Document a ``def``."""
        if receiver_name:
            receiver: Container = self.resolver.find_or_create_namespace_path(
                receiver_name, receiver_kind
            )
        else:
            receiver = self.stack.container
        comment, directives = self._leading_comment(location.start_line)
        return self._internal_add_method(
            name,
            receiver,
            comment=comment,
            directives=directives,
            modifier_lines=[location.start_line, args_end_line, location.end_line],
            line=location.start_line,
            visibility=visibility,
            singleton=singleton,
            params=params,
            block_params=block_params,
            calls_super=calls_super,
            location=location,
        )

    def _internal_add_method(
        self,
        name: str | None,
        container: Container,
        *,
        comment: Comment | None,
        directives: Directives,
        line: int | None,
        visibility: Visibility,
        singleton: bool,
        params: str | None,
        block_params: str | None = None,
        calls_super: bool = False,
        location: SourceRange | None = None,
        modifier_lines: list[int] | None = None,
        synthetic: bool = False,
    ) -> Method | None:
        method = Method(
            name=name or "",
            comment=comment,
            file=self.file_name,
            line=line,
            params=params or "()",
            singleton=singleton,
            visibility=visibility,
            calls_super=calls_super,
            source_range=location,
            synthetic=synthetic,
        )
        self.apply_code_object_directives(method, directives)
        modifiers = self._modifier_nodoc(method, modifier_lines or [])

        if not self.stack.accepts_documentation(container):
            return None
        if modifiers:
            if self.track_visibility:
                return None
            method.document_self = DocumentSelf.HIDE

        self.mark_documentable(container)

        call_seq, _ = directives.get("call-seq", (None, None))
        if call_seq:
            method.call_seq = "\n".join(
                part.rstrip() for part in call_seq.splitlines() if part.strip()
            )
        if not method.name and method.call_seq:
            match = CALL_SEQ_NAME_RE.match(method.call_seq)
            method.name = match.group() if match else ""
        method.name = method.name or "unknown"
        if method.block_params is None and block_params is not None:
            method.block_params = block_params

        if (
            not synthetic
            and self.rename_initialize
            and name == "initialize"
            and not singleton
        ):
            if method.dont_rename_initialize:
                method.visibility = Visibility.PROTECTED
            else:
                method.name = "new"
                method.singleton = True
                method.visibility = Visibility.PUBLIC

        stored = container.add_method(method)
        stored.visibility = method.visibility
        return stored

    def handle_meta_method_comment(
        self, comment: Comment, directives: Directives, node: Node | None
    ) -> None:
        """Create the methods or attributes described by a meta-method comment."""
        self.stack.apply_control_directives(directives)
        container = self.stack.container
        call_node = node if node is not None and node.type == "call" else None
        singleton_method = False
        visibility = self.stack.visibility
        attributes: list[str] | None = None
        rw = "R"
        line: int | None = None
        method_name: str | None = None
        for directive, (param, directive_line) in directives.items():
            if directive in ATTRIBUTE_MODES:
                if param:
                    attributes = [param]
                elif call_node is not None:
                    attributes = [a for a in name_arguments(call_node) if a is not None]
                rw = ATTRIBUTE_MODES[directive]
            elif directive in ("method", "singleton-method"):
                method_name = param or method_name
                line = directive_line
                if directive == "singleton-method":
                    singleton_method = True
                    visibility = Visibility.PUBLIC

        if not self.stack.accepts_documentation(container):
            return

        if attributes is not None:
            for attribute_name in attributes:
                attribute = Attribute(
                    name=attribute_name,
                    comment=comment,
                    file=self.file_name,
                    line=line,
                    rw=rw,
                    singleton=self.stack.singleton,
                    visibility=visibility,
                )
                self.apply_code_object_directives(attribute, directives)
                stored = container.add_attribute(attribute)
                stored.visibility = attribute.visibility
                self.mark_documentable(container)
            return

        if line is None and node is None:
            return
        if method_name is None and call_node is not None:
            arguments = name_arguments(call_node)
            method_name = arguments[0] if arguments else None
        location = None
        if node is not None:
            line = start_line(node)
            location = source_range(node)
        self._internal_add_method(
            method_name,
            container,
            comment=comment,
            directives=directives,
            line=line,
            visibility=visibility,
            singleton=self.stack.singleton or singleton_method,
            params=None,
            location=location,
            synthetic=True,
        )

    def _add_tomdoc_method(self, block: CommentBlock, comment: Comment) -> bool:
        comment.format = "tomdoc"
        signature = tomdoc.signature(comment.text)
        if signature is None:
            return False
        name = re.split(r"[ (]", signature, maxsplit=1)[0]
        if not name:
            return False
        container = self.stack.container
        if not self.stack.accepts_documentation(container):
            return True
        node = self.line_nodes.get(block.target_line)
        method = Method(
            name=name,
            comment=comment,
            file=self.file_name,
            line=block.start_line,
            singleton=self.stack.singleton,
            visibility=self.stack.visibility,
            call_seq=signature,
            source_range=source_range(node) if node is not None else None,
            synthetic=True,
        )
        container.add_method(method)
        self.mark_documentable(container)
        return True

    def change_method_visibility(
        self, names: list[str], visibility: Visibility, singleton: bool | None = None
    ) -> None:
        """Handle ``private :a, :b`` and ``private_class_method :a``."""
        if singleton is None:
            singleton = self.stack.singleton
        self.stack.container.set_visibility_for(names, visibility, singleton)

    def change_method_to_module_function(self, names: list[str]) -> None:
        """Handle ``module_function :a``: a private copy and a public singleton copy."""
        container = self.stack.container
        container.set_visibility_for(names, Visibility.PRIVATE, False)
        for member in container.methods_matching(names, False):
            if isinstance(member, Method):
                copy = dataclasses.replace(
                    member, singleton=True, visibility=Visibility.PUBLIC, aliases=[]
                )
                container.add_method(copy).visibility = Visibility.PUBLIC
            else:
                copy_attribute = dataclasses.replace(
                    member, singleton=True, visibility=Visibility.PUBLIC
                )
                container.add_attribute(copy_attribute).visibility = Visibility.PUBLIC

    # Other members

    def add_alias_method(self, old_name: str, new_name: str, line: int) -> Alias | None:
        """Handle ``alias new old`` and ``alias_method :new, :old``."""
        comment, directives = self._leading_comment(line)
        container = self.stack.container
        singleton = self.stack.singleton
        old_method = container.find_method(old_name, singleton)
        visibility = old_method.visibility if old_method is not None else Visibility.PUBLIC
        alias = Alias(
            name=new_name,
            comment=comment,
            file=self.file_name,
            line=line,
            old_name=old_name,
            singleton=singleton,
        )
        self.apply_code_object_directives(alias, directives)
        modifiers = self._modifier_nodoc(alias, [line])
        if not self.stack.accepts_documentation(container) or (
            self.track_visibility and modifiers
        ):
            return None
        self.mark_documentable(container)
        container.add_alias(alias)
        new_method = container.find_method(new_name, singleton)
        if new_method is not None:
            new_method.visibility = visibility
        return alias

    def add_attributes(self, names: list[str], rw: str, line: int) -> list[Attribute]:
        """Handle ``attr_reader :a, :b`` and friends."""
        comment, directives = self._leading_comment(line)
        container = self.stack.container
        if not self.stack.accepts_documentation(container):
            return []
        added = []
        for name in names:
            attribute = Attribute(
                name=name,
                comment=comment,
                file=self.file_name,
                line=line,
                rw=rw,
                singleton=self.stack.singleton,
                visibility=self.stack.visibility,
            )
            self.apply_code_object_directives(attribute, directives)
            if self.track_visibility and self._modifier_nodoc(attribute, [line]):
                continue
            stored = container.add_attribute(attribute)
            stored.visibility = attribute.visibility
            self.mark_documentable(container)
            added.append(stored)
        return added

    def add_mixins(self, names: list[str], kind: MixinKind, line: int) -> list[Mixin]:
        """Handle ``include A, B`` and ``extend A``; names are qualified where known."""
        comment, directives = self._leading_comment(line)
        container = self.stack.container
        if not self.stack.accepts_documentation(container):
            return []
        self.mark_documentable(container)
        added = []
        for name in names:
            resolved = self.resolver.resolve_constant_path(name)
            mixin = Mixin(
                name=resolved or name,
                comment=comment,
                file=self.file_name,
                line=line,
                kind=kind,
                scope_chain=self.stack.scope_chain(),
            )
            self.apply_code_object_directives(mixin, directives)
            added.append(container.add_mixin(mixin))
        return added

    def add_constant(
        self, path: str, value: str, start_line: int, end_line: int
    ) -> Constant | None:
        """Handle ``NAME = value`` and ``Owner::NAME = value``."""
        comment, directives = self._leading_comment(start_line)
        owner, name = self.resolver.find_or_create_constant_owner(path)
        if owner is None:
            return None
        constant = Constant(
            name=name, comment=comment, file=self.file_name, line=start_line, value=value
        )
        constant.parent = owner
        self.apply_code_object_directives(constant, directives)
        modifiers = self._modifier_nodoc(constant, [start_line, end_line])

        if self.track_visibility and NODOC_ALL in modifiers:
            constant.document_self = DocumentSelf.HIDE
        elif self.track_visibility and NODOC in modifiers:
            self.stack.mark_locally_hidden(constant.full_name)
            constant.ignored = True
        elif self.stack.accepts_documentation(owner):
            self.mark_documentable(owner)
        else:
            constant.ignored = True

        stored = owner.add_constant(constant)
        target = self._namespace_for_value(value)
        if target is not None:
            stored.is_alias_for = target
            owner.add_namespace_alias(name, target)
        return stored

    def _namespace_for_value(self, value: str) -> Namespace | None:
        if value.startswith("::"):
            return self.store.find_namespace(value)
        full_name = self.resolver.resolve_constant_path(value)
        if full_name is None:
            return None
        return self.store.find_namespace(full_name)

    def set_constant_visibility(self, names: list[str], visibility: Visibility) -> None:
        """Handle ``private_constant :A`` and ``public_constant :A``."""
        self.stack.container.set_constant_visibility_for(names, visibility)

    def add_require(self, name: str, line: int) -> Require:
        """Record ``require 'name'`` on the file."""
        return self.top_level.add_require(Require(name=name, file=self.file_name, line=line))


def _apply_method_directive(method: Method, name: str, value: str | None) -> None:
    if name == "notnew":
        method.dont_rename_initialize = True
    elif name == "yields" and value:
        method.block_params = value
        method.params = BLOCK_PARAM_RE.sub("", method.params)
    elif name == "args" and value:
        method.params = value if value.startswith("(") else f"({value})"
