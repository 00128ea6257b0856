"""Shared container behaviour of namespaces and file top levels."""

from __future__ import annotations

from contextlib import AbstractContextManager, nullcontext
from typing import TYPE_CHECKING

from rbdoc.models import (
    Alias,
    Attribute,
    Comment,
    Constant,
    DocumentSelf,
    Method,
    NamespaceKind,
    Visibility,
)

if TYPE_CHECKING:
    from rbdoc.mixin import Mixin, MixinKind
    from rbdoc.namespace import Namespace
    from rbdoc.store import Store


class Context:
    """A container of documented members.

    Every ``add_*`` method is a find-or-create: adding a member whose key is
    already present updates the existing entry in place and returns it, so
    reopening a class in a second file merges instead of duplicating.
    """

    def __init__(self, store: Store | None) -> None:
        """Initialize empty member collections bound to a registry."""
        self.store = store
        self.children: dict[str, Namespace] = {}
        self.namespace_aliases: dict[str, Namespace] = {}
        self.method_list: list[Method] = []
        self.attributes: list[Attribute] = []
        self.constants: list[Constant] = []
        self.mixins: list[Mixin] = []
        self.aliases: list[Alias] = []
        self.sections: dict[str, Comment | None] = {}
        self.current_section: str | None = None
        self._unmatched_aliases: dict[tuple[str, bool], list[Alias]] = {}

    @property
    def full_name(self) -> str:
        """Return the qualified name of this container."""
        raise NotImplementedError

    @property
    def received_nodoc(self) -> bool:
        """Return True when the container is hidden from documentation globally."""
        return False

    def child_name(self, name: str) -> str:
        """Return the qualified name ``name`` would have inside this container."""
        if self.full_name:
            return f"{self.full_name}::{name}"
        return name

    def _locked(self) -> AbstractContextManager[object]:
        if self.store is None:
            return nullcontext()
        return self.store.lock

    def _create_child(
        self, name: str, kind: NamespaceKind, superclass: str | None
    ) -> Namespace:
        raise NotImplementedError

    # Namespaces

    def get_namespace_named(self, name: str) -> Namespace | None:
        """Return the direct child namespace (or namespace alias) called ``name``."""
        return self.children.get(name) or self.namespace_aliases.get(name)

    def add_namespace(
        self, name: str, kind: NamespaceKind, superclass: str | None = None
    ) -> Namespace:
        """Find or create the child namespace ``name``.

        A module that is reopened with ``class`` becomes a class.
        """
        with self._locked():
            existing = self.children.get(name)
            if existing is not None:
                if kind is NamespaceKind.CLASS and existing.kind is NamespaceKind.MODULE:
                    existing.kind = NamespaceKind.CLASS
                    existing.superclass = superclass or "Object"
                return existing
            child = self._create_child(name, kind, superclass)
            self.children[name] = child
            if self.store is not None:
                self.store.register(child)
            return child

    def add_namespace_alias(self, name: str, namespace: Namespace) -> None:
        """Make ``name`` in this container refer to ``namespace``."""
        with self._locked():
            self.namespace_aliases[name] = namespace
            if self.store is not None:
                self.store.register_alias(self.child_name(name), namespace)

    # Methods

    def find_method(self, name: str, singleton: bool) -> Method | None:
        """Return the method called ``name`` with the given singleton flag."""
        for method in self.method_list:
            if method.name == name and method.singleton == singleton:
                return method
        return None

    def add_method(self, method: Method) -> Method:
        """Add ``method`` or merge it into the existing entry of the same name."""
        with self._locked():
            existing = self.find_method(method.name, method.singleton)
            if existing is None:
                method.parent = self
                method.section = method.section or self.current_section
                self.method_list.append(method)
                stored = method
            else:
                _merge_method(existing, method)
                stored = existing
            for pending in self._unmatched_aliases.pop(
                (stored.name, stored.singleton), []
            ):
                self._add_alias_method(pending, stored)
            return stored

    def methods_matching(
        self, names: list[str], singleton: bool = False
    ) -> list[Method | Attribute]:
        """Return methods (and, for instance lookups, attributes) named in ``names``."""
        found: list[Method | Attribute] = [
            m for m in self.method_list if m.name in names and m.singleton == singleton
        ]
        if len(found) == len(names) or singleton:
            return found
        found.extend(a for a in self.attributes if a.name in names)
        return found

    def set_visibility_for(
        self, names: list[str], visibility: Visibility, singleton: bool = False
    ) -> None:
        """Set the visibility of every method named in ``names``."""
        with self._locked():
            for member in self.methods_matching(names, singleton):
                member.visibility = visibility

    # Attributes

    def find_attribute(self, name: str, singleton: bool) -> Attribute | None:
        """Return the attribute called ``name`` with the given singleton flag."""
        for attribute in self.attributes:
            if attribute.name == name and attribute.singleton == singleton:
                return attribute
        return None

    def add_attribute(self, attribute: Attribute) -> Attribute:
        """Add ``attribute`` or merge its read/write mode into the existing one."""
        with self._locked():
            existing = self.find_attribute(attribute.name, attribute.singleton)
            if existing is None:
                attribute.parent = self
                attribute.section = attribute.section or self.current_section
                self.attributes.append(attribute)
                return attribute
            modes = set(existing.rw) | set(attribute.rw)
            existing.rw = "RW" if modes >= {"R", "W"} else existing.rw
            if attribute.comment is not None and not attribute.comment.empty:
                existing.comment = attribute.comment
            return existing

    # Constants

    def find_constant_named(self, name: str) -> Constant | None:
        """Return the constant called ``name`` defined directly in this container."""
        for constant in self.constants:
            if constant.name == name:
                return constant
        return None

    def add_constant(self, constant: Constant) -> Constant:
        """Add ``constant`` or update the existing constant of the same name."""
        with self._locked():
            existing = self.find_constant_named(constant.name)
            if existing is None:
                constant.parent = self
                constant.section = constant.section or self.current_section
                self.constants.append(constant)
                return constant
            existing.value = constant.value
            existing.is_alias_for = constant.is_alias_for or existing.is_alias_for
            existing.ignored = existing.ignored and constant.ignored
            if constant.document_self is not DocumentSelf.UNSET:
                existing.document_self = constant.document_self
            if constant.comment is not None and not constant.comment.empty:
                existing.comment = constant.comment
            return existing

    def set_constant_visibility_for(
        self, names: list[str], visibility: Visibility
    ) -> None:
        """Set the visibility of every constant named in ``names``."""
        with self._locked():
            for constant in self.constants:
                if constant.name in names:
                    constant.visibility = visibility

    # Mixins

    def add_mixin(self, mixin: Mixin) -> Mixin:
        """Record an include or extend; repeated inclusions are kept once."""
        with self._locked():
            for existing in self.mixins:
                if existing.kind is mixin.kind and existing.name == mixin.name:
                    if mixin.comment is not None and not mixin.comment.empty:
                        existing.comment = mixin.comment
                    return existing
            mixin.parent = self
            mixin.section = mixin.section or self.current_section
            self.mixins.append(mixin)
            return mixin

    def mixins_of_kind(self, kind: MixinKind) -> list[Mixin]:
        """Return includes or extends in declaration order."""
        return [m for m in self.mixins if m.kind is kind]

    # Aliases

    def add_alias(self, alias: Alias) -> Alias:
        """Record ``alias`` and create the aliased method entry when possible.

        An alias of a method that has not been seen yet is kept pending and
        resolved as soon as that method is added.
        """
        with self._locked():
            alias.parent = self
            self.aliases.append(alias)
            method = self.find_method(alias.old_name, alias.singleton)
            if method is None:
                self._unmatched_aliases.setdefault(
                    (alias.old_name, alias.singleton), []
                ).append(alias)
            else:
                self._add_alias_method(alias, method)
            return alias

    def _add_alias_method(self, alias: Alias, method: Method) -> None:
        comment = alias.comment
        if comment is None or comment.empty:
            comment = Comment(f"Alias for #{method.name}", file=alias.file)
        new_method = Method(
            name=alias.new_name,
            comment=comment,
            file=alias.file,
            line=alias.line,
            params=method.params,
            singleton=method.singleton,
            visibility=method.visibility,
            block_params=method.block_params,
            is_alias_for=method,
        )
        stored = self.add_method(new_method)
        if stored not in method.aliases:
            method.aliases.append(stored)

    # Sections

    def set_current_section(self, title: str, comment: Comment | None) -> None:
        """Start a documentation section; members added later belong to it."""
        with self._locked():
            self.sections[title] = comment
            self.current_section = title

    # Grouped views for renderers

    def method_groups(self) -> dict[tuple[bool, Visibility], list[Method]]:
        """Group methods by (singleton, visibility)."""
        groups: dict[tuple[bool, Visibility], list[Method]] = {}
        for method in self.method_list:
            groups.setdefault((method.singleton, method.visibility), []).append(method)
        return groups

    def attribute_groups(self) -> dict[tuple[bool, Visibility], list[Attribute]]:
        """Group attributes by (singleton, visibility)."""
        groups: dict[tuple[bool, Visibility], list[Attribute]] = {}
        for attribute in self.attributes:
            groups.setdefault(
                (attribute.singleton, attribute.visibility), []
            ).append(attribute)
        return groups


def _merge_method(existing: Method, method: Method) -> None:
    """Fold a re-declaration of a method into the stored entry."""
    if method.comment is not None and not method.comment.empty:
        existing.comment = method.comment
    if method.params != "()" or existing.params == "()":
        existing.params = method.params
    existing.call_seq = method.call_seq or existing.call_seq
    existing.block_params = method.block_params or existing.block_params
    existing.calls_super = existing.calls_super or method.calls_super
    existing.is_alias_for = method.is_alias_for or existing.is_alias_for
    existing.source_range = method.source_range or existing.source_range
    existing.synthetic = existing.synthetic and method.synthetic
    existing.file = method.file or existing.file
    existing.line = method.line if method.line is not None else existing.line
    if method.document_self is not DocumentSelf.UNSET:
        existing.document_self = method.document_self
