"""Data model for classes, modules and singleton-object namespaces."""

from __future__ import annotations

from typing import TYPE_CHECKING

from rbdoc.context import Context
from rbdoc.models import Comment, DocumentSelf, NamespaceKind

if TYPE_CHECKING:
    from rbdoc.store import Store


class Namespace(Context):
    """A class or module, unique in the registry by its qualified name."""

    def __init__(
        self,
        name: str,
        kind: NamespaceKind,
        parent: Namespace | None = None,
        store: Store | None = None,
        superclass: str | Namespace | None = None,
    ) -> None:
        """Initialize the namespace; classes default to an ``Object`` superclass."""
        super().__init__(store)
        self.name = name
        self.kind = kind
        self.parent = parent
        self.superclass: str | Namespace | None = superclass
        if kind is NamespaceKind.CLASS and superclass is None:
            self.superclass = "Object"
        self.ignored = False
        self.document_self = DocumentSelf.UNSET
        self.comments: list[Comment] = []
        self.in_files: list[str] = []
        self.line: int | None = None

    def __repr__(self) -> str:
        """Show kind and qualified name."""
        return f"<Namespace {self.kind.value} {self.full_name or '(anonymous)'}>"

    @property
    def full_name(self) -> str:
        """Return the ``::``-separated qualified name."""
        if self.parent is not None and self.parent.full_name:
            return f"{self.parent.full_name}::{self.name}"
        return self.name

    @property
    def superclass_name(self) -> str | None:
        """Return the qualified name of the superclass, resolved or not."""
        if isinstance(self.superclass, Namespace):
            return self.superclass.full_name
        return self.superclass

    @property
    def is_class(self) -> bool:
        """Return True for classes."""
        return self.kind is NamespaceKind.CLASS

    @property
    def is_module(self) -> bool:
        """Return True for modules and singleton-object namespaces."""
        return self.kind is not NamespaceKind.CLASS

    @property
    def detached(self) -> bool:
        """Return True for placeholders that are not part of any registry."""
        return self.store is None

    @property
    def received_nodoc(self) -> bool:
        """Return True when ``:nodoc: all`` hid this namespace globally."""
        return self.document_self is DocumentSelf.HIDE

    @property
    def documented(self) -> bool:
        """Return True once promoted and not globally hidden."""
        return not self.ignored and not self.received_nodoc

    @property
    def comment(self) -> Comment | None:
        """Return all file comments merged into one, or None."""
        parts = [c for c in self.comments if not c.empty]
        if not parts:
            return None
        return Comment(
            "\n\n".join(c.text for c in parts),
            format=parts[0].format,
            file=parts[0].file,
            line=parts[0].line,
        )

    def _create_child(
        self, name: str, kind: NamespaceKind, superclass: str | None
    ) -> Namespace:
        return Namespace(name, kind, parent=self, store=self.store, superclass=superclass)

    def add_comment(self, comment: Comment, file_name: str) -> None:
        """Attach a comment; a reopening in the same file replaces its earlier one."""
        with self._locked():
            for index, existing in enumerate(self.comments):
                if existing.file == file_name:
                    self.comments[index] = comment
                    return
            self.comments.append(comment)

    def record_location(self, file_name: str) -> None:
        """Remember that this namespace is (re)opened in ``file_name``."""
        with self._locked():
            if file_name not in self.in_files:
                self.in_files.append(file_name)

    def ancestors_by_name(self) -> list[Namespace]:
        """Return this namespace and its lexical parents, innermost first."""
        chain: list[Namespace] = []
        current: Namespace | None = self
        while current is not None:
            chain.append(current)
            current = current.parent
        return chain
