"""Per-file root container."""

from __future__ import annotations

from typing import TYPE_CHECKING

from rbdoc.context import Context
from rbdoc.models import Comment, NamespaceKind, Require
from rbdoc.namespace import Namespace

if TYPE_CHECKING:
    from rbdoc.store import Store


class TopLevel(Context):
    """The root frame of one scanned file.

    Namespaces opened at the top of a file belong to the shared registry, not
    to the file, so lookups go through the store.
    """

    def __init__(self, file_name: str, store: Store) -> None:
        """Initialize the top level of ``file_name``."""
        super().__init__(store)
        self.store: Store = store
        self.file_name = file_name
        self.requires: list[Require] = []
        self.comment: Comment | None = None
        self.namespaces_in_file: list[Namespace] = []

    def __repr__(self) -> str:
        """Show the file name."""
        return f"<TopLevel {self.file_name}>"

    @property
    def full_name(self) -> str:
        """The top level has no qualified name."""
        return ""

    def get_namespace_named(self, name: str) -> Namespace | None:
        """Look ``name`` up among the top-level namespaces of every file."""
        return self.store.find_namespace(name)

    def add_namespace(
        self, name: str, kind: NamespaceKind, superclass: str | None = None
    ) -> Namespace:
        """Find or create the top-level namespace ``name``."""
        with self._locked():
            existing = self.store.find_namespace(name)
            if existing is not None and existing.parent is None:
                if kind is NamespaceKind.CLASS and existing.kind is NamespaceKind.MODULE:
                    existing.kind = NamespaceKind.CLASS
                    existing.superclass = superclass or "Object"
                return existing
            child = self._create_child(name, kind, superclass)
            self.store.register(child)
            return child

    def _create_child(
        self, name: str, kind: NamespaceKind, superclass: str | None
    ) -> Namespace:
        return Namespace(name, kind, parent=None, store=self.store, superclass=superclass)

    def add_require(self, require: Require) -> Require:
        """Record a ``require``; the same feature is recorded once."""
        for existing in self.requires:
            if existing.name == require.name:
                return existing
        require.parent = self
        self.requires.append(require)
        return require

    def add_to_namespaces_in_file(self, namespace: Namespace) -> None:
        """Remember that ``namespace`` is documented from this file."""
        if namespace not in self.namespaces_in_file:
            self.namespaces_in_file.append(namespace)
