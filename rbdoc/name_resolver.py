"""Static name resolution over the nesting stack and the namespace registry."""

from __future__ import annotations

import logging
from collections.abc import Iterator
from typing import TYPE_CHECKING

from rbdoc.models import MixinKind, NamespaceKind
from rbdoc.namespace import Namespace

if TYPE_CHECKING:
    from rbdoc.context import Context
    from rbdoc.mixin import Mixin
    from rbdoc.nesting_stack import NestingStack
    from rbdoc.top_level import TopLevel

logger = logging.getLogger(__name__)


class NameResolver:
    """Resolves constant paths written at the current point of a walk."""

    def __init__(self, stack: NestingStack) -> None:
        """Initialize the resolver over the frames of ``stack``."""
        self.stack = stack

    @property
    def top_level(self) -> TopLevel:
        """Return the root container of the file."""
        return self.stack.top_level

    def find_or_create_namespace_path(self, path: str, kind: NamespaceKind) -> Namespace:
        """Return the namespace named by ``path``, creating missing segments.

        The first segment is looked up in the enclosing frames, innermost
        first. When it is found nowhere it is created under the innermost
        non-singleton frame. Intermediate segments are created as modules and
        the last one as ``kind``. Created namespaces stay ignored until they
        receive documentation. When the first segment names a plain constant,
        a detached placeholder is returned so that nothing is documented on
        an unrelated value.
        """
        root_name, *segments = path.split("::")
        current: Namespace | TopLevel
        if root_name == "":
            current = self.top_level
        else:
            found = None
            for frame in self.stack.non_singleton_frames():
                found = frame.container.get_namespace_named(root_name)
                if found is not None:
                    break
                if frame.container.find_constant_named(root_name) is not None:
                    logger.debug("%s names a constant, not a namespace", root_name)
                    return Namespace(root_name, kind)
            if found is None:
                owner = next(self.stack.non_singleton_frames()).container
                found = _create(owner, root_name, kind if not segments else NamespaceKind.MODULE)
            current = found

        for index, segment in enumerate(segments):
            segment_kind = kind if index == len(segments) - 1 else NamespaceKind.MODULE
            child = current.get_namespace_named(segment)
            current = child if child is not None else _create(current, segment, segment_kind)

        if isinstance(current, Namespace):
            return current
        # An empty path names the top level itself.
        return Namespace("", kind)

    def resolve_constant_path(self, path: str) -> str | None:
        """Qualify ``path`` through the enclosing frames and the top level.

        Returns None when the first segment names no known namespace.
        """
        owner_name, separator, rest = path.partition("::")
        if owner_name == "":
            return path
        found = None
        for frame in self.stack.non_singleton_frames():
            found = frame.container.get_namespace_named(owner_name)
            if found is not None:
                break
        if found is None:
            found = self.top_level.get_namespace_named(owner_name)
        if found is None:
            return None
        return f"{found.full_name}::{rest}" if separator else found.full_name

    def find_or_create_constant_owner(
        self, path: str
    ) -> tuple[Namespace | TopLevel | None, str]:
        """Split ``path`` into its owner and the last name.

        A simple name belongs to the current container; inside a
        ``class << x`` body there is no owner to record constants on.
        """
        owner_path, separator, name = path.rpartition("::")
        if not separator:
            return (None if self.stack.singleton else self.stack.container), name
        if owner_path == "":
            return self.top_level, name
        return self.find_or_create_namespace_path(owner_path, NamespaceKind.MODULE), name


def _create(owner: Namespace | TopLevel, name: str, kind: NamespaceKind) -> Namespace:
    created = owner.add_namespace(name, kind)
    created.ignored = True
    return created


def resolve_mixin(mixin: Mixin) -> Namespace | None:
    """Find the namespace a mixin refers to, or None.

    Lookup order: children of the owner, children of the namespaces the owner
    includes (last included first, and only the earlier ones when the mixin
    is itself an include), then outward through the owner's enclosing names
    and the recorded scope chain, and finally the top level. A name written
    with a leading ``::`` is only looked up in the registry. Each failed
    lookup walks the whole chain again.
    """
    owner = mixin.parent
    if owner is None or owner.store is None:
        return None
    store = owner.store
    name = mixin.name
    if name.startswith("::"):
        return store.find_namespace(name)

    found = store.find_namespace(owner.child_name(name))
    if found is not None:
        return found

    for earlier in reversed(_earlier_mixins(owner, mixin)):
        target = earlier.resolved_namespace_or_raw_name()
        if isinstance(target, str):
            continue
        found = store.find_namespace(target.child_name(name))
        if found is not None:
            return found

    for scope in _outer_scopes(owner.full_name, mixin.scope_chain):
        found = store.find_namespace(f"{scope}::{name}" if scope else name)
        if found is not None:
            return found
    return None


def _earlier_mixins(owner: Context, mixin: Mixin) -> list[Mixin]:
    earlier = []
    for candidate in owner.mixins_of_kind(MixinKind.INCLUDE):
        if candidate is mixin:
            break
        earlier.append(candidate)
    return earlier


def _outer_scopes(full_name: str, scope_chain: tuple[str, ...]) -> Iterator[str]:
    """Yield enclosing qualified names, innermost first, ending with the top level."""
    seen = {full_name}
    for start in (full_name, *scope_chain):
        parts = start.split("::") if start else []
        for length in range(len(parts), 0, -1):
            scope = "::".join(parts[:length])
            if scope not in seen:
                seen.add(scope)
                yield scope
    yield ""
