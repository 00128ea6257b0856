"""Data model for ``include`` and ``extend`` relationships."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from rbdoc.models import CodeObject, MixinKind
from rbdoc.name_resolver import resolve_mixin

if TYPE_CHECKING:
    from rbdoc.namespace import Namespace


@dataclass(eq=False)
class Mixin(CodeObject):
    """A module mixed into a namespace, resolved lazily by name.

    ``name`` is the name written at the inclusion site, qualified through
    the lexical scope when that was possible at scan time. ``scope_chain``
    holds the qualified names of the enclosing namespaces, innermost first,
    so the lookup can run long after the scan finished.
    """

    kind: MixinKind = MixinKind.INCLUDE
    scope_chain: tuple[str, ...] = ()
    _resolved: Namespace | None = field(default=None, init=False, repr=False)

    def resolved_namespace_or_raw_name(self) -> Namespace | str:
        """Return the mixed-in namespace, or the raw name when it is unknown.

        Only meaningful once every file has been scanned. A successful lookup
        is cached; a failed one is retried on the next call.
        """
        if self._resolved is None:
            self._resolved = resolve_mixin(self)
        if self._resolved is None:
            return self.name
        return self._resolved

    @property
    def module(self) -> Namespace | str:
        """Alias of :meth:`resolved_namespace_or_raw_name`."""
        return self.resolved_namespace_or_raw_name()

    @property
    def full_name(self) -> str:
        """Return the name as written, the mixin has no qualified name of its own."""
        return self.name
