"""Registry of every namespace and file seen during a run."""

from __future__ import annotations

import logging
import threading

from rbdoc.namespace import Namespace
from rbdoc.scan_warning import ScanWarning
from rbdoc.top_level import TopLevel

logger = logging.getLogger(__name__)


class Store:
    """Namespaces keyed by qualified name plus the per-file top levels.

    The store is append-only while files are being scanned. ``lock`` guards
    find-or-create of namespaces and attaching members, which are the only
    writes shared between files.
    """

    def __init__(self) -> None:
        """Initialize an empty registry."""
        self.namespaces: dict[str, Namespace] = {}
        self.aliases: dict[str, Namespace] = {}
        self.files: dict[str, TopLevel] = {}
        self.warnings: list[ScanWarning] = []
        self.lock = threading.RLock()

    def add_file(self, file_name: str) -> TopLevel:
        """Return the top level of ``file_name``, creating it on first use."""
        with self.lock:
            top_level = self.files.get(file_name)
            if top_level is None:
                top_level = TopLevel(file_name, self)
                self.files[file_name] = top_level
            return top_level

    def find_namespace(self, full_name: str) -> Namespace | None:
        """Return the namespace (or namespace alias) with this qualified name."""
        if full_name.startswith("::"):
            full_name = full_name[2:]
        return self.namespaces.get(full_name) or self.aliases.get(full_name)

    def register(self, namespace: Namespace) -> None:
        """Add a newly created namespace to the registry."""
        with self.lock:
            self.namespaces.setdefault(namespace.full_name, namespace)
        logger.debug("Registered %s %s", namespace.kind.value, namespace.full_name)

    def register_alias(self, full_name: str, namespace: Namespace) -> None:
        """Make ``full_name`` another name of ``namespace``."""
        with self.lock:
            if full_name not in self.namespaces:
                self.aliases[full_name] = namespace

    def warn(self, file_name: str, line: int | None, message: str) -> None:
        """Accumulate a warning for the host to report."""
        with self.lock:
            self.warnings.append(ScanWarning(file_name, line, message))

    def all_namespaces(self) -> list[Namespace]:
        """Return every namespace sorted by qualified name."""
        return [self.namespaces[name] for name in sorted(self.namespaces)]

    def documented_namespaces(self) -> list[Namespace]:
        """Return the namespaces that were promoted and not hidden."""
        return [ns for ns in self.all_namespaces() if ns.documented]
