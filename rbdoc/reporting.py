import hashlib
import json
import time
from typing import Any, Dict, List

from rbdoc.mixin import Mixin
from rbdoc.models import Visibility
from rbdoc.scan_warning import ScanWarning
from rbdoc.store import Store

VISIBILITY_ORDER = [Visibility.PUBLIC, Visibility.PROTECTED, Visibility.PRIVATE]


def config_hash(config: Dict[str, Any]) -> str:
    """Return a hash of the configuration that ignores key order."""
    canonical = json.dumps(config, sort_keys=True, ensure_ascii=True)
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()


def _mixin_name(mixin: Mixin) -> str:
    resolved = mixin.resolved_namespace_or_raw_name()
    return resolved if isinstance(resolved, str) else resolved.full_name


class ScanReport:
    def __init__(self, config_hash: str, min_visibility: str = "protected"):
        self.config_hash = config_hash
        self.min_visibility = min_visibility
        self.warnings: List[ScanWarning] = []
        self.namespaces: List[Dict[str, Any]] = []
        self.file_count = 0
        self.start_time = time.time()

    def _visible(self, visibility: Visibility) -> bool:
        if self.min_visibility == "nodoc":
            return True
        return VISIBILITY_ORDER.index(visibility) <= VISIBILITY_ORDER.index(
            Visibility(self.min_visibility)
        )

    def _count(self, members) -> int:
        return sum(1 for m in members if self._visible(m.visibility) and m.documented)

    def add_store(self, store: Store):
        self.file_count += len(store.files)
        self.warnings.extend(store.warnings)
        for ns in store.documented_namespaces():
            self.namespaces.append(
                {
                    "name": ns.full_name,
                    "kind": ns.kind.value,
                    "superclass": ns.superclass_name,
                    "files": list(ns.in_files),
                    "methods": self._count(ns.method_list),
                    "attributes": self._count(ns.attributes),
                    "constants": self._count(ns.constants),
                    "mixins": [
                        {"kind": m.kind.value, "name": _mixin_name(m)}
                        for m in ns.mixins
                    ],
                }
            )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "meta": {
                "timestamp": time.time(),
                "duration": time.time() - self.start_time,
                "config_hash": self.config_hash,
                "files": self.file_count,
                "total_namespaces": len(self.namespaces),
                "total_warnings": len(self.warnings),
            },
            "namespaces": self.namespaces,
            "warnings": [
                {"file": w.file, "line": w.line, "message": w.message}
                for w in self.warnings
            ],
            "stats": self._compute_stats(),
        }

    def generate_report(self, path: str):
        with open(path, "w", encoding="utf-8") as f:
            json.dump(self.to_dict(), f, indent=2)

    def _compute_stats(self) -> Dict[str, Any]:
        kind_counts: Dict[str, int] = {}
        for ns in self.namespaces:
            kind_counts[ns["kind"]] = kind_counts.get(ns["kind"], 0) + 1
        return {"kind_counts": kind_counts}
