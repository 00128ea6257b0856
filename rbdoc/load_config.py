"""Logic for loading and merging configuration files."""

import copy
from pathlib import Path
from typing import Any

import yaml

from rbdoc.deep_merge import deep_merge
from rbdoc.errors import RbdocError

DEFAULT_CONFIG: dict[str, Any] = {
    "scan": {
        "file_patterns": ["*.rb", "*.rbw"],
        "exclude": [],
        "workers": 1,
        "encoding": "utf-8",
        "tab_width": 8,
    },
    "comments": {
        "markup": "rdoc",
        "attach_across_blank_lines": False,
    },
    "documentation": {
        "visibility": "protected",
        "rename_initialize": True,
    },
}

VISIBILITY_LEVELS = ("public", "protected", "private", "nodoc")


def load_config(path: str | None = None) -> dict[str, Any]:
    """Load configuration from a YAML file and merge it with defaults."""
    config = copy.deepcopy(DEFAULT_CONFIG)
    if path:
        p = Path(path)
        if p.exists():
            user_config = yaml.safe_load(p.read_text(encoding="utf-8")) or {}
            if not isinstance(user_config, dict):
                raise RbdocError(f"{path}: configuration must be a mapping")
            config = deep_merge(config, user_config)
    visibility = config["documentation"].get("visibility")
    if visibility not in VISIBILITY_LEVELS:
        raise RbdocError(f"Unknown documentation.visibility: {visibility!r}")
    return config
