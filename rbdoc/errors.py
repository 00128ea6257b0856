"""Exception types raised inside the extraction engine."""


class RbdocError(Exception):
    """Base class for extraction errors."""


class DirectiveSyntaxError(RbdocError):
    """Raised when a comment directive cannot be interpreted unambiguously."""

    def __init__(self, directive: str, line: int | None, reason: str) -> None:
        """Initialize the error with the directive name, its line and a reason."""
        super().__init__(f":{directive}: {reason}")
        self.directive = directive
        self.line = line
        self.reason = reason


class MalformedNodeError(RbdocError):
    """Raised when a syntax node lacks a part the walker requires."""

    def __init__(self, node_type: str, line: int, missing: str) -> None:
        """Initialize the error with the node type, line and missing field."""
        super().__init__(f"{node_type} at line {line} has no {missing}")
        self.node_type = node_type
        self.line = line
        self.missing = missing
