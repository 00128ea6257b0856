"""Data model for warnings accumulated during a scan."""

from dataclasses import dataclass


@dataclass(frozen=True)
class ScanWarning:
    """A non-fatal problem found while scanning a file."""

    file: str
    line: int | None
    message: str

    def __str__(self) -> str:
        """Format as ``file:line: message``."""
        if self.line is None:
            return f"{self.file}: {self.message}"
        return f"{self.file}:{self.line}: {self.message}"
