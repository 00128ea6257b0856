"""TomDoc ``Signature`` sections."""

import re
import textwrap

SIGNATURE_HEADING_RE = re.compile(r"^\s*Signature\s*$")


def signature(text: str) -> str | None:
    """Return the indented block that follows a ``Signature`` line, or None."""
    lines = text.split("\n")
    for index, line in enumerate(lines):
        if SIGNATURE_HEADING_RE.match(line):
            break
    else:
        return None

    heading_indent = len(lines[index]) - len(lines[index].lstrip())
    collected: list[str] = []
    for line in lines[index + 1 :]:
        if not line.strip():
            if collected:
                break
            continue
        indent = len(line) - len(line.lstrip())
        if indent <= heading_indent:
            break
        collected.append(line)
    if not collected:
        return None
    return textwrap.dedent("\n".join(collected)).strip()
