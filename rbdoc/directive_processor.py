"""Splitting of comment blocks into prose and directives."""

from __future__ import annotations

import logging
import re
import textwrap
from dataclasses import dataclass, field

from rbdoc.errors import DirectiveSyntaxError

logger = logging.getLogger(__name__)

DIRECTIVE_RE = re.compile(r"^\s*(\\?):([\w-]+):\s*(.*?)\s*$")
HASH_PREFIX_RE = re.compile(r"^\s*#+ ?")
YARD_YIELD_RE = re.compile(r"^\s*@yield\b(?:\s*\[([^\]]*)\])?")
YARD_PRIVATE_RE = re.compile(r"^\s*@(?:private\b|api\s+private\b)")

KNOWN_FORMATS = frozenset({"rdoc", "markdown", "rd", "tomdoc"})

# Spellings accepted for the same directive.
DIRECTIVE_ALIASES = {
    "not_new": "notnew",
    "not-new": "notnew",
    "yield": "yields",
    "arg": "args",
}

KNOWN_DIRECTIVES = frozenset(
    {
        "args",
        "attr",
        "attr_accessor",
        "attr_reader",
        "attr_writer",
        "call-seq",
        "category",
        "doc",
        "enddoc",
        "main",
        "markup",
        "method",
        "nodoc",
        "notnew",
        "section",
        "singleton-method",
        "startdoc",
        "stopdoc",
        "title",
        "yields",
    }
)

Directives = dict[str, tuple[str | None, int | None]]


@dataclass
class ParsedComment:
    """Prose of a comment plus the directives it carried."""

    text: str
    directives: Directives = field(default_factory=dict)
    errors: list[DirectiveSyntaxError] = field(default_factory=list)


class DirectiveProcessor:
    """Parses ``:directive: value`` lines and YARD-style ``@tag`` lines.

    Private sections between ``--`` and ``++`` lines are removed. Unknown
    ``:word:`` lines are not directives and stay in the prose.
    """

    def parse_comment(self, text: str, first_line: int) -> ParsedComment:
        """Strip comment markers from ``text`` and split out its directives.

        ``first_line`` is the source line of the first line of ``text`` and is
        used to record where each directive was written.
        """
        lines = [HASH_PREFIX_RE.sub("", line) for line in text.split("\n")]
        lines = [line.rstrip() for line in textwrap.dedent("\n".join(lines)).split("\n")]
        parsed = ParsedComment(text="")
        prose: list[str] = []
        yard_yield: tuple[str, int] | None = None
        in_private = False
        index = 0
        while index < len(lines):
            line = lines[index]
            line_no = first_line + index
            index += 1

            stripped = line.strip()
            if stripped == "--":
                in_private = True
                continue
            if stripped == "++":
                in_private = False
                continue
            if in_private:
                continue

            match = DIRECTIVE_RE.match(line)
            if match:
                escaped, name, value = match.groups()
                name = DIRECTIVE_ALIASES.get(name.lower(), name.lower())
                if name in KNOWN_DIRECTIVES and escaped:
                    prose.append(line.replace("\\:", ":", 1))
                    continue
                if name in KNOWN_DIRECTIVES:
                    if name == "call-seq":
                        value, index = _call_seq(lines, index, value)
                    self._add_directive(parsed, name, value or None, line_no)
                    continue

            yard = YARD_YIELD_RE.match(line)
            if yard:
                if yard.group(1) is not None and yard_yield is None:
                    yard_yield = (_yield_names(yard.group(1)), line_no)
                continue
            if YARD_PRIVATE_RE.match(line):
                parsed.directives.setdefault("private", (None, line_no))
                continue

            prose.append(line)

        if yard_yield is not None and "yields" not in parsed.directives:
            parsed.directives["yields"] = yard_yield
        parsed.text = "\n".join(prose).strip("\n")
        return parsed

    def _add_directive(
        self, parsed: ParsedComment, name: str, value: str | None, line_no: int
    ) -> None:
        if name == "markup" and value is not None:
            value = value.lower()
        if name == "nodoc" and value is not None:
            value = value.lower()
        try:
            self._check_directive(parsed.directives, name, value, line_no)
        except DirectiveSyntaxError as err:
            logger.debug("Dropping directive: %s", err)
            parsed.errors.append(err)
            return
        parsed.directives[name] = (value, line_no)

    def _check_directive(
        self, directives: Directives, name: str, value: str | None, line_no: int
    ) -> None:
        if name in directives and directives[name][0] != value:
            raise DirectiveSyntaxError(
                name, line_no, f"conflicts with the value given on line {directives[name][1]}"
            )
        if name == "markup" and value not in KNOWN_FORMATS:
            raise DirectiveSyntaxError(name, line_no, f"unknown markup format {value!r}")


def _call_seq(lines: list[str], index: int, value: str) -> tuple[str, int]:
    """Collect the signature lines that follow ``:call-seq:`` up to a blank line."""
    collected = [value] if value else []
    while index < len(lines) and lines[index].strip():
        collected.append(lines[index].strip())
        index += 1
    return "\n".join(collected), index


def _yield_names(types_or_names: str) -> str:
    """Turn the bracket of ``@yield [a, b]`` into block parameter names.

    Type names (capitalized) become positional ``argN`` names.
    """
    names = []
    for position, item in enumerate(types_or_names.split(","), start=1):
        item = item.strip()
        if not item:
            continue
        names.append(f"arg{position}" if item[0].isupper() else item)
    return ", ".join(names)
