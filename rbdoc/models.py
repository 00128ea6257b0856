"""Data models for documented Ruby code objects."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from rbdoc.context import Context
    from rbdoc.namespace import Namespace


class Visibility(str, Enum):
    """Method, attribute and constant visibility."""

    PUBLIC = "public"
    PROTECTED = "protected"
    PRIVATE = "private"


class DocState(str, Enum):
    """Documentation state of a nesting frame."""

    SHOW = "show"  # :startdoc:
    HIDDEN = "hidden"  # :stopdoc:
    TERMINATED = "terminated"  # :enddoc:


class DocumentSelf(str, Enum):
    """Tri-state documentation switch of a code object."""

    SHOW = "show"
    HIDE = "hide"
    UNSET = "unset"


class NamespaceKind(str, Enum):
    """Kind of a namespace entity."""

    CLASS = "class"
    MODULE = "module"
    SINGLETON = "singleton"


class MixinKind(str, Enum):
    """How a module is mixed into its owner."""

    INCLUDE = "include"
    EXTEND = "extend"


@dataclass
class Comment:
    """Directive-stripped documentation prose plus its markup format."""

    text: str
    format: str = "rdoc"
    file: str | None = None
    line: int | None = None

    @property
    def empty(self) -> bool:
        """Return True when the comment carries no prose."""
        return not self.text.strip()


@dataclass(frozen=True)
class SourceRange:
    """Location of a definition in its file, kept for syntax highlighting."""

    start_line: int
    end_line: int
    start_byte: int
    end_byte: int


@dataclass(eq=False)
class CodeObject:
    """Base class for everything that can be documented."""

    name: str
    comment: Comment | None = None
    parent: Context | None = field(default=None, repr=False)
    file: str | None = None
    line: int | None = None
    document_self: DocumentSelf = DocumentSelf.UNSET
    ignored: bool = False
    section: str | None = None

    @property
    def parent_name(self) -> str:
        """Return the qualified name of the owner, or an empty string."""
        return self.parent.full_name if self.parent is not None else ""

    @property
    def full_name(self) -> str:
        """Return the qualified name of this object."""
        if self.parent_name:
            return f"{self.parent_name}::{self.name}"
        return self.name

    @property
    def documented(self) -> bool:
        """Return True unless the object is hidden or still provisional."""
        return not self.ignored and self.document_self is not DocumentSelf.HIDE

    def record_location(self, file_name: str) -> None:
        """Remember the file this object was seen in."""
        self.file = file_name


@dataclass(eq=False)
class Method(CodeObject):
    """A method defined with ``def``, by aliasing or by a meta-method comment."""

    params: str = "()"
    singleton: bool = False
    visibility: Visibility = Visibility.PUBLIC
    call_seq: str | None = None
    block_params: str | None = None
    calls_super: bool = False
    is_alias_for: Method | None = field(default=None, repr=False)
    aliases: list[Method] = field(default_factory=list, repr=False)
    source_range: SourceRange | None = None
    synthetic: bool = False
    dont_rename_initialize: bool = False

    @property
    def full_name(self) -> str:
        """Return ``Owner#name`` for instance and ``Owner::name`` for singleton methods."""
        separator = "::" if self.singleton else "#"
        return f"{self.parent_name}{separator}{self.name}"


@dataclass(eq=False)
class Attribute(CodeObject):
    """An attribute declared with ``attr_*`` or an ``:attr*:`` directive."""

    rw: str = "R"
    singleton: bool = False
    visibility: Visibility = Visibility.PUBLIC

    @property
    def full_name(self) -> str:
        """Return the qualified attribute name."""
        separator = "::" if self.singleton else "#"
        return f"{self.parent_name}{separator}{self.name}"


@dataclass(eq=False)
class Constant(CodeObject):
    """A constant assignment."""

    value: str = ""
    is_alias_for: Namespace | None = field(default=None, repr=False)
    visibility: Visibility = Visibility.PUBLIC


@dataclass(eq=False)
class Alias(CodeObject):
    """``alias new old`` or ``alias_method :new, :old``; ``name`` is the new name."""

    old_name: str = ""
    singleton: bool = False

    @property
    def new_name(self) -> str:
        """Return the name introduced by the alias."""
        return self.name


@dataclass(eq=False)
class Require(CodeObject):
    """A ``require`` of another feature."""
