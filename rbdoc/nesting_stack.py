"""Stack of open lexical scopes and the documentation-state machine."""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterator
from contextlib import contextmanager

from rbdoc.errors import RbdocError
from rbdoc.models import DocState, DocumentSelf, Visibility
from rbdoc.namespace import Namespace
from rbdoc.nesting_frame import NestingFrame
from rbdoc.top_level import TopLevel

logger = logging.getLogger(__name__)

Directives = dict[str, tuple[str | None, int | None]]
WarnFn = Callable[[int | None, str], None]

_STATE_DIRECTIVES = {
    "startdoc": DocState.SHOW,
    "stopdoc": DocState.HIDDEN,
    "enddoc": DocState.TERMINATED,
}
_STATE_NAMES = {state: name for name, state in _STATE_DIRECTIVES.items()}


def _ignore_warning(line: int | None, message: str) -> None:
    logger.debug("Unreported warning at line %s: %s", line, message)


class NestingStack:
    """Frames for the namespace bodies open at the current point of a walk.

    The bottom frame always holds the file's top level. ``hidden_names`` is
    the file-local set of qualified names hidden with ``:nodoc:``; it lives
    exactly as long as the scan of one file.
    """

    def __init__(
        self,
        top_level: TopLevel,
        hidden_names: set[str] | None = None,
        warn: WarnFn | None = None,
    ) -> None:
        """Initialize the stack with the file root frame."""
        self.top_level = top_level
        self.hidden_names: set[str] = hidden_names if hidden_names is not None else set()
        self._warn = warn or _ignore_warning
        self.frames: list[NestingFrame] = [NestingFrame(top_level)]

    def __len__(self) -> int:
        return len(self.frames)

    @property
    def current(self) -> NestingFrame:
        """Return the innermost frame."""
        return self.frames[-1]

    @property
    def container(self) -> Namespace | TopLevel:
        """Return the container of the innermost frame."""
        return self.current.container

    @property
    def singleton(self) -> bool:
        """Return True inside a ``class << x`` body."""
        return self.current.singleton

    @property
    def in_block(self) -> bool:
        """Return True inside a block, where ``self`` may not be the container."""
        return self.current.block_level > 0

    @property
    def visibility(self) -> Visibility:
        """Return the default visibility of methods defined at this point."""
        return self.current.visibility

    @visibility.setter
    def visibility(self, value: Visibility) -> None:
        self.current.visibility = value

    def push(self, container: Namespace | TopLevel, singleton: bool = False) -> NestingFrame:
        """Open a frame for ``container``.

        The documentation state is inherited from the enclosing frame while
        visibility starts public and ``nodoc`` is recomputed for the container.
        """
        frame = NestingFrame(
            container,
            singleton=singleton,
            nodoc=self.is_locally_hidden(container) or container.received_nodoc,
            doc_state=self.current.doc_state,
        )
        self.frames.append(frame)
        return frame

    def pop(self) -> NestingFrame:
        """Close the innermost frame."""
        if len(self.frames) == 1:
            raise RbdocError("cannot pop the file root frame")
        return self.frames.pop()

    @contextmanager
    def enter(
        self, container: Namespace | TopLevel, singleton: bool = False
    ) -> Iterator[NestingFrame]:
        """Push a frame for the duration of the ``with`` body."""
        frame = self.push(container, singleton)
        try:
            yield frame
        finally:
            self.pop()

    @contextmanager
    def with_block(self) -> Iterator[None]:
        """Count a block nesting level for the duration of the ``with`` body."""
        frame = self.current
        frame.block_level += 1
        try:
            yield
        finally:
            frame.block_level -= 1

    def non_singleton_frames(self) -> Iterator[NestingFrame]:
        """Yield frames innermost first, skipping ``class << x`` bodies."""
        for frame in reversed(self.frames):
            if not frame.singleton:
                yield frame

    def scope_chain(self) -> tuple[str, ...]:
        """Return the qualified names of the enclosing namespaces, innermost first."""
        return tuple(
            frame.container.full_name
            for frame in self.non_singleton_frames()
            if frame.container.full_name
        )

    # File-local hiding

    def mark_locally_hidden(self, full_name: str) -> None:
        """Hide ``full_name`` for the rest of this file, including reopenings."""
        self.hidden_names.add(full_name)

    def is_locally_hidden(self, container: Namespace | TopLevel) -> bool:
        """Return True when ``container`` was hidden earlier in this file."""
        return bool(container.full_name) and container.full_name in self.hidden_names

    def accepts_documentation(self, container: Namespace | TopLevel) -> bool:
        """Return True when members of ``container`` may be documented here."""
        frame = self.current
        return (
            not frame.nodoc
            and frame.doc_state is DocState.SHOW
            and not container.received_nodoc
            and not self.is_locally_hidden(container)
        )

    # Documentation-state machine

    def apply_control_directives(self, directives: Directives) -> None:
        """Apply the documentation state directives to the current frame."""
        for name, (value, line) in directives.items():
            if name in _STATE_DIRECTIVES:
                self._change_state(_STATE_DIRECTIVES[name], line)
            elif name == "nodoc":
                self._hide(value, line)

    def _change_state(self, state: DocState, line: int | None) -> None:
        frame = self.current
        if frame.doc_state is state or (
            frame.doc_state is DocState.TERMINATED and state is not DocState.TERMINATED
        ):
            current = _STATE_NAMES[frame.doc_state]
            self._warn(line, f"Already in :{current}: state, ignoring :{_STATE_NAMES[state]}:")
            return
        frame.doc_state = state

    def _hide(self, value: str | None, line: int | None) -> None:
        frame = self.current
        container = frame.container
        if value == "all":
            frame.doc_state = DocState.TERMINATED
            frame.nodoc = True
            if isinstance(container, Namespace):
                container.document_self = DocumentSelf.HIDE
        elif frame.nodoc:
            self._warn(line, "Already in :nodoc: state, ignoring")
        elif frame.doc_state is DocState.TERMINATED:
            self._warn(line, "Already in :enddoc: state, ignoring :nodoc:")
        else:
            frame.nodoc = True
            frame.doc_state = DocState.TERMINATED
            if not isinstance(container, TopLevel):
                self.mark_locally_hidden(container.full_name)
