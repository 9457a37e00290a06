"""Stack-based construction of a `ContentNode` tree from markup events."""

from __future__ import annotations

import logging
from typing import AbstractSet, Iterable, List, Optional

from .content import ContentNode
from .errors import StructuralError
from .events import (
    Characters,
    Comment,
    EndDocument,
    EndElement,
    Event,
    StartDocument,
    StartElement,
)

log = logging.getLogger(__name__)


class TreeBuilder:
    """
    Incrementally turns a flat event sequence into a single rooted tree.

    When `enabled_elements` is given only those element names are turned
    into nodes; every other start/end pair is skipped. `None` enables all
    elements.
    """

    def __init__(self, enabled_elements: Optional[AbstractSet[str]] = None) -> None:
        self.enabled_elements = frozenset(enabled_elements) if enabled_elements else None
        self._stack: List[ContentNode] = []
        # One flag per open element, including the disabled ones.
        self._open: List[bool] = []
        self._root: Optional[ContentNode] = None
        self._root_closed = False
        self._finished = False
        self.node_count = 0

    @property
    def depth(self) -> int:
        return len(self._stack)

    @property
    def finished(self) -> bool:
        return self._finished

    @property
    def root(self) -> Optional[ContentNode]:
        return self._root

    def is_enabled(self, name: str) -> bool:
        if self.enabled_elements is None:
            return True
        return name in self.enabled_elements

    def feed(self, event: Event) -> None:
        if self._finished:
            raise StructuralError(f"Received {type(event).__name__} after the end of the document")

        if isinstance(event, StartElement):
            self._start_element(event)
        elif isinstance(event, Characters):
            self._characters(event)
        elif isinstance(event, EndElement):
            self._end_element(event)
        elif isinstance(event, EndDocument):
            self._end_document()
        elif isinstance(event, (StartDocument, Comment)):
            pass
        else:
            raise TypeError(f"Unsupported markup event: {event!r}")

    def _start_element(self, event: StartElement) -> None:
        enabled = self.is_enabled(event.name)
        self._open.append(enabled)
        if not enabled:
            return
        if self._root_closed:
            raise StructuralError(f"Element <{event.name}> found after the root element was closed")
        parent = self._stack[-1] if self._stack else None
        node = ContentNode(event.name, event.attributes, parent)
        if parent is None:
            self._root = node
        self._stack.append(node)
        self.node_count += 1

    def _characters(self, event: Characters) -> None:
        # Text of a skipped element must not land on its enabled ancestor.
        if self._stack and self._open and self._open[-1]:
            self._stack[-1].set_text(event.text)

    def _end_element(self, event: EndElement) -> None:
        if not self._open:
            raise StructuralError(f"Unexpected </{event.name}> with no open element")
        enabled = self._open.pop()
        if enabled != self.is_enabled(event.name):
            raise StructuralError(f"Mismatched </{event.name}>")
        if not enabled:
            return
        top = self._stack[-1]
        if top.name != event.name:
            raise StructuralError(f"Mismatched </{event.name}>, open element is <{top.name}>")
        if len(self._stack) > 1:
            self._stack.pop()
            self._stack[-1].add_child(top)
        else:
            # The root stays on the stack until the end of the document.
            self._root_closed = True

    def _end_document(self) -> None:
        if not self._stack:
            raise StructuralError("Document ended without a root element")
        if not self._root_closed:
            unclosed = ", ".join(f"<{node.name}>" for node in self._stack)
            raise StructuralError(f"Document ended with unclosed elements: {unclosed}")
        self._stack.pop()
        self._finished = True
        log.debug("Built tree rooted at <%s> with %d nodes", self._root.name, self.node_count)


def build(
    events: Iterable[Event],
    enabled_elements: Optional[AbstractSet[str]] = None,
) -> ContentNode:
    """Consume `events` and return the root of the resulting tree."""
    builder = TreeBuilder(enabled_elements)
    for event in events:
        builder.feed(event)
    if not builder.finished:
        raise StructuralError("Event stream ended before the end of the document")
    return builder.root
