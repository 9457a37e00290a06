"""
Generic attributed tree used to hold a parsed MVNX document.

A node is either a text leaf or a container of child elements. Which one is
decided by the first call to `set_text` or `add_child`, since the markup
stream does not announce it up front.
"""

from __future__ import annotations

import weakref
from enum import Enum
from typing import Dict, Iterator, List, Mapping, Optional

from .errors import StructuralError


class ContentKind(Enum):
    UNSET = "unset"
    TEXT = "text"
    ELEMENT = "element"


class ContentNode:
    """One markup element: name, attributes, and either text or children."""

    def __init__(
        self,
        name: str,
        attributes: Mapping[str, str] | None = None,
        parent: Optional["ContentNode"] = None,
    ) -> None:
        self.name = name
        self._attributes: Dict[str, str] = dict(attributes or {})
        # Children own nothing upwards; the parent is only referenced weakly.
        self._parent_ref = weakref.ref(parent) if parent is not None else None
        self._kind = ContentKind.UNSET
        self._text = ""
        self._buckets: Dict[str, List[ContentNode]] = {}
        self._ordered: List[ContentNode] = []

    def __repr__(self) -> str:
        return f"ContentNode({self.name!r}, kind={self._kind.value}, children={len(self._ordered)})"

    @property
    def parent(self) -> Optional["ContentNode"]:
        if self._parent_ref is None:
            return None
        return self._parent_ref()

    @property
    def kind(self) -> ContentKind:
        return self._kind

    @property
    def is_text(self) -> bool:
        return self._kind is ContentKind.TEXT

    @property
    def is_element(self) -> bool:
        return self._kind is ContentKind.ELEMENT

    @property
    def text(self) -> str:
        return self._text

    @property
    def attributes(self) -> Dict[str, str]:
        return dict(self._attributes)

    @property
    def children(self) -> Dict[str, List["ContentNode"]]:
        """Children grouped by element name, buckets in first-seen order."""
        return {name: list(nodes) for name, nodes in self._buckets.items()}

    def attribute(self, name: str) -> str:
        """Return the attribute value, or an empty string when it is absent."""
        return self._attributes.get(name, "")

    def has_attribute(self, name: str) -> bool:
        return name in self._attributes

    def child_elements(self, name: str) -> List["ContentNode"]:
        return list(self._buckets.get(name, []))

    def first_child(self, name: str) -> Optional["ContentNode"]:
        bucket = self._buckets.get(name)
        return bucket[0] if bucket else None

    def iter_children(self) -> Iterator["ContentNode"]:
        """Yield direct children in document order."""
        return iter(list(self._ordered))

    def add_child(self, node: "ContentNode") -> None:
        if self._kind is ContentKind.TEXT:
            raise StructuralError(
                f"Cannot add child <{node.name}> to text element <{self.name}>"
            )
        if node.parent is not self:
            raise StructuralError(
                f"Element <{node.name}> was not created as a child of <{self.name}>"
            )
        self._kind = ContentKind.ELEMENT
        self._buckets.setdefault(node.name, []).append(node)
        self._ordered.append(node)

    def set_text(self, text: str) -> None:
        if self._ordered:
            raise StructuralError(
                f"Cannot set text on element <{self.name}> which already has children"
            )
        self._kind = ContentKind.TEXT
        self._text = text

    def iter_descendants(self) -> Iterator["ContentNode"]:
        """Pre-order walk over every descendant, excluding this node."""
        for child in self._ordered:
            yield child
            yield from child.iter_descendants()

    def find_descendants(self, name: str) -> List["ContentNode"]:
        """
        Return every descendant named `name`, at any depth, in document order.

        A parent is listed before any matching descendant of its own.
        """
        return [node for node in self.iter_descendants() if node.name == name]
