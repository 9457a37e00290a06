"""
Markup events consumed by the tree builder, and a pull-based source for them.

The event source wraps `xml.etree.ElementTree.iterparse` so that large MVNX
recordings are tokenized incrementally.
"""

from __future__ import annotations

import xml.etree.ElementTree as ET
from dataclasses import dataclass, field
from pathlib import Path
from typing import IO, Dict, Iterator, List, Tuple, Union

from .errors import StructuralError


@dataclass(frozen=True)
class StartDocument:
    pass


@dataclass(frozen=True)
class StartElement:
    name: str
    attributes: Dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class Characters:
    text: str


@dataclass(frozen=True)
class Comment:
    text: str


@dataclass(frozen=True)
class EndElement:
    name: str


@dataclass(frozen=True)
class EndDocument:
    pass


Event = Union[StartDocument, StartElement, Characters, Comment, EndElement, EndDocument]


def local_name(tag: str) -> str:
    """Strip a `{namespace}` prefix from an ElementTree tag or attribute key."""
    if tag.startswith("{"):
        return tag.split("}", 1)[1]
    return tag


def _ns_attributes(declarations: List[Tuple[str, str]]) -> Dict[str, str]:
    attrs: Dict[str, str] = {}
    for prefix, uri in declarations:
        attrs[f"xmlns:{prefix}" if prefix else "xmlns"] = uri
    return attrs


def iter_events(source: Union[str, Path, IO[bytes]]) -> Iterator[Event]:
    """
    Yield markup events for an XML document, in document order.

    Element and attribute names are reported without their namespace; namespace
    declarations are reported as `xmlns` / `xmlns:<prefix>` attributes of the
    element that declares them. Whitespace-only text runs are dropped.
    """
    if isinstance(source, Path):
        source = str(source)

    pending_ns: List[Tuple[str, str]] = []
    parser = ET.iterparse(source, events=("start", "end", "comment", "start-ns"))

    yield StartDocument()
    try:
        for kind, payload in parser:
            if kind == "start-ns":
                pending_ns.append(payload)
            elif kind == "start":
                attrs = _ns_attributes(pending_ns)
                pending_ns = []
                # Prefixed attributes keep only their local name, so
                # xsi:schemaLocation is reported as schemaLocation.
                for key, value in payload.attrib.items():
                    attrs[local_name(key)] = value
                yield StartElement(local_name(payload.tag), attrs)
            elif kind == "comment":
                yield Comment(payload.text or "")
            elif kind == "end":
                text = payload.text
                if text and text.strip() and len(payload) == 0:
                    yield Characters(text)
                yield EndElement(local_name(payload.tag))
                # Frame payloads are already copied into the content tree.
                payload.clear()
    except ET.ParseError as exc:
        raise StructuralError(f"Malformed markup: {exc}") from exc
    yield EndDocument()
