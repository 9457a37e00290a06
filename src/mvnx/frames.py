from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional

import numpy as np

from .content import ContentNode
from .errors import ExtractionError
from .versions import Field, MappingTable

log = logging.getLogger(__name__)

NORMAL_FRAME_TYPE = "normal"


@dataclass
class FrameInfo:
    """Timing and bookkeeping attributes of one sampled instant."""

    segment_count: Optional[int] = None
    sensor_count: Optional[int] = None
    joint_count: Optional[int] = None
    time: Optional[int] = None  # offset from the start of the recording, ms
    clock_time: str = ""
    clock_time_ms: Optional[int] = None
    type: str = ""
    index: Optional[int] = None  # None when the frame carries no index

    @property
    def is_normal(self) -> bool:
        return self.type == NORMAL_FRAME_TYPE


@dataclass
class Frame:
    """One frame: its properties plus raw per-element payloads."""

    properties: FrameInfo
    data: Dict[str, str] = field(default_factory=dict)
    contacts: List[str] = field(default_factory=list)


def _int_attribute(node: ContentNode, name: str) -> Optional[int]:
    raw = node.attribute(name).strip()
    if not raw:
        return None
    try:
        return int(raw)
    except ValueError:
        try:
            # Some exporters write integral values as floats, e.g. "12.0".
            value = float(raw)
        except ValueError as exc:
            raise ExtractionError(
                f"Attribute {name}={raw!r} of <{node.name}> is not a number"
            ) from exc
        if not value.is_integer():
            raise ExtractionError(f"Attribute {name}={raw!r} of <{node.name}> is not an integer")
        return int(value)


def fill_frame_info(node: ContentNode) -> FrameInfo:
    info = FrameInfo(
        time=_int_attribute(node, "time"),
        clock_time=node.attribute("tc"),
        clock_time_ms=_int_attribute(node, "ms"),
        type=node.attribute("type"),
        index=_int_attribute(node, "index"),
    )
    container = node.parent
    if container is not None:
        info.segment_count = _int_attribute(container, "segmentCount")
        info.sensor_count = _int_attribute(container, "sensorCount")
        info.joint_count = _int_attribute(container, "jointCount")
    return info


def _contact_pairs(contacts: ContentNode, mapping: MappingTable) -> List[str]:
    pairs: List[str] = []
    for entry in contacts.child_elements(mapping.name(Field.CONTACT)):
        pairs.append(f"{entry.attribute('segment')}:{entry.attribute('point')}")
    return pairs


def parse_frame(node: ContentNode, mapping: MappingTable, sep: str = "\t") -> Frame:
    """
    Convert a single <frame> node into a `Frame`.

    Every child element is stored under its own element name with its text
    untouched. The contacts sub-tree is flattened into `segment:point<sep>`
    runs.

    Raises:
        ExtractionError: if `node` is not a frame element for this mapping.
    """
    frame_name = mapping.name(Field.FRAME)
    if node.name != frame_name:
        raise ExtractionError(f"Expected a <{frame_name}> element, got <{node.name}>")

    frame = Frame(properties=fill_frame_info(node))
    contacts_name = mapping.name(Field.CONTACTS)

    for name, bucket in node.children.items():
        if len(bucket) > 1:
            log.warning(
                "Frame %s has %d <%s> elements, keeping the first",
                frame.properties.index,
                len(bucket),
                name,
            )
        child = bucket[0]
        if contacts_name and name == contacts_name:
            frame.contacts = _contact_pairs(child, mapping)
            frame.data[name] = "".join(pair + sep for pair in frame.contacts)
        else:
            frame.data[name] = child.text
    return frame


def extract_frames(root: ContentNode, mapping: MappingTable, sep: str = "\t") -> List[Frame]:
    """Return every frame of the document, in document order."""
    frames_name = mapping.name(Field.FRAMES)
    frame_name = mapping.name(Field.FRAME)

    containers = [root] if root.name == frames_name else root.find_descendants(frames_name)
    frames: List[Frame] = []
    for container in containers:
        for node in container.find_descendants(frame_name):
            frames.append(parse_frame(node, mapping, sep))

    log.debug("Extracted %d frames from %d <%s> containers", len(frames), len(containers), frames_name)
    return frames


def frame_values(frame: Frame, element_name: str) -> np.ndarray:
    """Parse the stored payload of `element_name` into a float array."""
    raw = frame.data.get(element_name, "")
    if not raw.strip():
        return np.empty(0, dtype=float)
    return np.asarray(raw.split(), dtype=float)
