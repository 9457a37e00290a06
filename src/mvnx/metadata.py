"""
Static body-model description stored in an MVNX document.

Segments with their anatomical points, the inertial sensors, and the joints
connecting segment points. Frames refer to these by position, so the name
lists returned here are in document order.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Tuple

import numpy as np

from .content import ContentNode
from .errors import ExtractionError
from .versions import Field, MappingTable

_MISSING_OFFSET = ("nan", "nan", "nan")


@dataclass
class Point:
    """An anatomical point expressed in the frame of its segment."""

    segment: str
    label: str
    offset: np.ndarray  # shape: (3,)
    # Offset components as written in the document, for lossless output.
    tokens: Tuple[str, ...] = field(default=_MISSING_OFFSET)

    @property
    def name(self) -> str:
        return f"{self.segment}:{self.label}"


@dataclass
class JointInfo:
    label: str
    connector1: str
    connector2: str


def element_labels(root: ContentNode, element_name: str) -> List[str]:
    """Return the `label` attribute of every `element_name` element in the tree."""
    if not element_name:
        return []
    return [node.attribute("label") for node in root.find_descendants(element_name)]


def segment_names(root: ContentNode, mapping: MappingTable) -> List[str]:
    return element_labels(root, mapping.name(Field.SEGMENT))


def sensor_names(root: ContentNode, mapping: MappingTable) -> List[str]:
    return element_labels(root, mapping.name(Field.SENSOR))


def joint_names(root: ContentNode, mapping: MappingTable) -> List[str]:
    return element_labels(root, mapping.name(Field.JOINT))


def point_names(root: ContentNode, mapping: MappingTable) -> List[str]:
    return element_labels(root, mapping.name(Field.POINT))


def _parse_offset(node: ContentNode | None) -> Tuple[np.ndarray, Tuple[str, ...]]:
    if node is None or not node.text.strip():
        return np.full(3, np.nan), _MISSING_OFFSET
    tokens = tuple(node.text.split())
    if len(tokens) != 3:
        raise ExtractionError(f"Point offset {node.text!r} does not have 3 components")
    try:
        values = np.asarray(tokens, dtype=float)
    except ValueError as exc:
        raise ExtractionError(f"Point offset {node.text!r} is not numeric") from exc
    return values, tokens


def get_points(root: ContentNode, mapping: MappingTable) -> List[Point]:
    """
    Collect every segment point with its offset.

    Points without an offset element get a NaN offset rather than being
    dropped, so the list stays aligned with `point_names`.
    """
    segment_tag = mapping.name(Field.SEGMENT)
    point_tag = mapping.name(Field.POINT)
    pos_tag = mapping.name(Field.POS)

    points: List[Point] = []
    for segment in root.find_descendants(segment_tag):
        for point in segment.find_descendants(point_tag):
            pos = point.first_child(pos_tag) if pos_tag else None
            offset, tokens = _parse_offset(pos)
            points.append(
                Point(
                    segment=segment.attribute("label"),
                    label=point.attribute("label"),
                    offset=offset,
                    tokens=tokens,
                )
            )
    return points


def get_joints_info(root: ContentNode, mapping: MappingTable) -> List[JointInfo]:
    """Return each joint with the `segment/point` names of its two connectors."""
    joints: List[JointInfo] = []
    for joint in root.find_descendants(mapping.name(Field.JOINT)):
        c1 = joint.first_child(mapping.name(Field.CONNECTOR1))
        c2 = joint.first_child(mapping.name(Field.CONNECTOR2))
        joints.append(
            JointInfo(
                label=joint.attribute("label"),
                connector1=c1.text.strip() if c1 is not None else "",
                connector2=c2.text.strip() if c2 is not None else "",
            )
        )
    return joints
