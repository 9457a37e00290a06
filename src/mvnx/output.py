"""
Writers turning parsed MVNX content into files for body-model tooling.

    - `write_table`: one labelled row of kinematic data per normal frame.
    - `write_calibration_log`: names, point offsets and joint connectivity.
    - `write_calibration_roundtrip`: the static model plus calibration frames,
      re-serialized as MVNX markup.
"""

from __future__ import annotations

import logging
import xml.etree.ElementTree as ET
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Set, Tuple

import numpy as np
import pandas as pd

from .content import ContentNode
from .frames import NORMAL_FRAME_TYPE, Frame
from .metadata import get_joints_info, get_points, joint_names, segment_names, sensor_names
from .versions import Field, MappingTable

log = logging.getLogger(__name__)

XYZ = ("X", "Y", "Z")
WXYZ = ("W", "X", "Y", "Z")

INDEX_COLUMN = "index"
CLOCK_COLUMN = "ms"


class ItemKind(Enum):
    SEGMENT = "segment"
    SENSOR = "sensor"
    JOINT = "joint"
    BODY = "body"


class OutputField(Enum):
    """Selectable data columns: prefix, source element, item kind, axis postfixes."""

    LINK_POSITION = ("link_position", Field.POSITION, ItemKind.SEGMENT, XYZ)
    LINK_VELOCITY = ("link_velocity", Field.VELOCITY, ItemKind.SEGMENT, XYZ)
    LINK_ACCELERATION = ("link_acceleration", Field.ACCELERATION, ItemKind.SEGMENT, XYZ)
    LINK_ORIENTATION = ("link_orientation", Field.ORIENTATION, ItemKind.SEGMENT, WXYZ)
    LINK_ANGULAR_VELOCITY = ("link_angular_velocity", Field.ANGULAR_VELOCITY, ItemKind.SEGMENT, XYZ)
    LINK_ANGULAR_ACCELERATION = (
        "link_angular_acceleration",
        Field.ANGULAR_ACCELERATION,
        ItemKind.SEGMENT,
        XYZ,
    )
    SENSOR_ORIENTATION = ("sensor_orientation", Field.SENSOR_ORIENTATION, ItemKind.SENSOR, WXYZ)
    SENSOR_ANGULAR_VELOCITY = (
        "sensor_angular_velocity",
        Field.SENSOR_ANGULAR_VELOCITY,
        ItemKind.SENSOR,
        XYZ,
    )
    SENSOR_ACCELERATION = ("sensor_acceleration", Field.SENSOR_ACCELERATION, ItemKind.SENSOR, XYZ)
    SENSOR_FREE_BODY_ACCELERATION = (
        "sensor_free_body_acceleration",
        Field.SENSOR_FREE_BODY_ACCELERATION,
        ItemKind.SENSOR,
        XYZ,
    )
    SENSOR_MAGNETIC_FIELD = ("sensor_magnetic_field", Field.SENSOR_MAGNETIC_FIELD, ItemKind.SENSOR, XYZ)
    JOINT_ANGLE = ("joint_angle", Field.JOINT_ANGLE, ItemKind.JOINT, XYZ)
    JOINT_ANGLE_XZY = ("joint_angle_xzy", Field.JOINT_ANGLE_XZY, ItemKind.JOINT, XYZ)
    CENTER_OF_MASS = ("center_of_mass", Field.CENTER_OF_MASS, ItemKind.BODY, XYZ)

    def __init__(self, prefix: str, source: Field, item_kind: ItemKind, postfixes: Tuple[str, ...]) -> None:
        self.prefix = prefix
        self.source = source
        self.item_kind = item_kind
        self.postfixes = postfixes

    @classmethod
    def from_label(cls, label: str) -> "OutputField":
        """Parse a selector such as "link position" or "SENSOR_ORIENTATION"."""
        key = label.strip().lower().replace("-", "_").replace(" ", "_")
        for member in cls:
            if key in (member.prefix, member.name.lower()):
                return member
        raise ValueError(f"Unknown output field: {label!r}")


MODEL_CREATION_FIELDS: Tuple[OutputField, ...] = (
    OutputField.LINK_ACCELERATION,
    OutputField.LINK_ORIENTATION,
    OutputField.LINK_ANGULAR_VELOCITY,
    OutputField.LINK_ANGULAR_ACCELERATION,
    OutputField.SENSOR_ORIENTATION,
    OutputField.SENSOR_FREE_BODY_ACCELERATION,
)

RUNTIME_FIELDS: Tuple[OutputField, ...] = (OutputField.SENSOR_FREE_BODY_ACCELERATION,)


@dataclass
class ItemNames:
    """Ordered segment, sensor and joint labels of a document."""

    segments: List[str] = field(default_factory=list)
    sensors: List[str] = field(default_factory=list)
    joints: List[str] = field(default_factory=list)

    @classmethod
    def from_tree(cls, root: ContentNode, mapping: MappingTable) -> "ItemNames":
        return cls(
            segments=segment_names(root, mapping),
            sensors=sensor_names(root, mapping),
            joints=joint_names(root, mapping),
        )

    def for_kind(self, kind: ItemKind) -> List[str]:
        if kind is ItemKind.SEGMENT:
            return list(self.segments)
        if kind is ItemKind.SENSOR:
            return list(self.sensors)
        if kind is ItemKind.JOINT:
            return list(self.joints)
        return [ItemKind.BODY.value]


@dataclass
class ColumnGroup:
    """The columns written for one selector."""

    selector: OutputField
    element_name: str
    labels: List[str]

    @property
    def width(self) -> int:
        return len(self.labels)


def frame_item_counts(frames: Sequence[Frame]) -> Dict[ItemKind, Optional[int]]:
    """Item counts declared by the frames container, taken from the first normal frame."""
    reference = next((f for f in frames if f.properties.is_normal), None)
    if reference is None and frames:
        reference = frames[0]
    if reference is None:
        return {}
    info = reference.properties
    return {
        ItemKind.SEGMENT: info.segment_count,
        ItemKind.SENSOR: info.sensor_count,
        ItemKind.JOINT: info.joint_count,
        ItemKind.BODY: 1,
    }


def _item_labels(names: List[str], count: Optional[int], kind: ItemKind) -> List[str]:
    if count is None:
        return names
    if len(names) > count:
        log.warning(
            "Document lists %d %s names but frames carry %d, using the first %d",
            len(names),
            kind.value,
            count,
            count,
        )
        return names[:count]
    return names + [f"{kind.value}{i + 1}" for i in range(len(names), count)]


def build_columns(
    selectors: Iterable[OutputField],
    names: ItemNames,
    mapping: MappingTable,
    counts: Optional[Mapping[ItemKind, Optional[int]]] = None,
) -> List[ColumnGroup]:
    """
    Generate column labels `<prefix>:<item>.<axis>` for every selector.

    Selectors whose source element does not exist in the active MVNX version
    are skipped with a warning and produce no columns.
    """
    counts = counts or {}
    groups: List[ColumnGroup] = []
    for selector in selectors:
        if not mapping.supports(selector.source):
            log.warning(
                "%s is not available in MVNX version %d, skipping it",
                selector.prefix,
                mapping.version,
            )
            continue
        items = _item_labels(
            names.for_kind(selector.item_kind),
            counts.get(selector.item_kind),
            selector.item_kind,
        )
        labels = [f"{selector.prefix}:{item}.{axis}" for item in items for axis in selector.postfixes]
        groups.append(ColumnGroup(selector, mapping.name(selector.source), labels))
    return groups


def _frame_payload(frame: Frame, group: ColumnGroup) -> List[str]:
    raw = frame.data.get(group.element_name, "")
    if not raw.strip():
        # Files re-exported with canonical column names use the prefix as tag.
        raw = frame.data.get(group.selector.prefix, "")
    return raw.split()


def _fit_values(
    values: List[str],
    group: ColumnGroup,
    frame: Frame,
    warned: Set[OutputField],
) -> List[str]:
    if not values:
        return [""] * group.width
    if len(values) != group.width:
        if group.selector not in warned:
            log.warning(
                "%s: frame %s has %d values for %d columns, padding/trimming to fit",
                group.selector.prefix,
                frame.properties.index,
                len(values),
                group.width,
            )
            warned.add(group.selector)
        values = (values + [""] * group.width)[: group.width]
    return values


def _optional_cell(value: Optional[int]) -> str:
    return "" if value is None else str(value)


def write_table(
    frames: Sequence[Frame],
    selectors: Sequence[OutputField],
    names: ItemNames,
    mapping: MappingTable,
    sep: str = "\t",
) -> str:
    """
    Render normal frames as delimited text with a header of column labels.

    Every row has the same number of cells: data missing from a frame is
    written as empty cells.
    """
    groups = build_columns(selectors, names, mapping, frame_item_counts(frames))
    header = [INDEX_COLUMN, CLOCK_COLUMN] + [label for g in groups for label in g.labels]
    lines = [sep.join(header)]

    warned: Set[OutputField] = set()
    for frame in frames:
        if not frame.properties.is_normal:
            continue
        cells = [_optional_cell(frame.properties.index), _optional_cell(frame.properties.clock_time_ms)]
        for group in groups:
            cells.extend(_fit_values(_frame_payload(frame, group), group, frame, warned))
        lines.append(sep.join(cells))
    return "\n".join(lines) + "\n"


def frames_to_dataframe(
    frames: Sequence[Frame],
    selectors: Sequence[OutputField],
    names: ItemNames,
    mapping: MappingTable,
) -> pd.DataFrame:
    """
    Same content as `write_table`, as a wide numeric DataFrame.

    Columns:
        index, ms, then one float column per generated label (NaN when missing)
    """
    groups = build_columns(selectors, names, mapping, frame_item_counts(frames))
    labels = [label for g in groups for label in g.labels]

    indices: List[Optional[int]] = []
    clocks: List[Optional[int]] = []
    rows: List[np.ndarray] = []
    warned: Set[OutputField] = set()
    for frame in frames:
        if not frame.properties.is_normal:
            continue
        indices.append(frame.properties.index)
        clocks.append(frame.properties.clock_time_ms)
        cells: List[str] = []
        for group in groups:
            cells.extend(_fit_values(_frame_payload(frame, group), group, frame, warned))
        rows.append(np.asarray([float(c) if c else np.nan for c in cells], dtype=float))

    values = np.vstack(rows) if rows else np.empty((0, len(labels)), dtype=float)
    df = pd.DataFrame(values, columns=labels)
    df.insert(0, CLOCK_COLUMN, pd.array(clocks, dtype="Int64"))
    df.insert(0, INDEX_COLUMN, pd.array(indices, dtype="Int64"))
    return df


def write_calibration_log(root: ContentNode, mapping: MappingTable, sep: str = "\t") -> str:
    """Tabular dump of item names, point offsets and joint connectors."""
    names = ItemNames.from_tree(root, mapping)
    lines = [
        sep.join(["segments", *names.segments]),
        sep.join(["sensors", *names.sensors]),
        sep.join(["joints", *names.joints]),
        "",
        sep.join(["point", *XYZ]),
    ]
    for point in get_points(root, mapping):
        lines.append(sep.join([point.name, *point.tokens]))
    lines.append("")
    lines.append(sep.join(["joint", "connector1", "connector2"]))
    for joint in get_joints_info(root, mapping):
        lines.append(sep.join([joint.label, joint.connector1, joint.connector2]))
    return "\n".join(lines) + "\n"


def _copy_subtree(node: ContentNode) -> ET.Element:
    element = ET.Element(node.name, node.attributes)
    if node.is_text:
        element.text = node.text
    for child in node.iter_children():
        element.append(_copy_subtree(child))
    return element


def _copy_frames(container: ContentNode, mapping: MappingTable) -> ET.Element:
    element = ET.Element(container.name, container.attributes)
    for frame in container.child_elements(mapping.name(Field.FRAME)):
        if frame.attribute("type") == NORMAL_FRAME_TYPE:
            break
        element.append(_copy_subtree(frame))
    return element


def _copy_subject(subject: ContentNode, mapping: MappingTable) -> ET.Element:
    static_tags = {
        mapping.name(Field.COMMENT),
        mapping.name(Field.SEGMENTS),
        mapping.name(Field.SENSORS),
        mapping.name(Field.JOINTS),
    }
    element = ET.Element(subject.name, subject.attributes)
    for child in subject.iter_children():
        if child.name in static_tags:
            element.append(_copy_subtree(child))
        elif child.name == mapping.name(Field.FRAMES):
            element.append(_copy_frames(child, mapping))
    return element


def write_calibration_roundtrip(root: ContentNode, mapping: MappingTable) -> str:
    """
    Re-serialize the calibration part of the document as MVNX markup.

    Keeps the root and subject attributes, comments, segments with their
    points, sensors, joints, and the frames preceding the first normal frame.
    """
    out = ET.Element(root.name, root.attributes)
    header_tags = {mapping.name(Field.MVN), mapping.name(Field.COMMENT)}
    for child in root.iter_children():
        if child.name == mapping.name(Field.SUBJECT):
            out.append(_copy_subject(child, mapping))
        elif child.name in header_tags:
            out.append(_copy_subtree(child))

    ET.indent(out, space="\t")
    body = ET.tostring(out, encoding="unicode")
    return '<?xml version="1.0" encoding="UTF-8"?>\n' + body + "\n"
