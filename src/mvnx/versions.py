"""
Element-name tables for the MVNX format revisions this package reads.

Revision 3 and revision 4 files share most element names. The differences
are the point offset element, the sensor kinematics that are exported, and
the per-frame contacts sub-tree which only revision 4 writes.
"""

from __future__ import annotations

from enum import Enum
from typing import Dict, Mapping, Optional

from .content import ContentNode
from .errors import UnknownVersionError

UNSUPPORTED = ""


class Field(Enum):
    """Logical names for the MVNX elements the reader and writers use."""

    MVNX = "mvnx"
    MVN = "mvn"
    SUBJECT = "subject"
    COMMENT = "comment"
    SEGMENTS = "segments"
    SEGMENT = "segment"
    POINTS = "points"
    POINT = "point"
    POS = "pos"
    SENSORS = "sensors"
    SENSOR = "sensor"
    JOINTS = "joints"
    JOINT = "joint"
    CONNECTOR1 = "connector1"
    CONNECTOR2 = "connector2"
    FRAMES = "frames"
    FRAME = "frame"
    CONTACTS = "contacts"
    CONTACT = "contact"
    ORIENTATION = "orientation"
    POSITION = "position"
    VELOCITY = "velocity"
    ACCELERATION = "acceleration"
    ANGULAR_VELOCITY = "angular_velocity"
    ANGULAR_ACCELERATION = "angular_acceleration"
    SENSOR_ORIENTATION = "sensor_orientation"
    SENSOR_ANGULAR_VELOCITY = "sensor_angular_velocity"
    SENSOR_ACCELERATION = "sensor_acceleration"
    SENSOR_FREE_BODY_ACCELERATION = "sensor_free_body_acceleration"
    SENSOR_MAGNETIC_FIELD = "sensor_magnetic_field"
    JOINT_ANGLE = "joint_angle"
    JOINT_ANGLE_XZY = "joint_angle_xzy"
    CENTER_OF_MASS = "center_of_mass"


_COMMON_NAMES: Dict[Field, str] = {
    Field.MVNX: "mvnx",
    Field.MVN: "mvn",
    Field.SUBJECT: "subject",
    Field.COMMENT: "comment",
    Field.SEGMENTS: "segments",
    Field.SEGMENT: "segment",
    Field.POINTS: "points",
    Field.POINT: "point",
    Field.SENSORS: "sensors",
    Field.SENSOR: "sensor",
    Field.JOINTS: "joints",
    Field.JOINT: "joint",
    Field.CONNECTOR1: "connector1",
    Field.CONNECTOR2: "connector2",
    Field.FRAMES: "frames",
    Field.FRAME: "frame",
    Field.ORIENTATION: "orientation",
    Field.POSITION: "position",
    Field.VELOCITY: "velocity",
    Field.ACCELERATION: "acceleration",
    Field.ANGULAR_VELOCITY: "angularVelocity",
    Field.ANGULAR_ACCELERATION: "angularAcceleration",
    Field.SENSOR_ORIENTATION: "sensorOrientation",
    Field.SENSOR_MAGNETIC_FIELD: "sensorMagneticField",
    Field.JOINT_ANGLE: "jointAngle",
    Field.JOINT_ANGLE_XZY: "jointAngleXZY",
    Field.CENTER_OF_MASS: "centerOfMass",
}

_REVISION_NAMES: Dict[int, Dict[Field, str]] = {
    3: {
        Field.POS: "pos_s",
        Field.SENSOR_ACCELERATION: "sensorAcceleration",
        Field.SENSOR_ANGULAR_VELOCITY: "sensorAngularVelocity",
    },
    4: {
        Field.POS: "pos_b",
        Field.SENSOR_FREE_BODY_ACCELERATION: "sensorFreeAcceleration",
        Field.CONTACTS: "contacts",
        Field.CONTACT: "contact",
    },
}

KNOWN_VERSIONS = tuple(sorted(_REVISION_NAMES))


class MappingTable:
    """Total lookup from every `Field` to a literal element name or `UNSUPPORTED`."""

    def __init__(self, version: int, names: Mapping[Field, str]) -> None:
        self.version = version
        self._names: Dict[Field, str] = {f: names.get(f, UNSUPPORTED) for f in Field}
        self._fields: Dict[str, Field] = {
            name: f for f, name in self._names.items() if name != UNSUPPORTED
        }

    def __repr__(self) -> str:
        return f"MappingTable(version={self.version})"

    def name(self, field: Field) -> str:
        return self._names[field]

    def supports(self, field: Field) -> bool:
        return self._names[field] != UNSUPPORTED

    def field_for(self, element_name: str) -> Optional[Field]:
        return self._fields.get(element_name)

    def items(self):
        return self._names.items()


def mapping_for(version: int) -> MappingTable:
    if version not in _REVISION_NAMES:
        known = ", ".join(str(v) for v in KNOWN_VERSIONS)
        raise UnknownVersionError(f"Unsupported MVNX version {version} (known: {known})")
    names = dict(_COMMON_NAMES)
    names.update(_REVISION_NAMES[version])
    return MappingTable(version, names)


def resolve_version(root: ContentNode) -> MappingTable:
    """Select the mapping table from the `version` attribute of the root element."""
    raw = root.attribute("version").strip()
    if not raw:
        raise UnknownVersionError(f"Root element <{root.name}> has no version attribute")
    try:
        version = int(raw)
    except ValueError as exc:
        raise UnknownVersionError(f"Root element <{root.name}> has a non-integer version {raw!r}") from exc
    return mapping_for(version)
