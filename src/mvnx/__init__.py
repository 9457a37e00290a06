"""
Reader for Xsens MVNX motion-capture recordings.

This package focuses on:
    - Building a generic attributed tree from a stream of markup events.
    - Resolving element names across MVNX format revisions 3 and 4.
    - Extracting per-frame records and exporting them as labelled tables and
      a calibration-only MVNX round-trip for body-model tooling.
"""

from .builder import TreeBuilder, build
from .content import ContentKind, ContentNode
from .errors import ExtractionError, MvnxError, StructuralError, UnknownVersionError
from .events import iter_events
from .frames import Frame, FrameInfo, extract_frames, frame_values, parse_frame
from .metadata import JointInfo, Point, get_joints_info, get_points
from .output import (
    MODEL_CREATION_FIELDS,
    RUNTIME_FIELDS,
    ItemNames,
    OutputField,
    build_columns,
    frames_to_dataframe,
    write_calibration_log,
    write_calibration_roundtrip,
    write_table,
)
from .reader import MvnxDocument, MvnxReaderConfig, load_mvnx, parse_mvnx
from .versions import Field, MappingTable, mapping_for, resolve_version

__all__ = [
    "TreeBuilder",
    "build",
    "ContentKind",
    "ContentNode",
    "ExtractionError",
    "MvnxError",
    "StructuralError",
    "UnknownVersionError",
    "iter_events",
    "Frame",
    "FrameInfo",
    "extract_frames",
    "frame_values",
    "parse_frame",
    "JointInfo",
    "Point",
    "get_joints_info",
    "get_points",
    "MODEL_CREATION_FIELDS",
    "RUNTIME_FIELDS",
    "ItemNames",
    "OutputField",
    "build_columns",
    "frames_to_dataframe",
    "write_calibration_log",
    "write_calibration_roundtrip",
    "write_table",
    "MvnxDocument",
    "MvnxReaderConfig",
    "load_mvnx",
    "parse_mvnx",
    "Field",
    "MappingTable",
    "mapping_for",
    "resolve_version",
]
