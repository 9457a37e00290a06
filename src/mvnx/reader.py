from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import FrozenSet, Iterable, List, Optional, Sequence

import numpy as np
import pandas as pd

from .builder import build
from .content import ContentNode
from .events import Event, iter_events
from .frames import Frame, extract_frames
from .metadata import JointInfo, Point, get_joints_info, get_points
from .output import (
    ItemNames,
    OutputField,
    frames_to_dataframe,
    write_calibration_log,
    write_calibration_roundtrip,
    write_table,
)
from .versions import MappingTable, resolve_version

log = logging.getLogger(__name__)


@dataclass
class MvnxReaderConfig:
    """Configuration for reading an MVNX document."""

    # Element names to keep in the tree; None keeps everything. Restricting
    # the set changes the shape of the tree, so frames may become unreachable.
    enabled_elements: Optional[FrozenSet[str]] = None
    separator: str = "\t"


@dataclass
class MvnxDocument:
    """A parsed MVNX recording: tree, version mapping, frames and item names."""

    root: ContentNode
    mapping: MappingTable
    frames: List[Frame]
    names: ItemNames
    config: MvnxReaderConfig = field(default_factory=MvnxReaderConfig)
    source_path: Optional[Path] = None

    @property
    def version(self) -> int:
        return self.mapping.version

    @property
    def num_frames(self) -> int:
        return len(self.frames)

    @property
    def normal_frames(self) -> List[Frame]:
        return [f for f in self.frames if f.properties.is_normal]

    @property
    def calibration_frames(self) -> List[Frame]:
        """Frames preceding the first normal frame."""
        out: List[Frame] = []
        for frame in self.frames:
            if frame.properties.is_normal:
                break
            out.append(frame)
        return out

    def timestamps_ms(self) -> np.ndarray:
        """Clock time in milliseconds of each normal frame (NaN when absent)."""
        values = [f.properties.clock_time_ms for f in self.normal_frames]
        return np.asarray([np.nan if v is None else v for v in values], dtype=float)

    def find_element(self, name: str) -> List[ContentNode]:
        return self.root.find_descendants(name)

    def points(self) -> List[Point]:
        return get_points(self.root, self.mapping)

    def joints_info(self) -> List[JointInfo]:
        return get_joints_info(self.root, self.mapping)

    def write_table(self, selectors: Sequence[OutputField], sep: Optional[str] = None) -> str:
        return write_table(self.frames, selectors, self.names, self.mapping, sep or self.config.separator)

    def to_dataframe(self, selectors: Sequence[OutputField]) -> pd.DataFrame:
        return frames_to_dataframe(self.frames, selectors, self.names, self.mapping)

    def write_calibration_log(self, sep: Optional[str] = None) -> str:
        return write_calibration_log(self.root, self.mapping, sep or self.config.separator)

    def write_calibration_roundtrip(self) -> str:
        return write_calibration_roundtrip(self.root, self.mapping)


def parse_mvnx(events: Iterable[Event], config: MvnxReaderConfig | None = None) -> MvnxDocument:
    """Build the tree from `events`, resolve its version and extract all frames."""
    config = config or MvnxReaderConfig()
    root = build(events, config.enabled_elements)
    mapping = resolve_version(root)
    frames = extract_frames(root, mapping, config.separator)
    names = ItemNames.from_tree(root, mapping)
    log.info(
        "Parsed MVNX v%d: %d frames, %d segments, %d sensors, %d joints",
        mapping.version,
        len(frames),
        len(names.segments),
        len(names.sensors),
        len(names.joints),
    )
    return MvnxDocument(root=root, mapping=mapping, frames=frames, names=names, config=config)


def load_mvnx(path: str | Path, config: MvnxReaderConfig | None = None) -> MvnxDocument:
    """Load an MVNX file from disk."""
    path = Path(path)
    if not path.is_file():
        raise FileNotFoundError(f"MVNX file not found: {path}")
    doc = parse_mvnx(iter_events(path), config)
    doc.source_path = path
    return doc
