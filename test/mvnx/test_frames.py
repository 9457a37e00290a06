import numpy as np
import pytest

from mvnx_samples import SAMPLE_V3, SAMPLE_V4, tree_from

from mvnx import (
    ExtractionError,
    build,
    extract_frames,
    frame_values,
    mapping_for,
    parse_frame,
    resolve_version,
)
from mvnx.events import Characters, EndDocument, EndElement, StartDocument, StartElement


def _v4_frames(sep="\t"):
    root = tree_from(SAMPLE_V4)
    return extract_frames(root, resolve_version(root), sep)


def test_extracts_frames_in_document_order() -> None:
    frames = _v4_frames()
    assert [f.properties.type for f in frames] == ["identity", "tpose", "normal", "normal"]
    assert [f.properties.clock_time_ms for f in frames] == [1000, 1000, 1016, 1033]


def test_frame_info_comes_from_frame_and_container() -> None:
    info = _v4_frames()[3].properties
    assert info.segment_count == 2
    assert info.sensor_count == 1
    assert info.joint_count == 1
    assert info.time == 17
    assert info.clock_time == "00:00:00:01"
    assert info.index == 1
    assert info.is_normal


def test_missing_and_negative_indices_are_kept_apart() -> None:
    identity, tpose, first_normal, _ = _v4_frames()
    assert identity.properties.index is None
    assert tpose.properties.index == -1
    assert first_normal.properties.index == 0


def test_frame_payloads_are_stored_verbatim() -> None:
    frame = _v4_frames()[2]
    assert frame.data["position"] == "1 2 3 4 5 6"
    assert frame.data["sensorFreeAcceleration"] == "0.1 0.2 9.8"
    assert "sensorFreeAcceleration" not in _v4_frames()[3].data


def test_contacts_are_flattened_with_separator() -> None:
    frame = _v4_frames(sep=",")[2]
    assert frame.contacts == ["LeftFoot:pLeftHeel", "RightFoot:pRightToe"]
    assert frame.data["contacts"] == "LeftFoot:pLeftHeel,RightFoot:pRightToe,"


def test_parse_frame_rejects_other_elements() -> None:
    root = tree_from(SAMPLE_V4)
    mapping = resolve_version(root)
    container = root.find_descendants("frames")[0]
    with pytest.raises(ExtractionError):
        parse_frame(container, mapping)


def test_bad_numeric_attribute_aborts_extraction() -> None:
    root = tree_from(
        '<mvnx version="4"><frames><frame type="normal" index="first" ms="1"/></frames></mvnx>'
    )
    with pytest.raises(ExtractionError):
        extract_frames(root, resolve_version(root))


def test_version_3_frames() -> None:
    root = tree_from(SAMPLE_V3)
    frames = extract_frames(root, resolve_version(root))
    assert len(frames) == 2
    assert frames[0].properties.index is None
    assert frames[1].data["sensorAcceleration"] == "0 0 9.81"
    assert frames[1].contacts == []


def test_frame_values_parses_payload() -> None:
    frame = _v4_frames()[2]
    np.testing.assert_allclose(frame_values(frame, "jointAngle"), [10.0, 20.0, 30.0])
    assert frame_values(frame, "velocity").size == 0


def test_link_position_scenario() -> None:
    events = [
        StartDocument(),
        StartElement("doc", {"version": "4"}),
        StartElement("frames", {"segmentCount": "2"}),
        StartElement("frame", {"type": "normal", "index": "3", "ms": "100"}),
        StartElement("link_position"),
        Characters("1 2 3 4 5 6"),
        EndElement("link_position"),
        EndElement("frame"),
        EndElement("frames"),
        EndElement("doc"),
        EndDocument(),
    ]
    root = build(events)
    frames = extract_frames(root, mapping_for(4))

    assert len(frames) == 1
    assert frames[0].properties.type == "normal"
    assert frames[0].properties.index == 3
    assert frames[0].data["link_position"] == "1 2 3 4 5 6"
