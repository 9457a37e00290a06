import importlib.util
from pathlib import Path

import numpy as np
import pytest

from mvnx_samples import SAMPLE_V3, SAMPLE_V4, events_from

from mvnx import (
    ExtractionError,
    MvnxReaderConfig,
    OutputField,
    StructuralError,
    UnknownVersionError,
    load_mvnx,
    parse_mvnx,
)

SCRIPT_PATH = Path(__file__).resolve().parents[2] / "scripts" / "mvnx_export.py"


def _load_export_script():
    spec = importlib.util.spec_from_file_location("mvnx_export", SCRIPT_PATH)
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


@pytest.fixture
def v4_file(tmp_path: Path) -> Path:
    path = tmp_path / "walk_01.mvnx"
    path.write_text(SAMPLE_V4, encoding="utf-8")
    return path


def test_load_mvnx_from_disk(v4_file: Path) -> None:
    doc = load_mvnx(v4_file)

    assert doc.source_path == v4_file
    assert doc.version == 4
    assert doc.num_frames == 4
    assert len(doc.normal_frames) == 2
    assert [f.properties.type for f in doc.calibration_frames] == ["identity", "tpose"]
    assert doc.names.segments == ["Pelvis", "L5"]
    np.testing.assert_array_equal(doc.timestamps_ms(), [1016.0, 1033.0])


def test_document_accessors(v4_file: Path) -> None:
    doc = load_mvnx(v4_file)

    points = doc.points()
    assert [p.name for p in points] == ["Pelvis:pHipOrigin", "Pelvis:jL5S1", "L5:jL5S1"]
    np.testing.assert_allclose(points[1].offset, [0.1, 0.0, 0.2])
    joints = doc.joints_info()
    assert joints[0].connector1 == "Pelvis/jL5S1"
    assert len(doc.find_element("sensor")) == 1


def test_config_separator_is_used_by_default() -> None:
    doc = parse_mvnx(events_from(SAMPLE_V4), MvnxReaderConfig(separator=";"))

    assert doc.normal_frames[0].data["contacts"] == "LeftFoot:pLeftHeel;RightFoot:pRightToe;"
    assert doc.write_table([OutputField.JOINT_ANGLE]).splitlines()[1] == "0;1016;10;20;30"
    assert doc.write_table([OutputField.JOINT_ANGLE], ",").splitlines()[1] == "0,1016,10,20,30"


def test_dataframe_from_document() -> None:
    doc = parse_mvnx(events_from(SAMPLE_V3))
    df = doc.to_dataframe([OutputField.LINK_POSITION])
    assert df.shape == (1, 5)
    assert df.loc[0, "link_position:Pelvis.Z"] == pytest.approx(3.0)


def test_load_mvnx_missing_file(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError):
        load_mvnx(tmp_path / "missing.mvnx")


def test_load_mvnx_malformed_file(tmp_path: Path) -> None:
    path = tmp_path / "broken.mvnx"
    path.write_text('<mvnx version="4"><subject>', encoding="utf-8")
    with pytest.raises(StructuralError):
        load_mvnx(path)


def test_load_mvnx_unknown_version(tmp_path: Path) -> None:
    path = tmp_path / "future.mvnx"
    path.write_text('<mvnx version="9"><subject/></mvnx>', encoding="utf-8")
    with pytest.raises(UnknownVersionError):
        load_mvnx(path)


def test_export_script_writes_all_outputs(v4_file: Path, tmp_path: Path) -> None:
    script = _load_export_script()
    out_dir = tmp_path / "out"

    assert script.main([str(v4_file), "--output-folder", str(out_dir)]) == 0

    assert sorted(p.name for p in out_dir.iterdir()) == [
        "walk_01.csv",
        "walk_01.log",
        "walk_01.xml",
        "walk_01_runtime.csv",
    ]
    runtime = (out_dir / "walk_01_runtime.csv").read_text(encoding="utf-8").splitlines()
    assert runtime[0].startswith("index,ms,sensor_free_body_acceleration:Pelvis.X")
    assert runtime[1] == "0,1016,0.1,0.2,9.8"


def test_export_script_runtime_only(v4_file: Path, tmp_path: Path) -> None:
    script = _load_export_script()
    out_dir = tmp_path / "runtime"

    assert script.main([str(v4_file), "--output-folder", str(out_dir), "--runtime-data-only"]) == 0
    assert [p.name for p in out_dir.iterdir()] == ["walk_01_runtime.csv"]


def test_export_script_reports_failures(tmp_path: Path) -> None:
    script = _load_export_script()
    bad = tmp_path / "bad.mvnx"
    bad.write_text('<mvnx version="2"/>', encoding="utf-8")

    assert script.main([str(tmp_path / "nope.mvnx")]) == 1
    assert script.main([str(bad), "--output-folder", str(tmp_path / "out")]) == 1


@pytest.mark.parametrize("offset", ["0.1 0", "0.1 zero 0.2"])
def test_malformed_point_offset_is_an_extraction_error(tmp_path: Path, offset: str) -> None:
    path = tmp_path / "bad_offset.mvnx"
    path.write_text(SAMPLE_V4.replace("0.1 0 0.2", offset), encoding="utf-8")
    doc = load_mvnx(path)

    with pytest.raises(ExtractionError):
        doc.points()


def test_export_script_reports_malformed_point_offset(tmp_path: Path) -> None:
    script = _load_export_script()
    path = tmp_path / "bad_offset.mvnx"
    path.write_text(SAMPLE_V4.replace("0.1 0 0.2", "0.1 0"), encoding="utf-8")

    assert script.main([str(path), "--output-folder", str(tmp_path / "out")]) == 1
