from __future__ import annotations

"""
Export an MVNX recording into the files used to build and drive body models.

Usage (example):
    python scripts/mvnx_export.py recordings/walk_01.mvnx --output-folder results/walk_01

Outputs, named after the input file:
    <stem>.log          item names, point offsets, joint connectors
    <stem>.xml          calibration-only MVNX round-trip
    <stem>.csv          data needed for model creation
    <stem>_runtime.csv  lightweight data for runtime estimation
"""

import argparse
import logging
import sys
from pathlib import Path

SRC_DIR = Path(__file__).resolve().parents[1] / "src"
if str(SRC_DIR) not in sys.path:
    sys.path.insert(0, str(SRC_DIR))

from mvnx import MODEL_CREATION_FIELDS, RUNTIME_FIELDS, MvnxError, MvnxReaderConfig, load_mvnx

log = logging.getLogger("mvnx_export")


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Export MVNX data for body-model tooling.")
    parser.add_argument("input", type=Path, help="MVNX file to parse.")
    parser.add_argument(
        "--output-folder",
        type=Path,
        default=Path.cwd() / "outputData",
        help="Directory receiving the outputs (created if missing).",
    )
    parser.add_argument(
        "--runtime-data-only",
        action="store_true",
        help="Only write the runtime CSV.",
    )
    parser.add_argument(
        "--model-creation-data-only",
        action="store_true",
        help="Only write the calibration and model creation files.",
    )
    parser.add_argument(
        "--sep",
        default=",",
        help="Field separator for the tabular outputs.",
    )
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging.")
    return parser.parse_args(argv)


def export(args: argparse.Namespace) -> list[Path]:
    doc = load_mvnx(args.input, MvnxReaderConfig(separator=args.sep))
    args.output_folder.mkdir(parents=True, exist_ok=True)
    stem = args.input.stem
    written: list[Path] = []

    def write(name: str, text: str) -> None:
        path = args.output_folder / name
        path.write_text(text, encoding="utf-8")
        written.append(path)

    if not args.runtime_data_only:
        write(f"{stem}.log", doc.write_calibration_log(args.sep))
        write(f"{stem}.xml", doc.write_calibration_roundtrip())
        write(f"{stem}.csv", doc.write_table(MODEL_CREATION_FIELDS, args.sep))

    if not args.model_creation_data_only:
        write(f"{stem}_runtime.csv", doc.write_table(RUNTIME_FIELDS, args.sep))

    return written


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s  %(levelname)-8s  %(message)s",
        datefmt="%H:%M:%S",
    )

    if not args.input.is_file():
        log.error("MVNX file not found: %s", args.input)
        return 1

    try:
        written = export(args)
    except MvnxError as exc:
        log.error("Failed to parse %s: %s", args.input, exc)
        return 1

    for path in written:
        log.info("Wrote %s", path)
    return 0


if __name__ == "__main__":
    sys.exit(main())
