from __future__ import annotations

import argparse
import logging
import os
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

from smashspeed.detection.base import DetectionRequest
from smashspeed.detection.registry import create_detector
from smashspeed.geometry.calibration import CalibrationError, calibration_from_meters_per_pixel
from smashspeed.io.video import VideoReader, VideoReaderConfig
from smashspeed.output.sinks import CsvSink, JsonlSink, ResultSinks
from smashspeed.pipeline.runner import DetectionRunner
from smashspeed.pipeline.session import AnalysisSession, SessionConfig
from smashspeed.utils.config import load_yaml, resolve_path, section
from smashspeed.utils.logging import setup_logging


logger = logging.getLogger("smashspeed.scripts.run_pipeline")


def main() -> None:
    ap = argparse.ArgumentParser()
    ap.add_argument("--video", required=True, help="Source video path")
    ap.add_argument("--config", default="configs/analysis.yaml", help="Analysis YAML")
    ap.add_argument("--meters-per-pixel", type=float, default=None, help="Override calibration scale")
    ap.add_argument("--start-s", type=float, default=None)
    ap.add_argument("--end-s", type=float, default=None)
    ap.add_argument("--log-level", default="INFO")
    ap.add_argument("--log-file", default=None)
    args = ap.parse_args()

    base_dir = os.getcwd()
    setup_logging(level=args.log_level, log_file=args.log_file)
    cfg = load_yaml(resolve_path(args.config, base_dir))

    video = resolve_path(args.video, base_dir)
    probe = VideoReader(VideoReaderConfig(uri=video))
    width, height = probe.width, probe.height
    probe.close()

    session = AnalysisSession(SessionConfig.from_dict(cfg))
    session.set_source_size(width, height)

    cal_cfg = section(cfg, "calibration")
    mpp = args.meters_per_pixel if args.meters_per_pixel is not None else cal_cfg.get("meters_per_pixel")
    try:
        if mpp is not None:
            session.set_calibration(calibration_from_meters_per_pixel(float(mpp)))
        elif cal_cfg.get("points"):
            p1, p2 = cal_cfg["points"]
            session.calibrate(
                (float(p1[0]), float(p1[1])),
                (float(p2[0]), float(p2[1])),
                float(cal_cfg.get("reference_length_m", 0.0)),
                tuple(cal_cfg.get("display_size") or (width, height)),
            )
    except CalibrationError as e:
        logger.error("Invalid calibration: %s", e)
        sys.exit(2)
    if session.calibration is None:
        logger.warning("No calibration configured: speeds will be empty")

    det_cfg = section(cfg, "detection")
    params = dict(det_cfg.get("params", {}) or {})
    if "detections_jsonl" in params:
        params["detections_jsonl"] = resolve_path(str(params["detections_jsonl"]), base_dir)
    elif "model_path" in params:
        params["model_path"] = resolve_path(str(params["model_path"]), base_dir)
    detector = create_detector(str(det_cfg.get("backend", "replay")), params)

    sampling = section(cfg, "sampling")
    req = DetectionRequest(
        video_path=video,
        sample_fps=float(sampling.get("fps", 0.0) or 0.0),
        start_s=float(args.start_s if args.start_s is not None else sampling.get("start_s", 0.0) or 0.0),
        end_s=args.end_s if args.end_s is not None else sampling.get("end_s"),
    )
    DetectionRunner(detector, session).run(req)

    out_cfg = section(cfg, "output")
    csv_cfg = out_cfg.get("csv", {}) or {}
    jsonl_cfg = out_cfg.get("jsonl", {}) or {}
    sinks = ResultSinks(
        csv=CsvSink(resolve_path(str(csv_cfg.get("path")), base_dir)) if bool(csv_cfg.get("enabled", False)) else None,
        jsonl=JsonlSink(resolve_path(str(jsonl_cfg.get("path")), base_dir)) if bool(jsonl_cfg.get("enabled", False)) else None,
    )
    sinks.open()
    try:
        sinks.write_all(session.results())
    finally:
        sinks.close()

    peak = session.peak
    if peak.detected:
        print(f"Max speed: {peak.speed_kmh:.1f} km/h at frame {peak.frame_index + 1}/{len(session.frames)}")
    else:
        print(f"No detectable motion ({len(session.frames)} frames)")


if __name__ == "__main__":
    main()
