from __future__ import annotations

from typing import Any, Dict

from smashspeed.detection.base import Detector
from smashspeed.detection.mock import ReplayDetector


def create_detector(backend: str, params: Dict[str, Any]) -> Detector:
    if backend in {"mock", "replay"}:
        path = params.get("detections_jsonl")
        if path:
            return ReplayDetector.from_jsonl(str(path))
        return ReplayDetector()

    if backend == "ultralytics_yolo":
        from smashspeed.detection.yolo_ultralytics import UltralyticsYoloDetector

        model_path = str(params["model_path"])
        conf_threshold = float(params.get("conf_threshold", 0.15))
        iou_threshold = float(params.get("iou_threshold", 0.45))
        model_size = int(params.get("model_size", 640))
        device = params.get("device")
        class_whitelist = params.get("class_whitelist")
        if class_whitelist is not None and not isinstance(class_whitelist, list):
            raise ValueError("class_whitelist must be a list when provided")
        return UltralyticsYoloDetector(
            model_path=model_path,
            conf_threshold=conf_threshold,
            iou_threshold=iou_threshold,
            model_size=model_size,
            device=str(device) if device is not None else None,
            class_whitelist=[str(x) for x in class_whitelist] if class_whitelist is not None else None,
        )

    raise ValueError(f"Unknown detector backend: {backend}")
