from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterator, List, Optional

import numpy as np

from smashspeed.detection.base import Detector, DetectionRequest
from smashspeed.geometry.letterbox import DEFAULT_MODEL_SIZE, letterbox_image
from smashspeed.io.video import VideoReader, VideoReaderConfig
from smashspeed.utils.types import Box, FrameDetections


logger = logging.getLogger("smashspeed.detection.yolo")


@dataclass
class UltralyticsYoloDetector(Detector):
    """
    Runs an Ultralytics YOLO model on letterboxed frames.

    Boxes come back in model space (top-left x/y, width, height) so the
    caller maps them to source pixels with the matching LetterboxTransform.
    """

    model_path: str
    conf_threshold: float = 0.15
    iou_threshold: float = 0.45
    model_size: int = DEFAULT_MODEL_SIZE
    device: Optional[str] = None
    class_whitelist: Optional[List[str]] = None

    def __post_init__(self) -> None:
        from ultralytics import YOLO

        self._model = YOLO(self.model_path)

    def warmup(self) -> None:
        blank = np.full((self.model_size, self.model_size, 3), 114, dtype=np.uint8)
        self.detect_image(blank)

    def detect_video(self, req: DetectionRequest) -> Iterator[FrameDetections]:
        reader = VideoReader(
            VideoReaderConfig(uri=req.video_path, sample_fps=req.sample_fps, start_s=req.start_s, end_s=req.end_s)
        )
        logger.info(
            "detecting %s at %.2f fps (%dx%d) from %.2fs",
            req.video_path,
            reader.sample_fps,
            reader.width,
            reader.height,
            req.start_s,
        )
        try:
            for _, t_ms, frame_bgr in reader:
                model_img, _ = letterbox_image(frame_bgr, self.model_size)
                yield FrameDetections(timestamp_ms=t_ms, boxes=tuple(self.detect_image(model_img)))
        finally:
            reader.close()

    def detect_image(self, model_img_bgr: np.ndarray) -> List[Box]:
        results = self._model.predict(
            source=model_img_bgr,
            conf=self.conf_threshold,
            iou=self.iou_threshold,
            imgsz=self.model_size,
            device=self.device,
            verbose=False,
        )
        if not results:
            return []
        r0 = results[0]
        names = r0.names if hasattr(r0, "names") else {}
        out: List[Box] = []
        boxes = getattr(r0, "boxes", None)
        if boxes is None:
            return out
        xyxy = boxes.xyxy.cpu().numpy()
        conf = boxes.conf.cpu().numpy()
        cls = boxes.cls.cpu().numpy().astype(int)
        for (x1, y1, x2, y2), s, c in zip(xyxy, conf, cls):
            class_name = str(names.get(int(c), str(int(c))))
            if self.class_whitelist is not None and class_name not in self.class_whitelist:
                continue
            w = float(x2 - x1)
            h = float(y2 - y1)
            if w <= 0.0 or h <= 0.0 or not np.isfinite(s):
                continue
            out.append(Box(x=float(x1), y=float(y1), width=w, height=h, confidence=float(s)))
        return out
