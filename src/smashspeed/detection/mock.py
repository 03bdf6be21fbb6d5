from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Iterator, List

from smashspeed.detection.base import Detector, DetectionRequest
from smashspeed.utils.types import FrameDetections


@dataclass
class ReplayDetector(Detector):
    frames: List[FrameDetections] = field(default_factory=list)

    def warmup(self) -> None:
        pass

    def detect_video(self, req: DetectionRequest) -> Iterator[FrameDetections]:
        start_ms = float(req.start_s) * 1000.0
        end_ms = float(req.end_s) * 1000.0 if req.end_s is not None else float("inf")
        for f in self.frames:
            if start_ms <= f.timestamp_ms <= end_ms:
                yield f

    @staticmethod
    def from_jsonl(path: str) -> "ReplayDetector":
        frames: List[FrameDetections] = []
        with open(path, "r", encoding="utf-8") as f:
            for line in f:
                line = line.strip()
                if not line:
                    continue
                frames.append(FrameDetections.from_dict(json.loads(line)))
        return ReplayDetector(frames=frames)
