from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Iterator, Optional, Protocol

from smashspeed.utils.types import FrameDetections


@dataclass(frozen=True)
class DetectionRequest:
    video_path: str
    sample_fps: float = 0.0
    start_s: float = 0.0
    end_s: Optional[float] = None


class Detector(Protocol):
    def warmup(self) -> None:
        ...

    def detect_video(self, req: DetectionRequest) -> Iterator[FrameDetections]:
        """Yield model-space detections per sampled instant. Arrival order is not guaranteed."""
        ...


class DetectorFactory(Protocol):
    def create(self, backend: str, params: Dict[str, Any]) -> Detector:
        ...
