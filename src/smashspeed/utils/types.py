from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Literal, Optional, Tuple


CenterSource = Literal["override", "detection"]


@dataclass(frozen=True)
class Box:
    x: float
    y: float
    width: float
    height: float
    confidence: float = 1.0

    @property
    def center_xy(self) -> Tuple[float, float]:
        return (float(self.x) + 0.5 * float(self.width), float(self.y) + 0.5 * float(self.height))

    def replace(self, **changes: float) -> "Box":
        vals = {
            "x": self.x,
            "y": self.y,
            "width": self.width,
            "height": self.height,
            "confidence": self.confidence,
        }
        vals.update(changes)
        return Box(**vals)


@dataclass(frozen=True)
class FrameDetections:
    timestamp_ms: float
    boxes: Tuple[Box, ...] = ()

    @property
    def timestamp_s(self) -> float:
        return float(self.timestamp_ms) / 1000.0

    @staticmethod
    def from_dict(d: dict) -> "FrameDetections":
        t = d.get("t", d.get("timestamp_ms"))
        if t is None:
            raise ValueError("frame detections need a 't' or 'timestamp_ms' field")
        boxes = []
        for b in d.get("boxes", []) or []:
            boxes.append(
                Box(
                    x=float(b["x"]),
                    y=float(b["y"]),
                    width=float(b["width"]),
                    height=float(b["height"]),
                    confidence=float(b.get("confidence", 1.0)),
                )
            )
        return FrameDetections(timestamp_ms=float(t), boxes=tuple(boxes))


@dataclass(frozen=True)
class ResolvedCenter:
    frame_index: int
    x: float
    y: float
    time_s: float
    source: CenterSource
    confidence: float

    @property
    def xy(self) -> Tuple[float, float]:
        return (self.x, self.y)

    @staticmethod
    def from_override(frame_index: int, box: Box, time_s: float) -> "ResolvedCenter":
        cx, cy = box.center_xy
        return ResolvedCenter(frame_index=frame_index, x=cx, y=cy, time_s=float(time_s), source="override", confidence=1.0)

    @staticmethod
    def from_detection(frame_index: int, box: Box, time_s: float) -> "ResolvedCenter":
        cx, cy = box.center_xy
        return ResolvedCenter(
            frame_index=frame_index,
            x=cx,
            y=cy,
            time_s=float(time_s),
            source="detection",
            confidence=float(box.confidence),
        )


@dataclass(frozen=True)
class Calibration:
    meters_per_pixel: float
    source_pixel_distance: Optional[float] = None
    reference_length_m: Optional[float] = None

    @property
    def valid(self) -> bool:
        v = float(self.meters_per_pixel)
        return math.isfinite(v) and v > 0.0


@dataclass(frozen=True)
class SpeedSample:
    frame_index: int
    timestamp_s: float
    speed_kmh: float
    prior_frame_index: int
    dt_s: float
    dt_used_s: float
    displacement_px: float


@dataclass(frozen=True)
class PeakSpeed:
    speed_kmh: float
    frame_index: int

    @property
    def detected(self) -> bool:
        return self.frame_index >= 0


NO_MOTION = PeakSpeed(speed_kmh=0.0, frame_index=-1)


@dataclass(frozen=True)
class FrameResult:
    frame_index: int
    timestamp_s: float
    center: Optional[ResolvedCenter]
    speed: Optional[SpeedSample]
