from __future__ import annotations

from dataclasses import dataclass
from typing import List, Tuple

import numpy as np

from smashspeed.utils.types import Box, FrameDetections


DEFAULT_MODEL_SIZE = 640


@dataclass(frozen=True)
class LetterboxTransform:
    """
    Uniform scale plus centered padding fitting a ``source_w`` x ``source_h``
    frame into a ``model_size`` square.

    ``model_to_source`` is the exact inverse of ``source_to_model``; detector
    preprocessing must letterbox with the same parameters.
    """

    model_size: int
    source_w: float
    source_h: float

    def __post_init__(self) -> None:
        if self.model_size <= 0:
            raise ValueError(f"model_size must be positive, got {self.model_size}")
        if not (self.source_w > 0 and self.source_h > 0):
            raise ValueError(f"source size must be positive, got {self.source_w}x{self.source_h}")

    @property
    def scale(self) -> float:
        m = float(self.model_size)
        return min(m / float(self.source_w), m / float(self.source_h))

    @property
    def pad_xy(self) -> Tuple[float, float]:
        s = self.scale
        m = float(self.model_size)
        return ((m - float(self.source_w) * s) / 2.0, (m - float(self.source_h) * s) / 2.0)

    def model_to_source(self, b: Box) -> Box:
        s = self.scale
        pad_x, pad_y = self.pad_xy
        return Box(
            x=(float(b.x) - pad_x) / s,
            y=(float(b.y) - pad_y) / s,
            width=float(b.width) / s,
            height=float(b.height) / s,
            confidence=b.confidence,
        )

    def source_to_model(self, b: Box) -> Box:
        s = self.scale
        pad_x, pad_y = self.pad_xy
        return Box(
            x=float(b.x) * s + pad_x,
            y=float(b.y) * s + pad_y,
            width=float(b.width) * s,
            height=float(b.height) * s,
            confidence=b.confidence,
        )

    def map_boxes(self, boxes: Tuple[Box, ...]) -> List[Box]:
        return [self.model_to_source(b) for b in boxes]

    def map_frame(self, frame: FrameDetections) -> FrameDetections:
        return FrameDetections(timestamp_ms=frame.timestamp_ms, boxes=tuple(self.map_boxes(frame.boxes)))


def letterbox_image(image_bgr: np.ndarray, model_size: int = DEFAULT_MODEL_SIZE, pad_value: int = 114) -> Tuple[np.ndarray, LetterboxTransform]:
    """
    Letterbox an image with exactly the float parameters of the returned
    transform, so boxes predicted on the output map back through
    ``model_to_source`` without rounding error.
    """
    import cv2

    h, w = image_bgr.shape[:2]
    lt = LetterboxTransform(model_size=int(model_size), source_w=float(w), source_h=float(h))
    s = lt.scale
    pad_x, pad_y = lt.pad_xy
    # warpAffine addresses pixel centers; box coordinates address pixel edges
    shift = 0.5 * (s - 1.0)
    m = np.float32([[s, 0.0, pad_x + shift], [0.0, s, pad_y + shift]])
    out = cv2.warpAffine(
        image_bgr,
        m,
        (int(model_size), int(model_size)),
        flags=cv2.INTER_LINEAR,
        borderMode=cv2.BORDER_CONSTANT,
        borderValue=(pad_value, pad_value, pad_value),
    )
    return out, lt
