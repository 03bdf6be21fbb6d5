from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterator, Optional, Tuple

import cv2
import numpy as np


logger = logging.getLogger("smashspeed.io.video")


@dataclass(frozen=True)
class VideoReaderConfig:
    uri: str
    sample_fps: float = 0.0
    start_s: float = 0.0
    end_s: Optional[float] = None
    fps_hint: float = 30.0


class VideoReader:
    """
    Decodes a video file and yields frames at ``sample_fps`` between
    ``start_s`` and ``end_s``. ``sample_fps <= 0`` samples at the native rate.
    Timestamps are the container position in milliseconds.
    """

    def __init__(self, cfg: VideoReaderConfig) -> None:
        self._cfg = cfg
        self._cap = cv2.VideoCapture(cfg.uri)
        if not self._cap.isOpened():
            raise RuntimeError(f"Failed to open video source: {cfg.uri}")

        self._fps = self._cap.get(cv2.CAP_PROP_FPS)
        if self._fps is None or self._fps <= 1e-3:
            self._fps = float(cfg.fps_hint)
        self._width = int(self._cap.get(cv2.CAP_PROP_FRAME_WIDTH) or 0)
        self._height = int(self._cap.get(cv2.CAP_PROP_FRAME_HEIGHT) or 0)
        self._sample_fps = float(cfg.sample_fps) if cfg.sample_fps > 0 else float(self._fps)
        if cfg.start_s > 0:
            self._cap.set(cv2.CAP_PROP_POS_MSEC, float(cfg.start_s) * 1000.0)

    @property
    def fps(self) -> float:
        return float(self._fps)

    @property
    def sample_fps(self) -> float:
        return self._sample_fps

    @property
    def width(self) -> int:
        return self._width

    @property
    def height(self) -> int:
        return self._height

    def __iter__(self) -> Iterator[Tuple[int, float, np.ndarray]]:
        interval_ms = 1000.0 / self._sample_fps
        next_ms = float(self._cfg.start_s) * 1000.0
        end_ms = float(self._cfg.end_s) * 1000.0 if self._cfg.end_s is not None else None
        decoded = 0
        sampled = 0
        while True:
            ok, frame = self._cap.read()
            if not ok:
                break
            t_ms = self._timestamp_ms(decoded)
            decoded += 1
            if end_ms is not None and t_ms > end_ms:
                break
            # half-frame tolerance so a native-rate sample never skips a frame
            if t_ms + 0.5 * (1000.0 / self._fps) < next_ms:
                continue
            yield sampled, t_ms, frame
            sampled += 1
            next_ms += interval_ms
        logger.debug("decoded %d frames, sampled %d", decoded, sampled)

    def _timestamp_ms(self, decoded: int) -> float:
        pos_msec = self._cap.get(cv2.CAP_PROP_POS_MSEC)
        if pos_msec is not None and pos_msec > 0:
            return float(pos_msec)
        return float(self._cfg.start_s) * 1000.0 + 1000.0 * decoded / float(self._fps)

    def close(self) -> None:
        self._cap.release()
