from __future__ import annotations

import logging
import math
import threading
from dataclasses import dataclass, field
from typing import Any, Dict, List, Literal, Optional, Tuple

from smashspeed.geometry.calibration import CalibrationError, resolve_calibration
from smashspeed.geometry.letterbox import DEFAULT_MODEL_SIZE, LetterboxTransform
from smashspeed.speed_estimation.estimator import SpeedEstimator, SpeedEstimatorConfig, peak_speed
from smashspeed.tracking.centers import resolve_centers
from smashspeed.tracking.registry import create_selector
from smashspeed.utils.boxes import centered_box, clip_box_xywh
from smashspeed.utils.types import (
    NO_MOTION,
    Box,
    Calibration,
    FrameDetections,
    FrameResult,
    PeakSpeed,
    ResolvedCenter,
    SpeedSample,
)


logger = logging.getLogger("smashspeed.pipeline.session")

RunState = Literal["idle", "collecting", "finalized"]

_FALLBACK_FPS = 30.0


@dataclass(frozen=True)
class SessionConfig:
    model_size: int = DEFAULT_MODEL_SIZE
    selection_policy: str = "top_confidence"
    selection_params: Dict[str, Any] = field(default_factory=dict)
    speed: SpeedEstimatorConfig = field(default_factory=SpeedEstimatorConfig)

    @staticmethod
    def from_dict(d: Dict[str, Any]) -> "SessionConfig":
        model = d.get("model", {}) or {}
        selection = d.get("selection", {}) or {}
        model_size = int(model.get("input_size", DEFAULT_MODEL_SIZE))
        if model_size <= 0:
            raise ValueError("model.input_size must be positive")
        return SessionConfig(
            model_size=model_size,
            selection_policy=str(selection.get("policy", "top_confidence")),
            selection_params=dict(selection.get("params", {}) or {}),
            speed=SpeedEstimatorConfig.from_dict(dict(d.get("speed", {}) or {})),
        )


@dataclass(frozen=True)
class _Entry:
    seq: int
    frame: FrameDetections


class AnalysisSession:
    """
    Accumulates detections for one run and keeps the derived centers, speeds
    and peak in sync with the authoritative inputs.

    Detections are tagged with the generation returned by ``begin_run``;
    events from an older generation are dropped. Every input change rebuilds
    the derived state from scratch under a single lock, so readers always see
    a consistent snapshot.
    """

    def __init__(self, cfg: Optional[SessionConfig] = None) -> None:
        self._cfg = cfg or SessionConfig()
        self._lock = threading.RLock()
        self._selector = create_selector(self._cfg.selection_policy, self._cfg.selection_params)
        self._estimator = SpeedEstimator(self._cfg.speed)

        self._generation = 0
        self._state: RunState = "idle"
        self._entries: List[_Entry] = []
        self._next_seq = 0
        self._overrides: Dict[int, List[Box]] = {}
        self._source_size: Optional[Tuple[float, float]] = None
        self._calibration: Optional[Calibration] = None
        self._current_index = 0

        self._mapper: Optional[LetterboxTransform] = None
        self._centers: Tuple[Optional[ResolvedCenter], ...] = ()
        self._speeds: Tuple[Optional[SpeedSample], ...] = ()
        self._peak: PeakSpeed = NO_MOTION

    # -- run lifecycle -------------------------------------------------------

    def begin_run(self) -> int:
        with self._lock:
            self._generation += 1
            self._state = "collecting"
            self._entries = []
            self._overrides = {}
            self._current_index = 0
            self._recompute()
            logger.info("run %d started", self._generation)
            return self._generation

    def on_frame_detected(self, generation: int, frame: FrameDetections) -> bool:
        with self._lock:
            if generation != self._generation or self._state != "collecting":
                logger.debug(
                    "dropping frame t=%.1fms from generation %d (current=%d state=%s)",
                    frame.timestamp_ms,
                    generation,
                    self._generation,
                    self._state,
                )
                return False
            self._entries.append(_Entry(seq=self._next_seq, frame=frame))
            self._next_seq += 1
            self._entries.sort(key=lambda e: e.frame.timestamp_ms)
            self._recompute()
            return True

    def finish_run(self, generation: int) -> bool:
        with self._lock:
            if generation != self._generation or self._state != "collecting":
                return False
            self._state = "finalized"
            logger.info(
                "run %d finalized: %d frames, peak %.1f km/h at frame %d",
                generation,
                len(self._entries),
                self._peak.speed_kmh,
                self._peak.frame_index,
            )
            return True

    def fail_run(self, generation: int, error: Optional[BaseException] = None) -> bool:
        with self._lock:
            if generation != self._generation or self._state != "collecting":
                return False
            logger.warning("run %d detection failed, treating as no detections: %s", generation, error)
            self._entries = []
            self._overrides = {}
            self._current_index = 0
            self._state = "finalized"
            self._recompute()
            return True

    # -- authoritative inputs ------------------------------------------------

    def set_source_size(self, width: float, height: float) -> None:
        if not (width > 0 and height > 0):
            raise ValueError(f"source size must be positive, got {width}x{height}")
        with self._lock:
            self._source_size = (float(width), float(height))
            self._recompute()

    def set_calibration(self, cal: Calibration) -> None:
        if not cal.valid:
            raise CalibrationError(f"meters_per_pixel must be positive and finite, got {cal.meters_per_pixel}")
        with self._lock:
            self._calibration = cal
            self._recompute()

    def calibrate(
        self,
        p1: Tuple[float, float],
        p2: Tuple[float, float],
        reference_length_m: float,
        display_size: Optional[Tuple[float, float]],
    ) -> Calibration:
        with self._lock:
            cal = resolve_calibration(p1, p2, reference_length_m, display_size, self._source_size)
            self.set_calibration(cal)
            logger.info("calibrated: %.6f m/px (%.1f px = %.3f m)", cal.meters_per_pixel, cal.source_pixel_distance, reference_length_m)
            return cal

    def add_override(self, frame_index: int, box: Optional[Box] = None) -> int:
        with self._lock:
            entry = self._entry(frame_index)
            if box is None:
                if self._source_size is None:
                    raise ValueError("source size is required to place a default override box")
                box = centered_box(*self._source_size)
            boxes = self._overrides.setdefault(entry.seq, [])
            boxes.append(self._clip(box))
            self._recompute()
            return len(boxes) - 1

    def move_override(self, frame_index: int, box_index: int, dx: float, dy: float) -> Box:
        with self._lock:
            boxes = self._override_list(frame_index)
            b = boxes[box_index]
            boxes[box_index] = self._clip(b.replace(x=b.x + dx, y=b.y + dy))
            self._recompute()
            return boxes[box_index]

    def resize_override(self, frame_index: int, box_index: int, dw: float, dh: float) -> Box:
        with self._lock:
            boxes = self._override_list(frame_index)
            b = boxes[box_index]
            boxes[box_index] = self._clip(b.replace(width=b.width + dw, height=b.height + dh))
            self._recompute()
            return boxes[box_index]

    def delete_override(self, frame_index: int, box_index: int) -> None:
        with self._lock:
            entry = self._entry(frame_index)
            boxes = self._override_list(frame_index)
            del boxes[box_index]
            if not boxes:
                del self._overrides[entry.seq]
            self._recompute()

    def delete_detection(self, frame_index: int, box_index: int) -> None:
        with self._lock:
            entry = self._entry(frame_index)
            boxes = list(entry.frame.boxes)
            del boxes[box_index]
            self._entries[frame_index] = _Entry(
                seq=entry.seq,
                frame=FrameDetections(timestamp_ms=entry.frame.timestamp_ms, boxes=tuple(boxes)),
            )
            self._recompute()

    # -- derived outputs -----------------------------------------------------

    @property
    def state(self) -> RunState:
        return self._state

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def calibration(self) -> Optional[Calibration]:
        return self._calibration

    @property
    def source_size(self) -> Optional[Tuple[float, float]]:
        return self._source_size

    @property
    def frames(self) -> Tuple[FrameDetections, ...]:
        with self._lock:
            return tuple(e.frame for e in self._entries)

    @property
    def centers(self) -> Tuple[Optional[ResolvedCenter], ...]:
        return self._centers

    @property
    def speeds(self) -> Tuple[Optional[SpeedSample], ...]:
        return self._speeds

    @property
    def peak(self) -> PeakSpeed:
        return self._peak

    def overrides(self, frame_index: int) -> Tuple[Box, ...]:
        with self._lock:
            return tuple(self._overrides.get(self._entry(frame_index).seq, ()))

    def mapped_boxes(self, frame_index: int) -> Tuple[Box, ...]:
        with self._lock:
            entry = self._entry(frame_index)
            if self._mapper is None:
                return ()
            return tuple(self._mapper.map_boxes(entry.frame.boxes))

    def object_width_m(self, frame_index: int) -> Optional[float]:
        """Widest detected or user box on a frame, in meters."""
        with self._lock:
            if self._calibration is None:
                return None
            widths = [b.width for b in self.mapped_boxes(frame_index)] + [b.width for b in self.overrides(frame_index)]
            w = max(widths) if widths else 0.0
            if w <= 0.0:
                return None
            return float(w) * self._calibration.meters_per_pixel

    def results(self) -> List[FrameResult]:
        with self._lock:
            return [
                FrameResult(frame_index=i, timestamp_s=e.frame.timestamp_s, center=self._centers[i], speed=self._speeds[i])
                for i, e in enumerate(self._entries)
            ]

    # -- navigation ----------------------------------------------------------

    def approx_fps(self) -> float:
        """Sampling rate estimated from the median gap between frame timestamps."""
        with self._lock:
            ts = [e.frame.timestamp_ms for e in self._entries]
        if len(ts) < 2:
            return _FALLBACK_FPS
        deltas = sorted(max(1.0, b - a) for a, b in zip(ts, ts[1:]))
        fps = 1000.0 / deltas[len(deltas) // 2]
        return fps if math.isfinite(fps) and fps > 1.0 else _FALLBACK_FPS

    def seek_time_s(self, frame_index: int) -> float:
        """Player seek target for a frame, biased half a frame early."""
        with self._lock:
            if not self._entries:
                return 0.0
            i = max(0, min(int(frame_index), len(self._entries) - 1))
            t_s = self._entries[i].frame.timestamp_s
        return max(0.0, t_s - 1.0 / (self.approx_fps() * 2.0))

    @property
    def current_index(self) -> int:
        return self._current_index

    def go_to(self, frame_index: int) -> int:
        with self._lock:
            n = len(self._entries)
            self._current_index = max(0, min(int(frame_index), n - 1)) if n else 0
            return self._current_index

    def next_frame(self) -> int:
        return self.go_to(self._current_index + 1)

    def prev_frame(self) -> int:
        return self.go_to(self._current_index - 1)

    # -- internals -----------------------------------------------------------

    def _entry(self, frame_index: int) -> _Entry:
        if not 0 <= frame_index < len(self._entries):
            raise IndexError(f"frame index {frame_index} out of range (0..{len(self._entries) - 1})")
        return self._entries[frame_index]

    def _override_list(self, frame_index: int) -> List[Box]:
        entry = self._entry(frame_index)
        boxes = self._overrides.get(entry.seq)
        if not boxes:
            raise IndexError(f"frame {frame_index} has no override boxes")
        return boxes

    def _clip(self, b: Box) -> Box:
        if self._source_size is None:
            return b
        return clip_box_xywh(b, self._source_size[0], self._source_size[1])

    def _recompute(self) -> None:
        frames = [e.frame for e in self._entries]
        self._mapper = (
            LetterboxTransform(self._cfg.model_size, self._source_size[0], self._source_size[1])
            if self._source_size is not None
            else None
        )
        overrides = {i: self._overrides[e.seq] for i, e in enumerate(self._entries) if e.seq in self._overrides}
        centers = resolve_centers(frames, overrides, self._mapper, self._selector)
        mpp = self._calibration.meters_per_pixel if self._calibration is not None else None
        speeds = self._estimator.estimate(centers, mpp)
        self._centers = tuple(centers)
        self._speeds = tuple(speeds)
        self._peak = peak_speed(speeds)
        if self._current_index >= len(frames):
            self._current_index = max(0, len(frames) - 1)
