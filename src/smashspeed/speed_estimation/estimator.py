from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence

from smashspeed.speed_estimation.math import MAX_DT_S, MIN_DT_S, clamp_dt, displacement_px, speed_px_per_s
from smashspeed.speed_estimation.smoothing import KalmanCenterSmoother
from smashspeed.speed_estimation.units import px_per_s_to_kmh
from smashspeed.utils.types import NO_MOTION, PeakSpeed, ResolvedCenter, SpeedSample


logger = logging.getLogger("smashspeed.speed_estimation.estimator")


@dataclass(frozen=True)
class SpeedEstimatorConfig:
    min_dt_s: float = MIN_DT_S
    max_dt_s: float = MAX_DT_S
    smoothing_method: str = "none"
    kalman_q: float = 5e-2
    kalman_r: float = 3.0
    gate_chi2: float = 0.0

    @staticmethod
    def from_dict(d: Dict[str, Any]) -> "SpeedEstimatorConfig":
        smoothing = d.get("smoothing", {}) or {}
        method = str(smoothing.get("method", "none")).lower()
        if method not in {"none", "kalman"}:
            raise ValueError("speed.smoothing.method must be one of: none, kalman")
        min_dt_s = float(d.get("min_dt_s", MIN_DT_S))
        max_dt_s = float(d.get("max_dt_s", MAX_DT_S))
        if not (min_dt_s > 0.0 and max_dt_s >= min_dt_s):
            raise ValueError("speed requires 0 < min_dt_s <= max_dt_s")
        return SpeedEstimatorConfig(
            min_dt_s=min_dt_s,
            max_dt_s=max_dt_s,
            smoothing_method=method,
            kalman_q=float(smoothing.get("q", 5e-2)),
            kalman_r=float(smoothing.get("r", 3.0)),
            gate_chi2=float(smoothing.get("gate_chi2", 0.0)),
        )


class SpeedEstimator:
    def __init__(self, cfg: Optional[SpeedEstimatorConfig] = None) -> None:
        self._cfg = cfg or SpeedEstimatorConfig()
        self._smoother: Optional[KalmanCenterSmoother] = None
        if self._cfg.smoothing_method == "kalman":
            self._smoother = KalmanCenterSmoother(q=self._cfg.kalman_q, r=self._cfg.kalman_r, gate_chi2=self._cfg.gate_chi2)

    @property
    def config(self) -> SpeedEstimatorConfig:
        return self._cfg

    def estimate(
        self,
        centers: Sequence[Optional[ResolvedCenter]],
        meters_per_pixel: Optional[float],
    ) -> List[Optional[SpeedSample]]:
        out: List[Optional[SpeedSample]] = [None] * len(centers)
        if meters_per_pixel is None or not math.isfinite(meters_per_pixel) or meters_per_pixel <= 0.0:
            return out
        pts = self._smoother.smooth(centers) if self._smoother is not None else list(centers)

        prev: Optional[ResolvedCenter] = None
        for i, c in enumerate(pts):
            if c is None:
                continue
            if prev is None:
                prev = c
                continue
            dt = float(c.time_s) - float(prev.time_s)
            dt_used = clamp_dt(dt, self._cfg.min_dt_s, self._cfg.max_dt_s)
            disp = displacement_px(prev.xy, c.xy)
            v_kmh = px_per_s_to_kmh(speed_px_per_s(prev.xy, c.xy, dt_used), meters_per_pixel)
            if math.isfinite(v_kmh):
                out[i] = SpeedSample(
                    frame_index=i,
                    timestamp_s=float(c.time_s),
                    speed_kmh=float(v_kmh),
                    prior_frame_index=int(prev.frame_index),
                    dt_s=float(dt),
                    dt_used_s=float(dt_used),
                    displacement_px=float(disp),
                )
            prev = c
        return out


def peak_speed(samples: Sequence[Optional[SpeedSample]]) -> PeakSpeed:
    best = NO_MOTION
    for i, s in enumerate(samples):
        if s is None or not math.isfinite(s.speed_kmh):
            continue
        if not best.detected or s.speed_kmh > best.speed_kmh:
            best = PeakSpeed(speed_kmh=float(s.speed_kmh), frame_index=i)
    return best
