from __future__ import annotations

import math
from typing import Tuple


MIN_DT_S = 1.0 / 240.0
MAX_DT_S = 0.5


def clamp_dt(dt_s: float, min_dt_s: float = MIN_DT_S, max_dt_s: float = MAX_DT_S) -> float:
    """Clamp a frame gap into ``[min_dt_s, max_dt_s]``; non-finite gaps go to ``max_dt_s``."""
    dt = float(dt_s)
    if not math.isfinite(dt):
        return float(max_dt_s)
    return float(min(max(dt, float(min_dt_s)), float(max_dt_s)))


def displacement_px(p0: Tuple[float, float], p1: Tuple[float, float]) -> float:
    return float(math.hypot(float(p1[0]) - float(p0[0]), float(p1[1]) - float(p0[1])))


def speed_px_per_s(p0: Tuple[float, float], p1: Tuple[float, float], dt_s: float) -> float:
    if dt_s <= 0.0:
        return float("nan")
    return displacement_px(p0, p1) / float(dt_s)
