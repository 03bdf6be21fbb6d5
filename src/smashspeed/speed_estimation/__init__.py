from .estimator import SpeedEstimator, SpeedEstimatorConfig, peak_speed
from .math import MAX_DT_S, MIN_DT_S, clamp_dt, speed_px_per_s
from .smoothing import KalmanCenterSmoother
from .units import mps_to_kmh, px_per_s_to_kmh

__all__ = [
    "KalmanCenterSmoother",
    "MAX_DT_S",
    "MIN_DT_S",
    "SpeedEstimator",
    "SpeedEstimatorConfig",
    "clamp_dt",
    "mps_to_kmh",
    "peak_speed",
    "px_per_s_to_kmh",
    "speed_px_per_s",
]
