from __future__ import annotations


def mps_to_kmh(v_mps: float) -> float:
    return float(v_mps) * 3.6


def px_per_s_to_kmh(v_px_per_s: float, meters_per_pixel: float) -> float:
    return mps_to_kmh(float(v_px_per_s) * float(meters_per_pixel))
