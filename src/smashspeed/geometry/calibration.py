from __future__ import annotations

import math
from typing import Optional, Tuple

from smashspeed.utils.types import Calibration


Point = Tuple[float, float]
Size = Tuple[float, float]


class CalibrationError(ValueError):
    pass


def contain_scale(display_size: Size, source_size: Size) -> float:
    """Uniform scale of a source frame drawn inside a display area with ``contain`` fit."""
    dw, dh = float(display_size[0]), float(display_size[1])
    sw, sh = float(source_size[0]), float(source_size[1])
    return min(dw / sw, dh / sh)


def _known_size(size: Optional[Size]) -> bool:
    if size is None:
        return False
    w, h = float(size[0]), float(size[1])
    return math.isfinite(w) and math.isfinite(h) and w > 0.0 and h > 0.0


def parse_reference_length(text: str) -> float:
    try:
        v = float(str(text).strip())
    except ValueError:
        raise CalibrationError(f"Reference length is not a number: {text!r}") from None
    if not math.isfinite(v) or v <= 0.0:
        raise CalibrationError(f"Reference length must be a positive number of meters, got {text!r}")
    return v


def resolve_calibration(
    p1: Point,
    p2: Point,
    reference_length_m: float,
    display_size: Optional[Size],
    source_size: Optional[Size],
) -> Calibration:
    length = float(reference_length_m)
    if not math.isfinite(length) or length <= 0.0:
        raise CalibrationError(f"Reference length must be positive and finite, got {reference_length_m}")
    if not _known_size(source_size):
        raise CalibrationError("Source video dimensions are not known yet")
    if not _known_size(display_size):
        raise CalibrationError("Display dimensions are not known yet")

    display_dist = math.hypot(float(p2[0]) - float(p1[0]), float(p2[1]) - float(p1[1]))
    source_dist = display_dist / contain_scale(display_size, source_size)
    if not math.isfinite(source_dist) or source_dist <= 0.0:
        raise CalibrationError("Calibration points must be two distinct points")

    return Calibration(
        meters_per_pixel=length / source_dist,
        source_pixel_distance=source_dist,
        reference_length_m=length,
    )


def calibration_from_meters_per_pixel(meters_per_pixel: float) -> Calibration:
    cal = Calibration(meters_per_pixel=float(meters_per_pixel))
    if not cal.valid:
        raise CalibrationError(f"meters_per_pixel must be positive and finite, got {meters_per_pixel}")
    return cal
