from .calibration import (
    CalibrationError,
    calibration_from_meters_per_pixel,
    contain_scale,
    parse_reference_length,
    resolve_calibration,
)
from .letterbox import DEFAULT_MODEL_SIZE, LetterboxTransform, letterbox_image

__all__ = [
    "CalibrationError",
    "DEFAULT_MODEL_SIZE",
    "LetterboxTransform",
    "calibration_from_meters_per_pixel",
    "contain_scale",
    "letterbox_image",
    "parse_reference_length",
    "resolve_calibration",
]
