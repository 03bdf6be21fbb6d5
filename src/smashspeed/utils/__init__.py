from .config import load_yaml, resolve_path, section
from .logging import setup_logging
from .types import (
    NO_MOTION,
    Box,
    Calibration,
    CenterSource,
    FrameDetections,
    FrameResult,
    PeakSpeed,
    ResolvedCenter,
    SpeedSample,
)

__all__ = [
    "NO_MOTION",
    "Box",
    "Calibration",
    "CenterSource",
    "FrameDetections",
    "FrameResult",
    "PeakSpeed",
    "ResolvedCenter",
    "SpeedSample",
    "load_yaml",
    "resolve_path",
    "section",
    "setup_logging",
]
