from .base import DetectionRequest, Detector, DetectorFactory
from .mock import ReplayDetector
from .registry import create_detector

__all__ = ["DetectionRequest", "Detector", "DetectorFactory", "ReplayDetector", "create_detector"]
