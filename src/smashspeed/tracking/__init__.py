from .base import CandidateSelector
from .centers import resolve_centers
from .kalman import StateEstimator
from .registry import create_selector
from .selection import GatedNearestSelector, TopConfidenceSelector, top_confidence

__all__ = [
    "CandidateSelector",
    "GatedNearestSelector",
    "StateEstimator",
    "TopConfidenceSelector",
    "create_selector",
    "resolve_centers",
    "top_confidence",
]
