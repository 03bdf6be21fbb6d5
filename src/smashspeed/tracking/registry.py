from __future__ import annotations

from typing import Any, Dict

from smashspeed.tracking.base import CandidateSelector
from smashspeed.tracking.selection import GatedNearestSelector, TopConfidenceSelector


def create_selector(policy: str, params: Dict[str, Any]) -> CandidateSelector:
    if policy == "top_confidence":
        return TopConfidenceSelector()
    if policy == "gated_nearest":
        gate = float(params.get("gate_chi2", 9.21))
        if gate <= 0.0:
            raise ValueError("gate_chi2 must be positive")
        return GatedNearestSelector(
            q=float(params.get("q", 5e-2)),
            r=float(params.get("r", 3.0)),
            gate_chi2=gate,
        )
    raise ValueError(f"Unknown selection policy: {policy}")
