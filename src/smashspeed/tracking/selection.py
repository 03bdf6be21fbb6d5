from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional, Sequence

from smashspeed.tracking.base import CandidateSelector
from smashspeed.tracking.kalman import StateEstimator
from smashspeed.utils.types import Box


logger = logging.getLogger("smashspeed.tracking.selection")


def top_confidence(boxes: Sequence[Box]) -> Optional[Box]:
    best: Optional[Box] = None
    for b in boxes:
        if best is None or float(b.confidence) > float(best.confidence):
            best = b
    return best


@dataclass
class TopConfidenceSelector(CandidateSelector):
    def reset(self) -> None:
        pass

    def select(self, boxes: Sequence[Box], t_s: float) -> Optional[Box]:
        _ = t_s
        return top_confidence(boxes)

    def observe(self, x: float, y: float, t_s: float) -> None:
        pass


@dataclass
class GatedNearestSelector(CandidateSelector):
    """
    Keeps a StateEstimator running over the frames and picks the candidate
    statistically closest to the predicted position.

    Candidates whose squared Mahalanobis distance exceeds ``gate_chi2`` are
    rejected; if every candidate is rejected the frame gets no candidate.
    Until the filter has a position it falls back to top confidence.
    """

    q: float = 5e-2
    r: float = 3.0
    gate_chi2: float = 9.21

    def __post_init__(self) -> None:
        self._kf = StateEstimator(q=self.q, r=self.r)
        self._t_last_s: Optional[float] = None

    def reset(self) -> None:
        self._kf.reset()
        self._t_last_s = None

    def select(self, boxes: Sequence[Box], t_s: float) -> Optional[Box]:
        if not boxes:
            return None
        if not self._kf.initialized:
            chosen = top_confidence(boxes)
        else:
            self._advance(t_s)
            self._t_last_s = float(t_s)
            chosen = None
            best_d2 = float("inf")
            for b in boxes:
                cx, cy = b.center_xy
                d2 = self._kf.mahalanobis2(cx, cy)
                if d2 <= self.gate_chi2 and d2 < best_d2:
                    chosen = b
                    best_d2 = d2
            if chosen is None:
                logger.debug("all %d candidates gated out at t=%.3f", len(boxes), t_s)
                return None
        cx, cy = chosen.center_xy
        self._kf.update(cx, cy)
        self._t_last_s = float(t_s)
        return chosen

    def observe(self, x: float, y: float, t_s: float) -> None:
        self._advance(t_s)
        self._kf.update(x, y)
        self._t_last_s = float(t_s)

    def _advance(self, t_s: float) -> None:
        if self._t_last_s is None:
            return
        dt = float(t_s) - self._t_last_s
        if dt > 0.0:
            self._kf.predict(dt)
