from __future__ import annotations

from dataclasses import dataclass, replace
from typing import List, Optional, Sequence

from smashspeed.tracking.kalman import StateEstimator
from smashspeed.utils.types import ResolvedCenter


@dataclass
class KalmanCenterSmoother:
    """
    Runs resolved centers through a StateEstimator before differencing.

    Absent frames stay absent. A measurement farther than ``gate_chi2``
    (squared Mahalanobis distance) from the prediction is not folded in and
    the predicted position is used for that frame instead; ``gate_chi2 <= 0``
    disables gating.
    """

    q: float = 5e-2
    r: float = 3.0
    gate_chi2: float = 0.0

    def smooth(self, centers: Sequence[Optional[ResolvedCenter]]) -> List[Optional[ResolvedCenter]]:
        kf = StateEstimator(q=self.q, r=self.r)
        t_last: Optional[float] = None
        out: List[Optional[ResolvedCenter]] = []
        for c in centers:
            if c is None:
                out.append(None)
                continue
            if t_last is not None:
                dt = float(c.time_s) - t_last
                if dt > 0.0:
                    kf.predict(dt)
            gated = (
                self.gate_chi2 > 0.0
                and kf.initialized
                and kf.mahalanobis2(c.x, c.y) > self.gate_chi2
            )
            if not gated:
                kf.update(c.x, c.y)
            t_last = float(c.time_s)
            x, y = kf.position
            out.append(replace(c, x=x, y=y))
        return out
