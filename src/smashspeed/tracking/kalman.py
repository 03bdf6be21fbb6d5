from __future__ import annotations

import math
from typing import Tuple

import numpy as np


_DET_EPS = 1e-12
_H = np.array([[1.0, 0.0, 0.0, 0.0], [0.0, 1.0, 0.0, 0.0]])


def _default_covariance() -> np.ndarray:
    return np.diag([1.0, 1.0, 1000.0, 1000.0])


class StateEstimator:
    """
    2D constant-velocity Kalman filter over ``[x, y, vx, vy]``.

    Positions are pixels and ``dt`` is seconds. ``q`` scales the white-noise
    acceleration process noise (larger reacts faster to new measurements),
    ``r`` is the per-axis measurement variance (larger trusts measurements less).

    Degenerate innovation covariances never raise: ``update`` leaves the state
    untouched and ``mahalanobis2`` reports ``inf``.
    """

    def __init__(self, q: float = 5e-2, r: float = 3.0) -> None:
        self.q = float(q)
        self.r = float(r)
        self._x = np.zeros(4)
        self._P = _default_covariance()
        self._initialized = False

    @property
    def initialized(self) -> bool:
        return self._initialized

    @property
    def position(self) -> Tuple[float, float]:
        return (float(self._x[0]), float(self._x[1]))

    @property
    def velocity(self) -> Tuple[float, float]:
        return (float(self._x[2]), float(self._x[3]))

    @property
    def speed_px_per_s(self) -> float:
        return float(math.hypot(self._x[2], self._x[3]))

    @property
    def state(self) -> np.ndarray:
        return self._x.copy()

    @property
    def covariance(self) -> np.ndarray:
        return self._P.copy()

    def reset(self) -> None:
        self._initialized = False
        self._x = np.zeros(4)
        self._P = _default_covariance()

    def predict(self, dt: float) -> None:
        if not self._initialized:
            return
        dt = float(dt)
        F = np.array(
            [
                [1.0, 0.0, dt, 0.0],
                [0.0, 1.0, 0.0, dt],
                [0.0, 0.0, 1.0, 0.0],
                [0.0, 0.0, 0.0, 1.0],
            ]
        )
        # Q = q * [[dt^4/4, dt^3/2], [dt^3/2, dt^2]] per axis
        q11 = 0.25 * dt**4
        q13 = 0.5 * dt**3
        q33 = dt**2
        Q = self.q * np.array(
            [
                [q11, 0.0, q13, 0.0],
                [0.0, q11, 0.0, q13],
                [q13, 0.0, q33, 0.0],
                [0.0, q13, 0.0, q33],
            ]
        )
        x = F @ self._x
        P = F @ self._P @ F.T + Q
        if not (np.all(np.isfinite(x)) and np.all(np.isfinite(P))):
            return
        self._x = x
        self._P = P

    def innovation_covariance(self) -> np.ndarray:
        return _H @ self._P @ _H.T + self.r * np.eye(2)

    def update(self, zx: float, zy: float) -> bool:
        """Fold in a position measurement. Returns False when the update was skipped."""
        if not self._initialized:
            self._x = np.array([float(zx), float(zy), 0.0, 0.0])
            self._initialized = True
            return True

        S = self.innovation_covariance()
        det = float(np.linalg.det(S))
        if not math.isfinite(det) or abs(det) < _DET_EPS:
            return False
        S_inv = np.linalg.inv(S)
        K = self._P @ _H.T @ S_inv
        y = np.array([float(zx), float(zy)]) - _H @ self._x
        x = self._x + K @ y
        P = self._P - K @ _H @ self._P
        if not (np.all(np.isfinite(x)) and np.all(np.isfinite(P))):
            return False
        self._x = x
        self._P = P
        return True

    def mahalanobis2(self, zx: float, zy: float) -> float:
        """Squared Mahalanobis distance of ``(zx, zy)`` from the predicted position."""
        S = self.innovation_covariance()
        det = float(np.linalg.det(S))
        if not math.isfinite(det) or abs(det) < _DET_EPS:
            return float("inf")
        d = np.array([float(zx), float(zy)]) - _H @ self._x
        return float(d @ np.linalg.inv(S) @ d)
