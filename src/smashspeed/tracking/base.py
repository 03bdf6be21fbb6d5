from __future__ import annotations

from typing import Any, Dict, Optional, Protocol, Sequence

from smashspeed.utils.types import Box


class CandidateSelector(Protocol):
    """Reduces a frame's source-space detections to at most one candidate."""

    def reset(self) -> None:
        ...

    def select(self, boxes: Sequence[Box], t_s: float) -> Optional[Box]:
        ...

    def observe(self, x: float, y: float, t_s: float) -> None:
        ...


class SelectorFactory(Protocol):
    def create(self, policy: str, params: Dict[str, Any]) -> CandidateSelector:
        ...
