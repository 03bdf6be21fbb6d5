from __future__ import annotations

from typing import List, Mapping, Optional, Sequence

from smashspeed.geometry.letterbox import LetterboxTransform
from smashspeed.tracking.base import CandidateSelector
from smashspeed.tracking.selection import TopConfidenceSelector
from smashspeed.utils.types import Box, FrameDetections, ResolvedCenter


def resolve_centers(
    frames: Sequence[FrameDetections],
    overrides: Mapping[int, Sequence[Box]],
    mapper: Optional[LetterboxTransform],
    selector: Optional[CandidateSelector] = None,
) -> List[Optional[ResolvedCenter]]:
    """
    Authoritative center per frame index.

    ``overrides`` maps frame index to the user's source-space boxes for that
    frame; the most recently added one wins over any detection. Detections are
    mapped from model space with ``mapper``; without a mapper (source size not
    known yet) only overrides resolve.
    """
    sel = selector if selector is not None else TopConfidenceSelector()
    sel.reset()
    out: List[Optional[ResolvedCenter]] = []
    for i, frame in enumerate(frames):
        t_s = frame.timestamp_s
        user_boxes = overrides.get(i) or ()
        if user_boxes:
            c = ResolvedCenter.from_override(i, user_boxes[-1], t_s)
            sel.observe(c.x, c.y, t_s)
            out.append(c)
            continue
        if mapper is None or not frame.boxes:
            out.append(None)
            continue
        chosen = sel.select(mapper.map_boxes(frame.boxes), t_s)
        out.append(ResolvedCenter.from_detection(i, chosen, t_s) if chosen is not None else None)
    return out
