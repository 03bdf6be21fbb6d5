from __future__ import annotations

from smashspeed.utils.types import Box


def clip_box_xywh(b: Box, width: float, height: float, min_size: float = 2.0) -> Box:
    """Keep a box inside a ``width`` x ``height`` frame, at least ``min_size`` on each side."""
    if width <= 0 or height <= 0:
        return b
    w = max(float(min_size), min(float(b.width), float(width)))
    h = max(float(min_size), min(float(b.height), float(height)))
    x = max(0.0, min(float(b.x), max(0.0, float(width) - w)))
    y = max(0.0, min(float(b.y), max(0.0, float(height) - h)))
    return Box(x=x, y=y, width=w, height=h, confidence=b.confidence)


def centered_box(width: float, height: float, fraction: float = 0.18) -> Box:
    w = round(float(width) * fraction)
    h = round(float(height) * fraction)
    b = Box(x=round((float(width) - w) / 2.0), y=round((float(height) - h) / 2.0), width=w, height=h, confidence=1.0)
    return clip_box_xywh(b, width, height)
