from __future__ import annotations

import csv
import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Iterable, Optional

from smashspeed.utils.types import FrameResult


def _ensure_parent(path: str) -> None:
    Path(path).parent.mkdir(parents=True, exist_ok=True)


def result_row(r: FrameResult) -> Dict[str, Any]:
    c = r.center
    s = r.speed
    return {
        "frame_index": r.frame_index,
        "timestamp_s": r.timestamp_s,
        "center_x": c.x if c is not None else None,
        "center_y": c.y if c is not None else None,
        "center_source": c.source if c is not None else None,
        "confidence": c.confidence if c is not None else None,
        "speed_kmh": s.speed_kmh if s is not None else None,
        "prior_frame_index": s.prior_frame_index if s is not None else None,
        "dt_s": s.dt_s if s is not None else None,
        "dt_used_s": s.dt_used_s if s is not None else None,
        "displacement_px": s.displacement_px if s is not None else None,
    }


_FIELDS = list(result_row(FrameResult(frame_index=0, timestamp_s=0.0, center=None, speed=None)).keys())


@dataclass
class CsvSink:
    path: str
    _f: Optional[object] = None
    _w: Optional[csv.DictWriter] = None

    def open(self) -> None:
        _ensure_parent(self.path)
        self._f = open(self.path, "w", newline="", encoding="utf-8")
        self._w = csv.DictWriter(self._f, fieldnames=_FIELDS)
        self._w.writeheader()

    def write(self, r: FrameResult) -> None:
        if self._w is None:
            raise RuntimeError("CsvSink not opened")
        self._w.writerow({k: ("" if v is None else v) for k, v in result_row(r).items()})

    def close(self) -> None:
        if self._f is not None:
            self._f.close()
        self._f = None
        self._w = None


@dataclass
class JsonlSink:
    path: str
    _f: Optional[object] = None

    def open(self) -> None:
        _ensure_parent(self.path)
        self._f = open(self.path, "w", encoding="utf-8")

    def write(self, r: FrameResult) -> None:
        if self._f is None:
            raise RuntimeError("JsonlSink not opened")
        self._f.write(json.dumps(result_row(r), ensure_ascii=False) + "\n")

    def close(self) -> None:
        if self._f is not None:
            self._f.close()
        self._f = None


@dataclass
class ResultSinks:
    csv: Optional[CsvSink]
    jsonl: Optional[JsonlSink]

    def open(self) -> None:
        if self.csv is not None:
            self.csv.open()
        if self.jsonl is not None:
            self.jsonl.open()

    def write(self, r: FrameResult) -> None:
        if self.csv is not None:
            self.csv.write(r)
        if self.jsonl is not None:
            self.jsonl.write(r)

    def write_all(self, results: Iterable[FrameResult]) -> None:
        for r in results:
            self.write(r)

    def close(self) -> None:
        if self.csv is not None:
            self.csv.close()
        if self.jsonl is not None:
            self.jsonl.close()
