from __future__ import annotations

import logging
import threading
from typing import Optional

from smashspeed.detection.base import DetectionRequest, Detector
from smashspeed.pipeline.session import AnalysisSession


logger = logging.getLogger("smashspeed.pipeline.runner")


class DetectionRunner:
    """
    Streams detector output into an AnalysisSession from a worker thread.

    Each ``start`` opens a new session generation and cancels the previous
    worker; anything the old worker still delivers is discarded by the
    session. Detector errors never propagate: they are logged and the run is
    finalized with no detections.
    """

    def __init__(self, detector: Detector, session: AnalysisSession) -> None:
        self._detector = detector
        self._session = session
        self._thread: Optional[threading.Thread] = None
        self._cancel: Optional[threading.Event] = None
        self._lock = threading.Lock()

    @property
    def session(self) -> AnalysisSession:
        return self._session

    def start(self, req: DetectionRequest) -> int:
        with self._lock:
            if self._cancel is not None:
                self._cancel.set()
            generation = self._session.begin_run()
            cancel = threading.Event()
            t = threading.Thread(
                target=self._worker,
                args=(req, generation, cancel),
                name=f"detect-{generation}",
                daemon=True,
            )
            self._cancel = cancel
            self._thread = t
            t.start()
            return generation

    def run(self, req: DetectionRequest) -> int:
        """Synchronous variant of ``start``: returns once the run is finalized."""
        generation = self.start(req)
        self.wait()
        return generation

    def cancel(self) -> None:
        with self._lock:
            if self._cancel is not None:
                self._cancel.set()

    def wait(self, timeout: Optional[float] = None) -> bool:
        t = self._thread
        if t is None:
            return True
        t.join(timeout)
        return not t.is_alive()

    def _worker(self, req: DetectionRequest, generation: int, cancel: threading.Event) -> None:
        try:
            self._detector.warmup()
            n = 0
            for frame in self._detector.detect_video(req):
                if cancel.is_set():
                    logger.info("run %d cancelled after %d frames", generation, n)
                    self._session.finish_run(generation)
                    return
                self._session.on_frame_detected(generation, frame)
                n += 1
            self._session.finish_run(generation)
        except Exception as e:
            logger.exception("Detection failed for %s", req.video_path)
            self._session.fail_run(generation, e)
