from .runner import DetectionRunner
from .session import AnalysisSession, RunState, SessionConfig

__all__ = ["AnalysisSession", "DetectionRunner", "RunState", "SessionConfig"]
