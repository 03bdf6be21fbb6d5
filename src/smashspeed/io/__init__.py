from .video import VideoReader, VideoReaderConfig

__all__ = ["VideoReader", "VideoReaderConfig"]
