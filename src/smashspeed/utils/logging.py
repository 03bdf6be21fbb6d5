from __future__ import annotations

import logging
from typing import Optional, Sequence


def setup_logging(
    level: str = "INFO",
    log_file: Optional[str] = None,
    quiet: Sequence[str] = ("ultralytics",),
) -> None:
    """Root logging for scripts. Loggers named in ``quiet`` only report warnings and up."""
    handlers: list[logging.Handler] = [logging.StreamHandler()]
    if log_file is not None:
        handlers.append(logging.FileHandler(log_file, encoding="utf-8"))

    root_level = getattr(logging, level.upper(), logging.INFO)
    logging.basicConfig(
        level=root_level,
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
        handlers=handlers,
    )
    for name in quiet:
        logging.getLogger(name).setLevel(max(root_level, logging.WARNING))
