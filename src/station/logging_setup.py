from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def init_logging(log_path: Optional[Path] = None, level: int = logging.INFO) -> Optional[Path]:
    """Configure root logging once; a file handler is added when a path is given."""
    root = logging.getLogger()
    handlers: list[logging.Handler] = []
    if log_path is not None:
        log_path = Path(log_path)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        # Don't add multiple handlers if init called twice
        if not any(
            isinstance(h, logging.FileHandler) and getattr(h, "baseFilename", "") == str(log_path.resolve())
            for h in root.handlers
        ):
            handlers.append(logging.FileHandler(log_path, encoding="utf-8"))
    if not any(type(h) is logging.StreamHandler for h in root.handlers):
        handlers.append(logging.StreamHandler())

    formatter = logging.Formatter(LOG_FORMAT)
    for h in handlers:
        h.setFormatter(formatter)
        root.addHandler(h)
    root.setLevel(level)
    return log_path
