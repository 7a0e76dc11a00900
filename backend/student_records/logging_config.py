"""Process-wide logging setup.

Console output always goes through ``logging.basicConfig``. When
``LOG_DIR`` is configured two file sinks are added: ``error.log`` holds
ERROR records only and ``combined.log`` holds everything.
"""

import logging
from pathlib import Path

from .config import Settings

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"


def configure_logging(settings: Settings) -> None:
    root = logging.getLogger()
    if not root.handlers:
        logging.basicConfig(level=settings.LOG_LEVEL, format=LOG_FORMAT)
    else:
        root.setLevel(settings.LOG_LEVEL)
    if not settings.LOG_DIR:
        return
    log_dir = Path(settings.LOG_DIR).expanduser()
    log_dir.mkdir(parents=True, exist_ok=True)
    existing = {getattr(h, "baseFilename", None) for h in root.handlers}
    for filename, level in (("error.log", logging.ERROR), ("combined.log", logging.NOTSET)):
        path = str((log_dir / filename).resolve())
        if path in existing:
            continue
        handler = logging.FileHandler(path, encoding="utf-8")
        handler.setLevel(level)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        root.addHandler(handler)
