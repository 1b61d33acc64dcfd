from __future__ import annotations

import logging
import logging.handlers
from pathlib import Path

LOG_FILE_NAME = "pharmaflow.log"
LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s - %(message)s"


def setup_logging(settings) -> Path | None:
    """Configure root logging; adds a rotating file under LOG_DIR when set."""
    level = getattr(logging, str(settings.LOG_LEVEL).upper(), logging.INFO)
    fmt = logging.Formatter(LOG_FORMAT)

    logger = logging.getLogger()  # root
    logger.setLevel(level)

    if not any(type(h) is logging.StreamHandler for h in logger.handlers):
        stream = logging.StreamHandler()
        stream.setFormatter(fmt)
        logger.addHandler(stream)

    log_path: Path | None = None
    handler: logging.Handler | None = None
    if settings.LOG_DIR is not None:
        log_dir = Path(settings.LOG_DIR).expanduser()
        log_dir.mkdir(parents=True, exist_ok=True)
        log_path = log_dir / LOG_FILE_NAME

        # avoid duplicate handlers on reload
        for h in logger.handlers:
            if isinstance(h, logging.handlers.RotatingFileHandler) and h.baseFilename == str(log_path.resolve()):
                handler = h
                break
        if handler is None:
            handler = logging.handlers.RotatingFileHandler(
                log_path, maxBytes=5_000_000, backupCount=3, encoding="utf-8"
            )
            handler.setFormatter(fmt)
            handler.setLevel(level)
            logger.addHandler(handler)

    # also wire uvicorn loggers (if present)
    for name in ("uvicorn", "uvicorn.error", "uvicorn.access", "fastapi"):
        lg = logging.getLogger(name)
        lg.setLevel(level)
        if handler is not None and handler not in lg.handlers:
            lg.addHandler(handler)

    return log_path
