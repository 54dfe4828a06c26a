from __future__ import annotations
import logging
import logging.handlers
from pathlib import Path
import os
from typing import Optional

APP_DIR = Path(os.getenv("APPDATA", ".")) / "KeyLens"
LOG_DIR = APP_DIR / "logs"
LOG_FILE = LOG_DIR / "keylens.log"

_DEF_FMT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"

def _env_level() -> Optional[int]:
    name = os.getenv("KEYLENS_LOG_LEVEL", "").upper()
    level = logging.getLevelName(name) if name else None
    return level if isinstance(level, int) else None

def configure_logging(level: int = logging.INFO, log_file: Path = LOG_FILE) -> None:
    """Root logger to a rotating file plus stderr. KEYLENS_LOG_LEVEL overrides level."""
    logger = logging.getLogger()
    if logger.handlers:
        return
    env = _env_level()
    if env is not None:
        level = env
    logger.setLevel(level)
    log_file.parent.mkdir(parents=True, exist_ok=True)

    fh = logging.handlers.RotatingFileHandler(log_file, maxBytes=1_000_000, backupCount=3, encoding="utf-8")
    fh.setFormatter(logging.Formatter(_DEF_FMT))
    fh.setLevel(level)

    ch = logging.StreamHandler()
    ch.setFormatter(logging.Formatter(_DEF_FMT))
    ch.setLevel(max(level, logging.WARNING))

    logger.addHandler(fh)
    logger.addHandler(ch)
    # requests' connection pool is chatty at INFO
    logging.getLogger("urllib3").setLevel(logging.WARNING)
