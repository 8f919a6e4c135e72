# mediashelf/core/logs.py
# Handler setup for the "mediashelf" logger tree (scripts and dev server).
# Library modules only call logging.getLogger("mediashelf.<area>").
from __future__ import annotations

import json
import logging
import logging.handlers
import time
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional


class MaxLevelFilter(logging.Filter):
    """Allow records up to and including `levelno` (drop anything higher)."""
    def __init__(self, levelno: int):
        super().__init__()
        self.levelno = levelno

    def filter(self, record: logging.LogRecord) -> bool:
        return record.levelno <= self.levelno


class JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "ts": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "msg": record.getMessage(),
            "name": record.name,
            "thread": record.threadName,
        }
        if record.exc_info:
            payload["exc"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False)


def setup_logging(logs_dir: Optional[Path] = None, verbose: int = 0, quiet: bool = False,
                  log_level: Optional[str] = None, json_logs: bool = False) -> logging.Logger:
    """
    Console/File matrix:
      - -q:   console = WARNING+ only;  file = INFO+
      - none: console = INFO only;      file = INFO+
      - -v:   console = INFO+;          file = INFO+
      - -vv:  console = DEBUG;          file = DEBUG
      - --log-level=X: both console & file use X
    The file handler is only added when logs_dir is given.
    """
    logger = logging.getLogger("mediashelf")
    logger.setLevel(logging.DEBUG)
    logger.propagate = False
    for h in list(logger.handlers):
        logger.removeHandler(h)

    console_max = None
    if log_level:
        console_level = file_level = getattr(logging, log_level.upper())
    elif quiet:
        console_level, file_level = logging.WARNING, logging.INFO
    elif verbose >= 2:
        console_level = file_level = logging.DEBUG
    elif verbose >= 1:
        console_level = file_level = logging.INFO
    else:
        # default: keep warnings (per-item populate/render failures) off the console
        console_level = file_level = logging.INFO
        console_max = MaxLevelFilter(logging.INFO)

    ch = logging.StreamHandler()
    ch.setLevel(console_level)
    if console_max:
        ch.addFilter(console_max)
    ch.setFormatter(logging.Formatter("%(message)s"))
    logger.addHandler(ch)

    if logs_dir is not None:
        logs_dir.mkdir(parents=True, exist_ok=True)
        log_path = logs_dir / "mediashelf.log"
        fh = logging.handlers.TimedRotatingFileHandler(
            log_path, when="midnight", backupCount=14, encoding="utf-8"
        )
        fh.setLevel(file_level)
        if json_logs:
            fh.setFormatter(JsonFormatter())
        else:
            fmt = logging.Formatter(
                "%(asctime)sZ [%(levelname)s] [%(name)s:%(threadName)s] %(message)s",
                datefmt="%Y-%m-%dT%H:%M:%S"
            )
            fmt.converter = time.gmtime
            fh.setFormatter(fmt)
        logger.addHandler(fh)
        logger.debug("Log file: %s", log_path)

    return logger
