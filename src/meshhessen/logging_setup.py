"""Logging configuration for meshhessen.

The rotating log under the XDG state directory always records DEBUG; the
stderr level comes from :attr:`MeshSettings.log_level`.  When
``debug_messages`` is set, the ``meshhessen`` logger tree is also mirrored
into the in-memory :class:`DebugLog` behind the Debug tab.
"""

from __future__ import annotations

import logging
import shutil
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import TextIO

from .paths import log_path
from .settings import MeshSettings
from .state.debug_log import DebugLog, DebugLogHandler

LOG_FILE = log_path()
LOG_DIR = LOG_FILE.parent
LOG_FORMAT = "[%(name)s] %(message)s"
FILE_LOG_FORMAT = "%(asctime)s %(levelname)-8s [%(name)s] %(message)s"
MAX_BYTES = 1_000_000  # 1 MB per file
BACKUP_COUNT = 3
APP_LOGGER = "meshhessen"

_configured = False


def stderr_level(settings: MeshSettings) -> int:
    """Numeric level for ``settings.log_level``; unknown names mean INFO."""
    level = logging.getLevelName(settings.log_level.upper())
    return level if isinstance(level, int) else logging.INFO


def configure_logging(settings: MeshSettings) -> None:
    """Attach the stderr and rotating-file handlers to the root logger.

    Only the first call in a process has an effect.
    """
    global _configured  # noqa: PLW0603

    if _configured:
        return

    root = logging.getLogger()
    root.setLevel(logging.DEBUG)

    console = logging.StreamHandler(sys.stderr)
    console.setLevel(stderr_level(settings))
    console.setFormatter(logging.Formatter(LOG_FORMAT))
    root.addHandler(console)

    LOG_DIR.mkdir(parents=True, exist_ok=True)
    file_handler = RotatingFileHandler(
        LOG_FILE, maxBytes=MAX_BYTES, backupCount=BACKUP_COUNT, encoding="utf-8"
    )
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(logging.Formatter(FILE_LOG_FORMAT))
    root.addHandler(file_handler)

    _configured = True


def log_files() -> list[Path]:
    """Rotated backups followed by the current log, oldest first."""
    backups = [p for p in LOG_DIR.glob(f"{LOG_FILE.name}.*") if p.suffix[1:].isdigit()]
    backups.sort(key=lambda p: int(p.suffix[1:]), reverse=True)
    if LOG_FILE.exists():
        backups.append(LOG_FILE)
    return backups


def export_logs(out: TextIO) -> int:
    """Copy every log file into *out*, oldest first. Returns the file count."""
    files = log_files()
    for path in files:
        with path.open(encoding="utf-8", errors="replace") as src:
            shutil.copyfileobj(src, out)
    return len(files)


# ---------------------------------------------------------------------------
# Debug tab mirroring
# ---------------------------------------------------------------------------


def install_debug_log_handler(
    debug_log: DebugLog, logger_name: str = APP_LOGGER, level: int = logging.DEBUG
) -> DebugLogHandler:
    """Attach a :class:`DebugLogHandler` to *logger_name* and return it."""
    handler = DebugLogHandler(debug_log, level=level)
    target = logging.getLogger(logger_name)
    target.addHandler(handler)
    if target.level == logging.NOTSET or target.level > level:
        target.setLevel(level)
    return handler


def remove_debug_log_handler(handler: DebugLogHandler, logger_name: str = APP_LOGGER) -> None:
    logging.getLogger(logger_name).removeHandler(handler)
