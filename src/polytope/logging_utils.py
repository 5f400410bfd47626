"""
Logging helpers.

The occlusion kernel resolves geometric degeneracy silently (an edge-on cell
or an infeasible region simply contributes nothing), so those events are
logged at DEBUG through `log_once`, keyed per cell, to keep the per-patch
loops quiet.
"""

from __future__ import annotations

import logging
import os
import threading
from pathlib import Path
from typing import Hashable, Optional

_LOG_ONCE_KEYS: set[Hashable] = set()
_LOG_ONCE_LOCK = threading.Lock()

ENV_LOG_LEVEL = "POLYTOPEVIEW_LOG_LEVEL"
ENV_LOG_FILE = "POLYTOPEVIEW_LOG_FILE"

_HANDLER_NAME = "polytopeview"
_FORMAT = "%(asctime)s.%(msecs)03d %(levelname)s [%(name)s] %(message)s"
_DATEFMT = "%Y-%m-%d %H:%M:%S"


def _parse_log_level(level: str | int) -> int:
    if isinstance(level, int):
        return int(level)
    value = str(level).strip().upper()
    if not value:
        return logging.WARNING
    resolved = getattr(logging, value, logging.WARNING)
    return int(resolved) if isinstance(resolved, int) else logging.WARNING


def setup_logging(
    *,
    log_level: str | int = "WARNING",
    log_file: Optional[str | Path] = None,
) -> Optional[Path]:
    """
    Attach the package handler to the root logger.

    Messages go to stderr, or to `log_file` (UTF-8) when one is given or set
    in `POLYTOPEVIEW_LOG_FILE`. `POLYTOPEVIEW_LOG_LEVEL` overrides
    `log_level`. Calling it again is a no-op. Returns the log file path, or
    None when logging to stderr.
    """
    root = logging.getLogger()
    for handler in root.handlers:
        if handler.get_name() == _HANDLER_NAME:
            return Path(handler.baseFilename) if isinstance(handler, logging.FileHandler) else None

    level = _parse_log_level(os.environ.get(ENV_LOG_LEVEL) or log_level)
    target = log_file or os.environ.get(ENV_LOG_FILE) or None

    log_path: Optional[Path] = None
    if target is not None:
        log_path = Path(target)
        try:
            log_path.parent.mkdir(parents=True, exist_ok=True)
            handler: logging.Handler = logging.FileHandler(str(log_path), encoding="utf-8")
        except OSError:
            log_path = None
            handler = logging.StreamHandler()
    else:
        handler = logging.StreamHandler()

    handler.set_name(_HANDLER_NAME)
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(fmt=_FORMAT, datefmt=_DATEFMT))
    root.addHandler(handler)
    root.setLevel(level)

    logging.getLogger(__name__).debug("Logging to %s", log_path or "stderr")
    return log_path


def log_once(
    logger: logging.Logger,
    key: Hashable,
    level: int,
    msg: str,
    *args,
    exc_info: bool | BaseException | None = None,
) -> bool:
    """
    Log at most once per process for the given key.

    Keys are any hashable value; include the facet index (e.g.
    `("facet:render_singular", i)`) so each degenerate cell is reported once.
    Returns True when the message was emitted.
    """
    with _LOG_ONCE_LOCK:
        if key in _LOG_ONCE_KEYS:
            return False
        _LOG_ONCE_KEYS.add(key)

    logger.log(level, msg, *args, exc_info=exc_info)
    return True
