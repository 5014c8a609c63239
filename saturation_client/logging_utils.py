from __future__ import annotations

import logging
import os
import tempfile
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional

LOGGER_ROOT = "Saturation.Client"
LOG_DIR_ENV_VAR = "SATURATION_LOG_DIR"
DEBUG_ENV_VAR = "SATURATION_DEBUG"
LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
LOG_FILENAME = "saturation-overlay.log"


def resolve_logs_dir(log_dir_name: str = "saturation-overlay") -> Path:
    """
    Resolve the directory to store logs.

    Strategy:
    - Use SATURATION_LOG_DIR if set.
    - Fall back to XDG state/cache locations, then `cwd/logs/<log_dir_name>`.
    - Final fallback: tempdir/<log_dir_name>.
    """
    candidates = []

    env_override = os.environ.get(LOG_DIR_ENV_VAR)
    if env_override:
        candidates.append(Path(env_override).expanduser())

    state_home = Path(os.environ.get("XDG_STATE_HOME", Path.home() / ".local" / "state"))
    cache_home = Path(os.environ.get("XDG_CACHE_HOME", Path.home() / ".cache"))
    candidates.append(state_home)
    candidates.append(cache_home)
    candidates.append(Path.cwd() / "logs")

    for base in candidates:
        try:
            target = base / log_dir_name
            target.mkdir(parents=True, exist_ok=True)
            return target
        except OSError:
            continue

    temp_fallback = Path(tempfile.gettempdir()) / log_dir_name
    temp_fallback.mkdir(parents=True, exist_ok=True)
    return temp_fallback


def build_rotating_file_handler(
    log_dir: Path,
    *,
    filename: str = LOG_FILENAME,
    retention: int = 5,
    max_bytes: int = 256 * 1024,
    level: Optional[int] = None,
) -> RotatingFileHandler:
    """File half of ``configure_logging``; keeps ``retention`` files including the live one."""
    log_dir.mkdir(parents=True, exist_ok=True)
    handler = RotatingFileHandler(
        log_dir / filename,
        maxBytes=max_bytes,
        backupCount=max(0, retention - 1),
        encoding="utf-8",
    )
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    if level is not None:
        handler.setLevel(level)
    return handler


def debug_requested(flag: bool = False) -> bool:
    if flag:
        return True
    value = os.getenv(DEBUG_ENV_VAR)
    if value is None:
        return False
    return value.strip().lower() in {"1", "true", "yes", "on"}


def resolve_log_level(debug_enabled: bool) -> int:
    return logging.DEBUG if debug_enabled else logging.INFO


def configure_logging(debug_enabled: bool, *, log_dir: Optional[Path] = None, retention: int = 5) -> logging.Logger:
    """Attach console and rotating file handlers to the client logger tree."""
    logger = logging.getLogger(LOGGER_ROOT)
    logger.setLevel(resolve_log_level(debug_enabled))
    logger.propagate = False
    formatter = logging.Formatter(LOG_FORMAT)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    console = logging.StreamHandler()
    console.setFormatter(formatter)
    logger.addHandler(console)
    target_dir = log_dir if log_dir is not None else resolve_logs_dir()
    try:
        logger.addHandler(build_rotating_file_handler(target_dir, retention=retention))
    except OSError as exc:
        logger.warning("File logging unavailable in %s: %s", target_dir, exc)
    return logger
