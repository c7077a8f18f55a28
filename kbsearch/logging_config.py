"""Logging configuration with console and rotating file handlers"""
import logging
import sys
from datetime import datetime
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional

KEEP_SESSION_LOGS = 5


def setup_logging(
    log_file: Optional[str] = "logs/kbsearch.log",
    console_level: int = logging.INFO,
    file_level: int = logging.DEBUG,
) -> Optional[Path]:
    """
    Configure logging for command-line use.

    Two destinations:
    - Console (stderr): brief logs (INFO by default), keeps stdout clean for results
    - File: detailed logs (DEBUG by default) with rotation

    Rotation policy:
    - New log file per session (timestamp-based naming)
    - Keep the last 5 session files (older ones removed on startup)
    - Rotate when a file reaches 10MB

    The library itself never calls this; embedding applications own their
    logging setup.

    Args:
        log_file: Base path of the log file, None = console only
        console_level: Console logging level
        file_level: File logging level

    Returns:
        Path of this session's log file, or None when file logging is off
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG)  # Capture everything, filter in handlers

    # Remove existing handlers to avoid duplicates
    root_logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(console_level)
    console_handler.setFormatter(logging.Formatter('%(levelname)s: %(message)s'))
    root_logger.addHandler(console_handler)

    if log_file is None:
        return None

    log_path = Path(log_file)
    log_path.parent.mkdir(parents=True, exist_ok=True)

    # Newest first; make room for the session about to start
    existing_logs = sorted(log_path.parent.glob(f"{log_path.stem}_*.log"), reverse=True)
    for old_log in existing_logs[KEEP_SESSION_LOGS - 1:]:
        try:
            old_log.unlink()
        except OSError:
            pass  # Another process may hold or have removed it

    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    session_log = log_path.parent / f"{log_path.stem}_{timestamp}.log"

    file_handler = RotatingFileHandler(
        session_log,
        mode='a',
        maxBytes=10 * 1024 * 1024,  # 10MB
        backupCount=10,
        encoding='utf-8',
    )
    file_handler.setLevel(file_level)
    file_handler.setFormatter(logging.Formatter(
        '%(asctime)s | %(levelname)-8s | %(name)s:%(lineno)d | %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S',
    ))
    root_logger.addHandler(file_handler)

    logging.getLogger(__name__).debug(
        f"Logging configured: console={logging.getLevelName(console_level)}, "
        f"file={session_log} ({logging.getLevelName(file_level)})"
    )
    return session_log
