"""Logging setup for the sync tool."""

import logging
import logging.handlers
import os

logger = logging.getLogger("asset_sync")

# 5 MB max per log file, keep 3 rotated backups
_LOG_MAX_BYTES = 5 * 1024 * 1024
_LOG_BACKUP_COUNT = 3


def level_from_verbosity(verbosity: int, default: str = "INFO") -> str:
    """Map a repeated ``-v`` count onto a log level name."""
    if verbosity <= 0:
        return default
    if verbosity == 1:
        return "DEBUG"
    # -vv and above also surface records from third-party loggers (PIL).
    return "NOTSET"


def setup_logging(level: str = "INFO", log_file: str = None, force: bool = False):
    """Configure logging without clobbering host-app handlers by default."""
    fmt = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
    handlers = [logging.StreamHandler()]
    if log_file:
        os.makedirs(os.path.dirname(log_file) or ".", exist_ok=True)
        handlers.append(logging.handlers.RotatingFileHandler(
            log_file, maxBytes=_LOG_MAX_BYTES, backupCount=_LOG_BACKUP_COUNT,
            encoding="utf-8",
        ))
    numeric_level = getattr(logging, level.upper(), None)
    if not isinstance(numeric_level, int):
        print(f"Warning: Invalid log level '{level}', defaulting to INFO")
        numeric_level = logging.INFO

    root = logging.getLogger()
    if force or not root.handlers:
        logger.debug("Initializing logging with %d handlers (force=%s)", len(handlers), force)
        logging.basicConfig(
            level=numeric_level,
            format=fmt,
            handlers=handlers,
            force=force,
        )
        return

    # Embedded mode: only update the asset_sync logger hierarchy so we
    # don't affect unrelated libraries that share the root logger.
    sync_logger = logging.getLogger("asset_sync")
    sync_logger.setLevel(numeric_level)
    if log_file:
        existing_files = {
            getattr(h, "baseFilename", None)
            for h in sync_logger.handlers
            if isinstance(h, logging.FileHandler)
        }
        file_handler = handlers[1]
        if getattr(file_handler, "baseFilename", None) not in existing_files:
            logger.info("Adding file handler: %s", file_handler.baseFilename)
            file_handler.setFormatter(logging.Formatter(fmt))
            sync_logger.addHandler(file_handler)
        else:
            file_handler.close()
