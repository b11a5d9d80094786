"""Logger setup for the DMS client: console always, rotating file on request."""

import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional, Union

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
ISO_8601 = "%Y-%m-%dT%H:%M:%S%z"


def _resolve_level(level: Union[int, str]) -> int:
    if isinstance(level, int):
        return level
    resolved = logging.getLevelName(level.upper())
    if not isinstance(resolved, int):
        raise ValueError(f"Unknown log level: {level}")
    return resolved


def setup_logger(
    name: str = "dmsclient",
    log_file: Optional[str] = None,
    max_bytes: int = 10 * 1024 * 1024,  # 10MB
    backup_count: int = 3,
    level: Union[int, str] = logging.INFO,
) -> logging.Logger:
    """Attach console (and optionally rotating file) handlers to a logger.

    Child loggers (dmsclient.catalog, dmsclient.download, ...) propagate
    here, so configuring the package root once covers the whole client.
    Calling again only adjusts the level.

    Args:
        name: Logger name
        log_file: Rotating log file, parent directories created; None for console only
        max_bytes: Max file size before rotation
        backup_count: Number of rotated files to keep
        level: Level as int or name ("DEBUG", "info", ...)

    Returns:
        Configured logger instance

    Raises:
        ValueError: If level is an unknown name
    """
    logger = logging.getLogger(name)
    logger.setLevel(_resolve_level(level))
    if logger.handlers:
        return logger

    handlers: list[logging.Handler] = [logging.StreamHandler()]
    if log_file:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        handlers.append(
            RotatingFileHandler(
                log_file,
                maxBytes=max_bytes,
                backupCount=backup_count,
                encoding="utf-8",
            )
        )

    formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt=ISO_8601)
    for handler in handlers:
        handler.setLevel(logger.level)
        handler.setFormatter(formatter)
        logger.addHandler(handler)

    return logger
