"""
Centralized Logging Configuration

Provides consistent logging setup for the Flask app logger with:
- Human-readable format for development
- Structured JSON lines for production
- Optional file rotation
"""

import logging
import logging.handlers
import os
from typing import Optional


TEXT_FORMAT = '%(asctime)s [%(levelname)s] %(name)s: %(message)s'
JSON_FORMAT = '{"time": "%(asctime)s", "level": "%(levelname)s", "module": "%(module)s", "message": "%(message)s"}'


def setup_logging(
    app=None,
    log_level: str = 'INFO',
    log_dir: Optional[str] = None,
    json_format: bool = False
) -> logging.Logger:
    """
    Configure application logging.

    Args:
        app: Flask application instance. Its logger is configured when given,
            otherwise the ``wedding_app`` logger is.
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR)
        log_dir: Directory for a rotating log file. No file handler when None.
        json_format: Use JSON format for structured logging

    Returns:
        Configured logger instance
    """
    level = getattr(logging, str(log_level).upper(), logging.INFO)

    logger = app.logger if app is not None else logging.getLogger('wedding_app')
    logger.setLevel(level)
    logger.handlers.clear()

    formatter = logging.Formatter(JSON_FORMAT if json_format else TEXT_FORMAT, datefmt='%Y-%m-%d %H:%M:%S')

    console_handler = logging.StreamHandler()
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    if log_dir:
        os.makedirs(log_dir, exist_ok=True)
        file_handler = logging.handlers.RotatingFileHandler(
            os.path.join(log_dir, 'wedding_app.log'),
            maxBytes=10 * 1024 * 1024,  # 10 MB
            backupCount=5,
            encoding='utf-8'
        )
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    logger.propagate = False

    if app is not None:
        logging.getLogger('werkzeug').setLevel(logging.WARNING)
        # APScheduler logs every job run at INFO
        logging.getLogger('apscheduler').setLevel(logging.WARNING)

    logger.info(f"Logging initialized: level={log_level}, dir={log_dir or '-'}")
    return logger
