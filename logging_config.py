"""
Centralized Logging Configuration
Console output plus a size-rotated log file for the CRM service
"""
import logging
import logging.handlers
from pathlib import Path

# Third-party loggers that are too chatty at INFO
NOISY_LOGGERS = ('werkzeug', 'urllib3', 'sqlalchemy.engine', 'sqlalchemy.pool')


def setup_logging(app):
    """
    Setup application-wide logging with file rotation and console output

    Args:
        app: Flask application instance
    """
    log_level = getattr(logging, app.config['LOG_LEVEL'].upper(), logging.INFO)
    formatter = logging.Formatter(app.config['LOG_FORMAT'])

    log_dir = Path(app.config.get('LOG_DIR', 'logs'))
    log_dir.mkdir(parents=True, exist_ok=True)
    log_path = log_dir / app.config['LOG_FILE']

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    root_logger.handlers = []

    console_handler = logging.StreamHandler()
    console_handler.setLevel(log_level)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    file_handler = logging.handlers.RotatingFileHandler(
        log_path,
        maxBytes=10 * 1024 * 1024,  # 10MB
        backupCount=5,
        encoding='utf-8'
    )
    file_handler.setLevel(log_level)
    file_handler.setFormatter(formatter)
    root_logger.addHandler(file_handler)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    app.logger.info(f"Logging initialized at {logging.getLevelName(log_level)} level")
    app.logger.info(f"Log file: {log_path}")

    return root_logger


def get_logger(name):
    """
    Get a logger instance for a specific module

    Args:
        name: Module name (usually __name__)

    Returns:
        Logger instance
    """
    return logging.getLogger(name)
