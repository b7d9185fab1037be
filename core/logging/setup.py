# core/logging/setup.py
import logging
import logging.config
from typing import Optional

from core.errors import InternalServerError

APP_LOGGER = "shopeasy_orders"


def setup_logging(log_file: Optional[str] = None, level: str = "DEBUG") -> None:
    """Set up logging configuration for the order core.

    Args:
        log_file (Optional[str]): File receiving the application log. Defaults to settings.LOG_FILE.
        level (str): Level applied to the application logger and its handlers.

    Raises:
        InternalServerError: If the configuration is invalid or the log file cannot be opened.
    """
    logger = logging.getLogger(APP_LOGGER)
    if log_file is None:
        from app.config.settings import settings
        log_file = settings.LOG_FILE
    try:
        LOGGING_CONFIG = {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "default": {
                    "format": "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
                },
            },
            "handlers": {
                "file": {
                    "class": "logging.FileHandler",
                    "filename": log_file,
                    "level": level,
                    "formatter": "default",
                },
                "console": {
                    "class": "logging.StreamHandler",
                    "level": level,
                    "formatter": "default",
                },
            },
            "loggers": {
                APP_LOGGER: {
                    "level": level,
                    "handlers": ["file", "console"],
                    "propagate": False,
                },
                "services": {
                    "level": level,
                    "handlers": ["file", "console"],
                    "propagate": False,
                },
                "infrastructure": {
                    "level": level,
                    "handlers": ["file", "console"],
                    "propagate": False,
                },
            },
            "root": {
                "level": "INFO",
                "handlers": ["console"],
            },
        }

        logging.config.dictConfig(LOGGING_CONFIG)
        logger.info("Logging setup completed")

    except ValueError as ve:
        logger.error(f"Invalid config: {str(ve)}", exc_info=True)
        raise InternalServerError(f"Invalid logging configuration: {str(ve)}")
    except FileNotFoundError as fnf:
        logger.error(f"File path error: {str(fnf)}", exc_info=True)
        raise InternalServerError(f"Log file path error: {str(fnf)}")
    except PermissionError as pe:
        logger.error(f"Permission denied: {str(pe)}", exc_info=True)
        raise InternalServerError(f"Permission denied: {str(pe)}")
