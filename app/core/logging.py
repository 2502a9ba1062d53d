import logging
import logging.handlers
from pathlib import Path
from typing import Optional

from .config import settings


def setup_logging() -> logging.Logger:
    """
    Configure the application logger.

    Console output is always enabled; a rotating file handler is added
    when LOG_FILE is set.

    Returns:
        logging.Logger: Configured application logger
    """
    level = getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO)

    logger = logging.getLogger(settings.APP_NAME)
    logger.setLevel(level)

    # Remove existing handlers to avoid duplicates on reload
    logger.handlers.clear()

    formatter = logging.Formatter(
        fmt=settings.LOG_FORMAT,
        datefmt="%Y-%m-%d %H:%M:%S"
    )

    console_handler = logging.StreamHandler()
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    if settings.LOG_FILE:
        try:
            Path(settings.LOG_FILE).parent.mkdir(parents=True, exist_ok=True)
            file_handler = logging.handlers.RotatingFileHandler(
                filename=settings.LOG_FILE,
                maxBytes=10 * 1024 * 1024,  # 10MB
                backupCount=5,
                encoding="utf-8"
            )
            file_handler.setLevel(level)
            file_handler.setFormatter(formatter)
            logger.addHandler(file_handler)
        except OSError as e:
            logger.warning(f"Failed to setup file logging: {e}")

    logger.propagate = False

    return logger


logger = setup_logging()


def get_logger(module_name: Optional[str] = None) -> logging.Logger:
    """
    Get a child of the application logger.

    Args:
        module_name: Name of the module (typically __name__)

    Returns:
        logging.Logger: Logger instance for the module
    """
    if module_name:
        return logging.getLogger(f"{settings.APP_NAME}.{module_name}")
    return logger


def log_startup_info():
    """Log application startup information"""
    logger.info("=" * 60)
    logger.info(f"Starting {settings.APP_NAME} v{settings.APP_VERSION}")
    logger.info(f"Debug Mode: {settings.DEBUG}")
    logger.info(f"LLM Model: {settings.LLM_MODEL_NAME}")
    logger.info(f"Stream Mode: {settings.STREAM_MODE}")
    logger.info(
        f"Retrieval: {'on' if settings.RETRIEVAL_ENABLED else 'off'} "
        f"({settings.RETRIEVAL_MODE}, rag={settings.AUTORAG_NAME})"
    )
    logger.info(f"Log Level: {settings.LOG_LEVEL}")
    logger.info("=" * 60)


def log_shutdown_info():
    """Log application shutdown information"""
    logger.info("=" * 60)
    logger.info(f"Shutting down {settings.APP_NAME}")
    logger.info("=" * 60)
