"""
Logging configuration for the study kit service
"""
import sys

from loguru import logger

from studykit.core.config import settings

# Remove default logger
logger.remove()
logger.configure(extra={"name": "studykit"})

logger.add(
    sys.stdout,
    format="<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | <cyan>{extra[name]}</cyan> - <level>{message}</level>",
    level=settings.log_level,
    colorize=False,
)


def get_logger(name: str):
    """Get a logger instance bound to a module name"""
    return logger.bind(name=name)
