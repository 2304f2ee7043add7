"""Centralized logging configuration."""
import logging
import sys


LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

_logging_configured = False


def setup_logging(level: int | str = logging.INFO, force: bool = False) -> None:
    """
    Configure logging for the application.
    
    Args:
        level: Logging level (int or name such as "DEBUG")
        force: If True, reconfigure even if already configured.
    """
    global _logging_configured
    
    if _logging_configured and not force:
        return
    
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
    
    logging.basicConfig(
        level=level,
        format=LOG_FORMAT,
        datefmt=DATE_FORMAT,
        stream=sys.stdout,
        force=force,
    )
    
    _logging_configured = True


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger instance.
    
    Args:
        name: Logger name (typically __name__)
        
    Returns:
        Logger instance
    """
    if not _logging_configured:
        setup_logging()
    
    return logging.getLogger(name)
