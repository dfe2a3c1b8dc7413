"""Rich, structured console output for emovec.

Usage:
    from emovec.console import logger

    logger.info("Loading model...")
    logger.success("Index built")
    logger.warning("Entry 'joy' failed to embed")
    logger.key_value({"dimension": 1024, "entries": 14000})
"""
from emovec.console.logger import Logger, get_logger

logger = get_logger()

__all__ = ["Logger", "get_logger", "logger"]
