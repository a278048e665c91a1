"""
Logging setup using Loguru.
"""

import sys
from pathlib import Path
from typing import Union

from loguru import logger

LOG_FORMAT = "{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{line} | {message}"


def setup_loguru(
    log_file: Path,
    level: str = "INFO",
    rotation: Union[str, int] = "10 MB",
    retention: int = 5,
    console_output: bool = False,
) -> None:
    """
    Configure loguru with a rotating file sink and optional stderr output.

    Args:
        log_file: Path to log file
        level: Minimum level for logging (DEBUG, INFO, WARNING, ERROR)
        rotation: Size or interval at which the file rotates
        retention: Number of rotated files to keep
        console_output: Whether to also log to stderr
    """
    # Remove default handler
    logger.remove()

    log_file.parent.mkdir(parents=True, exist_ok=True)
    logger.add(
        log_file,
        rotation=rotation,
        retention=retention,
        level=level.upper(),
        format=LOG_FORMAT,
        enqueue=False,  # Synchronous writes (thread-safe but blocking)
    )

    if console_output:
        logger.add(sys.stderr, level=level.upper(), format="{level}: {message}")

    logger.info(f"Loguru initialized: {log_file} (level={level})")
