"""
Generic loguru setup shared by all contexts.

Context-specific wrappers (message prefixes, high-level helpers) live in
contexts/{context}/logger.py. Library code never calls setup_logger; entry
points such as the CLI do.
"""

import sys
from pathlib import Path
from typing import Optional

from loguru import logger

# Default level colors for console output
LEVEL_COLORS = {
    "WARNING": "<yellow>",
    "ERROR": "<red>",
    "CRITICAL": "<bold><red>",
}


def setup_logger(
    context_name: str,
    log_dir: Optional[Path] = None,
    verbose: bool = False,
    extra_provenance: Optional[dict] = None,
) -> Optional[Path]:
    """
    Configure loguru sinks for a context.

    Adds a colorized stderr sink (INFO, or DEBUG when verbose) and, if log_dir
    is given, a DEBUG file sink at <log_dir>/<context_name>.log. Existing
    sinks are removed first so repeated calls do not duplicate output.

    Args:
        context_name: Context identifier (e.g., "build")
        log_dir: Directory for the session log file (None = console only)
        verbose: Lower the console threshold to DEBUG
        extra_provenance: Additional key-value pairs for the provenance header

    Returns:
        Path to the log file, or None when logging to console only
    """
    logger.remove()

    for level_name, color in LEVEL_COLORS.items():
        logger.level(level_name, color=color)

    logger.add(
        sys.stderr,
        format="{time:HH:mm:ss} | <level>{level: <7}</level> | <level>{message}</level>",
        level="DEBUG" if verbose else "INFO",
        colorize=True,
    )

    log_file = None
    if log_dir is not None:
        log_dir = Path(log_dir)
        log_dir.mkdir(exist_ok=True, parents=True)
        log_file = log_dir / f"{context_name}.log"
        logger.add(
            log_file, format="{time:YYYY-MM-DD HH:mm:ss} | {level: <7} | {message}", level="DEBUG"
        )

    log_provenance(extra_provenance)

    return log_file


def log_provenance(extra_context: Optional[dict] = None) -> None:
    """Log command line, working directory and Python version at DEBUG level."""
    logger.debug("=" * 80)
    logger.debug(f"Command: {' '.join(sys.argv)}")
    logger.debug(f"Working directory: {Path.cwd()}")
    logger.debug(f"Python: {sys.version.split()[0]}")

    if extra_context:
        for key, value in extra_context.items():
            logger.debug(f"{key}: {value}")

    logger.debug("=" * 80)
