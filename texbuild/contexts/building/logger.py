"""
Building context logger.

Thin loguru wrappers that prefix every message with [build]. Building modules
import from here rather than from loguru directly.
"""

from pathlib import Path
from typing import Optional

from loguru import logger

from texbuild.utils.logger import setup_logger as _setup_logger

CONTEXT_PREFIX = "[build]"


def setup_building_logger(
    log_dir: Optional[Path] = None, verbose: bool = False, engine: Optional[str] = None
) -> Optional[Path]:
    """Configure sinks for the building context (see utils.logger.setup_logger)."""
    return _setup_logger(
        context_name="build",
        log_dir=log_dir,
        verbose=verbose,
        extra_provenance={"TeX engine": engine} if engine else None,
    )


def _log_info(message: str) -> None:
    logger.info(f"{CONTEXT_PREFIX} {message}")


def _log_success(message: str) -> None:
    logger.success(f"{CONTEXT_PREFIX} {message}")


def _log_error(message: str) -> None:
    logger.error(f"{CONTEXT_PREFIX} {message}")


def _log_warning(message: str) -> None:
    logger.warning(f"{CONTEXT_PREFIX} {message}")


def _log_debug(message: str) -> None:
    logger.debug(f"{CONTEXT_PREFIX} {message}")


def log_build_start(source, output_name: str, output_directory: Path) -> None:
    """Log start of a build with its source and destination."""
    _log_info(f"Starting build: {output_name}")
    _log_debug(f"  Source: {source.kind.value} ({_describe_payload(source)})")
    _log_debug(f"  Output directory: {output_directory}")


def log_build_result(
    output_name: str,
    result,  # BuildResult
    verbose: bool = False,
) -> None:
    """
    Log a build result with diagnostics.

    Args:
        output_name: Effective artifact base name
        result: BuildResult from TeXBuilder.build_result()
        verbose: Show more errors and warnings
    """
    if result.success:
        _log_success(
            f"{output_name}: build succeeded, {len(result.warnings)} warnings "
            f"({result.elapsed_s:.2f}s)"
        )
        for role, path in result.artifacts.items():
            _log_debug(f"  {role}: {path}")
    else:
        kind = result.error_kind.value if result.error_kind else "unknown"
        _log_error(f"{output_name}: build failed [{kind}] ({result.elapsed_s:.2f}s)")
        error_limit = 10 if verbose else 5
        for i, err in enumerate(result.errors[:error_limit], 1):
            _log_error(f"  Error {i}: {err}")
        if len(result.errors) > error_limit:
            _log_error(f"  ... and {len(result.errors) - error_limit} more errors")

    if result.warnings:
        warning_limit = 10 if verbose else 3
        for i, warn in enumerate(result.warnings[:warning_limit], 1):
            _log_debug(f"  Warning {i}: {warn}")
        if len(result.warnings) > warning_limit:
            _log_debug(f"  ... and {len(result.warnings) - warning_limit} more warnings")

    # Raw engine output bypasses the format template to keep its line structure
    if verbose or not result.success:
        if result.stdout:
            logger.opt(raw=True).debug(f"\n{'=' * 80}\nENGINE STDOUT:\n{'=' * 80}\n{result.stdout}\n")
        if result.stderr:
            logger.opt(raw=True).debug(f"\n{'=' * 80}\nENGINE STDERR:\n{'=' * 80}\n{result.stderr}\n")


def _describe_payload(source) -> str:
    payload = source.payload
    if isinstance(payload, str) and len(payload) > 40:
        return f"{len(payload)} chars"
    return str(payload)
