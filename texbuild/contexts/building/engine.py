"""
External process invocation for the build pipeline.

Runs the TeX engine (source -> .log + .dvi) and the DVI converter
(.dvi -> .pdf) as blocking subprocesses, and parses engine transcripts.
"""

import os
import re
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

from dotenv import load_dotenv

from texbuild.contexts.building.config import FINAL_EXT, INTERMEDIATE_EXT, TRANSCRIPT_EXT
from texbuild.contexts.building.exceptions import CompilationError, ConversionError

load_dotenv()

# Job name the engine writes its outputs under (TeX's own default for piped input)
JOB_NAME = "texput"

# Closes a source that has no end command of its own; never reached otherwise
CLOSING_COMMAND = r"\bye"


@dataclass(frozen=True)
class EngineSettings:
    """
    Executables and limits for the external processes.

    Attributes:
        engine: TeX engine executable (must emit DVI)
        converter: DVI-to-PDF converter executable (dvipdfmx-compatible CLI)
        timeout: Seconds to wait for each subprocess (None = wait forever)
    """

    engine: str = "tex"
    converter: str = "dvipdfmx"
    timeout: Optional[float] = None

    @classmethod
    def from_env(cls) -> "EngineSettings":
        """
        Read TEX_ENGINE, DVI_CONVERTER and TEX_BUILD_TIMEOUT.

        Raises:
            ValueError: If TEX_BUILD_TIMEOUT is set but is not a positive number
        """
        raw_timeout = os.getenv("TEX_BUILD_TIMEOUT", "").strip()
        timeout = None
        if raw_timeout:
            try:
                timeout = float(raw_timeout)
            except ValueError:
                raise ValueError(
                    f"TEX_BUILD_TIMEOUT must be a number of seconds, got {raw_timeout!r}"
                ) from None
            if timeout <= 0:
                raise ValueError(f"TEX_BUILD_TIMEOUT must be positive, got {raw_timeout!r}")

        return cls(
            engine=os.getenv("TEX_ENGINE") or cls.engine,
            converter=os.getenv("DVI_CONVERTER") or cls.converter,
            timeout=timeout,
        )


@dataclass
class ProcessRun:
    """Captured outcome of one subprocess."""

    args: List[str]
    returncode: int
    stdout: str = ""
    stderr: str = ""


def job_file(work_dir: Path, extension: str) -> Path:
    """Path of an engine output file inside work_dir."""
    return work_dir / f"{JOB_NAME}{extension}"


def engine_command(settings: EngineSettings, source_file: Path) -> List[str]:
    # First line handed to TeX: \input the source, then close the job
    first_line = f'\\input "{source_file}" {CLOSING_COMMAND}'
    return [
        settings.engine,
        "-interaction=batchmode",
        "-halt-on-error",
        f"-jobname={JOB_NAME}",
        first_line,
    ]


def converter_command(settings: EngineSettings, work_dir: Path) -> List[str]:
    return [
        settings.converter,
        "-o",
        str(job_file(work_dir, FINAL_EXT)),
        str(job_file(work_dir, INTERMEDIATE_EXT)),
    ]


def _run(
    args: List[str], work_dir: Path, timeout: Optional[float], env: Optional[dict] = None
) -> ProcessRun:
    result = subprocess.run(
        args,
        cwd=work_dir,
        env=env,
        capture_output=True,
        text=True,
        encoding="utf-8",
        errors="replace",  # Replace invalid UTF-8 bytes instead of crashing
        timeout=timeout,
    )
    return ProcessRun(
        args=args, returncode=result.returncode, stdout=result.stdout, stderr=result.stderr
    )


def search_path_env(search_dir: Path) -> dict:
    """Environment with search_dir prepended to TEXINPUTS (trailing separator keeps the defaults)."""
    existing = os.environ.get("TEXINPUTS", "")
    return {**os.environ, "TEXINPUTS": os.pathsep.join([str(search_dir), existing])}


def run_engine(
    settings: EngineSettings,
    source_file: Path,
    work_dir: Path,
    search_dir: Optional[Path] = None,
) -> ProcessRun:
    """
    Typeset source_file in work_dir.

    Files the source \\inputs by relative name are looked up in search_dir
    (via TEXINPUTS) before the engine's default tree.

    The engine leaves texput.log (always) and texput.dvi (on success) in
    work_dir. The exit status is returned but not judged here; callers
    decide success by the presence of the DVI file.

    Raises:
        CompilationError: If the engine cannot be started or times out
    """
    args = engine_command(settings, source_file)
    try:
        env = search_path_env(search_dir) if search_dir is not None else None
        return _run(args, work_dir, settings.timeout, env=env)
    except FileNotFoundError as e:
        raise CompilationError(f"TeX engine not found: {settings.engine}", details=str(e))
    except subprocess.TimeoutExpired:
        raise CompilationError(f"TeX engine timed out after {settings.timeout}s")


def run_converter(settings: EngineSettings, work_dir: Path) -> ProcessRun:
    """
    Convert texput.dvi to texput.pdf in work_dir.

    Raises:
        ConversionError: If the converter cannot be started, times out,
            exits non-zero, or leaves no PDF behind
    """
    args = converter_command(settings, work_dir)
    try:
        run = _run(args, work_dir, settings.timeout)
    except FileNotFoundError as e:
        raise ConversionError(f"DVI converter not found: {settings.converter}", details=str(e))
    except subprocess.TimeoutExpired:
        raise ConversionError(f"DVI converter timed out after {settings.timeout}s")

    if run.returncode != 0:
        raise ConversionError(
            f"{settings.converter} exited with status {run.returncode}",
            details=run.stderr or run.stdout,
        )
    if not job_file(work_dir, FINAL_EXT).exists():
        raise ConversionError("PDF file was not generated", details=run.stderr or run.stdout)

    return run


def parse_transcript(log_content: str) -> tuple[List[str], List[str]]:
    """
    Parse a TeX transcript for errors and warnings.

    Args:
        log_content: Content of the .log file

    Returns:
        Tuple of (errors, warnings)
    """
    errors = []
    warnings = []

    # TeX error pattern: "! Error message"
    error_pattern = re.compile(r"^! (.+)$", re.MULTILINE)
    for match in error_pattern.finditer(log_content):
        errors.append(match.group(1).strip())

    # Fatal conditions sometimes reported without the "!" marker
    additional_error_patterns = [
        r"Undefined control sequence",
        r"File ended while scanning use of",
        r"Emergency stop",
        r"job aborted",
    ]
    for pattern in additional_error_patterns:
        match = re.search(rf"({pattern}.*?)$", log_content, re.MULTILINE)
        if match and not any(pattern in err for err in errors):
            errors.append(match.group(1).strip())

    warning_patterns = [
        r"LaTeX Warning: (.+)",
        r"Package \w+ Warning: (.+)",
        r"(Overfull \\[hv]box \(.+\).*)",
        r"(Underfull \\[hv]box \(.+\).*)",
    ]
    for pattern in warning_patterns:
        compiled = re.compile(pattern, re.MULTILINE)
        for match in compiled.finditer(log_content):
            warnings.append(match.group(1).strip())

    return errors, warnings


def read_transcript(work_dir: Path) -> Optional[str]:
    """Return the engine transcript text, or None if the engine wrote none."""
    log_file = job_file(work_dir, TRANSCRIPT_EXT)
    if not log_file.exists():
        return None
    # TeX writes transcripts byte-for-byte; latin-1 never fails to decode
    return log_file.read_text(encoding="latin-1")
