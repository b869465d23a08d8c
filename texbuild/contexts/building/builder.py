"""
TeX Build Module

Builds a document from a SourceUnit by running an external TeX engine once,
optionally converting its DVI output to PDF, and then renaming, moving or
deleting the resulting artifacts according to a BuildConfiguration.

Each build call is self-contained: source is staged and the engine runs inside
a fresh scratch directory, and only requested artifacts reach the configured
output directory.
"""

import os
import shutil
import tempfile
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional

from texbuild.contexts.building.config import (
    FINAL_EXT,
    INTERMEDIATE_EXT,
    TRANSCRIPT_EXT,
    BuildConfiguration,
)
from texbuild.contexts.building.engine import (
    EngineSettings,
    job_file,
    parse_transcript,
    read_transcript,
    run_converter,
    run_engine,
)
from texbuild.contexts.building.exceptions import (
    BuildError,
    BuildErrorKind,
    BuildFilesystemError,
    CompilationError,
    InvalidInputError,
    StagingError,
)
from texbuild.contexts.building.logger import (
    _log_debug,
    _log_warning,
    log_build_result,
    log_build_start,
)
from texbuild.contexts.building.source import SourceKind, SourceUnit
from texbuild.utils.pdf_processing import page_count

SCRATCH_PREFIX = "texbuild_"


@dataclass
class BuildResult:
    """
    Result of a single build call.

    Attributes:
        success: Whether typesetting (and conversion, when requested) succeeded
        error_kind: Failure kind (None on success)
        errors: Error messages from the pipeline and the engine transcript
        warnings: Warnings parsed from the engine transcript
        artifacts: Final locations of kept artifacts, keyed by
            "transcript", "intermediate" and "final"
        stdout: Standard output from the engine
        stderr: Standard error from the engine
        page_count: Number of pages in the final PDF (None if not produced)
        elapsed_s: Wall-clock duration of the build
    """

    success: bool
    error_kind: Optional[BuildErrorKind] = None
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    artifacts: Dict[str, Path] = field(default_factory=dict)
    stdout: str = ""
    stderr: str = ""
    page_count: Optional[int] = None
    elapsed_s: float = 0.0

    def __bool__(self) -> bool:
        return self.success


class TeXBuilder:
    """
    Builds TeX source into log/DVI/PDF artifacts.

    The builder holds only its configuration and engine settings, so one
    instance can be reused for any number of sequential builds. Concurrent
    builds must target distinct output names or directories.

    Example:
        >>> config = BuildConfiguration(produce_final=True, output_directory="outs")
        >>> builder = TeXBuilder(config)
        >>> builder.build(SourceUnit.from_text(r"Hello World"))
        True
    """

    def __init__(self, config: BuildConfiguration, settings: Optional[EngineSettings] = None):
        self.config = config
        self.settings = settings if settings is not None else EngineSettings.from_env()

    def build(self, source: Optional[SourceUnit]) -> bool:
        """Build source and report only whether it succeeded."""
        return self.build_result(source).success

    def build_result(self, source: Optional[SourceUnit], verbose: bool = False) -> BuildResult:
        """
        Build source and return full diagnostics.

        Expected failures (invalid input, engine or converter failure,
        filesystem errors) are reported on the result, never raised.

        Args:
            source: Source to build; None or an empty payload fails immediately
            verbose: Log more diagnostics

        Returns:
            BuildResult with success status and diagnostic information
        """
        start_time = time.time()
        result = BuildResult(success=False)

        # Invalid input leaves no trace on disk
        try:
            self._validate(source)
        except InvalidInputError as e:
            self._record_failure(result, e)
            result.elapsed_s = time.time() - start_time
            log_build_result(self.config.output_name, result, verbose=verbose)
            return result

        log_build_start(source, self.config.output_name, self.config.output_directory)

        failure: Optional[BuildError] = None
        try:
            self._check_output_directory()
            self._clear_stale_artifacts()
            scratch_dir = tempfile.TemporaryDirectory(prefix=SCRATCH_PREFIX)
        except BuildError as e:
            failure = e
        except OSError as e:
            failure = StagingError("Cannot create scratch directory", details=str(e))
        else:
            with scratch_dir as scratch:
                failure = self._run_pipeline(source, Path(scratch), result)

        if failure is None:
            result.success = True
            final = result.artifacts.get("final")
            if final is not None:
                result.page_count = page_count(final)
        else:
            self._record_failure(result, failure)

        result.elapsed_s = time.time() - start_time
        log_build_result(self.config.output_name, result, verbose=verbose)
        return result

    def _run_pipeline(
        self, source: SourceUnit, scratch: Path, result: BuildResult
    ) -> Optional[BuildError]:
        """Stage, typeset, convert, then finalize; return the first failure."""
        failure: Optional[BuildError] = None
        converted = False

        try:
            source_file = self._stage(source, scratch)
            self._typeset(source, source_file, scratch, result)
            if self.config.produce_final:
                self._convert(scratch)
                converted = True
        except BuildError as e:
            failure = e

        # Finalization runs exactly once, whatever happened above
        try:
            self._finalize(scratch, result, converted)
        except BuildFilesystemError as e:
            failure = failure or e

        return failure

    def _validate(self, source: Optional[SourceUnit]) -> None:
        if source is None:
            raise InvalidInputError("No source given")
        if not isinstance(source, SourceUnit):
            raise InvalidInputError(f"Expected a SourceUnit, got {type(source).__name__}")
        if source.is_empty:
            raise InvalidInputError(f"Source has no content ({source.kind.value})")

    def _check_output_directory(self) -> None:
        output_directory = self.config.output_directory
        if not output_directory.is_dir():
            raise BuildFilesystemError(f"Output directory not found: {output_directory}")
        if not os.access(output_directory, os.W_OK | os.X_OK):
            raise BuildFilesystemError(f"Output directory not writable: {output_directory}")

    def _clear_stale_artifacts(self) -> None:
        # Leftovers from an earlier build would make this build's outcome ambiguous
        for stale in self._destinations().values():
            if stale.exists():
                try:
                    stale.unlink()
                except OSError as e:
                    raise BuildFilesystemError(f"Cannot remove stale artifact: {stale}", str(e))
                _log_debug(f"Removed stale artifact: {stale}")

    def _stage(self, source: SourceUnit, scratch: Path) -> Path:
        try:
            source_file = source.materialize(scratch)
        # UnicodeError: inline text the target encoding cannot represent
        except (OSError, UnicodeError) as e:
            raise StagingError("Failed to write TeX source to working file", details=str(e))
        _log_debug(f"Staged source: {source_file}")
        return source_file

    def _typeset(
        self, source: SourceUnit, source_file: Path, scratch: Path, result: BuildResult
    ) -> None:
        # Relative \\input resolves against the referenced file's directory,
        # or the caller's working directory for inline text
        if source.kind is SourceKind.FILE_REFERENCE:
            search_dir = source_file.parent
        else:
            search_dir = Path.cwd()
        run = run_engine(self.settings, source_file, scratch, search_dir=search_dir)
        result.stdout = run.stdout
        result.stderr = run.stderr

        transcript = read_transcript(scratch)
        if transcript is not None:
            errors, warnings = parse_transcript(transcript)
            result.errors.extend(errors)
            result.warnings.extend(warnings)

        # The DVI file is the authoritative success signal; exit codes are not
        if not job_file(scratch, INTERMEDIATE_EXT).exists():
            if source.kind is SourceKind.FILE_REFERENCE and not _is_readable(source_file):
                raise StagingError(f"TeX source not found or unreadable: {source_file}")
            raise CompilationError(
                result.errors[0] if result.errors else "DVI file was not generated"
            )

        if run.returncode != 0:
            _log_warning(
                f"{self.settings.engine} exited with status {run.returncode} "
                "but produced a DVI file"
            )

    def _convert(self, scratch: Path) -> None:
        run = run_converter(self.settings, scratch)
        _log_debug(f"Converted DVI to PDF with {run.args[0]}")

    def _finalize(self, scratch: Path, result: BuildResult, converted: bool) -> None:
        """
        Move requested artifacts to the output directory and drop the rest.

        Raises:
            BuildFilesystemError: If an artifact cannot be moved or removed
        """
        destinations = self._destinations()
        keep = {
            "transcript": self.config.retain_transcript,
            "intermediate": self.config.retain_intermediate,
            "final": self.config.produce_final and converted,
        }
        extensions = {
            "transcript": TRANSCRIPT_EXT,
            "intermediate": INTERMEDIATE_EXT,
            "final": FINAL_EXT,
        }

        for role, extension in extensions.items():
            produced = job_file(scratch, extension)
            if not produced.exists():
                continue
            try:
                if keep[role]:
                    shutil.move(str(produced), str(destinations[role]))
                    result.artifacts[role] = destinations[role]
                else:
                    produced.unlink()
            except OSError as e:
                raise BuildFilesystemError(f"Failed to finalize {role} artifact", str(e))

    def _destinations(self) -> Dict[str, Path]:
        return {
            "transcript": self.config.transcript_path,
            "intermediate": self.config.intermediate_path,
            "final": self.config.final_path,
        }

    @staticmethod
    def _record_failure(result: BuildResult, error: BuildError) -> None:
        result.success = False
        result.error_kind = error.kind
        if error.message not in result.errors:
            result.errors.insert(0, error.message)
        if error.details:
            _log_debug(f"{error.kind.value}: {error.details}")


def _is_readable(path: Path) -> bool:
    return path.is_file() and os.access(path, os.R_OK)
