"""Exceptions raised inside the build pipeline, one per failure kind."""

from enum import Enum
from typing import Optional


class BuildErrorKind(str, Enum):
    """Failure kinds reported on a BuildResult."""

    INVALID_INPUT = "invalid_input"
    STAGING = "staging"
    COMPILATION = "compilation"
    CONVERSION = "conversion"
    FILESYSTEM = "filesystem"


class BuildError(Exception):
    """
    Base class for expected build failures.

    These never escape TeXBuilder.build(); they are folded into the returned
    BuildResult so callers only see a success flag and diagnostics.

    Attributes:
        message: Error description
        details: Extra diagnostic text (e.g., engine stderr or an OS error)
        kind: Failure kind reported on the BuildResult
    """

    kind: BuildErrorKind

    def __init__(self, message: str, details: Optional[str] = None):
        self.message = message
        self.details = details

        parts = [message]
        if details:
            # Truncate details if too long
            snippet = details[:200] + "..." if len(details) > 200 else details
            parts.append(f"\nDetails: {snippet}")

        super().__init__("\n".join(parts))


class InvalidInputError(BuildError):
    """Source is missing, or carries no text/path."""

    kind = BuildErrorKind.INVALID_INPUT


class StagingError(BuildError):
    """Inline text could not be written, or the referenced file is unreadable."""

    kind = BuildErrorKind.STAGING


class CompilationError(BuildError):
    """The engine ran but left no intermediate (DVI) file behind."""

    kind = BuildErrorKind.COMPILATION


class ConversionError(BuildError):
    """DVI-to-PDF conversion failed after a successful typesetting pass."""

    kind = BuildErrorKind.CONVERSION


class BuildFilesystemError(BuildError):
    """Output directory unusable, or an artifact move/delete failed."""

    kind = BuildErrorKind.FILESYSTEM
