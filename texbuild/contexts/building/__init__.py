"""
Building Context

Responsibilities:
- Accepts TeX source as inline text or a file reference
- Runs the external TeX engine and, when requested, the DVI-to-PDF converter
- Judges success by the presence of the DVI file
- Renames, moves or deletes the log/DVI/PDF artifacts per BuildConfiguration

Owns: scratch directories, engine invocation, artifact placement
Never: Interprets TeX itself or creates the output directory
"""

from texbuild.contexts.building.builder import BuildResult, TeXBuilder
from texbuild.contexts.building.config import DEFAULT_OUTPUT_NAME, BuildConfiguration
from texbuild.contexts.building.engine import EngineSettings
from texbuild.contexts.building.exceptions import BuildErrorKind
from texbuild.contexts.building.source import SourceKind, SourceUnit

__all__ = [
    "BuildConfiguration",
    "BuildErrorKind",
    "BuildResult",
    "DEFAULT_OUTPUT_NAME",
    "EngineSettings",
    "SourceKind",
    "SourceUnit",
    "TeXBuilder",
]
