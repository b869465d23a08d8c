"""
Build configuration.

Holds the caller-facing options fixed at TeXBuilder construction: which
artifacts to keep or produce, their base name, and where they go.
"""

from dataclasses import dataclass, fields
from pathlib import Path
from typing import Optional, Union

from omegaconf import OmegaConf

DEFAULT_OUTPUT_NAME = "output"

# Artifact extensions written by the engine and converter
TRANSCRIPT_EXT = ".log"
INTERMEDIATE_EXT = ".dvi"
FINAL_EXT = ".pdf"


@dataclass(frozen=True)
class BuildConfiguration:
    """
    Immutable set of build options, reusable across any number of builds.

    Attributes:
        retain_transcript: Keep the engine's .log as <name>.log
        retain_intermediate: Keep the .dvi as <name>.dvi
        produce_final: Convert the .dvi to <name>.pdf
        output_base_name: Base name for artifacts (None/"" = DEFAULT_OUTPUT_NAME)
        output_directory: Existing, writable directory receiving the artifacts
    """

    retain_transcript: bool = False
    retain_intermediate: bool = False
    produce_final: bool = False
    output_base_name: Optional[str] = None
    output_directory: Path = Path(".")

    def __post_init__(self):
        if self.output_directory is None:
            raise ValueError("output_directory must not be None")
        # Frozen dataclass: bypass __setattr__ to coerce str -> Path
        object.__setattr__(self, "output_directory", Path(self.output_directory))

    @property
    def output_name(self) -> str:
        return self.output_base_name or DEFAULT_OUTPUT_NAME

    def output_path(self, extension: str) -> Path:
        """Destination path for the artifact with the given extension."""
        return self.output_directory / f"{self.output_name}{extension}"

    @property
    def transcript_path(self) -> Path:
        return self.output_path(TRANSCRIPT_EXT)

    @property
    def intermediate_path(self) -> Path:
        return self.output_path(INTERMEDIATE_EXT)

    @property
    def final_path(self) -> Path:
        return self.output_path(FINAL_EXT)

    @classmethod
    def from_yaml(cls, yaml_path: Union[str, Path]) -> "BuildConfiguration":
        """
        Load a configuration from YAML.

        Example file:
            retain_transcript: true
            produce_final: true
            output_base_name: paper
            output_directory: outs/build

        Raises:
            ValueError: If the file contains keys that are not build options
        """
        yaml_data = OmegaConf.load(yaml_path)
        options = OmegaConf.to_container(yaml_data, resolve=True) or {}
        if not isinstance(options, dict):
            raise ValueError(f"Expected a mapping of build options in {yaml_path}")

        known = {f.name for f in fields(cls)}
        unknown = sorted(set(options) - known)
        if unknown:
            raise ValueError(f"Unknown build options in {yaml_path}: {', '.join(unknown)}")

        return cls(**options)
