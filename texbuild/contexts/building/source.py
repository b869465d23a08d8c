"""
TeX source units.

A SourceUnit is either inline TeX text or a reference to a .tex file on disk.
Both kinds are materialized into a file the engine can \\input.
"""

from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Optional, Union

# Name of the working file that inline text is staged into
STAGED_SOURCE_NAME = "source.tex"


class SourceKind(str, Enum):
    INLINE_TEXT = "inline_text"
    FILE_REFERENCE = "file_reference"


@dataclass(frozen=True)
class SourceUnit:
    """
    Immutable holder of TeX source.

    Use the constructors rather than instantiating directly:

        SourceUnit.from_text("Hello World")
        SourceUnit.from_file("paper.tex")

    A None payload is accepted here; TeXBuilder rejects it at build time.

    Attributes:
        kind: Which of the two payloads is meaningful
        text: TeX source (INLINE_TEXT only)
        path: Path to a .tex file (FILE_REFERENCE only)
    """

    kind: SourceKind
    text: Optional[str] = None
    path: Optional[Path] = None

    @classmethod
    def from_text(cls, text: Optional[str]) -> "SourceUnit":
        return cls(kind=SourceKind.INLINE_TEXT, text=text)

    @classmethod
    def from_file(cls, path: Optional[Union[str, Path]]) -> "SourceUnit":
        # Path("") collapses to Path("."), so both spellings of "no path" map to None
        if path is None or str(path) in ("", "."):
            return cls(kind=SourceKind.FILE_REFERENCE, path=None)
        return cls(kind=SourceKind.FILE_REFERENCE, path=Path(path))

    @property
    def payload(self) -> Optional[Union[str, Path]]:
        if self.kind is SourceKind.INLINE_TEXT:
            return self.text
        return self.path

    @property
    def is_empty(self) -> bool:
        """True when there is nothing to typeset (None or empty payload)."""
        payload = self.payload
        return payload is None or str(payload) == ""

    def materialize(self, scratch_dir: Path) -> Path:
        """
        Return a file path the engine can read.

        Inline text is written to a fresh file inside scratch_dir. File
        references are returned as absolute paths without an existence check;
        a missing file is reported by the engine run.

        Raises:
            OSError: If inline text cannot be written
            UnicodeEncodeError: If inline text is not encodable as UTF-8
        """
        if self.kind is SourceKind.INLINE_TEXT:
            staged = scratch_dir / STAGED_SOURCE_NAME
            staged.write_text(self.text, encoding="utf-8")
            return staged

        return Path(self.path).expanduser().absolute()
