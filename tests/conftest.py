"""
Shared fixtures for texbuild tests.

Unit tests swap subprocess.run for a fake engine/converter pair that mimics
what tex and dvipdfmx leave on disk. Integration tests run the real tools.
"""

import functools
import os
import re
import shutil
import subprocess
from dataclasses import dataclass
from pathlib import Path

import pytest

from tests.samples import UNDEFINED_COMMAND
from texbuild.contexts.building import EngineSettings

FAKE_ENGINE = "fake-tex"
FAKE_CONVERTER = "fake-dvipdfmx"

INPUT_PATTERN = re.compile(r'\\input "(?P<path>.+)"')
# \input chapter or \input{chapter} inside a source
NESTED_INPUT_PATTERN = re.compile(r"\\input\s*\{?(?P<name>[^\s{}\"]+)\}?")


@dataclass(frozen=True)
class OutputDirectories:
    """Directories shared by a test session."""

    temporary: Path  # emptied by the tests that use it
    persistent: Path  # keeps artifacts for manual inspection


@functools.lru_cache(maxsize=None)
def prepare_output_directories(root: Path) -> OutputDirectories:
    """
    Create empty temporary/ and persistent/ directories under root.

    Runs once per root; later calls return the directories already prepared
    without touching their contents.
    """
    dirs = OutputDirectories(temporary=root / "temp", persistent=root / "actual")
    for directory in (dirs.temporary, dirs.persistent):
        if directory.exists():
            shutil.rmtree(directory)
        directory.mkdir(parents=True)
    return dirs


@pytest.fixture(scope="session")
def output_dirs(tmp_path_factory) -> OutputDirectories:
    """Session output directories; TEXBUILD_TEST_OUTPUT pins them to a fixed root."""
    root = os.getenv("TEXBUILD_TEST_OUTPUT")
    root = Path(root).resolve() if root else tmp_path_factory.mktemp("texbuild")
    return prepare_output_directories(root)


def _completed(args, returncode, stdout="", stderr=""):
    return subprocess.CompletedProcess(args, returncode, stdout=stdout, stderr=stderr)


def _find_input(name: str, work_dir: Path, env) -> bool:
    """Look name up in work_dir, then each TEXINPUTS entry, as tex does."""
    search_path = (env or os.environ).get("TEXINPUTS", "")
    candidates = [work_dir] + [Path(entry) for entry in search_path.split(os.pathsep) if entry]
    for directory in candidates:
        if (directory / name).exists() or (directory / f"{name}.tex").exists():
            return True
    return False


def _fake_engine(args, work_dir: Path, env=None):
    match = INPUT_PATTERN.search(args[-1])
    source_file = Path(match.group("path"))
    log_file = work_dir / "texput.log"

    if not source_file.exists():
        log_file.write_text(
            f"! I can't find file `{source_file}'.\n"
            "*** (job aborted, file error in nonstop mode)\n",
            encoding="latin-1",
        )
        return _completed(args, 1, stdout="")

    content = source_file.read_text(encoding="utf-8")
    for nested in NESTED_INPUT_PATTERN.finditer(content):
        if not _find_input(nested.group("name"), work_dir, env):
            log_file.write_text(
                f"! I can't find file `{nested.group('name')}'.\n"
                "*** (job aborted, file error in nonstop mode)\n",
                encoding="latin-1",
            )
            return _completed(args, 1)

    if UNDEFINED_COMMAND in content:
        log_file.write_text(
            "This is TeX (fake)\n"
            "! Undefined control sequence.\n"
            f"l.1 Some valid TeX followed by an invalid command ( {UNDEFINED_COMMAND}\n"
            "No pages of output.\n",
            encoding="latin-1",
        )
        return _completed(args, 1)

    log_file.write_text(
        "This is TeX (fake)\n"
        "Overfull \\hbox (15.0pt too wide) in paragraph at lines 1--1\n"
        "Output written on texput.dvi (1 page, 228 bytes).\n",
        encoding="latin-1",
    )
    (work_dir / "texput.dvi").write_bytes(b"\xf7\x02fake dvi")
    return _completed(args, 0)


def _fake_converter(args, work_dir: Path):
    pdf_file, dvi_file = Path(args[2]), Path(args[3])
    if not dvi_file.exists():
        return _completed(args, 1, stderr="dvipdfmx:fatal: Could not open specified DVI file")
    pdf_file.write_bytes(b"%PDF-1.4\nfake pdf\n")
    return _completed(args, 0)


@pytest.fixture
def fake_settings() -> EngineSettings:
    return EngineSettings(engine=FAKE_ENGINE, converter=FAKE_CONVERTER)


@pytest.fixture
def fake_tools(monkeypatch):
    """
    Replace subprocess.run with the fake engine and converter.

    Returns the list of argument vectors the fakes were called with.
    """
    calls = []

    def fake_run(args, cwd=None, env=None, **kwargs):
        calls.append(list(args))
        if args[0] == FAKE_ENGINE:
            return _fake_engine(args, Path(cwd), env)
        if args[0] == FAKE_CONVERTER:
            return _fake_converter(args, Path(cwd))
        raise FileNotFoundError(2, "No such file or directory", args[0])

    monkeypatch.setattr("texbuild.contexts.building.engine.subprocess.run", fake_run)
    return calls


@pytest.fixture
def broken_converter(monkeypatch, fake_tools):
    """Fake tools whose converter always fails without writing a PDF."""
    original_run = subprocess.run

    def failing_run(args, cwd=None, **kwargs):
        if args[0] == FAKE_CONVERTER:
            fake_tools.append(list(args))
            return _completed(args, 1, stderr="dvipdfmx:fatal: broken")
        return original_run(args, cwd=cwd, **kwargs)

    monkeypatch.setattr("texbuild.contexts.building.engine.subprocess.run", failing_run)
    return fake_tools
