"""Unit tests for the texbuild CLI."""

import sys

import pytest
from loguru import logger
from typer.testing import CliRunner

from tests.samples import INVALID_TEX, SIMPLE_TEX
from texbuild.cli import app

runner = CliRunner()


@pytest.fixture(autouse=True)
def restore_logger():
    """The CLI replaces loguru sinks with ones bound to the runner's streams."""
    yield
    logger.remove()
    logger.add(sys.stderr)


@pytest.fixture
def fake_env(monkeypatch, fake_tools, fake_settings):
    """Point the CLI at the fake engine and converter."""
    monkeypatch.setenv("TEX_ENGINE", fake_settings.engine)
    monkeypatch.setenv("DVI_CONVERTER", fake_settings.converter)
    monkeypatch.delenv("TEX_BUILD_TIMEOUT", raising=False)
    return fake_tools


@pytest.mark.unit
def test_build_text_with_pdf(tmp_path, fake_env):
    """Test --text with --pdf writes only the named PDF."""
    result = runner.invoke(
        app, ["build", "--text", SIMPLE_TEX, "--pdf", "-n", "hello", "-o", str(tmp_path)]
    )

    assert result.exit_code == 0, result.output
    assert "Build succeeded" in result.output
    assert sorted(p.name for p in tmp_path.iterdir()) == ["hello.pdf"]


@pytest.mark.unit
def test_build_file_keeps_log(tmp_path, fake_env):
    """Test building a file with --keep-log writes only the log."""
    tex_file = tmp_path / "paper.tex"
    tex_file.write_text(SIMPLE_TEX)
    out_dir = tmp_path / "out"
    out_dir.mkdir()

    result = runner.invoke(app, ["build", str(tex_file), "--keep-log", "-o", str(out_dir)])

    assert result.exit_code == 0, result.output
    assert sorted(p.name for p in out_dir.iterdir()) == ["output.log"]


@pytest.mark.unit
def test_build_failure_exits_nonzero(tmp_path, fake_env):
    """Test a failed build exits 1 and lists the engine error."""
    result = runner.invoke(app, ["build", "--text", INVALID_TEX, "-p", "-o", str(tmp_path)])

    assert result.exit_code == 1
    assert "Build failed (compilation)" in result.output
    assert "Undefined control sequence." in result.output
    assert list(tmp_path.iterdir()) == []


@pytest.mark.unit
def test_build_with_config_file(tmp_path, fake_env):
    """Test YAML options combine with command-line flags."""
    out_dir = tmp_path / "out"
    out_dir.mkdir()
    config_file = tmp_path / "build.yaml"
    config_file.write_text(
        f"retain_intermediate: true\noutput_base_name: fromyaml\noutput_directory: {out_dir}\n"
    )

    result = runner.invoke(
        app, ["build", "--text", SIMPLE_TEX, "--config", str(config_file), "--pdf"]
    )

    assert result.exit_code == 0, result.output
    assert sorted(p.name for p in out_dir.iterdir()) == ["fromyaml.dvi", "fromyaml.pdf"]


@pytest.mark.unit
def test_build_with_bad_config_file(tmp_path, fake_env):
    """Test unknown YAML options stop the build before the engine runs."""
    config_file = tmp_path / "build.yaml"
    config_file.write_text("keep_everything: true\n")

    result = runner.invoke(app, ["build", "--text", SIMPLE_TEX, "-c", str(config_file)])

    assert result.exit_code == 1
    assert fake_env == []


@pytest.mark.unit
def test_build_writes_session_log(tmp_path, fake_env):
    """Test --log-dir adds a build.log session log."""
    log_dir = tmp_path / "logs"
    out_dir = tmp_path / "out"
    out_dir.mkdir()

    result = runner.invoke(
        app, ["build", "--text", SIMPLE_TEX, "-o", str(out_dir), "--log-dir", str(log_dir)]
    )

    assert result.exit_code == 0, result.output
    assert "[build] Starting build: output" in (log_dir / "build.log").read_text()


@pytest.mark.unit
def test_show_config(fake_env):
    """Test show-config prints the engine settings from the environment."""
    result = runner.invoke(app, ["show-config"])

    assert result.exit_code == 0
    assert "TEX_ENGINE=fake-tex" in result.output
    assert "DVI_CONVERTER=fake-dvipdfmx" in result.output


@pytest.mark.unit
def test_no_command_shows_help():
    """Test running without a command shows help."""
    result = runner.invoke(app, [])

    assert result.exit_code == 0
    assert "build" in result.output


@pytest.mark.unit
@pytest.mark.parametrize("command", [["build", "--text", SIMPLE_TEX], ["show-config"]])
def test_bad_timeout_exits_with_message(command, tmp_path, fake_env, monkeypatch):
    """Test a malformed TEX_BUILD_TIMEOUT is reported instead of raising."""
    monkeypatch.setenv("TEX_BUILD_TIMEOUT", "soon")
    monkeypatch.chdir(tmp_path)

    result = runner.invoke(app, command)

    assert result.exit_code == 1
    assert not isinstance(result.exception, ValueError)
    assert "TEX_BUILD_TIMEOUT" in result.output
    assert fake_env == []
    assert list(tmp_path.iterdir()) == []
