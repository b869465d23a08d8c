"""
TeX Build CLI

Builds a TeX source file (or literal TeX text) into log, DVI and PDF artifacts.

Commands:
    build       - Build one source
    show-config - Show the engine settings in effect

Examples:\n

    texbuild build paper.tex --pdf                     # paper -> output.pdf

    texbuild build paper.tex -p -l -n paper -o outs    # outs/paper.{log,pdf}

    texbuild build --text "Hello World \\bye" --pdf    # Build literal TeX

    texbuild build paper.tex -c build.yaml --verbose   # Options from YAML
"""

from pathlib import Path
from typing import Optional

import typer
from typing_extensions import Annotated

from texbuild.contexts.building import (
    BuildConfiguration,
    EngineSettings,
    SourceUnit,
    TeXBuilder,
)
from texbuild.contexts.building.logger import setup_building_logger

app = typer.Typer(
    help="Build TeX source into log, DVI and PDF artifacts",
    add_completion=False,
    invoke_without_command=True,
)


@app.callback()
def main(ctx: typer.Context):
    """Show help by default when no command is provided."""
    if ctx.invoked_subcommand is None:
        typer.echo(ctx.get_help())
        raise typer.Exit()


def _override(value, fallback):
    return fallback if value is None else value


def _engine_settings() -> EngineSettings:
    try:
        return EngineSettings.from_env()
    except ValueError as e:
        typer.secho(f"Error: {e}\n", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)


@app.command("build")
def build_command(
    source: Annotated[
        str,
        typer.Argument(help="Path to a .tex file, or literal TeX with --text"),
    ],
    text: Annotated[
        bool,
        typer.Option("--text", "-t", help="Treat SOURCE as literal TeX instead of a path"),
    ] = False,
    keep_log: Annotated[
        bool,
        typer.Option("--keep-log", "-l", help="Keep the engine transcript"),
    ] = False,
    keep_dvi: Annotated[
        bool,
        typer.Option("--keep-dvi", "-d", help="Keep the DVI file"),
    ] = False,
    pdf: Annotated[
        bool,
        typer.Option("--pdf", "-p", help="Convert the DVI file to PDF"),
    ] = False,
    name: Annotated[
        Optional[str],
        typer.Option("--name", "-n", help="Base name for output files"),
    ] = None,
    output_dir: Annotated[
        Optional[Path],
        typer.Option("--output-dir", "-o", help="Existing directory for output files"),
    ] = None,
    config_file: Annotated[
        Optional[Path],
        typer.Option("--config", "-c", help="YAML file with build options", exists=True),
    ] = None,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Show engine output and all diagnostics"),
    ] = False,
    log_dir: Annotated[
        Optional[Path],
        typer.Option("--log-dir", help="Also write a build.log session log here"),
    ] = None,
):
    """
    Build a TeX source.

    Flags switch on artifacts in addition to those enabled by --config;
    --name and --output-dir replace the configured values.

    Examples:\n

        $ texbuild build paper.tex --pdf --keep-log

        $ texbuild build --text "Hello World \\bye" -p -n hello
    """
    settings = _engine_settings()
    setup_building_logger(log_dir=log_dir, verbose=verbose, engine=settings.engine)

    try:
        base = BuildConfiguration.from_yaml(config_file) if config_file else BuildConfiguration()
    except ValueError as e:
        typer.secho(f"Error: {e}\n", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)

    config = BuildConfiguration(
        retain_transcript=keep_log or base.retain_transcript,
        retain_intermediate=keep_dvi or base.retain_intermediate,
        produce_final=pdf or base.produce_final,
        output_base_name=_override(name, base.output_base_name),
        output_directory=_override(output_dir, base.output_directory),
    )

    unit = SourceUnit.from_text(source) if text else SourceUnit.from_file(source)
    result = TeXBuilder(config, settings).build_result(unit, verbose=verbose)

    typer.echo("")
    if result.success:
        typer.secho("✓ Build succeeded", fg=typer.colors.GREEN, bold=True)
        typer.echo(f"  Warnings: {len(result.warnings)}")
        for role, path in result.artifacts.items():
            typer.echo(f"  {role}: {path}")
        if result.page_count is not None:
            typer.echo(f"  Pages: {result.page_count}")
    else:
        kind = result.error_kind.value if result.error_kind else "unknown"
        typer.secho(f"✗ Build failed ({kind})", fg=typer.colors.RED, bold=True)
        for error in result.errors[:10]:
            typer.secho(f"  - {error}", fg=typer.colors.RED)
        if len(result.errors) > 10:
            typer.echo(f"  ... and {len(result.errors) - 10} more")
        if "transcript" in result.artifacts:
            typer.echo(f"  Log: {result.artifacts['transcript']}")
    typer.echo("")

    raise typer.Exit(code=0 if result.success else 1)


@app.command("show-config")
def show_config_command():
    """Show the engine settings read from the environment (.env supported)."""
    settings = _engine_settings()
    typer.echo(f"TEX_ENGINE={settings.engine}")
    typer.echo(f"DVI_CONVERTER={settings.converter}")
    typer.echo(f"TEX_BUILD_TIMEOUT={settings.timeout if settings.timeout is not None else ''}")


if __name__ == "__main__":
    app()
