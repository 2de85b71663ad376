"""Implementation of the ``htmlsmith render`` command."""

from __future__ import annotations

from pathlib import Path
from typing import Annotated, Any

import click
import typer
import yaml

from htmlsmith.core.config import front_matter_options, load_config, split_front_matter
from htmlsmith.core.exceptions import RenderingError
from htmlsmith.formats import render_html_document

from .._options import (
    OUTPUT_PANEL,
    RENDERING_PANEL,
    DebugOption,
    OutputPathOption,
    VerbosityOption,
)
from ..diagnostics import CliEmitter
from ..state import debug_enabled, emit_error, set_cli_state


def render(
    input_path: Annotated[
        Path,
        typer.Argument(
            metavar="INPUT",
            help="Markdown document to render.",
            exists=True,
            file_okay=True,
            dir_okay=False,
            readable=True,
            resolve_path=True,
        ),
    ],
    output: OutputPathOption = None,
    config_file: Annotated[
        Path | None,
        typer.Option(
            "--config",
            "-c",
            help="YAML file holding html_document options.",
            exists=True,
            dir_okay=False,
            rich_help_panel=RENDERING_PANEL,
        ),
    ] = None,
    self_contained: Annotated[
        bool | None,
        typer.Option(
            "--self-contained/--no-self-contained",
            help="Embed every asset in the output file.",
            rich_help_panel=OUTPUT_PANEL,
        ),
    ] = None,
    lib_dir: Annotated[
        Path | None,
        typer.Option(
            "--lib-dir",
            help="Directory receiving dependency assets (defaults to <name>_files).",
            file_okay=False,
            rich_help_panel=OUTPUT_PANEL,
        ),
    ] = None,
    mathjax: Annotated[
        str | None,
        typer.Option(
            "--mathjax",
            help="MathJax source: 'default', 'local', 'none' or a URL.",
            rich_help_panel=RENDERING_PANEL,
        ),
    ] = None,
    highlight: Annotated[
        str | None,
        typer.Option(
            "--highlight",
            help="Syntax highlighting style, or 'none' to disable.",
            rich_help_panel=RENDERING_PANEL,
        ),
    ] = None,
    theme: Annotated[
        str | None,
        typer.Option(
            "--theme",
            help="Bootstrap theme, or 'none' to drop Bootstrap.",
            rich_help_panel=RENDERING_PANEL,
        ),
    ] = None,
    toc: Annotated[
        bool | None,
        typer.Option(
            "--toc/--no-toc",
            help="Include a table of contents.",
            rich_help_panel=RENDERING_PANEL,
        ),
    ] = None,
    toc_depth: Annotated[
        int | None,
        typer.Option(
            "--toc-depth",
            min=1,
            max=6,
            help="Deepest heading level listed in the table of contents.",
            rich_help_panel=RENDERING_PANEL,
        ),
    ] = None,
    copy_resources: Annotated[
        bool,
        typer.Option(
            "--copy-resources",
            help="Copy local resources next to the output and reference the copies.",
            rich_help_panel=OUTPUT_PANEL,
        ),
    ] = False,
    citeproc: Annotated[
        bool,
        typer.Option(
            "--citeproc",
            help="Process citations with pandoc-citeproc.",
            rich_help_panel=RENDERING_PANEL,
        ),
    ] = False,
    verbose: VerbosityOption = 0,
    debug: DebugOption = False,
) -> None:
    """Render a Markdown document to a standalone HTML page."""

    ctx = click.get_current_context(silent=True)
    typer_ctx = ctx if isinstance(ctx, typer.Context) else None
    state = set_cli_state(ctx=typer_ctx, verbosity=verbose, debug=debug)

    metadata, _ = split_front_matter(input_path.read_text(encoding="utf-8"))
    overrides: dict[str, Any] = {
        "self_contained": self_contained,
        "lib_dir": lib_dir,
        "mathjax": mathjax,
        "highlight": highlight,
        "theme": theme,
        "toc": toc,
        "toc_depth": toc_depth,
        "copy_resources": True if copy_resources else None,
        "citeproc": True if citeproc else None,
    }
    try:
        config = load_config(
            config_file, document=front_matter_options(metadata), overrides=overrides
        )
    except (ValueError, yaml.YAMLError) as exc:
        emit_error(f"Invalid options: {exc}", exception=exc)
        raise typer.Exit(code=1) from exc

    emitter = CliEmitter(state=state, debug_enabled=debug_enabled())
    try:
        result = render_html_document(
            input_path,
            output,
            config,
            emitter=emitter,
        )
    except RenderingError as exc:
        if debug_enabled():
            raise
        emit_error(str(exc), exception=exc)
        raise typer.Exit(code=1) from exc

    state.console.print(str(result), highlight=False, soft_wrap=True)


__all__ = ["render"]
