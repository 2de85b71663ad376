"""Implementation of the ``htmlsmith convert`` command."""

from __future__ import annotations

from pathlib import Path
from typing import Annotated

import click
import typer

from htmlsmith.core.exceptions import RenderingError
from htmlsmith.pandoc import pandoc_convert

from .._options import DebugOption, OutputPathOption, VerbosityOption
from ..diagnostics import CliEmitter
from ..state import debug_enabled, emit_error, set_cli_state


def split_pandoc_arguments(arguments: list[str]) -> tuple[list[Path], list[str]]:
    """Split positional arguments into input files and pass-through pandoc flags.

    Everything from the first token starting with ``-`` on is handed to pandoc.
    """
    for index, token in enumerate(arguments):
        if token.startswith("-"):
            return [Path(item) for item in arguments[:index]], arguments[index:]
    return [Path(item) for item in arguments], []


def convert(
    arguments: Annotated[
        list[str],
        typer.Argument(
            metavar="INPUT... [-- PANDOC_ARGS...]",
            help="Files handed to pandoc; arguments after '--' are passed through.",
        ),
    ],
    to: Annotated[
        str | None,
        typer.Option("--to", "-t", help="Target format ('html' maps to html4)."),
    ] = None,
    from_: Annotated[
        str | None,
        typer.Option("--from", "-f", help="Source format (inferred by pandoc when omitted)."),
    ] = None,
    output: OutputPathOption = None,
    wd: Annotated[
        Path | None,
        typer.Option(
            "--wd",
            help="Working directory (defaults to the common directory of the inputs).",
            exists=True,
            file_okay=False,
        ),
    ] = None,
    citeproc: Annotated[
        bool,
        typer.Option("--citeproc", help="Run the pandoc-citeproc filter."),
    ] = False,
    verbose: VerbosityOption = 0,
    debug: DebugOption = False,
) -> None:
    """Run a single pandoc conversion in a sanitized environment."""

    ctx = click.get_current_context(silent=True)
    typer_ctx = ctx if isinstance(ctx, typer.Context) else None
    state = set_cli_state(ctx=typer_ctx, verbosity=verbose, debug=debug)

    files, extra = split_pandoc_arguments(arguments)
    if not files:
        raise typer.BadParameter("At least one input file is required.", param_hint="INPUT")
    for path in files:
        if not path.is_file():
            raise typer.BadParameter(f"File '{path}' does not exist.", param_hint="INPUT")

    emitter = CliEmitter(state=state, debug_enabled=debug_enabled())
    try:
        result = pandoc_convert(
            files,
            to=to,
            from_=from_,
            output=output,
            citeproc=citeproc,
            options=extra,
            wd=wd,
            emitter=emitter,
        )
    except RenderingError as exc:
        if debug_enabled():
            raise
        emit_error(str(exc), exception=exc)
        raise typer.Exit(code=1) from exc

    if result is not None:
        state.console.print(str(result), highlight=False, soft_wrap=True)


__all__ = ["convert", "split_pandoc_arguments"]
