"""Implementation of the ``htmlsmith pandoc`` command."""

from __future__ import annotations

from typing import Annotated

import click
import typer

from htmlsmith.core.exceptions import NotFoundError
from htmlsmith.core.versions import parse_version
from htmlsmith.pandoc import default_locator

from .._options import DebugOption, VerbosityOption
from ..state import emit_error, set_cli_state


def pandoc(
    min_version: Annotated[
        str | None,
        typer.Option(
            "--min-version",
            help="Fail unless pandoc is at least this version.",
        ),
    ] = None,
    rescan: Annotated[
        bool,
        typer.Option(
            "--rescan",
            help="Ignore the cached location and scan again.",
        ),
    ] = False,
    verbose: VerbosityOption = 0,
    debug: DebugOption = False,
) -> None:
    """Show which pandoc installation would be used."""

    ctx = click.get_current_context(silent=True)
    typer_ctx = ctx if isinstance(ctx, typer.Context) else None
    state = set_cli_state(ctx=typer_ctx, verbosity=verbose, debug=debug)

    if min_version is not None:
        try:
            parse_version(min_version)
        except ValueError as exc:
            raise typer.BadParameter(str(exc), param_hint="--min-version") from exc

    locator = default_locator()
    try:
        location = locator.locate(force_rescan=rescan)
        location = locator.require_available(min_version)
    except NotFoundError as exc:
        emit_error(str(exc), exception=exc)
        raise typer.Exit(code=1) from exc

    state.console.print(
        f"pandoc {location.version} ({location.binary_dir})", highlight=False, soft_wrap=True
    )


__all__ = ["pandoc"]
