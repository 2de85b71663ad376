"""Builders for pandoc command-line arguments.

Each helper returns a list of argv tokens so callers can concatenate them in
the order pandoc expects.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
import os
from pathlib import Path
import shutil

from htmlsmith.core.config import HTML_HIGHLIGHTERS
from htmlsmith.core.diagnostics import DiagnosticEmitter, ensure_emitter
from htmlsmith.core.exceptions import NotFoundError
from htmlsmith.core.paths import (
    find_program,
    is_macos,
    is_windows,
    normalized_relative_to,
    pandoc_path_arg,
)
from htmlsmith.postprocess.resources import render_supporting_files

from .locator import PandocLocator, pandoc2


MATHJAX_CDN = "https://mathjax.rstudio.com/latest/"
MATHJAX_CONFIG = "MathJax.js?config=TeX-AMS-MML_HTMLorMML"
MATHJAX_PATH_ENV = "RMARKDOWN_MATHJAX_PATH"
UNIX_MATHJAX_DIR = Path("/usr/share/javascript/mathjax")

LUA_FILTER_DIR = Path(__file__).resolve().parent / "lua"
HTML_LUA_FILTERS: tuple[str, ...] = ("pagebreak.lua", "latex-div.lua")

PathLike = str | os.PathLike[str]


def default_mathjax() -> str:
    return f"{MATHJAX_CDN}{MATHJAX_CONFIG}"


def pandoc_variable_arg(name: str, value: str | None = None) -> list[str]:
    """Return ``--variable name[=value]``."""
    return ["--variable", name if value is None else f"{name}={value}"]


def _as_list(value: PathLike | Iterable[PathLike] | None) -> list[PathLike]:
    if value is None:
        return []
    if isinstance(value, (str, os.PathLike)):
        return [value]
    return list(value)


def pandoc_include_args(
    in_header: PathLike | Iterable[PathLike] | None = None,
    before_body: PathLike | Iterable[PathLike] | None = None,
    after_body: PathLike | Iterable[PathLike] | None = None,
) -> list[str]:
    args: list[str] = []
    for flag, files in (
        ("--include-in-header", in_header),
        ("--include-before-body", before_body),
        ("--include-after-body", after_body),
    ):
        for path in _as_list(files):
            args.extend([flag, pandoc_path_arg(path)])
    return args


def pandoc_highlight_args(highlight: str | None, default: str = "tango") -> list[str]:
    """Return pandoc's own syntax highlighting flags.

    ``None`` disables highlighting; ``"default"`` resolves to ``default``.
    """
    if highlight is None:
        return ["--no-highlight"]
    if highlight == "default":
        highlight = default
    return ["--highlight-style", highlight]


def is_highlightjs(highlight: str | None) -> bool:
    return highlight in {"default", "textmate"}


def pandoc_html_highlight_args(template: str, highlight: str | None) -> list[str]:
    """Return highlighting flags for HTML output.

    The default template delegates the ``default`` and ``textmate`` styles to
    highlight.js in the browser; custom templates always use pandoc.
    """
    if highlight is None:
        return ["--no-highlight"]
    if template != "default":
        if highlight == "default":
            highlight = "pygments"
        return ["--highlight-style", highlight]
    if highlight not in HTML_HIGHLIGHTERS:
        raise ValueError(
            f"Unknown highlight style '{highlight}' "
            f"(expected one of: {', '.join(HTML_HIGHLIGHTERS)})"
        )
    if is_highlightjs(highlight):
        return ["--no-highlight", *pandoc_variable_arg("highlightjs", "1")]
    return ["--highlight-style", highlight]


def find_latex_engine(latex_engine: str) -> str:
    """Resolve ``latex_engine`` to a full path where child processes lose ``PATH``."""
    if not is_macos() or shutil.which(latex_engine):
        return latex_engine
    if "/" in latex_engine:
        return latex_engine
    return find_program(latex_engine) or latex_engine


def pandoc_latex_engine_args(
    latex_engine: str, *, locator: PandocLocator | None = None
) -> list[str]:
    flag = "--pdf-engine" if pandoc2(locator) else "--latex-engine"
    return [flag, find_latex_engine(latex_engine)]


def pandoc_toc_args(toc: bool, toc_depth: int = 3) -> list[str]:
    if not toc:
        return []
    return ["--table-of-contents", "--toc-depth", str(toc_depth)]


def pandoc_lua_filter_args(
    *filters: PathLike, locator: PandocLocator | None = None
) -> list[str]:
    """Return ``--lua-filter`` flags; lua filters need pandoc 2.0 or later."""
    if not filters or not pandoc2(locator):
        return []
    args: list[str] = []
    for path in filters:
        args.extend(["--lua-filter", pandoc_path_arg(path)])
    return args


def builtin_lua_filters(names: Sequence[str] = HTML_LUA_FILTERS) -> list[Path]:
    return [LUA_FILTER_DIR / name for name in names]


def find_pandoc_theme_variable(args: Sequence[str]) -> str | None:
    """Return the value of a ``--variable theme:<name>`` pair in ``args``."""
    for flag, value in zip(args, args[1:]):
        if flag == "--variable" and value.startswith("theme:"):
            return value[len("theme:") :]
    return None


def unix_mathjax_path() -> Path | None:
    if is_windows():
        return None
    if (UNIX_MATHJAX_DIR / "MathJax.js").exists():
        return UNIX_MATHJAX_DIR
    return None


def pandoc_mathjax_local_path() -> Path:
    """Return the directory of a locally installed MathJax."""
    configured = os.environ.get(MATHJAX_PATH_ENV)
    if configured:
        return Path(configured)
    system = unix_mathjax_path()
    if system is None:
        raise NotFoundError(
            f'For mathjax = "local", please set the {MATHJAX_PATH_ENV} environment '
            "variable to the location of MathJax. On Linux systems you can also "
            "install MathJax using your system package manager."
        )
    return system


def pandoc_mathjax_args(
    mathjax: str | None,
    template: str,
    self_contained: bool,
    files_dir: Path,
    output_dir: Path,
    *,
    emitter: DiagnosticEmitter | None = None,
) -> list[str]:
    """Return the MathJax flags for ``mathjax`` (``None``, ``"default"``, ``"local"`` or a URL).

    A local MathJax is copied into ``files_dir/mathjax-local`` and referenced
    relative to ``output_dir``.
    """
    if mathjax is None:
        return []

    url: str | None = mathjax
    if mathjax == "default":
        url = default_mathjax() if template == "default" else None
    elif mathjax == "local":
        local = render_supporting_files(pandoc_mathjax_local_path(), files_dir, "mathjax-local")
        url = f"{normalized_relative_to(output_dir, local)}/{MATHJAX_CONFIG}"

    if template == "default":
        return ["--mathjax", "--variable", f"mathjax-url:{url}"]
    if not self_contained:
        return ["--mathjax" if url is None else f"--mathjax={url}"]
    ensure_emitter(emitter).warning(
        'MathJax doesn\'t work with self_contained when not using the "default" template.'
    )
    return []


__all__ = [
    "HTML_LUA_FILTERS",
    "LUA_FILTER_DIR",
    "MATHJAX_CONFIG",
    "MATHJAX_PATH_ENV",
    "builtin_lua_filters",
    "default_mathjax",
    "find_latex_engine",
    "find_pandoc_theme_variable",
    "is_highlightjs",
    "pandoc_highlight_args",
    "pandoc_html_highlight_args",
    "pandoc_include_args",
    "pandoc_latex_engine_args",
    "pandoc_lua_filter_args",
    "pandoc_mathjax_args",
    "pandoc_mathjax_local_path",
    "pandoc_toc_args",
    "pandoc_variable_arg",
    "unix_mathjax_path",
]
