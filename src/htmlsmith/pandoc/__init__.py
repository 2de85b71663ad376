"""Pandoc discovery, argument construction, and invocation."""

from __future__ import annotations

from .args import (
    builtin_lua_filters,
    default_mathjax,
    find_latex_engine,
    find_pandoc_theme_variable,
    is_highlightjs,
    pandoc_highlight_args,
    pandoc_html_highlight_args,
    pandoc_include_args,
    pandoc_latex_engine_args,
    pandoc_lua_filter_args,
    pandoc_mathjax_args,
    pandoc_mathjax_local_path,
    pandoc_toc_args,
    pandoc_variable_arg,
)
from .convert import (
    ConversionRequest,
    ConversionResult,
    PandocInvoker,
    pandoc_citeproc_convert,
    pandoc_convert,
    pandoc_output_ext,
    pandoc_output_file,
    pandoc_self_contained_html,
    pandoc_template,
)
from .environment import detect_generic_lang, pandoc_safe_environment
from .locator import (
    PandocLocator,
    ToolLocation,
    default_locator,
    find_pandoc,
    pandoc2,
    pandoc_available,
    pandoc_citeproc,
    pandoc_exec,
    pandoc_version,
)


__all__ = [
    "ConversionRequest",
    "ConversionResult",
    "PandocInvoker",
    "PandocLocator",
    "ToolLocation",
    "builtin_lua_filters",
    "default_locator",
    "default_mathjax",
    "detect_generic_lang",
    "find_latex_engine",
    "find_pandoc",
    "find_pandoc_theme_variable",
    "is_highlightjs",
    "pandoc2",
    "pandoc_available",
    "pandoc_citeproc",
    "pandoc_citeproc_convert",
    "pandoc_convert",
    "pandoc_exec",
    "pandoc_highlight_args",
    "pandoc_html_highlight_args",
    "pandoc_include_args",
    "pandoc_latex_engine_args",
    "pandoc_lua_filter_args",
    "pandoc_mathjax_args",
    "pandoc_mathjax_local_path",
    "pandoc_output_ext",
    "pandoc_output_file",
    "pandoc_safe_environment",
    "pandoc_self_contained_html",
    "pandoc_template",
    "pandoc_toc_args",
    "pandoc_variable_arg",
    "pandoc_version",
]
