"""Transforms applied to pandoc's HTML output."""

from __future__ import annotations

from .preserve import (
    PRESERVE_END,
    PRESERVE_START,
    PreservedContent,
    extract_preserve_chunks,
    restore_preserve_chunks,
    strip_placeholder_wrappers,
)
from .processor import (
    PostProcessOptions,
    needs_postprocess,
    postprocess,
    restore_chunks,
    rewrite_paths,
)
from .resources import (
    asset_references,
    copy_html_resources,
    inline_resources,
    is_local_reference,
    render_supporting_files,
    rewrite_relative_paths,
)


__all__ = [
    "PRESERVE_END",
    "PRESERVE_START",
    "PostProcessOptions",
    "PreservedContent",
    "asset_references",
    "copy_html_resources",
    "extract_preserve_chunks",
    "inline_resources",
    "is_local_reference",
    "needs_postprocess",
    "postprocess",
    "render_supporting_files",
    "restore_chunks",
    "restore_preserve_chunks",
    "rewrite_paths",
    "rewrite_relative_paths",
    "strip_placeholder_wrappers",
]
