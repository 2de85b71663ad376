"""Output formats assembled from the pandoc and post-processing layers."""

from __future__ import annotations

from .html_document import (
    DEFAULT_TEMPLATE,
    HtmlDocumentFormat,
    RenderContext,
    RenderStage,
    render_html_document,
)


__all__ = [
    "DEFAULT_TEMPLATE",
    "HtmlDocumentFormat",
    "RenderContext",
    "RenderStage",
    "render_html_document",
]
