"""Primary public API for HTMLSmith."""

from __future__ import annotations

from importlib.metadata import PackageNotFoundError, version as _pkg_version

from htmlsmith.core.config import HtmlDocumentConfig, load_config
from htmlsmith.core.diagnostics import (
    DiagnosticEmitter,
    LoggingEmitter,
    NullEmitter,
)
from htmlsmith.core.exceptions import (
    AmbiguousInputError,
    ConversionError,
    IncompatibleOptionsError,
    NotFoundError,
    RenderingError,
    ValidationError,
)
from htmlsmith.dependencies import (
    DependencyResolver,
    HtmlDependency,
    html_dependency,
    render_dependencies,
    resolve_dependencies,
)
from htmlsmith.formats import (
    HtmlDocumentFormat,
    RenderContext,
    RenderStage,
    render_html_document,
)
from htmlsmith.pandoc import (
    PandocLocator,
    ToolLocation,
    pandoc_available,
    pandoc_convert,
    pandoc_version,
)


try:
    __version__ = _pkg_version("htmlsmith")
except PackageNotFoundError:
    __version__ = "0.0.0"


__all__ = [
    "AmbiguousInputError",
    "ConversionError",
    "DependencyResolver",
    "DiagnosticEmitter",
    "HtmlDependency",
    "HtmlDocumentConfig",
    "HtmlDocumentFormat",
    "IncompatibleOptionsError",
    "LoggingEmitter",
    "NotFoundError",
    "NullEmitter",
    "PandocLocator",
    "RenderContext",
    "RenderStage",
    "RenderingError",
    "ToolLocation",
    "ValidationError",
    "__version__",
    "html_dependency",
    "load_config",
    "pandoc_available",
    "pandoc_convert",
    "pandoc_version",
    "render_dependencies",
    "render_html_document",
    "resolve_dependencies",
]
