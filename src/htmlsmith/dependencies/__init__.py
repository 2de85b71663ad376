"""HTML dependency records, resolution, and head markup rendering."""

from __future__ import annotations

from .builtin import (
    html_dependencies_fonts,
    html_dependency_bootstrap,
    html_dependency_font_awesome,
    html_dependency_highlightjs,
    html_dependency_ionicons,
    html_dependency_jquery,
    html_dependency_jqueryui,
    html_dependency_navigation,
    html_dependency_pagedtable,
    html_dependency_rsiframe,
    html_dependency_tocify,
    navbar_icon_dependencies,
)
from .records import (
    DependencyGroup,
    DependencyLeaf,
    DependencyNode,
    HtmlDependency,
    as_tree,
    html_dependency,
    is_html_dependency,
)
from .render import (
    copy_dependency_to_dir,
    html_dependencies_as_string,
    html_reference_path,
    make_dependency_relative,
    render_dependencies,
    render_mathjax_bootstrap,
)
from .resolver import (
    LEGACY_FIXES,
    DependencyResolver,
    flatten_dependencies,
    flatten_html_dependencies,
    has_dependencies,
    has_html_dependencies,
    html_dependency_resolver,
    resolve_dependencies,
    resolve_dependency_tree,
    validate_html_dependency,
)


__all__ = [
    "LEGACY_FIXES",
    "DependencyGroup",
    "DependencyLeaf",
    "DependencyNode",
    "DependencyResolver",
    "HtmlDependency",
    "as_tree",
    "copy_dependency_to_dir",
    "flatten_dependencies",
    "flatten_html_dependencies",
    "has_dependencies",
    "has_html_dependencies",
    "html_dependencies_as_string",
    "html_dependencies_fonts",
    "html_dependency",
    "html_dependency_bootstrap",
    "html_dependency_font_awesome",
    "html_dependency_highlightjs",
    "html_dependency_ionicons",
    "html_dependency_jquery",
    "html_dependency_jqueryui",
    "html_dependency_navigation",
    "html_dependency_pagedtable",
    "html_dependency_resolver",
    "html_dependency_rsiframe",
    "html_dependency_tocify",
    "html_reference_path",
    "is_html_dependency",
    "make_dependency_relative",
    "navbar_icon_dependencies",
    "render_dependencies",
    "render_mathjax_bootstrap",
    "resolve_dependencies",
    "resolve_dependency_tree",
    "validate_html_dependency",
]
