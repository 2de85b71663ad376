"""Common HTML dependencies (jQuery, Bootstrap, ...) reused by HTML formats.

Bundles live under the resource root: ``HTMLSMITH_RESOURCES`` when set,
otherwise the ``resources`` directory shipped inside the package. Each
bundle sits in ``<root>/h/<bundle>``.
"""

from __future__ import annotations

import os
from pathlib import Path
import re

from .records import HtmlDependency, html_dependency


_ICON_PATTERN = re.compile(r"""<(?:span|i) +class *= *("|') *(fa fa|ion ion)-""")


def resources_root() -> Path:
    env_root = os.environ.get("HTMLSMITH_RESOURCES")
    if env_root:
        return Path(env_root).expanduser()
    return Path(__file__).resolve().parent.parent / "resources"


def resource_path(*parts: str) -> Path:
    return resources_root().joinpath(*parts)


def html_dependency_jquery() -> HtmlDependency:
    return html_dependency(
        "jquery",
        "1.11.3",
        resource_path("h", "jquery"),
        script="jquery.min.js",
    )


def html_dependency_jqueryui() -> HtmlDependency:
    return html_dependency(
        "jqueryui",
        "1.11.4",
        resource_path("h", "jqueryui"),
        script="jquery-ui.min.js",
    )


def html_dependency_bootstrap(theme: str) -> HtmlDependency:
    """Bootstrap with the requested theme; ``"default"`` is the stock theme."""
    if theme == "default":
        theme = "bootstrap"
    return html_dependency(
        "bootstrap",
        "3.3.5",
        resource_path("h", "bootstrap"),
        meta={"viewport": "width=device-width, initial-scale=1"},
        # The shims keep IE 8 working.
        script=["js/bootstrap.min.js", "shim/html5shiv.min.js", "shim/respond.min.js"],
        stylesheet=f"css/{theme}.min.css",
    )


def html_dependency_tocify() -> HtmlDependency:
    return html_dependency(
        "tocify",
        "1.9.1",
        resource_path("h", "tocify"),
        script="jquery.tocify.js",
        stylesheet="jquery.tocify.css",
    )


def html_dependency_font_awesome() -> HtmlDependency:
    return html_dependency(
        "font-awesome",
        "5.1.0",
        resource_path("h", "fontawesome"),
        stylesheet=["css/all.css", "css/v4-shims.css"],
    )


def html_dependency_ionicons() -> HtmlDependency:
    return html_dependency(
        "ionicons",
        "2.0.1",
        resource_path("h", "ionicons"),
        stylesheet="css/ionicons.min.css",
    )


def html_dependency_navigation(code_menu: bool, source_embed: bool) -> HtmlDependency:
    script = ["tabsets.js"]
    if code_menu:
        script.append("codefolding.js")
    if source_embed:
        script.append("sourceembed.js")
    return html_dependency(
        "navigation",
        "1.1",
        resource_path("h", "navigation-1.1"),
        script=script,
    )


def html_dependency_pagedtable() -> HtmlDependency:
    return html_dependency(
        "pagedtable",
        "1.1",
        resource_path("h", "pagedtable-1.1"),
        script="js/pagedtable.js",
        stylesheet="css/pagedtable.css",
    )


def html_dependency_highlightjs(highlight: str) -> HtmlDependency:
    return html_dependency(
        "highlightjs",
        "9.12.0",
        resource_path("h", "highlightjs"),
        script="highlight.js",
        stylesheet=f"{highlight}.css",
    )


def html_dependency_rsiframe() -> HtmlDependency:
    """Iframe helper; advertises the IDE session origin when one is running."""
    meta: dict[str, str] = {}
    session_port = os.environ.get("RSTUDIO_SESSION_PORT")
    if session_port:
        meta["rstudio_origin"] = f"127.0.0.1:{session_port}"
    return html_dependency(
        "rstudio-iframe",
        "1.1",
        resource_path("h", "rsiframe-1.1"),
        script="rsiframe.js",
        meta=meta,
    )


def html_dependencies_fonts(font_awesome: bool, ionicons: bool) -> list[HtmlDependency]:
    deps: list[HtmlDependency] = []
    if font_awesome:
        deps.append(html_dependency_font_awesome())
    if ionicons:
        deps.append(html_dependency_ionicons())
    return deps


def navbar_icon_dependencies(navbar: Path) -> list[HtmlDependency]:
    """Return the icon font dependencies referenced by a navbar HTML file."""
    source = Path(navbar).read_text(encoding="utf-8")
    libs = {match.group(2) for match in _ICON_PATTERN.finditer(source)}
    return html_dependencies_fonts("fa fa" in libs, "ion ion" in libs)


__all__ = [
    "html_dependencies_fonts",
    "html_dependency_bootstrap",
    "html_dependency_font_awesome",
    "html_dependency_highlightjs",
    "html_dependency_ionicons",
    "html_dependency_jquery",
    "html_dependency_jqueryui",
    "html_dependency_navigation",
    "html_dependency_pagedtable",
    "html_dependency_rsiframe",
    "html_dependency_tocify",
    "navbar_icon_dependencies",
    "resource_path",
    "resources_root",
]
