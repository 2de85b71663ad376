"""Copying dependency assets and rendering them as HTML head markup."""

from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import dataclass
from functools import lru_cache
import os
from pathlib import Path
import posixpath
import shutil

from jinja2 import Environment, FileSystemLoader, Template

from htmlsmith.core.diagnostics import DiagnosticEmitter, ensure_emitter
from htmlsmith.core.exceptions import ValidationError
from htmlsmith.core.paths import normalize_path, pandoc_path_arg, relative_to

from .records import HtmlDependency


TEMPLATE_DIR = Path(__file__).resolve().parent / "partials"

HrefFilter = Callable[[str], str]


@lru_cache(maxsize=1)
def _environment() -> Environment:
    return Environment(
        loader=FileSystemLoader(TEMPLATE_DIR),
        autoescape=True,
        trim_blocks=True,
        lstrip_blocks=True,
        keep_trailing_newline=True,
    )


def _template(name: str) -> Template:
    return _environment().get_template(name)


def dependency_dir_name(dep: HtmlDependency) -> str:
    return f"{dep.name}-{dep.version}"


def _copy_file(source: Path, target: Path) -> None:
    target.parent.mkdir(parents=True, exist_ok=True)
    if target.exists() and target.resolve() == source.resolve():
        return
    shutil.copy2(source, target)


def copy_dependency_to_dir(
    dep: HtmlDependency,
    lib_dir: Path,
    *,
    emitter: DiagnosticEmitter | None = None,
) -> HtmlDependency:
    """Copy the dependency assets into ``lib_dir/<name>-<version>``.

    Copying is idempotent: an existing destination is refreshed in place.
    Remote (``href``) dependencies are returned unchanged.
    """
    if dep.href:
        return dep
    source = dep.source_dir()
    if source is None or not source.is_dir():
        raise ValidationError(f"path for html_dependency not found: {source}")

    target = Path(lib_dir) / dependency_dir_name(dep)
    target.mkdir(parents=True, exist_ok=True)
    if target.resolve() != source.resolve():
        if dep.all_files:
            shutil.copytree(source, target, dirs_exist_ok=True)
        else:
            for relative in dep.files:
                asset = source / relative
                if not asset.is_file():
                    raise ValidationError(
                        f"asset '{relative}' of html_dependency '{dep.name}' not found in {source}"
                    )
                _copy_file(asset, target / relative)

    ensure_emitter(emitter).event(
        "dependency_copied", {"name": dep.name, "destination": str(target)}
    )
    return dep.with_source(target)


def make_dependency_relative(dep: HtmlDependency, base_dir: Path) -> HtmlDependency:
    """Rewrite the dependency source as a path relative to ``base_dir``."""
    if dep.href or dep.src is None:
        return dep
    source = dep.source_dir()
    if source is None:
        raise ValidationError(f"html_dependency '{dep.name}' has no source directory")
    base = normalize_path(base_dir)
    full = normalize_path(source)
    relative = relative_to(base, full)
    if relative == full:
        raise ValidationError(
            f"html_dependency '{dep.name}' at {full} is not located under {base}"
        )
    return dep.with_source(Path(relative))


def html_reference_path(path: str, lib_dir: Path | None, output_dir: Path | None) -> str:
    """Return how ``path`` should be referenced from the output document."""
    if lib_dir is None:
        return pandoc_path_arg(path)
    return relative_to(output_dir or "", path)


@dataclass(slots=True)
class _RenderedDependency:
    meta: list[tuple[str, str]]
    stylesheets: list[str]
    scripts: list[str]
    head: str | None


def _asset_url(dep: HtmlDependency, relative: str, href_filter: HrefFilter) -> str:
    if dep.href:
        return posixpath.join(dep.href.rstrip("/"), relative)
    if dep.src is None:
        raise ValidationError(f"html_dependency '{dep.name}' has neither href nor src")
    path = dep.src / relative
    source = path.as_posix() if not path.is_absolute() else os.fspath(path)
    return href_filter(source)


def render_dependencies(
    dependencies: Sequence[HtmlDependency],
    *,
    href_filter: HrefFilter = lambda path: path,
) -> str:
    """Render ``dependencies`` as ordered ``<meta>``/``<link>``/``<script>`` tags."""
    rendered = [
        _RenderedDependency(
            meta=list(dep.meta.items()),
            stylesheets=[_asset_url(dep, item, href_filter) for item in dep.stylesheet],
            scripts=[_asset_url(dep, item, href_filter) for item in dep.script],
            head=dep.head,
        )
        for dep in dependencies
    ]
    return _template("dependencies.html").render(dependencies=rendered)


def html_dependencies_as_string(
    dependencies: Sequence[HtmlDependency],
    lib_dir: Path | None,
    output_dir: Path | None,
    *,
    emitter: DiagnosticEmitter | None = None,
) -> str:
    """Return head markup for ``dependencies``.

    With a ``lib_dir`` the assets are copied there and referenced relative to
    ``output_dir``; otherwise they are referenced at their original location.
    """
    deps = list(dependencies)
    if lib_dir is not None:
        deps = [copy_dependency_to_dir(dep, lib_dir, emitter=emitter) for dep in deps]
        if output_dir is not None:
            deps = [make_dependency_relative(dep, output_dir) for dep in deps]
    return render_dependencies(
        deps,
        href_filter=lambda path: html_reference_path(path, lib_dir, output_dir),
    )


def render_mathjax_bootstrap(url: str) -> str:
    """Return a ``<script>`` block that injects MathJax from ``url`` at load time."""
    return _template("mathjax.html").render(url=url)


__all__ = [
    "copy_dependency_to_dir",
    "dependency_dir_name",
    "html_dependencies_as_string",
    "html_reference_path",
    "make_dependency_relative",
    "render_dependencies",
    "render_mathjax_bootstrap",
]
