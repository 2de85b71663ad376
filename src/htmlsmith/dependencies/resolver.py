"""Flattening, consolidation, and validation of HTML dependencies."""

from __future__ import annotations

from collections.abc import Callable, Iterable, Iterator, Sequence
import logging
from typing import Any

from htmlsmith.core.exceptions import ValidationError
from htmlsmith.core.versions import DottedVersion, parse_version

from .builtin import html_dependency_highlightjs
from .records import (
    DependencyGroup,
    DependencyLeaf,
    DependencyNode,
    HtmlDependency,
    as_tree,
    is_html_dependency,
)


logger = logging.getLogger(__name__)

DependencyTest = Callable[[Any], bool]
DependencyResolver = Callable[[Sequence[HtmlDependency]], list[HtmlDependency]]

_EXHAUSTED = object()


def _rebuild_highlightjs(dep: HtmlDependency) -> HtmlDependency:
    # Early highlight.js records were published without a source directory.
    theme = dep.stylesheet[0] if dep.stylesheet else "default.css"
    if theme.endswith(".css"):
        theme = theme[: -len(".css")]
    return html_dependency_highlightjs(theme)


# Known records that need repair before validation, keyed by (name, version).
# A fix only applies when the record has no source directory.
LEGACY_FIXES: dict[tuple[str, str], Callable[[HtmlDependency], HtmlDependency]] = {
    ("highlightjs", "1.1"): _rebuild_highlightjs,
}


def flatten_dependencies(tree: Any, test: DependencyTest) -> list[Any]:
    """Return every leaf of ``tree`` accepted by ``test``, in depth-first order."""
    collected: list[Any] = []
    _collect(as_tree(tree), test, collected)
    return collected


def _collect(node: DependencyNode, test: DependencyTest, collected: list[Any]) -> None:
    if isinstance(node, DependencyGroup):
        for child in node.children:
            _collect(child, test, collected)
    elif test(node.value):
        collected.append(node.value)


def flatten_html_dependencies(knit_meta: Any) -> list[HtmlDependency]:
    return flatten_dependencies(knit_meta, is_html_dependency)


def has_dependencies(tree: Any, kind: type | DependencyTest) -> bool:
    """Return True as soon as one leaf of ``tree`` matches ``kind``.

    Nested lists are walked lazily, so nothing after the first match is read.
    """
    if isinstance(kind, type):
        klass = kind

        def test(value: Any) -> bool:
            return isinstance(value, klass)

    else:
        test = kind

    pending: list[Iterator[Any]] = [iter((tree,))]
    while pending:
        item = next(pending[-1], _EXHAUSTED)
        if item is _EXHAUSTED:
            pending.pop()
        elif isinstance(item, DependencyGroup):
            pending.append(iter(item.children))
        elif isinstance(item, (list, tuple)):
            pending.append(iter(item))
        elif test(item.value if isinstance(item, DependencyLeaf) else item):
            return True
    return False


def has_html_dependencies(knit_meta: Any) -> bool:
    return has_dependencies(knit_meta, HtmlDependency)


def _version_key(dep: HtmlDependency) -> DottedVersion:
    try:
        return parse_version(dep.version)
    except ValueError as exc:
        raise ValidationError(
            f"version for html_dependency '{dep.name}' is not a valid version: {dep.version!r}"
        ) from exc


def resolve_dependencies(dependencies: Iterable[HtmlDependency]) -> list[HtmlDependency]:
    """Keep one record per name, choosing the highest version.

    Names keep the position of their first occurrence. On equal versions the
    earliest record wins.
    """
    chosen: dict[str, HtmlDependency] = {}
    for dep in dependencies:
        current = chosen.get(dep.name)
        if current is None:
            chosen[dep.name] = dep
        elif _version_key(dep) > _version_key(current):
            logger.debug(
                "Replacing dependency %s %s with %s", dep.name, current.version, dep.version
            )
            chosen[dep.name] = dep
    return list(chosen.values())


def apply_legacy_fixes(dep: HtmlDependency) -> HtmlDependency:
    fix = LEGACY_FIXES.get((dep.name, dep.version))
    if fix is None or dep.src is not None:
        return dep
    return fix(dep)


def validate_html_dependency(dep: Any) -> HtmlDependency:
    """Validate a single dependency, failing fast on missing fields or files."""
    if not is_html_dependency(dep):
        raise ValidationError("passed object is not an html dependency")
    if not dep.name:
        raise ValidationError("name for html_dependency not provided")
    if not dep.version:
        raise ValidationError("version for html_dependency not provided")
    dep = apply_legacy_fixes(dep)
    if dep.href:
        return dep
    source = dep.source_dir()
    if source is None:
        raise ValidationError(f"path for html_dependency '{dep.name}' not provided")
    if not source.exists():
        logger.debug("Invalid dependency record: %r", dep)
        raise ValidationError(f"path for html_dependency not found: {source}")
    return dep


def html_dependency_resolver(dependencies: Sequence[HtmlDependency]) -> list[HtmlDependency]:
    """Default resolver: consolidate duplicates, then validate survivors."""
    return [validate_html_dependency(dep) for dep in resolve_dependencies(dependencies)]


def resolve_dependency_tree(
    tree: Any,
    *,
    test: DependencyTest = is_html_dependency,
    resolver: DependencyResolver = html_dependency_resolver,
) -> list[HtmlDependency]:
    """Flatten ``tree`` and hand the collected records to ``resolver``."""
    return resolver(flatten_dependencies(tree, test))


__all__ = [
    "LEGACY_FIXES",
    "DependencyResolver",
    "DependencyTest",
    "apply_legacy_fixes",
    "flatten_dependencies",
    "flatten_html_dependencies",
    "has_dependencies",
    "has_html_dependencies",
    "html_dependency_resolver",
    "resolve_dependencies",
    "resolve_dependency_tree",
    "validate_html_dependency",
]
