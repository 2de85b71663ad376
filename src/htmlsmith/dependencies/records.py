"""HTML dependency records and the nested metadata tree they travel in."""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field, replace
from importlib import resources
import os
from pathlib import Path
from typing import Any


def _as_tuple(value: str | Iterable[str] | None) -> tuple[str, ...]:
    if value is None:
        return ()
    if isinstance(value, str):
        return (value,) if value else ()
    return tuple(str(item) for item in value if item)


@dataclass(frozen=True, slots=True)
class HtmlDependency:
    """A named, versioned bundle of scripts, stylesheets, and metadata.

    ``src`` is the directory holding the assets. When ``package`` is set the
    directory is resolved inside that installed package. Dependencies served
    from a remote location carry ``href`` instead and are never copied.
    """

    name: str
    version: str
    src: Path | None = None
    script: tuple[str, ...] = ()
    stylesheet: tuple[str, ...] = ()
    meta: Mapping[str, str] = field(default_factory=dict)
    head: str | None = None
    href: str | None = None
    package: str | None = None
    all_files: bool = True

    def __post_init__(self) -> None:
        object.__setattr__(self, "script", _as_tuple(self.script))
        object.__setattr__(self, "stylesheet", _as_tuple(self.stylesheet))
        object.__setattr__(self, "meta", dict(self.meta or {}))
        if self.src is not None and not isinstance(self.src, Path):
            text = os.fspath(self.src)
            object.__setattr__(self, "src", Path(text) if text else None)

    @property
    def files(self) -> tuple[str, ...]:
        """Return every asset referenced by the dependency, stylesheets first."""
        return (*self.stylesheet, *self.script)

    def source_dir(self) -> Path | None:
        """Return the on-disk directory backing the dependency, if any."""
        if self.src is None:
            return None
        if self.package:
            return Path(str(resources.files(self.package).joinpath(self.src.as_posix())))
        return self.src

    def with_source(self, src: Path) -> HtmlDependency:
        """Return a copy pointing at ``src`` (relative to no package)."""
        return replace(self, src=src, package=None)


def html_dependency(
    name: str,
    version: str,
    src: str | Path | None,
    *,
    script: str | Sequence[str] | None = None,
    stylesheet: str | Sequence[str] | None = None,
    meta: Mapping[str, str] | None = None,
    head: str | None = None,
    href: str | None = None,
    package: str | None = None,
    all_files: bool = True,
) -> HtmlDependency:
    """Build an :class:`HtmlDependency` from loosely typed arguments."""
    return HtmlDependency(
        name=name,
        version=version,
        src=Path(src) if src else None,
        script=_as_tuple(script),
        stylesheet=_as_tuple(stylesheet),
        meta=dict(meta or {}),
        head=head,
        href=href,
        package=package,
        all_files=all_files,
    )


def is_html_dependency(value: Any) -> bool:
    return isinstance(value, HtmlDependency)


@dataclass(frozen=True, slots=True)
class DependencyLeaf:
    """A terminal node: a dependency record or an unrelated metadata value."""

    value: Any


@dataclass(frozen=True, slots=True)
class DependencyGroup:
    """An unnamed list of nodes that is flattened recursively."""

    children: tuple[DependencyNode, ...] = ()


DependencyNode = DependencyLeaf | DependencyGroup


def as_tree(raw: Any) -> DependencyNode:
    """Convert nested Python values into a dependency tree.

    Lists and tuples become groups; anything else, mappings included, becomes
    a leaf. Existing nodes are returned unchanged.
    """
    if isinstance(raw, (DependencyLeaf, DependencyGroup)):
        return raw
    if isinstance(raw, (list, tuple)):
        return DependencyGroup(tuple(as_tree(item) for item in raw))
    return DependencyLeaf(raw)


__all__ = [
    "DependencyGroup",
    "DependencyLeaf",
    "DependencyNode",
    "HtmlDependency",
    "as_tree",
    "html_dependency",
    "is_html_dependency",
]
