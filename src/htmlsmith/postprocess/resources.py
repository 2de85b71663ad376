"""Discovery and rewriting of local asset references in HTML output.

References are located with BeautifulSoup, but the document itself is
rewritten by substituting the exact attribute text. The markup pandoc
produced is never re-serialised, so untouched content stays byte-identical.
"""

from __future__ import annotations

import base64
from collections.abc import Callable, Iterator
import filecmp
import logging
import mimetypes
import os
from pathlib import Path
import re
import shutil
from urllib.parse import quote, unquote

from bs4 import BeautifulSoup
from bs4.element import Tag

from htmlsmith.core.diagnostics import DiagnosticEmitter, ensure_emitter
from htmlsmith.core.paths import normalize_path, normalized_relative_to


logger = logging.getLogger(__name__)

ASSET_ATTRIBUTES: tuple[tuple[str, str], ...] = (
    ("img", "src"),
    ("script", "src"),
    ("link", "href"),
    ("source", "src"),
    ("audio", "src"),
    ("video", "src"),
    ("video", "poster"),
    ("embed", "src"),
)

_SCHEME = re.compile(r"^[A-Za-z][A-Za-z0-9+.\-]+:")
_URL_SAFE = "/:~!$&'()*+,;=@"


def _iter_assets(
    html: str, attributes: tuple[tuple[str, str], ...]
) -> Iterator[tuple[Tag, str]]:
    soup = BeautifulSoup(html, "html.parser")
    for tag_name, attribute in attributes:
        for node in soup.find_all(tag_name):
            value = node.get(attribute)
            if isinstance(value, str) and value.strip():
                yield node, value


def asset_references(html: str) -> list[str]:
    """Return the distinct asset references of ``html`` in document order."""
    seen: dict[str, None] = {}
    for _, value in _iter_assets(html, ASSET_ATTRIBUTES):
        seen.setdefault(value, None)
    return list(seen)


def is_local_reference(reference: str) -> bool:
    """Return whether ``reference`` names a file rather than a URL or fragment."""
    value = reference.strip()
    if not value or value.startswith(("#", "//")):
        return False
    return _SCHEME.match(value) is None


def replace_reference(html: str, old: str, new: str) -> str:
    """Replace attribute values equal to ``old`` with ``new``."""
    if old == new:
        return html
    for spelling in dict.fromkeys((old, old.replace("&", "&amp;"))):
        value = re.escape(spelling)
        quoted_value = re.compile(r"(=\s*)([\"'])" + value + r"\2")
        html = quoted_value.sub(
            lambda match: f"{match.group(1)}{match.group(2)}{new}{match.group(2)}", html
        )
        bare_value = re.compile(r"(=\s*)" + value + r"(?=[\s>])")
        html = bare_value.sub(lambda match: f"{match.group(1)}{new}", html)
    return html


def _encode(path: str) -> str:
    return quote(path, safe=_URL_SAFE)


def _relative_reference(output_dir: Path, decoded: str, base_dir: Path | None) -> str | None:
    if os.path.isabs(decoded):
        if not Path(decoded).exists():
            return None
        relative = normalized_relative_to(output_dir, decoded)
        return None if relative == normalize_path(decoded) else relative
    if base_dir is None or (Path(output_dir) / decoded).exists():
        return None
    candidate = Path(base_dir) / decoded
    if not candidate.exists():
        return None
    target = normalize_path(candidate)
    try:
        return Path(os.path.relpath(target, normalize_path(output_dir))).as_posix()
    except ValueError:
        return target


def rewrite_relative_paths(html: str, output_dir: Path, base_dir: Path | None = None) -> str:
    """Rewrite local references so they resolve from ``output_dir``.

    Absolute references to files under ``output_dir`` become relative ones.
    Relative references that only exist under ``base_dir`` (the directory
    pandoc ran in) are re-spelled relative to ``output_dir``. References that
    already resolve, remote ones, and missing files are left untouched, which
    makes the transform idempotent.
    """
    for reference in asset_references(html):
        if not is_local_reference(reference) or reference.startswith(".."):
            continue
        relative = _relative_reference(output_dir, unquote(reference), base_dir)
        if relative is not None:
            html = replace_reference(html, reference, _encode(relative))
    return html


def _copy_target(source: Path, lib_dir: Path) -> Path:
    target = lib_dir / source.name
    counter = 1
    while target.exists() and not filecmp.cmp(source, target, shallow=False):
        target = lib_dir / f"{source.stem}-{counter}{source.suffix}"
        counter += 1
    return target


def copy_html_resources(
    html: str,
    lib_dir: Path,
    output_dir: Path,
    *,
    base_dir: Path | None = None,
    emitter: DiagnosticEmitter | None = None,
) -> str:
    """Copy every local asset into ``lib_dir`` and point the document at the copy.

    Relative references are resolved against ``base_dir`` (the output
    directory by default). Files already inside ``lib_dir`` stay in place.
    """
    lib_root = Path(normalize_path(lib_dir))
    base = Path(base_dir) if base_dir is not None else Path(output_dir)
    emitter = ensure_emitter(emitter)
    for reference in asset_references(html):
        if not is_local_reference(reference):
            continue
        decoded = unquote(reference)
        source = Path(decoded) if os.path.isabs(decoded) else base / decoded
        if not source.is_file():
            continue
        source = Path(normalize_path(source))
        if lib_root in source.parents:
            target = source
        else:
            lib_root.mkdir(parents=True, exist_ok=True)
            target = _copy_target(source, lib_root)
            if not target.exists():
                shutil.copy2(source, target)
                emitter.event(
                    "dependency_copied", {"name": source.name, "destination": str(target)}
                )
        relative = normalized_relative_to(output_dir, target)
        html = replace_reference(html, reference, _encode(relative))
    return html


def _data_uri(path: Path) -> str:
    mime, _ = mimetypes.guess_type(path.name)
    payload = base64.b64encode(path.read_bytes()).decode("ascii")
    return f"data:{mime or 'application/octet-stream'};base64,{payload}"


def _is_inlinable(node: Tag) -> bool:
    if node.name != "link":
        return True
    rel = node.get("rel") or []
    if isinstance(rel, str):
        rel = rel.split()
    kinds = {item.lower() for item in rel}
    return "stylesheet" in kinds or "icon" in kinds


def inline_resources(
    html: str,
    base_dir: Path,
    *,
    encoder: Callable[[Path], str] = _data_uri,
) -> str:
    """Embed local images, scripts and stylesheets as base64 ``data:`` URIs."""
    replacements: dict[str, str] = {}
    attributes = (("img", "src"), ("script", "src"), ("link", "href"))
    for node, reference in _iter_assets(html, attributes):
        if reference in replacements or not is_local_reference(reference):
            continue
        if not _is_inlinable(node):
            continue
        decoded = unquote(reference)
        path = Path(decoded) if os.path.isabs(decoded) else Path(base_dir) / decoded
        if not path.is_file():
            logger.debug("Cannot inline missing resource %s", path)
            continue
        replacements[reference] = encoder(path)
    for reference, uri in replacements.items():
        html = replace_reference(html, reference, uri)
    return html


def render_supporting_files(
    source_dir: Path, files_dir: Path, rename: str | None = None
) -> Path:
    """Copy ``source_dir`` into ``files_dir`` once and return the copy."""
    target = Path(files_dir) / (rename or Path(source_dir).name)
    if not target.exists():
        shutil.copytree(source_dir, target)
    return target


__all__ = [
    "ASSET_ATTRIBUTES",
    "asset_references",
    "copy_html_resources",
    "inline_resources",
    "is_local_reference",
    "render_supporting_files",
    "replace_reference",
    "rewrite_relative_paths",
]
