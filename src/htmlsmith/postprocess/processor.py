"""Post-conversion clean-up applied to the HTML written by pandoc."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from htmlsmith.core.diagnostics import DiagnosticEmitter

from .preserve import restore_preserve_chunks, strip_placeholder_wrappers
from .resources import copy_html_resources, rewrite_relative_paths


@dataclass(frozen=True, slots=True)
class PostProcessOptions:
    """Settings that select the path transform applied to the output."""

    output_dir: Path
    self_contained: bool = True
    copy_resources: bool = False
    lib_dir: Path | None = None

    @property
    def rewrites_paths(self) -> bool:
        return self.copy_resources or not self.self_contained


def needs_postprocess(chunks: dict[str, str], options: PostProcessOptions) -> bool:
    return bool(chunks) or options.rewrites_paths


def restore_chunks(content: str, chunks: dict[str, str]) -> str:
    """Put preserved chunks back, dropping the wrappers pandoc added."""
    if not chunks:
        return content
    content = strip_placeholder_wrappers(content, chunks)
    return restore_preserve_chunks(content, chunks)


def rewrite_paths(
    content: str,
    options: PostProcessOptions,
    *,
    base_dir: Path | None = None,
    emitter: DiagnosticEmitter | None = None,
) -> str:
    """Copy local resources next to the output, or make references relative."""
    if options.copy_resources:
        lib_dir = options.lib_dir or options.output_dir
        return copy_html_resources(
            content, lib_dir, options.output_dir, base_dir=base_dir, emitter=emitter
        )
    if not options.self_contained:
        return rewrite_relative_paths(content, options.output_dir, base_dir=base_dir)
    return content


def postprocess(
    content: str,
    chunks: dict[str, str],
    options: PostProcessOptions,
    *,
    base_dir: Path | None = None,
    emitter: DiagnosticEmitter | None = None,
) -> str:
    """Restore preserved chunks, then copy or relativise local references."""
    content = restore_chunks(content, chunks)
    return rewrite_paths(content, options, base_dir=base_dir, emitter=emitter)


__all__ = [
    "PostProcessOptions",
    "needs_postprocess",
    "postprocess",
    "restore_chunks",
    "rewrite_paths",
]
