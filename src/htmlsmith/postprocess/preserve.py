"""Protect raw HTML blocks from pandoc by swapping them for placeholders."""

from __future__ import annotations

from dataclasses import dataclass, field
import re
import secrets


PRESERVE_START = "<!--html_preserve-->"
PRESERVE_END = "<!--/html_preserve-->"

_MARKER = re.compile(re.escape(PRESERVE_START) + "|" + re.escape(PRESERVE_END))


@dataclass(slots=True)
class PreservedContent:
    """Source text with preserved blocks replaced by placeholder tokens."""

    value: str
    chunks: dict[str, str] = field(default_factory=dict)


def _placeholder(taken: str, chunks: dict[str, str]) -> str:
    while True:
        candidate = f"preserve{secrets.token_hex(8)}"
        if candidate not in chunks and candidate not in taken:
            return candidate


def extract_preserve_chunks(source: str) -> PreservedContent:
    """Replace each outermost preserved block with a unique placeholder.

    The stored chunk keeps its markers so that restoring reproduces the
    source exactly. Unbalanced markers are left in place.
    """
    chunks: dict[str, str] = {}
    pieces: list[str] = []
    cursor = 0
    depth = 0
    start = 0
    for match in _MARKER.finditer(source):
        if match.group(0) == PRESERVE_START:
            if depth == 0:
                start = match.start()
            depth += 1
        elif depth > 0:
            depth -= 1
            if depth == 0:
                token = _placeholder(source, chunks)
                chunks[token] = source[start : match.end()]
                pieces.append(source[cursor:start])
                pieces.append(token)
                cursor = match.end()
    pieces.append(source[cursor:])
    return PreservedContent("".join(pieces), chunks)


def strip_placeholder_wrappers(content: str, chunks: dict[str, str]) -> str:
    """Undo the markup pandoc adds around placeholder tokens.

    Pandoc wraps a lone token in ``<p>`` and may derive heading ids from it.
    """
    for token in chunks:
        content = content.replace(f"<p>{token}</p>", token)
        content = re.sub(f' id="[^"]*?{re.escape(token)}[^"]*?" ', " ", content)
    return content


def restore_preserve_chunks(content: str, chunks: dict[str, str]) -> str:
    """Put the original blocks back in place of their placeholders."""
    if not chunks:
        return content
    pattern = re.compile("|".join(re.escape(token) for token in chunks))
    return pattern.sub(lambda match: chunks[match.group(0)], content)


__all__ = [
    "PRESERVE_END",
    "PRESERVE_START",
    "PreservedContent",
    "extract_preserve_chunks",
    "restore_preserve_chunks",
    "strip_placeholder_wrappers",
]
