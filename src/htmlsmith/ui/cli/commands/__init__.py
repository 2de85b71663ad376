"""Command implementations for the HTMLSmith CLI."""

from __future__ import annotations

from .convert import convert
from .pandoc import pandoc
from .render import render


__all__ = ["convert", "pandoc", "render"]
