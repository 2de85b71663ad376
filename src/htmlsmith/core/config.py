"""Configuration models for the HTML document format.

HtmlDocumentConfig

`smart` (`bool`)
: Request typographic quotes and dashes. Only forwarded as ``--smart`` to
  pandoc releases older than 2.0, which later made it an extension.

`theme` (`str | None`)
: Bootstrap theme name. ``"default"`` selects the stock Bootstrap theme and
  ``None`` disables Bootstrap (and jQuery) entirely.

`self_contained` (`bool`)
: Embed every stylesheet, script, and image into the output file.

`lib_dir` (`Path | None`)
: Directory receiving copies of dependency assets. Defaults to the document's
  supporting files directory (``<stem>_files``).

`mathjax` (`str | None`)
: ``"default"`` for the CDN copy, ``"local"`` for a vendored copy found
  through ``RMARKDOWN_MATHJAX_PATH``, a URL, or ``None`` to disable MathJax.

`highlight` (`str | None`)
: Syntax highlighting theme. ``None`` disables highlighting.

`template` (`str`)
: ``"default"`` or the path to a custom pandoc HTML template.

`toc` / `toc_depth`
: Table of contents toggle and the heading depth it covers.

`css` (`list[Path]`)
: Extra stylesheets passed to pandoc with ``--css``.

`includes` (`IncludesConfig`)
: Files injected in the head, before the body, and after the body.

`copy_resources` (`bool`)
: Copy every local resource next to the output and rewrite references to the
  copies. Incompatible with ``self_contained``.

`citeproc` (`bool`)
: Run the ``pandoc-citeproc`` filter.

`pandoc_args` (`list[str]`)
: Extra command line arguments forwarded verbatim to pandoc.

`stack_size` (`str`)
: Haskell runtime stack size handed to pandoc through ``+RTS -K``.
"""

from __future__ import annotations

from collections.abc import Mapping
import os
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
import yaml

from .exceptions import IncompatibleOptionsError


DEFAULT_STACK_SIZE = "512m"

THEMES: tuple[str, ...] = (
    "default",
    "cerulean",
    "journal",
    "flatly",
    "darkly",
    "readable",
    "spacelab",
    "united",
    "cosmo",
    "lumen",
    "paper",
    "sandstone",
    "simplex",
    "yeti",
)

HIGHLIGHTERS: tuple[str, ...] = (
    "default",
    "tango",
    "pygments",
    "kate",
    "monochrome",
    "espresso",
    "zenburn",
    "haddock",
    "breezedark",
)

HTML_HIGHLIGHTERS: tuple[str, ...] = (*HIGHLIGHTERS, "textmate")


def _default_stack_size() -> str:
    return os.environ.get("HTMLSMITH_PANDOC_STACK_SIZE") or DEFAULT_STACK_SIZE


class IncludesConfig(BaseModel):
    """Files injected around the converted document."""

    model_config = ConfigDict(extra="forbid")

    in_header: list[Path] = Field(default_factory=list)
    before_body: list[Path] = Field(default_factory=list)
    after_body: list[Path] = Field(default_factory=list)

    @field_validator("in_header", "before_body", "after_body", mode="before")
    @classmethod
    def _coerce_list(cls, value: Any) -> Any:
        if value is None:
            return []
        if isinstance(value, (str, Path)):
            return [value]
        return value


class HtmlDocumentConfig(BaseModel):
    """Options for the HTML document format."""

    model_config = ConfigDict(extra="forbid")

    smart: bool = True
    theme: str | None = "default"
    self_contained: bool = True
    lib_dir: Path | None = None
    mathjax: str | None = "default"
    highlight: str | None = "default"
    template: str = "default"
    toc: bool = False
    toc_depth: int = Field(default=3, ge=1, le=6)
    css: list[Path] = Field(default_factory=list)
    includes: IncludesConfig = Field(default_factory=IncludesConfig)
    copy_resources: bool = False
    citeproc: bool = False
    pandoc_args: list[str] = Field(default_factory=list)
    stack_size: str = Field(default_factory=_default_stack_size)

    @field_validator("theme")
    @classmethod
    def _check_theme(cls, value: str | None) -> str | None:
        if value is not None and value not in THEMES:
            raise ValueError(f"Unknown theme '{value}' (expected one of: {', '.join(THEMES)})")
        return value

    @field_validator("highlight")
    @classmethod
    def _check_highlight(cls, value: str | None) -> str | None:
        if value is not None and not value.strip():
            raise ValueError("Highlight theme must not be blank")
        return value

    @field_validator("mathjax", "theme", "highlight", mode="before")
    @classmethod
    def _none_aliases(cls, value: Any) -> Any:
        if isinstance(value, str) and value.strip().lower() in {"none", "null", "false"}:
            return None
        if value is False:
            return None
        return value

    @field_validator("css", mode="before")
    @classmethod
    def _coerce_css(cls, value: Any) -> Any:
        if value is None:
            return []
        if isinstance(value, (str, Path)):
            return [value]
        return value

    @model_validator(mode="after")
    def _check_html_highlighter(self) -> HtmlDocumentConfig:
        if (
            self.uses_default_template
            and self.highlight is not None
            and self.highlight not in HTML_HIGHLIGHTERS
        ):
            raise ValueError(
                f"Unknown highlight style '{self.highlight}' "
                f"(expected one of: {', '.join(HTML_HIGHLIGHTERS)})"
            )
        return self

    @property
    def uses_default_template(self) -> bool:
        return self.template == "default"


def validate_options(config: HtmlDocumentConfig) -> HtmlDocumentConfig:
    """Reject option combinations that cannot produce a valid document.

    Runs before any subprocess is launched.
    """
    if config.self_contained:
        if config.copy_resources:
            raise IncompatibleOptionsError(
                "Local resource copying is incompatible with self-contained documents."
            )
        validate_self_contained(config.mathjax)
    return config


def validate_self_contained(mathjax: str | None) -> None:
    """Fail when a self-contained document asks for local MathJax."""
    if mathjax == "local":
        raise IncompatibleOptionsError(
            "Local MathJax isn't compatible with self_contained "
            "(you should set self_contained to false)"
        )


def split_front_matter(source: str) -> tuple[dict[str, Any], str]:
    """Split a YAML front-matter header from ``source``.

    Returns an empty mapping and the untouched source when no well-formed
    header is present.
    """
    candidate = source.lstrip("\ufeff")
    prefix_len = len(source) - len(candidate)
    lines = candidate.splitlines()
    if not lines or lines[0].strip() != "---":
        return {}, source

    front_matter_lines: list[str] = []
    closing_index: int | None = None
    for idx, line in enumerate(lines[1:], start=1):
        stripped = line.strip()
        if stripped in {"---", "..."}:
            closing_index = idx
            break
        front_matter_lines.append(line)

    if closing_index is None:
        return {}, source

    try:
        metadata = yaml.safe_load("\n".join(front_matter_lines)) or {}
    except yaml.YAMLError:
        return {}, source

    if not isinstance(metadata, dict):
        metadata = {}

    body = "\n".join(lines[closing_index + 1 :])
    if source.endswith("\n"):
        body += "\n"
    return metadata, source[:prefix_len] + body


def front_matter_options(metadata: Mapping[str, Any] | None) -> dict[str, Any]:
    """Extract ``output.html_document`` options from document metadata."""
    if not metadata:
        return {}
    output = metadata.get("output")
    if not isinstance(output, Mapping):
        return {}
    options = output.get("html_document")
    if isinstance(options, Mapping):
        return dict(options)
    return {}


def load_config(
    path: Path | None = None,
    *,
    document: Mapping[str, Any] | None = None,
    overrides: Mapping[str, Any] | None = None,
) -> HtmlDocumentConfig:
    """Load a configuration from a YAML file, applying ``overrides`` on top.

    The file may either hold the options directly or nest them under
    ``html_document``. Options from the document front matter (``document``)
    take precedence over the file; ``overrides`` set to ``None`` are ignored.
    """
    payload: dict[str, Any] = {}
    if path is not None:
        raw = yaml.safe_load(Path(path).read_text(encoding="utf-8")) or {}
        if not isinstance(raw, Mapping):
            raise ValueError(f"Configuration file '{path}' must contain a mapping")
        nested = raw.get("html_document")
        payload.update(nested if isinstance(nested, Mapping) else raw)
    if document:
        payload.update(document)
    if overrides:
        payload.update({key: value for key, value in overrides.items() if value is not None})
    return HtmlDocumentConfig.model_validate(payload)


__all__ = [
    "DEFAULT_STACK_SIZE",
    "HIGHLIGHTERS",
    "HTML_HIGHLIGHTERS",
    "THEMES",
    "HtmlDocumentConfig",
    "IncludesConfig",
    "front_matter_options",
    "load_config",
    "split_front_matter",
    "validate_options",
    "validate_self_contained",
]
