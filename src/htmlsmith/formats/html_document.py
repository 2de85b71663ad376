"""HTML document format built on top of pandoc.

Architecture
: `HtmlDocumentFormat` turns an `HtmlDocumentConfig` into pandoc arguments.
  Static flags come from `base_args`; flags that depend on the document being
  rendered (dependencies, MathJax, preserved chunks) come from
  `pre_processor`, and `post_processor` repairs the HTML pandoc wrote.
: `render_html_document` drives one render through the `RenderStage`
  sequence. The source is copied to an intermediate file in a scratch
  directory so the caller's files are never modified.

Usage Example
:
    >>> from htmlsmith.formats import render_html_document
    >>> render_html_document("report.md")  # doctest: +SKIP
    PosixPath('.../report.html')
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from enum import Enum
import logging
from pathlib import Path
import shutil
import tempfile
from typing import Any

from htmlsmith.core.config import (
    HtmlDocumentConfig,
    front_matter_options,
    split_front_matter,
    validate_options,
)
from htmlsmith.core.diagnostics import DiagnosticEmitter, ensure_emitter
from htmlsmith.core.paths import pandoc_path_arg
from htmlsmith.dependencies import (
    DependencyResolver,
    HtmlDependency,
    html_dependencies_as_string,
    html_dependency_bootstrap,
    html_dependency_highlightjs,
    html_dependency_jquery,
    html_dependency_resolver,
    render_mathjax_bootstrap,
    resolve_dependency_tree,
)
from htmlsmith.pandoc import (
    PandocInvoker,
    PandocLocator,
    builtin_lua_filters,
    default_locator,
    is_highlightjs,
    pandoc2,
    pandoc_html_highlight_args,
    pandoc_include_args,
    pandoc_lua_filter_args,
    pandoc_mathjax_args,
    pandoc_toc_args,
    pandoc_variable_arg,
)
from htmlsmith.pandoc.convert import ConversionRequest
from htmlsmith.postprocess import (
    PostProcessOptions,
    extract_preserve_chunks,
    needs_postprocess,
    restore_chunks,
    rewrite_paths,
)


logger = logging.getLogger(__name__)

TEMPLATE_DIR = Path(__file__).resolve().parent / "templates"
DEFAULT_TEMPLATE = TEMPLATE_DIR / "default.html"

FROM_FORMAT = "markdown+autolink_bare_uris+tex_math_single_backslash"


class RenderStage(Enum):
    """Ordered states of a single render."""

    RAW = 0
    CHUNKS_EXTRACTED = 1
    CONVERTED = 2
    CHUNKS_RESTORED = 3
    PATHS_REWRITTEN = 4
    FINAL = 5

    def successor(self) -> RenderStage:
        if self is RenderStage.FINAL:
            raise RuntimeError("A finished render has no further stage.")
        return RenderStage(self.value + 1)


@dataclass(slots=True)
class RenderContext:
    """Mutable state shared by the stages of one render."""

    input_path: Path
    intermediate: Path
    output_path: Path
    files_dir: Path
    lib_dir: Path
    scratch_dir: Path
    metadata: dict[str, Any] = field(default_factory=dict)
    chunks: dict[str, str] = field(default_factory=dict)
    stage: RenderStage = RenderStage.RAW

    @property
    def output_dir(self) -> Path:
        return self.output_path.parent

    def advance(self, stage: RenderStage) -> None:
        expected = self.stage.successor()
        if stage is not expected:
            raise RuntimeError(
                f"Render cannot move from {self.stage.name} to {stage.name} "
                f"(expected {expected.name})."
            )
        logger.debug("Render of %s reached %s", self.input_path.name, stage.name)
        self.stage = stage


class HtmlDocumentFormat:
    """Pandoc arguments and processing hooks for standalone HTML documents."""

    def __init__(
        self,
        config: HtmlDocumentConfig | None = None,
        *,
        extra_dependencies: Sequence[HtmlDependency] = (),
        dependency_resolver: DependencyResolver = html_dependency_resolver,
        locator: PandocLocator | None = None,
        emitter: DiagnosticEmitter | None = None,
    ) -> None:
        self.config = validate_options(config or HtmlDocumentConfig())
        self.extra_dependencies = list(extra_dependencies)
        self.dependency_resolver = dependency_resolver
        self.locator = locator or default_locator()
        self.emitter = ensure_emitter(emitter)

    def base_args(self) -> list[str]:
        """Flags that do not depend on the document being rendered."""
        config = self.config
        args: list[str] = []
        if config.smart and not pandoc2(self.locator):
            args.append("--smart")
        args.extend(["--email-obfuscation", "none"])
        if config.self_contained:
            args.append("--self-contained")
        args.extend(self.template_args())
        args.extend(pandoc_toc_args(config.toc, config.toc_depth))
        args.extend(pandoc_html_highlight_args(config.template, config.highlight))
        for stylesheet in config.css:
            args.extend(["--css", pandoc_path_arg(stylesheet)])
        args.extend(
            pandoc_include_args(
                in_header=config.includes.in_header,
                before_body=config.includes.before_body,
                after_body=config.includes.after_body,
            )
        )
        args.extend(config.pandoc_args)
        return args

    def template_args(self) -> list[str]:
        if self.config.uses_default_template:
            return ["--template", pandoc_path_arg(DEFAULT_TEMPLATE)]
        return ["--template", pandoc_path_arg(self.config.template)]

    def theme_name(self) -> str | None:
        theme = self.config.theme
        if theme == "default":
            return "bootstrap"
        return theme

    def format_dependencies(self) -> list[HtmlDependency]:
        deps: list[HtmlDependency] = []
        theme = self.theme_name()
        if theme is not None:
            deps.extend([html_dependency_jquery(), html_dependency_bootstrap(theme)])
        highlight = self.config.highlight
        if (
            highlight is not None
            and self.config.uses_default_template
            and is_highlightjs(highlight)
        ):
            deps.append(html_dependency_highlightjs(highlight))
        deps.extend(self.extra_dependencies)
        return deps

    def head_markup(self, knit_meta: Any, ctx: RenderContext) -> str:
        """Resolve every dependency and render the markup injected in ``<head>``."""
        tree = [list(self.format_dependencies()), knit_meta]
        dependencies = resolve_dependency_tree(tree, resolver=self.dependency_resolver)
        if not dependencies:
            return ""
        if self.config.self_contained:
            return html_dependencies_as_string(dependencies, None, None, emitter=self.emitter)
        return html_dependencies_as_string(
            dependencies, ctx.lib_dir, ctx.output_dir, emitter=self.emitter
        )

    def pre_processor(self, ctx: RenderContext, knit_meta: Any = ()) -> list[str]:
        """Return document-specific flags and protect preserved chunks."""
        config = self.config
        args: list[str] = []

        theme = self.theme_name()
        if theme is not None:
            args.extend(pandoc_variable_arg(f"theme:{theme}"))

        mathjax = pandoc_mathjax_args(
            config.mathjax,
            config.template,
            config.self_contained,
            ctx.files_dir,
            ctx.output_dir,
            emitter=self.emitter,
        )

        head = self.head_markup(knit_meta, ctx)
        url = _mathjax_url(mathjax)
        if url is not None:
            head += render_mathjax_bootstrap(url)
        if head:
            header = ctx.scratch_dir / "dependencies.html"
            header.write_text(head, encoding="utf-8")
            args.extend(pandoc_include_args(in_header=header))

        args.extend(mathjax)

        source = ctx.intermediate.read_text(encoding="utf-8")
        preserved = extract_preserve_chunks(source)
        if preserved.chunks:
            ctx.intermediate.write_text(preserved.value, encoding="utf-8")
        ctx.chunks = preserved.chunks
        ctx.advance(RenderStage.CHUNKS_EXTRACTED)

        args.extend(pandoc_lua_filter_args(*builtin_lua_filters(), locator=self.locator))
        return args

    def post_processor(self, ctx: RenderContext) -> Path:
        """Restore preserved chunks, then fix up local references."""
        options = PostProcessOptions(
            output_dir=ctx.output_dir,
            self_contained=self.config.self_contained,
            copy_resources=self.config.copy_resources,
            lib_dir=ctx.lib_dir,
        )
        if not needs_postprocess(ctx.chunks, options):
            ctx.advance(RenderStage.CHUNKS_RESTORED)
            ctx.advance(RenderStage.PATHS_REWRITTEN)
            return ctx.output_path

        content = restore_chunks(ctx.output_path.read_text(encoding="utf-8"), ctx.chunks)
        ctx.advance(RenderStage.CHUNKS_RESTORED)

        content = rewrite_paths(
            content, options, base_dir=ctx.input_path.parent, emitter=self.emitter
        )
        ctx.advance(RenderStage.PATHS_REWRITTEN)

        ctx.output_path.write_text(content, encoding="utf-8")
        return ctx.output_path


def _mathjax_url(args: Sequence[str]) -> str | None:
    for value in args:
        if value.startswith("mathjax-url:"):
            url = value[len("mathjax-url:") :]
            return url or None
    return None


def _resolve_config(
    config: HtmlDocumentConfig | None, metadata: dict[str, Any]
) -> HtmlDocumentConfig:
    if config is not None:
        return config
    return HtmlDocumentConfig.model_validate(front_matter_options(metadata))


def _intermediate_path(source: Path, scratch_dir: Path) -> Path:
    return scratch_dir / f"{source.stem}.utf8.md"


def render_html_document(
    input: str | Path,
    output: str | Path | None = None,
    config: HtmlDocumentConfig | None = None,
    knit_meta: Iterable[Any] | Any = (),
    emitter: DiagnosticEmitter | None = None,
    *,
    extra_dependencies: Sequence[HtmlDependency] = (),
    dependency_resolver: DependencyResolver = html_dependency_resolver,
    locator: PandocLocator | None = None,
    verbose: bool = False,
) -> Path:
    """Render ``input`` to a standalone HTML file and return its path.

    Options come from ``config`` or, when omitted, from the
    ``output.html_document`` block of the document front matter. Option
    conflicts are reported before pandoc is looked up or launched.
    """
    source = Path(input).resolve()
    if not source.is_file():
        raise FileNotFoundError(f"Input file not found: {source}")

    text = source.read_text(encoding="utf-8")
    metadata, _ = split_front_matter(text)
    document_format = HtmlDocumentFormat(
        _resolve_config(config, metadata),
        extra_dependencies=extra_dependencies,
        dependency_resolver=dependency_resolver,
        locator=locator,
        emitter=emitter,
    )
    settings = document_format.config

    output_path = Path(output).absolute() if output is not None else source.with_suffix(".html")
    output_path.parent.mkdir(parents=True, exist_ok=True)
    files_dir = output_path.parent / f"{output_path.stem}_files"
    files_dir_existed = files_dir.exists()
    lib_dir = settings.lib_dir or files_dir
    if not lib_dir.is_absolute():
        lib_dir = output_path.parent / lib_dir

    with tempfile.TemporaryDirectory(prefix="htmlsmith-") as scratch:
        scratch_dir = Path(scratch)
        intermediate = _intermediate_path(source, scratch_dir)
        shutil.copyfile(source, intermediate)
        ctx = RenderContext(
            input_path=source,
            intermediate=intermediate,
            output_path=output_path,
            files_dir=files_dir,
            lib_dir=lib_dir,
            scratch_dir=scratch_dir,
            metadata=metadata,
        )
        args = document_format.base_args()
        args.extend(document_format.pre_processor(ctx, knit_meta))

        invoker = PandocInvoker(locator=document_format.locator, emitter=emitter)
        request = ConversionRequest(
            inputs=(intermediate,),
            to_format="html",
            from_format=FROM_FORMAT,
            output=output_path,
            options=tuple(args),
            citeproc=settings.citeproc,
            wd=source.parent,
            stack_size=settings.stack_size,
        )
        invoker.run(request, verbose=verbose)
        ctx.advance(RenderStage.CONVERTED)

        document_format.post_processor(ctx)
        ctx.advance(RenderStage.FINAL)

    if settings.self_contained and not files_dir_existed and files_dir.is_dir():
        shutil.rmtree(files_dir)
    return output_path


__all__ = [
    "DEFAULT_TEMPLATE",
    "FROM_FORMAT",
    "HtmlDocumentFormat",
    "RenderContext",
    "RenderStage",
    "render_html_document",
]
