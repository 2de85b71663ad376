"""Running pandoc conversions."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
import json
import logging
import os
from pathlib import Path
import subprocess
import tempfile
from typing import Any

import yaml

from htmlsmith.core.config import DEFAULT_STACK_SIZE
from htmlsmith.core.diagnostics import DiagnosticEmitter, ensure_emitter
from htmlsmith.core.exceptions import ConversionError
from htmlsmith.core.paths import base_dir, pandoc_path_arg, quoted, relative_to

from .environment import pandoc_safe_environment
from .locator import PandocLocator, default_locator, pandoc_citeproc


logger = logging.getLogger(__name__)

CITEPROC_CONFLICTS = frozenset({"--natbib", "--biblatex"})

HTML_TARGETS = frozenset(
    {"html", "html4", "html5", "s5", "slidy", "slideous", "dzslides", "revealjs"}
)


@dataclass(frozen=True, slots=True)
class ConversionRequest:
    """A single pandoc invocation.

    ``inputs`` and ``output`` may be relative to the current directory. The
    process runs in ``wd``, which defaults to the common directory of the
    inputs.
    """

    inputs: tuple[Path, ...]
    to_format: str | None = None
    from_format: str | None = None
    output: Path | None = None
    options: tuple[str, ...] = ()
    citeproc: bool = False
    wd: Path | None = None
    stack_size: str = DEFAULT_STACK_SIZE

    def __post_init__(self) -> None:
        inputs = self.inputs
        if isinstance(inputs, (str, os.PathLike)):
            inputs = (inputs,)
        object.__setattr__(self, "inputs", tuple(Path(item) for item in inputs))
        object.__setattr__(self, "options", tuple(self.options))
        if self.output is not None:
            object.__setattr__(self, "output", Path(self.output))
        if self.wd is not None:
            object.__setattr__(self, "wd", Path(self.wd))
        if not self.inputs:
            raise ValueError("pandoc conversion requires at least one input file")


@dataclass(slots=True)
class ConversionResult:
    argv: list[str]
    cwd: Path
    returncode: int
    output: Path | None = None
    stdout: str = ""
    stderr: str = ""


@dataclass(slots=True)
class PandocInvoker:
    """Build and execute pandoc command lines."""

    locator: PandocLocator = field(default_factory=default_locator)
    emitter: DiagnosticEmitter | None = None
    env: Mapping[str, str] | None = None

    def working_dir(self, request: ConversionRequest) -> Path:
        if request.wd is not None:
            return request.wd.absolute()
        return base_dir(path.absolute() for path in request.inputs)

    def build_args(self, request: ConversionRequest) -> list[str]:
        """Return pandoc's arguments (without the binary) in invocation order."""
        wd = self.working_dir(request)
        args = ["+RTS", f"-K{request.stack_size}", "-RTS"]
        args.extend(_path_in(wd, path) for path in request.inputs)

        if request.to_format is not None:
            to_format = "html4" if request.to_format == "html" else request.to_format
            args.extend(["--to", to_format])
        if request.from_format is not None:
            args.extend(["--from", request.from_format])
        if request.output is not None:
            args.extend(["--output", _path_in(wd, request.output)])

        options = list(request.options)
        if request.citeproc:
            args.extend(["--filter", pandoc_citeproc(self.locator)])
            options = [option for option in options if option not in CITEPROC_CONFLICTS]
        args.extend(options)
        return args

    def command(self, request: ConversionRequest) -> list[str]:
        return [str(self.locator.locate().binary), *self.build_args(request)]

    def run(self, request: ConversionRequest, *, verbose: bool = False) -> ConversionResult:
        """Run the conversion; raise :class:`ConversionError` on a non-zero exit."""
        emitter = ensure_emitter(self.emitter)
        argv = self.command(request)
        cwd = self.working_dir(request)
        env = pandoc_safe_environment(self.env)

        emitter.event("pandoc_command", {"argv": argv, "cwd": str(cwd)})
        if verbose:
            logger.info("%s", " ".join(quoted(argv)))

        try:
            process = subprocess.run(
                argv,
                check=False,
                capture_output=True,
                text=True,
                cwd=cwd,
                env=env,
            )
        except OSError as exc:
            raise ConversionError(None, f"Unable to run pandoc: {exc}") from exc

        stderr = (process.stderr or "").strip()
        if process.returncode != 0:
            if stderr:
                emitter.error(stderr)
            raise ConversionError(process.returncode)
        if stderr:
            emitter.warning(stderr)

        output = request.output.absolute() if request.output is not None else None
        return ConversionResult(
            argv=argv,
            cwd=cwd,
            returncode=process.returncode,
            output=output,
            stdout=process.stdout or "",
            stderr=stderr,
        )


def _path_in(wd: Path, path: Path) -> str:
    """Spell ``path`` (relative to the current directory) as seen from ``wd``."""
    absolute = path if path.is_absolute() else path.absolute()
    return pandoc_path_arg(relative_to(wd.absolute(), absolute))


def pandoc_convert(
    inputs: str | os.PathLike[str] | Sequence[str | os.PathLike[str]],
    to: str | None = None,
    from_: str | None = None,
    output: str | os.PathLike[str] | None = None,
    citeproc: bool = False,
    options: Sequence[str] = (),
    verbose: bool = False,
    wd: str | os.PathLike[str] | None = None,
    *,
    stack_size: str = DEFAULT_STACK_SIZE,
    emitter: DiagnosticEmitter | None = None,
    locator: PandocLocator | None = None,
) -> Path | None:
    """Convert ``inputs`` with pandoc and return the output path, if any."""
    if isinstance(inputs, (str, os.PathLike)):
        inputs = [inputs]
    request = ConversionRequest(
        inputs=tuple(Path(item) for item in inputs),
        to_format=to,
        from_format=from_,
        output=Path(output) if output is not None else None,
        options=tuple(options),
        citeproc=citeproc,
        wd=Path(wd) if wd is not None else None,
        stack_size=stack_size,
    )
    invoker = PandocInvoker(locator=locator or default_locator(), emitter=emitter)
    return invoker.run(request, verbose=verbose).output


def pandoc_template(
    metadata: Mapping[str, Any],
    template: str | os.PathLike[str],
    output: str | os.PathLike[str],
    verbose: bool = False,
    *,
    emitter: DiagnosticEmitter | None = None,
    locator: PandocLocator | None = None,
) -> Path:
    """Render ``template`` with ``metadata`` as its variables."""
    output = Path(output).absolute()
    with tempfile.TemporaryDirectory() as tmp:
        source = Path(tmp) / "metadata.md"
        header = yaml.safe_dump(dict(metadata), sort_keys=False, allow_unicode=True)
        source.write_text(f"---\n{header}---\n\n", encoding="utf-8")
        pandoc_convert(
            source,
            "markdown",
            output=output,
            options=[f"--template={Path(template).absolute()}"],
            verbose=verbose,
            emitter=emitter,
            locator=locator,
        )
    return output


def pandoc_self_contained_html(
    input: str | os.PathLike[str],
    output: str | os.PathLike[str],
    *,
    emitter: DiagnosticEmitter | None = None,
    locator: PandocLocator | None = None,
) -> Path:
    """Rewrite ``input`` as a single HTML file with its resources embedded."""
    locator = locator or default_locator()
    source = Path(input).resolve()
    target = Path(output).absolute()
    target.parent.mkdir(parents=True, exist_ok=True)

    # markdown_strict hangs on very large script elements before pandoc 1.17
    from_format = "markdown_strict" if locator.is_available("1.17") else "markdown"
    with tempfile.TemporaryDirectory() as tmp:
        template = Path(tmp) / "body.html"
        template.write_text("$body$\n", encoding="utf-8")
        pandoc_convert(
            source,
            "html",
            from_=from_format,
            output=target,
            options=[
                "--self-contained",
                "--template",
                str(template),
                *_resource_path_args(locator, source.parent),
            ],
            emitter=emitter,
            locator=locator,
        )
    return target


def _resource_path_args(locator: PandocLocator, directory: Path) -> list[str]:
    if locator.is_available("2.0"):
        return ["--resource-path", str(directory)]
    return []


def pandoc_citeproc_convert(
    file: str | os.PathLike[str],
    type: str = "list",
    *,
    locator: PandocLocator | None = None,
) -> Any:
    """Convert a bibliography file to a Python list, JSON text or YAML text."""
    conversions = {"list": "--bib2json", "json": "--bib2json", "yaml": "--bib2yaml"}
    if type not in conversions:
        raise ValueError(f"Unknown conversion type '{type}' (expected list, json or yaml)")
    argv = [pandoc_citeproc(locator), conversions[type], os.fspath(file)]
    try:
        process = subprocess.run(
            argv,
            check=False,
            capture_output=True,
            text=True,
            env=pandoc_safe_environment(),
        )
    except OSError as exc:
        raise ConversionError(None, f"Unable to run pandoc-citeproc: {exc}") from exc
    if process.returncode != 0:
        raise ConversionError(
            process.returncode,
            f"Error {process.returncode} occurred converting bibliography "
            f"'{file}': {(process.stderr or '').strip()}",
        )
    if type == "list":
        return json.loads(process.stdout)
    return process.stdout


def pandoc_output_ext(ext: str | None, to: str, input: str | os.PathLike[str]) -> str:
    if ext is not None:
        return ext
    if to in {"latex", "beamer"}:
        return ".pdf"
    if to in HTML_TARGETS:
        return ".html"
    if to == "markdown" and Path(input).suffix.lower() != ".md":
        return ".md"
    return f".{to}"


def pandoc_output_file(
    input: str | os.PathLike[str], to: str, ext: str | None = None
) -> str:
    """Return the output file name for converting ``input`` to ``to``.

    Format extensions (``html+smart``, ``markdown-tex_math``) are ignored.
    """
    base_format = to.replace("-", "+").split("+", 1)[0]
    path = Path(input)
    return path.stem + pandoc_output_ext(ext, base_format, path)


__all__ = [
    "CITEPROC_CONFLICTS",
    "ConversionRequest",
    "ConversionResult",
    "PandocInvoker",
    "pandoc_citeproc_convert",
    "pandoc_convert",
    "pandoc_output_ext",
    "pandoc_output_file",
    "pandoc_self_contained_html",
    "pandoc_template",
]
