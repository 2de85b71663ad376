from __future__ import annotations

from pathlib import Path
from typing import Any

import pytest

from htmlsmith.core.config import HtmlDocumentConfig
from htmlsmith.core.exceptions import ConversionError, IncompatibleOptionsError
from htmlsmith.core.versions import parse_version
from htmlsmith.dependencies import html_dependency
from htmlsmith.formats import (
    DEFAULT_TEMPLATE,
    HtmlDocumentFormat,
    RenderContext,
    RenderStage,
    render_html_document,
)
from htmlsmith.pandoc import convert as convert_mod
from htmlsmith.pandoc.args import default_mathjax
from htmlsmith.pandoc.locator import PandocLocator, ToolLocation
from htmlsmith.postprocess import PRESERVE_END, PRESERVE_START


WIDGET = f"{PRESERVE_START}<div class=\"widget\">*raw*</div>{PRESERVE_END}"


class _StubResult:
    def __init__(self, returncode: int = 0, stdout: str = "", stderr: str = "") -> None:
        self.returncode = returncode
        self.stdout = stdout
        self.stderr = stderr


class _FixedLocator(PandocLocator):
    def __init__(self, version: str = "2.11") -> None:
        super().__init__()
        self._location = ToolLocation(Path("/opt/pandoc/bin"), parse_version(version))

    def locate(self, force_rescan: bool = False) -> ToolLocation:
        return self._location


def _option(argv: list[str], flag: str) -> str | None:
    if flag not in argv:
        return None
    return argv[argv.index(flag) + 1]


def _fake_pandoc(
    monkeypatch: pytest.MonkeyPatch,
    *,
    extra_html: str = "",
    returncode: int = 0,
    on_run: Any = None,
) -> list[dict[str, Any]]:
    """Replace pandoc with a stub that wraps each input line in a paragraph."""
    calls: list[dict[str, Any]] = []

    def fake_run(cmd: list[str], **kwargs: Any) -> _StubResult:
        cwd = Path(kwargs["cwd"])
        source = (cwd / cmd[4]).read_text(encoding="utf-8")
        header_path = _option(cmd, "--include-in-header")
        calls.append(
            {
                "cmd": cmd,
                "cwd": cwd,
                "source": source,
                "header": Path(header_path).read_text(encoding="utf-8") if header_path else None,
            }
        )
        if on_run is not None:
            on_run(cmd, cwd)
        if returncode != 0:
            return _StubResult(returncode=returncode, stderr="pandoc: boom")
        body = "\n".join(f"<p>{line}</p>" for line in source.splitlines() if line.strip())
        output = cwd / _option(cmd, "--output")
        output.write_text(f"<html><body>\n{body}\n{extra_html}</body></html>\n", encoding="utf-8")
        return _StubResult()

    monkeypatch.setattr(convert_mod.subprocess, "run", fake_run)
    return calls


def _bundles(monkeypatch: pytest.MonkeyPatch, root: Path) -> None:
    for bundle, files in {
        "jquery": ["jquery.min.js"],
        "bootstrap": ["css/bootstrap.min.css", "js/bootstrap.min.js"],
        "highlightjs": ["highlight.js", "default.css"],
    }.items():
        for name in files:
            path = root / "h" / bundle / name
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(f"/* {bundle} */", encoding="utf-8")
    monkeypatch.setenv("HTMLSMITH_RESOURCES", str(root))


def _plain_config(**overrides: Any) -> HtmlDocumentConfig:
    options: dict[str, Any] = {"theme": None, "highlight": "tango", "mathjax": None}
    options.update(overrides)
    return HtmlDocumentConfig(**options)


def test_render_restores_preserved_chunks(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    calls = _fake_pandoc(monkeypatch)
    source = tmp_path / "report.md"
    text = f"# Title\n\n{WIDGET}\n\nBody text\n"
    source.write_text(text, encoding="utf-8")

    result = render_html_document(source, config=_plain_config(), locator=_FixedLocator())

    assert result == tmp_path / "report.html"
    html = result.read_text(encoding="utf-8")
    assert WIDGET in html
    assert f"<p>{WIDGET}</p>" not in html
    assert "widget" not in calls[0]["source"]
    assert source.read_text(encoding="utf-8") == text
    assert not (tmp_path / "report.utf8.md").exists()


def test_render_command_line(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    calls = _fake_pandoc(monkeypatch)
    source = tmp_path / "report.md"
    source.write_text("Hello\n", encoding="utf-8")

    render_html_document(
        source,
        tmp_path / "site" / "index.html",
        config=_plain_config(toc=True, toc_depth=2),
        locator=_FixedLocator(),
    )

    cmd = calls[0]["cmd"]
    assert cmd[:4] == ["/opt/pandoc/bin/pandoc", "+RTS", "-K512m", "-RTS"]
    intermediate = Path(cmd[4])
    assert intermediate.is_absolute()
    assert intermediate.name == "report.utf8.md"
    assert intermediate.parent != tmp_path
    assert cmd[5:11] == [
        "--to",
        "html4",
        "--from",
        "markdown+autolink_bare_uris+tex_math_single_backslash",
        "--output",
        "site/index.html",
    ]
    assert calls[0]["cwd"] == tmp_path
    assert "--self-contained" in cmd
    assert _option(cmd, "--template") == str(DEFAULT_TEMPLATE)
    assert _option(cmd, "--toc-depth") == "2"
    assert _option(cmd, "--highlight-style") == "tango"
    assert "--smart" not in cmd
    assert cmd.count("--lua-filter") == 2
    assert (tmp_path / "site" / "index.html").is_file()


def test_render_with_dependencies(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    _bundles(monkeypatch, tmp_path / "resources")
    output_dir = tmp_path / "doc"
    output_dir.mkdir()
    source = output_dir / "report.md"
    source.write_text("Hello\n", encoding="utf-8")
    figure = output_dir / "report_files" / "figure-html" / "plot.png"

    def make_figure(cmd: list[str], cwd: Path) -> None:
        figure.parent.mkdir(parents=True, exist_ok=True)
        figure.write_bytes(b"png")

    calls = _fake_pandoc(
        monkeypatch, extra_html=f'<img src="{figure}" />\n', on_run=make_figure
    )
    config = HtmlDocumentConfig(self_contained=False)

    result = render_html_document(source, config=config, locator=_FixedLocator())

    header = calls[0]["header"]
    assert '<script src="report_files/jquery-1.11.3/jquery.min.js"></script>' in header
    assert 'href="report_files/bootstrap-3.3.5/css/bootstrap.min.css"' in header
    assert "report_files/highlightjs-9.12.0/highlight.js" in header
    assert default_mathjax() in header
    cmd = calls[0]["cmd"]
    assert "--self-contained" not in cmd
    assert "theme:bootstrap" in cmd
    assert "highlightjs=1" in cmd
    assert f"mathjax-url:{default_mathjax()}" in cmd
    assert (output_dir / "report_files" / "jquery-1.11.3" / "jquery.min.js").is_file()
    assert '<img src="report_files/figure-html/plot.png" />' in result.read_text(encoding="utf-8")


def test_self_contained_render_removes_new_files_dir(
    monkeypatch: pytest.MonkeyPatch, tmp_path: Path
) -> None:
    files_dir = tmp_path / "report_files"

    def make_files(cmd: list[str], cwd: Path) -> None:
        files_dir.mkdir(exist_ok=True)
        (files_dir / "plot.png").write_bytes(b"png")

    _fake_pandoc(monkeypatch, on_run=make_files)
    source = tmp_path / "report.md"
    source.write_text("Hello\n", encoding="utf-8")

    render_html_document(source, config=_plain_config(), locator=_FixedLocator())
    assert not files_dir.exists()

    files_dir.mkdir()
    render_html_document(source, config=_plain_config(), locator=_FixedLocator())
    assert files_dir.exists()


def test_incompatible_options_fail_before_pandoc(
    monkeypatch: pytest.MonkeyPatch, tmp_path: Path
) -> None:
    calls = _fake_pandoc(monkeypatch)
    source = tmp_path / "report.md"
    source.write_text(
        "---\noutput:\n  html_document:\n    mathjax: local\n---\nHello\n", encoding="utf-8"
    )

    with pytest.raises(IncompatibleOptionsError):
        render_html_document(source, locator=_FixedLocator())

    assert calls == []
    assert not (tmp_path / "report.utf8.md").exists()
    assert not (tmp_path / "report.html").exists()


def test_options_come_from_front_matter(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    calls = _fake_pandoc(monkeypatch)
    source = tmp_path / "report.md"
    source.write_text(
        "---\ntitle: Demo\noutput:\n  html_document:\n    theme: null\n"
        "    highlight: kate\n    toc: true\n---\nHello\n",
        encoding="utf-8",
    )

    render_html_document(source, locator=_FixedLocator())

    cmd = calls[0]["cmd"]
    assert "--table-of-contents" in cmd
    assert _option(cmd, "--highlight-style") == "kate"
    assert not any(token.startswith("theme:") for token in cmd)


def test_render_keeps_existing_utf8_sibling(
    monkeypatch: pytest.MonkeyPatch, tmp_path: Path
) -> None:
    calls = _fake_pandoc(monkeypatch)
    source = tmp_path / "report.md"
    source.write_text("Hello\n", encoding="utf-8")
    notes = tmp_path / "report.utf8.md"
    notes.write_text("MY NOTES\n", encoding="utf-8")

    render_html_document(source, config=_plain_config(), locator=_FixedLocator())

    assert notes.read_text(encoding="utf-8") == "MY NOTES\n"
    assert calls[0]["source"] == "Hello\n"
    assert "<p>MY NOTES</p>" not in (tmp_path / "report.html").read_text(encoding="utf-8")


def test_render_to_other_directory_fixes_relative_assets(
    monkeypatch: pytest.MonkeyPatch, tmp_path: Path
) -> None:
    _fake_pandoc(monkeypatch, extra_html='<img src="fig.png" />\n')
    input_dir = tmp_path / "src"
    input_dir.mkdir()
    (input_dir / "fig.png").write_bytes(b"png")
    source = input_dir / "report.md"
    source.write_text("Hello\n", encoding="utf-8")

    result = render_html_document(
        source,
        tmp_path / "out" / "report.html",
        config=_plain_config(self_contained=False),
        locator=_FixedLocator(),
    )

    html = result.read_text(encoding="utf-8")
    assert '<img src="../src/fig.png" />' in html
    assert (result.parent / "../src/fig.png").resolve() == (input_dir / "fig.png").resolve()


def test_failed_conversion_cleans_up(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    _fake_pandoc(monkeypatch, returncode=2)
    source = tmp_path / "report.md"
    source.write_text("Hello\n", encoding="utf-8")

    with pytest.raises(ConversionError) as excinfo:
        render_html_document(source, config=_plain_config(), locator=_FixedLocator())

    assert excinfo.value.exit_code == 2
    assert not (tmp_path / "report.utf8.md").exists()


def test_missing_input(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError):
        render_html_document(tmp_path / "missing.md", locator=_FixedLocator())


def test_remote_dependencies_and_knit_meta(
    monkeypatch: pytest.MonkeyPatch, tmp_path: Path
) -> None:
    calls = _fake_pandoc(monkeypatch)
    source = tmp_path / "report.md"
    source.write_text("Hello\n", encoding="utf-8")
    older = html_dependency(
        "chart", "1.0", None, href="https://cdn.example.com/chart-1", script="c.js"
    )
    newer = html_dependency(
        "chart", "2.0", None, href="https://cdn.example.com/chart-2", script="c.js"
    )

    render_html_document(
        source,
        config=_plain_config(),
        knit_meta=[["ignored", [older]]],
        extra_dependencies=[newer],
        locator=_FixedLocator(),
    )

    header = calls[0]["header"]
    assert '<script src="https://cdn.example.com/chart-2/c.js"></script>' in header
    assert "chart-1" not in header


def test_base_args_for_old_pandoc(tmp_path: Path) -> None:
    config = _plain_config(
        template=str(tmp_path / "page.html"),
        css=["style.css"],
        includes={"before_body": ["banner.html"]},
        pandoc_args=["--number-sections"],
    )
    document_format = HtmlDocumentFormat(config, locator=_FixedLocator("1.19"))
    args = document_format.base_args()
    assert args[0] == "--smart"
    assert _option(args, "--template") == str(tmp_path / "page.html")
    assert _option(args, "--css") == "style.css"
    assert _option(args, "--include-before-body") == "banner.html"
    assert args[-1] == "--number-sections"


def test_render_stages_advance_in_order(tmp_path: Path) -> None:
    ctx = RenderContext(
        input_path=tmp_path / "a.md",
        intermediate=tmp_path / "a.utf8.md",
        output_path=tmp_path / "a.html",
        files_dir=tmp_path / "a_files",
        lib_dir=tmp_path / "a_files",
        scratch_dir=tmp_path,
    )
    assert ctx.output_dir == tmp_path
    with pytest.raises(RuntimeError):
        ctx.advance(RenderStage.CONVERTED)
    for stage in list(RenderStage)[1:]:
        ctx.advance(stage)
    assert ctx.stage is RenderStage.FINAL
    with pytest.raises(RuntimeError):
        RenderStage.FINAL.successor()
