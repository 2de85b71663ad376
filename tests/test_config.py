from __future__ import annotations

from pathlib import Path

import pytest

from htmlsmith.core.config import (
    HtmlDocumentConfig,
    front_matter_options,
    load_config,
    split_front_matter,
    validate_options,
)
from htmlsmith.core.exceptions import IncompatibleOptionsError


def test_defaults() -> None:
    config = HtmlDocumentConfig()
    assert config.self_contained is True
    assert config.theme == "default"
    assert config.mathjax == "default"
    assert config.highlight == "default"
    assert config.uses_default_template
    assert config.stack_size == "512m"


def test_stack_size_from_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("HTMLSMITH_PANDOC_STACK_SIZE", "1g")
    assert HtmlDocumentConfig().stack_size == "1g"


def test_none_aliases_disable_features() -> None:
    config = HtmlDocumentConfig(theme="none", mathjax="null", highlight=False)
    assert config.theme is None
    assert config.mathjax is None
    assert config.highlight is None


def test_unknown_theme_is_rejected() -> None:
    with pytest.raises(ValueError):
        HtmlDocumentConfig(theme="neon")


def test_unknown_highlight_style_is_rejected_for_default_template() -> None:
    with pytest.raises(ValueError, match="solarized"):
        HtmlDocumentConfig(highlight="solarized")
    assert HtmlDocumentConfig(highlight="textmate").highlight == "textmate"
    custom = HtmlDocumentConfig(highlight="solarized", template="page.html")
    assert custom.highlight == "solarized"


def test_unknown_option_is_rejected() -> None:
    with pytest.raises(ValueError):
        HtmlDocumentConfig.model_validate({"fig_width": 7})


def test_includes_accept_single_paths() -> None:
    config = HtmlDocumentConfig.model_validate(
        {"includes": {"in_header": "head.html"}, "css": "style.css"}
    )
    assert config.includes.in_header == [Path("head.html")]
    assert config.includes.before_body == []
    assert config.css == [Path("style.css")]


def test_self_contained_rejects_local_mathjax() -> None:
    with pytest.raises(IncompatibleOptionsError):
        validate_options(HtmlDocumentConfig(mathjax="local"))
    config = HtmlDocumentConfig(mathjax="local", self_contained=False)
    assert validate_options(config) is config


def test_self_contained_rejects_copy_resources() -> None:
    with pytest.raises(IncompatibleOptionsError):
        validate_options(HtmlDocumentConfig(copy_resources=True))


def test_split_front_matter() -> None:
    source = "---\ntitle: Demo\noutput:\n  html_document:\n    toc: true\n---\n# Body\n"
    metadata, body = split_front_matter(source)
    assert metadata["title"] == "Demo"
    assert body == "# Body\n"
    assert front_matter_options(metadata) == {"toc": True}


def test_split_front_matter_without_header() -> None:
    source = "# Title\n\n---\n"
    assert split_front_matter(source) == ({}, source)
    assert split_front_matter("---\n: [\n---\n") == ({}, "---\n: [\n---\n")


def test_front_matter_options_ignores_other_formats() -> None:
    assert front_matter_options({"output": "pdf_document"}) == {}
    assert front_matter_options({"output": {"pdf_document": {"toc": True}}}) == {}
    assert front_matter_options(None) == {}


def test_load_config_precedence(tmp_path: Path) -> None:
    config_file = tmp_path / "options.yml"
    config_file.write_text(
        "html_document:\n  toc: true\n  theme: flatly\n  highlight: kate\n",
        encoding="utf-8",
    )
    config = load_config(
        config_file,
        document={"theme": "cosmo", "mathjax": None},
        overrides={"highlight": "zenburn", "toc": None},
    )
    assert config.toc is True
    assert config.theme == "cosmo"
    assert config.mathjax is None
    assert config.highlight == "zenburn"


def test_load_config_accepts_flat_file(tmp_path: Path) -> None:
    config_file = tmp_path / "options.yml"
    config_file.write_text("toc_depth: 2\n", encoding="utf-8")
    assert load_config(config_file).toc_depth == 2


def test_load_config_rejects_non_mapping(tmp_path: Path) -> None:
    config_file = tmp_path / "options.yml"
    config_file.write_text("- toc\n", encoding="utf-8")
    with pytest.raises(ValueError):
        load_config(config_file)
