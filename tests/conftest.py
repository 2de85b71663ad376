from __future__ import annotations

import pytest

from htmlsmith.pandoc import environment as environment_mod, locator as locator_mod


@pytest.fixture(autouse=True)
def _stable_environment(monkeypatch: pytest.MonkeyPatch, tmp_path_factory) -> None:
    monkeypatch.setenv("LANG", "C.UTF-8")
    monkeypatch.setenv("HOME", str(tmp_path_factory.mktemp("home")))
    monkeypatch.delenv("RSTUDIO_PANDOC", raising=False)
    monkeypatch.delenv("HTMLSMITH_RESOURCES", raising=False)
    monkeypatch.delenv("HTMLSMITH_PANDOC_STACK_SIZE", raising=False)
    monkeypatch.delenv("RMARKDOWN_MATHJAX_PATH", raising=False)
    environment_mod.detect_generic_lang.cache_clear()
    locator_mod.default_locator().reset()
