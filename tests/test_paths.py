from __future__ import annotations

from pathlib import Path

import pytest

from htmlsmith.core import paths as paths_mod
from htmlsmith.core.exceptions import AmbiguousInputError
from htmlsmith.core.paths import (
    base_dir,
    file_name_without_shell_chars,
    normalized_relative_to,
    pandoc_path_arg,
    quoted,
    relative_to,
    same_path,
)


def test_base_dir_returns_shared_parent() -> None:
    assert base_dir(["/a/x.md", "/a/y.md"]) == Path("/a")


def test_base_dir_rejects_mixed_directories() -> None:
    with pytest.raises(AmbiguousInputError):
        base_dir(["/a/x.md", "/b/y.md"])


def test_relative_to_strips_directory_prefix() -> None:
    assert relative_to("/out", "/out/figures/plot.png") == "figures/plot.png"
    assert relative_to("/out/", "/out/plot.png") == "plot.png"


def test_relative_to_leaves_outside_paths_untouched() -> None:
    assert relative_to("/out", "/other/plot.png") == "/other/plot.png"
    assert relative_to("/out", "/outside/plot.png") == "/outside/plot.png"


def test_normalized_relative_to_resolves_both_sides(tmp_path: Path) -> None:
    target = tmp_path / "a" / "b.png"
    dotted = tmp_path / "a" / ".." / "a" / "b.png"
    assert normalized_relative_to(tmp_path, dotted) == "a/b.png"
    assert same_path(target, dotted)


def test_pandoc_path_arg_strips_dot_prefix(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(paths_mod, "is_windows", lambda: False)
    assert pandoc_path_arg("./doc.md") == "doc.md"
    assert pandoc_path_arg("dir/doc.md") == "dir/doc.md"


def test_pandoc_path_arg_uses_backslashes_on_windows(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(paths_mod, "is_windows", lambda: True)
    assert pandoc_path_arg("dir/sub/doc.md") == "dir\\sub\\doc.md"
    assert pandoc_path_arg("dir/sub/doc.md", backslash=False) == "dir/sub/doc.md"


def test_quoted_only_touches_shell_sensitive_arguments() -> None:
    assert quoted(["pandoc", "my file.md", "--to", "html4"]) == [
        "pandoc",
        "'my file.md'",
        "--to",
        "html4",
    ]


def test_file_name_without_shell_chars_keeps_directory() -> None:
    assert file_name_without_shell_chars("my report (draft).md") == "my-report--draft-.md"
    assert file_name_without_shell_chars("out/a b.html") == "out/a-b.html"
