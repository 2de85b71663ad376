from __future__ import annotations

from pathlib import Path
from typing import Any

import pytest

from htmlsmith.core.exceptions import NotFoundError
from htmlsmith.core.versions import DottedVersion, parse_version
from htmlsmith.pandoc import locator as locator_mod
from htmlsmith.pandoc.locator import PandocLocator, parse_version_output


class _StubResult:
    def __init__(self, returncode: int = 0, stdout: str = "", stderr: str = "") -> None:
        self.returncode = returncode
        self.stdout = stdout
        self.stderr = stderr


def _locator_with(
    monkeypatch: pytest.MonkeyPatch, versions: dict[str, str | int]
) -> tuple[PandocLocator, list[Path]]:
    locator = PandocLocator()
    probed: list[Path] = []
    dirs = [Path(f"/opt/{name}") for name in versions]

    def fake_probe(directory: Path) -> DottedVersion:
        probed.append(directory)
        value = versions[directory.name]
        return DottedVersion.zero() if value == 0 else parse_version(value)

    monkeypatch.setattr(locator, "candidate_dirs", lambda: list(dirs))
    monkeypatch.setattr(locator, "probe_version", fake_probe)
    return locator, probed


def test_parse_version_output() -> None:
    output = "pandoc 2.11.4\nCompiled with pandoc-types 1.22\n"
    assert parse_version_output(output) == parse_version("2.11.4")
    assert parse_version_output("pandoc.exe 1.19.2.1") == parse_version("1.19.2.1")
    assert parse_version_output("").is_zero
    assert parse_version_output("pandoc").is_zero


def test_locate_picks_highest_version(monkeypatch: pytest.MonkeyPatch) -> None:
    locator, _ = _locator_with(monkeypatch, {"bundled": 0, "system": "2.1", "user": "1.17"})
    location = locator.locate()
    assert location.binary_dir == Path("/opt/system")
    assert location.version == "2.1"


def test_locate_prefers_first_candidate_on_ties(monkeypatch: pytest.MonkeyPatch) -> None:
    locator, _ = _locator_with(monkeypatch, {"bundled": "2.5", "system": "2.5.0"})
    assert locator.locate().binary_dir == Path("/opt/bundled")


def test_locate_raises_when_nothing_found(monkeypatch: pytest.MonkeyPatch) -> None:
    locator, _ = _locator_with(monkeypatch, {"bundled": 0, "system": 0})
    with pytest.raises(NotFoundError):
        locator.locate()
    assert not locator.is_available()


def test_locate_caches_successful_scan(monkeypatch: pytest.MonkeyPatch) -> None:
    locator, probed = _locator_with(monkeypatch, {"system": "2.0"})
    first = locator.locate()
    second = locator.locate()
    assert first is second
    assert len(probed) == 1

    locator.locate(force_rescan=True)
    assert len(probed) == 2

    locator.reset()
    locator.locate()
    assert len(probed) == 3


def test_failed_scan_is_not_cached(monkeypatch: pytest.MonkeyPatch) -> None:
    versions: dict[str, str | int] = {"system": 0}
    locator, probed = _locator_with(monkeypatch, versions)
    with pytest.raises(NotFoundError):
        locator.locate()
    versions["system"] = "2.2"
    assert locator.locate().version == "2.2"
    assert len(probed) == 2


def test_require_available_checks_minimum_version(monkeypatch: pytest.MonkeyPatch) -> None:
    locator, _ = _locator_with(monkeypatch, {"system": "1.19"})
    assert locator.is_available("1.12.3")
    assert not locator.is_available("2.0")
    with pytest.raises(NotFoundError, match="version 2.0 or higher"):
        locator.require_available("2.0")
    assert locator.require_available("1.19").version == "1.19"


def test_locate_reports_event(monkeypatch: pytest.MonkeyPatch) -> None:
    events: list[tuple[str, dict[str, Any]]] = []

    class Recorder:
        debug_enabled = False

        def warning(self, message, exc=None):
            return None

        def error(self, message, exc=None):
            return None

        def event(self, name, payload):
            events.append((name, dict(payload)))

    locator = PandocLocator(emitter=Recorder())
    monkeypatch.setattr(locator, "candidate_dirs", lambda: [Path("/opt/system")])
    monkeypatch.setattr(locator, "probe_version", lambda _dir: parse_version("2.3"))
    locator.locate()
    assert events == [("pandoc_located", {"dir": "/opt/system", "version": "2.3"})]


def test_candidate_dirs_order(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.setenv("RSTUDIO_PANDOC", str(tmp_path / "bundled"))
    monkeypatch.setattr(locator_mod, "find_program", lambda _name: "/usr/local/bin/pandoc")
    monkeypatch.setattr(locator_mod, "is_windows", lambda: False)
    dirs = PandocLocator().candidate_dirs()
    assert dirs == [
        tmp_path / "bundled",
        Path("/usr/local/bin"),
        Path("~/opt/pandoc").expanduser(),
    ]


def test_candidate_dirs_skip_user_dir_on_windows(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(locator_mod, "find_program", lambda _name: None)
    monkeypatch.setattr(locator_mod, "is_windows", lambda: True)
    assert PandocLocator().candidate_dirs() == []


def test_probe_version_runs_binary(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    binary = tmp_path / "pandoc"
    binary.write_text("#!/bin/sh\n", encoding="utf-8")
    binary.chmod(0o755)
    monkeypatch.setattr(locator_mod, "is_windows", lambda: False)
    recorded: dict[str, Any] = {}

    def fake_run(cmd: list[str], **kwargs: Any) -> _StubResult:
        recorded["command"] = cmd
        recorded["env"] = kwargs["env"]
        return _StubResult(stdout="pandoc 2.9.2.1\n")

    monkeypatch.setattr(locator_mod.subprocess, "run", fake_run)

    assert PandocLocator().probe_version(tmp_path) == "2.9.2.1"
    assert recorded["command"] == [str(binary), "--version"]
    assert "LC_ALL" not in recorded["env"]


def test_probe_version_handles_failures(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    locator = PandocLocator()
    assert locator.probe_version(tmp_path / "missing").is_zero
    assert locator.probe_version(tmp_path).is_zero

    binary = tmp_path / "pandoc"
    binary.write_text("#!/bin/sh\n", encoding="utf-8")
    binary.chmod(0o755)
    monkeypatch.setattr(locator_mod, "is_windows", lambda: False)
    monkeypatch.setattr(
        locator_mod.subprocess, "run", lambda cmd, **kwargs: _StubResult(returncode=1)
    )
    assert locator.probe_version(tmp_path).is_zero

    def broken(cmd: list[str], **kwargs: Any) -> _StubResult:
        raise OSError("exec format error")

    monkeypatch.setattr(locator_mod.subprocess, "run", broken)
    assert locator.probe_version(tmp_path).is_zero


def test_module_helpers_use_default_locator(monkeypatch: pytest.MonkeyPatch) -> None:
    locator = locator_mod.default_locator()
    monkeypatch.setattr(locator, "candidate_dirs", lambda: [Path("/opt/system")])
    monkeypatch.setattr(locator, "probe_version", lambda _dir: parse_version("2.7"))
    monkeypatch.setattr(locator_mod, "is_windows", lambda: False)

    assert locator_mod.pandoc_available()
    assert locator_mod.pandoc_available("2.0")
    assert not locator_mod.pandoc_available("3.0")
    with pytest.raises(NotFoundError):
        locator_mod.pandoc_available("3.0", error=True)
    assert locator_mod.pandoc_version() == "2.7"
    assert locator_mod.pandoc_exec() == Path("/opt/system/pandoc")
    assert locator_mod.pandoc2()
    assert locator_mod.pandoc_citeproc() == "pandoc-citeproc"
    assert locator_mod.find_pandoc().binary_dir == Path("/opt/system")
