"""Discovery of the pandoc binary and its version.

Several install locations are scanned and the highest version found wins:

1. the directory named by ``RSTUDIO_PANDOC`` (a bundled install),
2. the directory of the ``pandoc`` found on the search path,
3. ``~/opt/pandoc`` (not on Windows).

The first successful scan is cached on the locator; pass ``force_rescan``
to look again.
"""

from __future__ import annotations

from dataclasses import dataclass
import logging
import os
from pathlib import Path
import subprocess

from htmlsmith.core.diagnostics import DiagnosticEmitter, ensure_emitter
from htmlsmith.core.exceptions import NotFoundError
from htmlsmith.core.paths import find_program, is_windows
from htmlsmith.core.versions import DottedVersion, parse_version

from .environment import pandoc_safe_environment


logger = logging.getLogger(__name__)

BUNDLED_PANDOC_ENV = "RSTUDIO_PANDOC"
USER_FALLBACK_DIR = "~/opt/pandoc"


@dataclass(frozen=True, slots=True)
class ToolLocation:
    """A pandoc installation: its directory and parsed version."""

    binary_dir: Path
    version: DottedVersion
    binary_name: str = "pandoc"

    @property
    def binary(self) -> Path:
        return executable_path(self.binary_dir, self.binary_name)


def executable_path(directory: Path, name: str) -> Path:
    path = Path(directory) / name
    if is_windows():
        path = path.with_suffix(".exe")
    return path


def parse_version_output(output: str) -> DottedVersion:
    """Parse ``pandoc --version`` output: second token of the first line."""
    lines = output.splitlines()
    if not lines:
        return DottedVersion.zero()
    tokens = lines[0].split()
    if len(tokens) < 2:
        return DottedVersion.zero()
    try:
        return parse_version(tokens[1])
    except ValueError:
        return DottedVersion.zero()


class PandocLocator:
    """Scan candidate directories for pandoc and cache the best match."""

    def __init__(
        self,
        *,
        binary_name: str = "pandoc",
        emitter: DiagnosticEmitter | None = None,
    ) -> None:
        self.binary_name = binary_name
        self._emitter = emitter
        self._cached: ToolLocation | None = None

    def reset(self) -> None:
        """Forget the cached location."""
        self._cached = None

    def candidate_dirs(self) -> list[Path]:
        """Return the directories to probe, in priority order."""
        sources: list[Path] = []
        bundled = os.environ.get(BUNDLED_PANDOC_ENV)
        if bundled:
            sources.append(Path(bundled))
        system_binary = find_program(self.binary_name)
        if system_binary:
            sources.append(Path(system_binary).parent)
        if not is_windows():
            sources.append(Path(USER_FALLBACK_DIR).expanduser())
        return sources

    def probe_version(self, directory: Path) -> DottedVersion:
        """Return the version of the pandoc in ``directory`` (zero when absent)."""
        if not directory.is_dir():
            return DottedVersion.zero()
        binary = executable_path(directory, self.binary_name)
        if not binary.is_file() or not os.access(binary, os.X_OK):
            return DottedVersion.zero()
        try:
            process = subprocess.run(
                [str(binary), "--version"],
                check=False,
                capture_output=True,
                text=True,
                env=pandoc_safe_environment(),
            )
        except OSError as exc:
            logger.debug("Unable to run %s: %s", binary, exc)
            return DottedVersion.zero()
        if process.returncode != 0:
            return DottedVersion.zero()
        return parse_version_output(process.stdout or "")

    def scan(self) -> ToolLocation | None:
        """Probe every candidate and return the highest version found."""
        found: ToolLocation | None = None
        for directory in self.candidate_dirs():
            version = self.probe_version(directory)
            logger.debug("pandoc candidate %s has version %s", directory, version)
            if found is None:
                if not version.is_zero:
                    found = ToolLocation(directory, version, self.binary_name)
            elif version > found.version:
                found = ToolLocation(directory, version, self.binary_name)
        return found

    def locate(self, force_rescan: bool = False) -> ToolLocation:
        """Return the selected pandoc installation.

        Raises :class:`NotFoundError` when no candidate yields a version.
        """
        if self._cached is not None and not force_rescan:
            return self._cached
        found = self.scan()
        if found is None:
            raise NotFoundError(
                "pandoc is required and was not found "
                f"(install it on PATH or set {BUNDLED_PANDOC_ENV})."
            )
        self._cached = found
        ensure_emitter(self._emitter).event(
            "pandoc_located", {"dir": str(found.binary_dir), "version": str(found.version)}
        )
        return found

    def is_available(self, min_version: str | DottedVersion | None = None) -> bool:
        """Return whether pandoc (at least ``min_version``) is available."""
        try:
            location = self.locate()
        except NotFoundError:
            return False
        return min_version is None or location.version >= parse_version(min_version)

    def require_available(
        self, min_version: str | DottedVersion | None = None
    ) -> ToolLocation:
        """Return the location, failing loudly when pandoc is missing or too old."""
        if not self.is_available(min_version):
            parts = ["pandoc"]
            if min_version is not None:
                parts.append(f"version {min_version} or higher")
            parts.append("is required and was not found.")
            raise NotFoundError(" ".join(parts))
        return self.locate()


_default_locator = PandocLocator()


def default_locator() -> PandocLocator:
    return _default_locator


def find_pandoc(cache: bool = True) -> ToolLocation | None:
    """Scan for pandoc, returning ``None`` instead of raising when absent."""
    try:
        return _default_locator.locate(force_rescan=not cache)
    except NotFoundError:
        return None


def pandoc_available(version: str | None = None, error: bool = False) -> bool:
    """Return whether pandoc (at least ``version``) is available."""
    if error:
        _default_locator.require_available(version)
        return True
    return _default_locator.is_available(version)


def pandoc_version() -> DottedVersion:
    return _default_locator.locate().version


def pandoc_exec() -> Path:
    """Return the path of the pandoc executable in use."""
    return _default_locator.locate().binary


def pandoc_citeproc(locator: PandocLocator | None = None) -> str:
    """Return ``pandoc-citeproc`` next to pandoc, else the bare command name."""
    location = (locator or _default_locator).locate()
    candidate = executable_path(location.binary_dir, "pandoc-citeproc")
    return str(candidate) if candidate.exists() else "pandoc-citeproc"


def pandoc2(locator: PandocLocator | None = None) -> bool:
    """Return whether pandoc 2.0 or later is available."""
    return (locator or _default_locator).is_available("2.0")


__all__ = [
    "BUNDLED_PANDOC_ENV",
    "USER_FALLBACK_DIR",
    "PandocLocator",
    "ToolLocation",
    "default_locator",
    "executable_path",
    "find_pandoc",
    "pandoc2",
    "pandoc_available",
    "pandoc_citeproc",
    "pandoc_exec",
    "pandoc_version",
    "parse_version_output",
]
