"""Platform-aware path helpers shared by the pandoc and post-processing layers."""

from __future__ import annotations

from collections.abc import Iterable, Sequence
import os
from pathlib import Path
import platform
import re
import shlex
import shutil
import subprocess
import sys

from .exceptions import AmbiguousInputError


# Characters likely to be interpreted by the shell (redirection, globbing, ...).
SHELL_CHARS = re.compile(r"[ <>()|\\:&;#?*']")


def is_windows() -> bool:
    return sys.platform.startswith("win")


def is_macos() -> bool:
    return platform.system() == "Darwin"


def pandoc_path_arg(path: str | Path, *, backslash: bool = True) -> str:
    """Transform a path for passing to pandoc on the command line.

    The user directory is expanded and a redundant ``./`` prefix removed. On
    Windows, forward slashes are turned into backslashes as pandoc requires
    for some path references.
    """
    value = os.path.expanduser(os.fspath(path))
    if value.startswith("./"):
        value = value[2:]
    if is_windows() and backslash:
        value = value.replace("/", "\\")
    return value


def _as_posix(path: str | Path) -> str:
    return os.fspath(path).replace("\\", "/")


def relative_to(directory: str | Path, path: str | Path) -> str:
    """Return ``path`` relative to ``directory`` when it lives underneath it.

    Paths outside ``directory`` are returned unchanged.
    """
    target = _as_posix(path)
    prefix = _as_posix(directory)
    if not prefix:
        return target
    if not prefix.endswith("/"):
        prefix = f"{prefix}/"
    if target.startswith(prefix):
        return target[len(prefix) :]
    return target


def normalize_path(path: str | Path) -> str:
    """Return an absolute POSIX-style spelling of ``path``."""
    return Path(path).expanduser().resolve().as_posix()


def normalized_relative_to(directory: str | Path, path: str | Path) -> str:
    """Like :func:`relative_to`, after normalising both sides."""
    return relative_to(normalize_path(directory), normalize_path(path))


def same_path(first: str | Path, second: str | Path) -> bool:
    return normalize_path(first) == normalize_path(second)


def base_dir(paths: Iterable[str | Path]) -> Path:
    """Return the common parent directory of ``paths``.

    Raises :class:`AmbiguousInputError` when the inputs live in more than one
    directory.
    """
    parents: list[Path] = []
    for path in paths:
        parent = Path(path).parent
        if parent not in parents:
            parents.append(parent)
    if len(parents) != 1:
        raise AmbiguousInputError(
            "Input files not all in same directory, please supply explicit wd"
        )
    return parents[0]


def quoted(args: Sequence[str]) -> list[str]:
    """Shell-quote the arguments that contain shell-significant characters."""
    return [shlex.quote(arg) if SHELL_CHARS.search(arg) else arg for arg in args]


def file_name_without_shell_chars(path: str | Path) -> str:
    """Replace shell-significant characters in the file name of ``path``."""
    value = os.fspath(path)
    directory, name = os.path.split(value)
    name = SHELL_CHARS.sub("-", name)
    if directory and directory != ".":
        return os.path.join(directory, name)
    return name


def find_program(program: str) -> str | None:
    """Locate ``program`` on the search path.

    macOS strips ``PATH`` from the environment of child processes, so the
    lookup goes through ``/usr/bin/which`` with the caller's ``PATH``
    forwarded explicitly.
    """
    if is_macos():
        try:
            process = subprocess.run(
                ["/usr/bin/which", program],
                check=False,
                capture_output=True,
                text=True,
                env={"PATH": os.environ.get("PATH", "")},
            )
        except OSError:
            return None
        found = (process.stdout or "").strip()
        return found.splitlines()[0] if process.returncode == 0 and found else None
    return shutil.which(program)


__all__ = [
    "SHELL_CHARS",
    "base_dir",
    "file_name_without_shell_chars",
    "find_program",
    "is_macos",
    "is_windows",
    "normalize_path",
    "normalized_relative_to",
    "pandoc_path_arg",
    "quoted",
    "relative_to",
    "same_path",
]
