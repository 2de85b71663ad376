"""Process environment handed to pandoc.

Pandoc hangs on some Linux systems when ``LANG`` is missing, and locale
variables such as ``LC_ALL`` trip up its runtime. The parent environment is
never modified: callers receive a sanitized copy for the subprocess.
"""

from __future__ import annotations

from collections.abc import Mapping
from functools import lru_cache
import os
import platform
import shutil
import subprocess

from htmlsmith.core.exceptions import RenderingError


_FALLBACK_LANG = "en_US.UTF-8"


@lru_cache(maxsize=1)
def detect_generic_lang() -> str:
    """Return a generic UTF-8 locale, preferring ``C.UTF-8`` when installed."""
    locale_util = shutil.which("locale")
    if locale_util:
        try:
            process = subprocess.run(
                [locale_util, "-a"],
                check=False,
                capture_output=True,
                text=True,
            )
        except OSError:
            return _FALLBACK_LANG
        locales = {line.strip() for line in (process.stdout or "").splitlines()}
        if "C.UTF-8" in locales:
            return "C.UTF-8"
    return _FALLBACK_LANG


def pandoc_safe_environment(
    base: Mapping[str, str] | None = None,
    *,
    system: str | None = None,
) -> dict[str, str]:
    """Return a copy of ``base`` (default: ``os.environ``) that is safe for pandoc."""
    env = dict(os.environ if base is None else base)
    system = system or platform.system()

    env.pop("LC_ALL", None)
    env.pop("LC_CTYPE", None)

    if system == "Linux":
        if "HOME" not in env:
            raise RenderingError(
                "The 'HOME' environment variable must be set before running Pandoc."
            )
        lang = env.get("LANG")
        if lang is None:
            env["LANG"] = detect_generic_lang()
        elif lang == "en_US":
            env["LANG"] = "en_US.UTF-8"

    return env


__all__ = ["detect_generic_lang", "pandoc_safe_environment"]
