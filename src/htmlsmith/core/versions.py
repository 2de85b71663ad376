"""Dotted numeric versions used for pandoc and dependency ordering."""

from __future__ import annotations

from dataclasses import dataclass
from functools import total_ordering
import re


_VERSION_PREFIX = re.compile(r"\d+(?:\.\d+)*")


@total_ordering
@dataclass(frozen=True, slots=True)
class DottedVersion:
    """Ordered version made of numeric components.

    Missing trailing components compare as zero, so ``2.1`` equals ``2.1.0``.
    """

    parts: tuple[int, ...]

    @classmethod
    def zero(cls) -> DottedVersion:
        """Return the version used to denote "not available"."""
        return cls((0,))

    @property
    def is_zero(self) -> bool:
        return not any(self.parts)

    def _padded(self, width: int) -> tuple[int, ...]:
        return self.parts + (0,) * (width - len(self.parts))

    def __eq__(self, other: object) -> bool:
        if isinstance(other, str):
            other = parse_version(other)
        if not isinstance(other, DottedVersion):
            return NotImplemented
        width = max(len(self.parts), len(other.parts))
        return self._padded(width) == other._padded(width)

    def __lt__(self, other: object) -> bool:
        if isinstance(other, str):
            other = parse_version(other)
        if not isinstance(other, DottedVersion):
            return NotImplemented
        width = max(len(self.parts), len(other.parts))
        return self._padded(width) < other._padded(width)

    def __hash__(self) -> int:
        parts = list(self.parts)
        while len(parts) > 1 and parts[-1] == 0:
            parts.pop()
        return hash(tuple(parts))

    def __str__(self) -> str:
        return ".".join(str(part) for part in self.parts)


def parse_version(value: str | int | float | DottedVersion | None) -> DottedVersion:
    """Parse ``value`` into a :class:`DottedVersion`.

    Leading whitespace and a ``v`` prefix are ignored, and anything after the
    numeric prefix (``-rc1``, ``+build``) is dropped. Text without digits
    raises ``ValueError``.
    """
    if isinstance(value, DottedVersion):
        return value
    if value is None:
        raise ValueError("Version value is missing.")
    text = str(value).strip()
    if text[:1] in {"v", "V"}:
        text = text[1:]
    match = _VERSION_PREFIX.match(text)
    if match is None:
        raise ValueError(f"Invalid version string: {value!r}")
    return DottedVersion(tuple(int(part) for part in match.group(0).split(".")))


__all__ = ["DottedVersion", "parse_version"]
