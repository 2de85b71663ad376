"""Custom exception hierarchy for the HTML rendering pipeline."""

from __future__ import annotations


class RenderingError(RuntimeError):
    """Base exception for document rendering failures."""


class ValidationError(RenderingError):
    """Raised when a dependency record is malformed or its assets are missing."""


class NotFoundError(RenderingError):
    """Raised when pandoc is absent or older than the required version."""


class AmbiguousInputError(RenderingError):
    """Raised when inputs span several directories and no working directory is given."""


class ConversionError(RenderingError):
    """Raised when pandoc exits with a nonzero status."""

    def __init__(self, exit_code: int | None, message: str | None = None) -> None:
        self.exit_code = exit_code
        if message is None:
            message = f"pandoc document conversion failed with error {exit_code}"
        super().__init__(message)


class IncompatibleOptionsError(RenderingError):
    """Raised when format options cannot be combined."""


def exception_messages(exc: BaseException) -> list[str]:
    """Return the collected message chain for an exception and its causes."""
    messages: list[str] = []
    visited: set[int] = set()
    current: BaseException | None = exc
    while current is not None and id(current) not in visited:
        visited.add(id(current))
        text = str(current).strip()
        if text:
            first_line = text.splitlines()[0].strip()
            if first_line:
                messages.append(first_line)
        current = current.__cause__ or current.__context__
    return messages


def exception_hint(exc: BaseException) -> str | None:
    """Return the most specific message available for an exception chain."""
    messages = exception_messages(exc)
    return messages[-1] if messages else None


__all__ = [
    "AmbiguousInputError",
    "ConversionError",
    "IncompatibleOptionsError",
    "NotFoundError",
    "RenderingError",
    "ValidationError",
    "exception_hint",
    "exception_messages",
]
