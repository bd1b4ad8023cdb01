"""Exceptions raised by test package descriptors."""

from __future__ import annotations

from typing import Any


class PackageError(Exception):
    """Base class for errors raised by this package."""


class InvalidPathError(PackageError, ValueError):
    """A file path could not be normalized to an absolute path."""

    def __init__(self, path: Any, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"Invalid package path {path!r}: {reason}")


class SettingTypeMismatchError(PackageError, TypeError):
    """A stored setting does not have the type the caller asked for."""

    def __init__(self, name: str, expected: type, actual: type):
        self.name = name
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"Setting {name!r} holds a {actual.__name__} value, "
            f"not the requested {expected.__name__}"
        )


__all__ = [
    "InvalidPathError",
    "PackageError",
    "SettingTypeMismatchError",
]
