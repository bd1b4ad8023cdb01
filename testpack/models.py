"""Test package descriptors handed to test runners."""

from __future__ import annotations

import os
from typing import Any, Iterable

from .errors import InvalidPathError, SettingTypeMismatchError

PathLike = str | os.PathLike


class PackageDescriptor:
    """A set of tests to be loaded by a test runner.

    A descriptor bound to a file path stands for a single test assembly or
    project. Several assemblies are grouped under an anonymous descriptor
    whose children are the individual packages. Both forms carry a mapping of
    settings that tells the runner how to load and run the tests.

    Descriptors are not synchronized. A tree shared between threads must be
    guarded by the caller. Nothing stops a descriptor from being added to
    itself or to one of its descendants; ``get_assemblies`` on such a tree
    recurses until Python raises ``RecursionError``.
    """

    def __init__(self, file_path: PathLike | None = None) -> None:
        self._file_path: str | None = normalize_path(file_path) if file_path is not None else None
        self._children: list[PackageDescriptor] = []
        self._settings: dict[str, Any] = {}

    @classmethod
    def from_path(cls, path: PathLike) -> PackageDescriptor:
        """Return a descriptor for the assembly or project at ``path``."""
        return cls._restore(normalize_path(path))

    @classmethod
    def from_paths(cls, paths: Iterable[PathLike]) -> PackageDescriptor:
        """Return an anonymous descriptor with one child per path, in order."""
        package = cls()
        for path in paths:
            package.add(cls.from_path(path))
        return package

    @classmethod
    def empty(cls) -> PackageDescriptor:
        return cls()

    @classmethod
    def _restore(cls, file_path: str | None) -> PackageDescriptor:
        # file_path is already normalized; used when decoding documents
        package = cls()
        package._file_path = file_path
        return package

    # ------------------------------------------------------------------
    # properties

    @property
    def name(self) -> str | None:
        if self._file_path is None:
            return None
        return os.path.basename(self._file_path)

    @property
    def file_path(self) -> str | None:
        """Absolute path of the assembly or project file, if any."""
        return self._file_path

    @property
    def children(self) -> list[PackageDescriptor]:
        """Sub-packages of this package. Returns a copy."""
        return list(self._children)

    @property
    def has_children(self) -> bool:
        return len(self._children) > 0

    @property
    def settings(self) -> dict[str, Any]:
        """The settings mapping itself; writes go straight to the package."""
        return self._settings

    # ------------------------------------------------------------------
    # operations

    def add(self, package: PackageDescriptor) -> None:
        """Append ``package`` as a sub-package."""
        self._children.append(package)

    def set_setting(self, name: str, value: Any) -> None:
        self._settings[name] = value

    def get_assemblies(self) -> list[str | None]:
        """Return the file paths of every leaf package, depth first.

        A package without children yields its own path, which is ``None``
        for an anonymous package. A package with children yields only what
        its children yield, never its own path.
        """
        if not self._children:
            return [self._file_path]
        assemblies: list[str | None] = []
        for child in self._children:
            assemblies.extend(child.get_assemblies())
        return assemblies

    def get_setting(self, name: str, default: Any, expected_type: type | None = None) -> Any:
        """Return the setting ``name``, or ``default`` when it was never set.

        The stored value must be of ``expected_type``, which defaults to the
        type of ``default``. When neither tells us a type (``default`` is
        None and no type is given) the value is returned as is.

        Raises:
            SettingTypeMismatchError: the value is present but of another type.
        """
        if name not in self._settings:
            return default
        value = self._settings[name]
        wanted = expected_type if expected_type is not None else _type_of_default(default)
        if wanted is None or _matches_type(value, wanted):
            return value
        raise SettingTypeMismatchError(name, wanted, type(value))

    # ------------------------------------------------------------------
    # value semantics

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, PackageDescriptor):
            return NotImplemented
        return (
            self._file_path == other._file_path
            and self._children == other._children
            and self._settings == other._settings
        )

    def __repr__(self) -> str:
        if self._file_path is not None:
            ident = repr(self._file_path)
        else:
            ident = "<anonymous>"
        return f"PackageDescriptor({ident}, children={len(self._children)}, settings={len(self._settings)})"


# ---------------------------------------------------------------------------
# helpers


def normalize_path(path: Any) -> str:
    """Return ``path`` as an absolute, normalized path string.

    Relative paths are resolved against the current working directory. The
    path does not need to exist.
    """
    try:
        raw = os.fspath(path)
    except TypeError as exc:
        raise InvalidPathError(path, "not a path-like value") from exc
    if isinstance(raw, bytes):
        try:
            raw = os.fsdecode(raw)
        except UnicodeDecodeError as exc:
            raise InvalidPathError(path, "cannot be decoded") from exc
    if not raw.strip():
        raise InvalidPathError(path, "path is empty")
    if "\0" in raw:
        raise InvalidPathError(path, "path contains a NUL character")
    try:
        return os.path.abspath(raw)
    except (OSError, ValueError) as exc:
        raise InvalidPathError(path, str(exc)) from exc


def _type_of_default(default: Any) -> type | None:
    if default is None:
        return None
    return type(default)


def _matches_type(value: Any, wanted: type) -> bool:
    # bool is an int subclass; neither stands in for the other here
    if wanted is bool:
        return isinstance(value, bool)
    if wanted is int:
        return isinstance(value, int) and not isinstance(value, bool)
    return isinstance(value, wanted)


__all__ = [
    "PackageDescriptor",
    "normalize_path",
]
