"""Test package descriptors: what a test runner should load and how."""

from .errors import InvalidPathError, PackageError, SettingTypeMismatchError
from .models import PackageDescriptor, normalize_path
from .serialization import dumps, load_package, loads, save_package

__all__ = [
    "InvalidPathError",
    "PackageDescriptor",
    "PackageError",
    "SettingTypeMismatchError",
    "dumps",
    "load_package",
    "loads",
    "normalize_path",
    "save_package",
]
