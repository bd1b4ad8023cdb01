"""Pydantic wire models used to persist package descriptors.

A package is written as a nested document::

    file_path: /abs/path/tests.dll      # null for anonymous packages
    children: [ ...same shape... ]
    settings:
      ProcessModel: {kind: enum, enum: "testpack.settings:ProcessModel", member: SEPARATE}
      DefaultTimeout: {kind: int, value: 3000}

Setting values are tagged with their ``kind`` so that the exact Python type
comes back on load. Hand-written documents may use plain scalars instead.
"""

from __future__ import annotations

import json
import logging
import os
import sys
from enum import Enum
from pathlib import Path
from typing import Annotated, Any, Literal, Mapping, Union

import yaml
from pydantic import (
    BaseModel,
    Field,
    StrictBool,
    StrictFloat,
    StrictInt,
    StrictStr,
    ValidationError,
    field_validator,
)

from .models import PackageDescriptor, normalize_path
from .settings import ENUM_SETTINGS

logger = logging.getLogger(__name__)

FORMATS = ("json", "yaml")

_KNOWN_ENUMS: dict[str, type[Enum]] = {
    f"{enum_cls.__module__}:{enum_cls.__qualname__}": enum_cls for enum_cls in ENUM_SETTINGS.values()
}


class StringSetting(BaseModel):
    kind: Literal["string"] = "string"
    value: StrictStr


class BoolSetting(BaseModel):
    kind: Literal["bool"] = "bool"
    value: StrictBool


class IntSetting(BaseModel):
    kind: Literal["int"] = "int"
    value: StrictInt


class FloatSetting(BaseModel):
    kind: Literal["float"] = "float"
    value: StrictFloat


class EnumSetting(BaseModel):
    """A member of an Enum class that is already loaded."""

    kind: Literal["enum"] = "enum"
    enum: str = Field(..., description="Enum class as 'module:QualName'")
    member: str = Field(..., description="Member name")

    def resolve(self) -> Enum:
        """Return the named member of a known Enum class.

        Well-known setting enums are always available. Any other enum must
        live in a module that is already imported; documents never trigger
        an import.
        """
        module_name, _, qualname = self.enum.partition(":")
        if not module_name or not qualname:
            raise ValueError(f"Malformed enum reference {self.enum!r}")
        target: Any = _KNOWN_ENUMS.get(self.enum)
        if target is None:
            module = sys.modules.get(module_name)
            if module is None:
                raise ValueError(f"Enum module {module_name!r} is not loaded")
            target = module
            for part in qualname.split("."):
                target = getattr(target, part, None)
                if target is None:
                    raise ValueError(f"Enum {self.enum!r} not found")
        if not (isinstance(target, type) and issubclass(target, Enum)):
            raise ValueError(f"{self.enum!r} is not an Enum class")
        try:
            return target[self.member]
        except KeyError as exc:
            raise ValueError(f"{self.member!r} is not a member of {self.enum!r}") from exc


class ValueSetting(BaseModel):
    """Any other JSON-compatible value (None, lists, mappings)."""

    kind: Literal["value"] = "value"
    value: Any = None


SettingValue = Annotated[
    Union[StringSetting, BoolSetting, IntSetting, FloatSetting, EnumSetting, ValueSetting],
    Field(discriminator="kind"),
]


class PackageModel(BaseModel):
    """Serialized form of a PackageDescriptor."""

    file_path: str | None = None
    children: list[PackageModel] = Field(default_factory=list)
    settings: dict[str, SettingValue] = Field(default_factory=dict)

    @field_validator("settings", mode="before")
    @classmethod
    def wrap_plain_settings(cls, value: Any) -> Any:
        """Accept plain values next to tagged ones."""
        if not isinstance(value, Mapping):
            return value
        return {name: _wrap_plain(raw) for name, raw in value.items()}


# ---------------------------------------------------------------------------
# settings


def encode_setting(value: Any) -> BaseModel:
    """Return the tagged wire form of a setting value."""
    # Enum first: IntEnum and StrEnum members are also ints and strs
    if isinstance(value, Enum):
        enum_cls = type(value)
        return EnumSetting(enum=f"{enum_cls.__module__}:{enum_cls.__qualname__}", member=value.name)
    if isinstance(value, bool):
        return BoolSetting(value=value)
    if isinstance(value, int):
        return IntSetting(value=value)
    if isinstance(value, float):
        return FloatSetting(value=value)
    if isinstance(value, str):
        return StringSetting(value=value)
    _check_plain_data(value)
    return ValueSetting(value=value)


def decode_setting(setting: BaseModel) -> Any:
    if isinstance(setting, EnumSetting):
        return setting.resolve()
    return setting.value  # type: ignore[attr-defined]


def _wrap_plain(raw: Any) -> Any:
    if isinstance(raw, Mapping) and "kind" in raw:
        return raw
    if isinstance(raw, BaseModel):
        return raw.model_dump()
    if isinstance(raw, Mapping):
        return {"kind": "value", "value": raw}
    try:
        return encode_setting(raw).model_dump()
    except TypeError:
        # leave it to the discriminated union to report
        return raw


def _check_plain_data(value: Any) -> None:
    if value is None or isinstance(value, (bool, int, float, str)):
        return
    if isinstance(value, (list, tuple)):
        for item in value:
            _check_plain_data(item)
        return
    if isinstance(value, Mapping):
        for key, item in value.items():
            if not isinstance(key, str):
                raise TypeError(f"Setting mapping keys must be strings, got {type(key).__name__}")
            _check_plain_data(item)
        return
    raise TypeError(f"Setting value of type {type(value).__name__} cannot be serialized")


# ---------------------------------------------------------------------------
# packages


def to_model(package: PackageDescriptor) -> PackageModel:
    """Convert a descriptor tree into its wire model.

    Raises:
        ValueError: the tree contains a cycle.
        TypeError: a setting value cannot be serialized.
    """
    return _to_model(package, set())


def _to_model(package: PackageDescriptor, active: set[int]) -> PackageModel:
    if id(package) in active:
        raise ValueError(f"Package tree contains a cycle at {package!r}")
    active.add(id(package))
    try:
        return PackageModel(
            file_path=package.file_path,
            children=[_to_model(child, active) for child in package.children],
            settings={name: encode_setting(value).model_dump() for name, value in package.settings.items()},
        )
    finally:
        active.discard(id(package))


def from_model(model: PackageModel, base_dir: str | os.PathLike | None = None) -> PackageDescriptor:
    """Rebuild a descriptor tree from its wire model."""
    package = PackageDescriptor._restore(_decode_path(model.file_path, base_dir))
    for child in model.children:
        package.add(from_model(child, base_dir))
    for name, setting in model.settings.items():
        package.set_setting(name, decode_setting(setting))
    return package


def to_dict(package: PackageDescriptor) -> dict[str, Any]:
    return to_model(package).model_dump(mode="json")


def from_dict(data: Mapping[str, Any], base_dir: str | os.PathLike | None = None) -> PackageDescriptor:
    """Build a descriptor tree from a decoded document.

    Relative file paths are resolved against ``base_dir`` when given,
    otherwise against the current working directory. Absolute paths are
    kept as written.
    """
    try:
        model = PackageModel.model_validate(data)
    except ValidationError as exc:
        raise ValueError("Invalid package document") from exc
    return from_model(model, base_dir)


def dumps(package: PackageDescriptor, format: str = "json") -> str:
    """Serialize ``package`` as JSON or YAML text."""
    payload = to_dict(package)
    if format == "json":
        return json.dumps(payload, indent=2)
    if format == "yaml":
        return yaml.safe_dump(payload, sort_keys=False)
    raise ValueError(f"Unsupported format {format!r}; expected one of {', '.join(FORMATS)}")


def loads(text: str | bytes, base_dir: str | os.PathLike | None = None) -> PackageDescriptor:
    """Parse YAML or JSON text into a descriptor tree."""
    payload = _load_text_payload(text)
    if not isinstance(payload, Mapping):
        raise ValueError("Package document must be a mapping")
    return from_dict(payload, base_dir)


def save_package(package: PackageDescriptor, path: str | os.PathLike, format: str | None = None) -> Path:
    """Write ``package`` to ``path``.

    Without an explicit ``format``, ``.yaml``/``.yml`` files get YAML and
    everything else JSON.
    """
    target = Path(path)
    text = dumps(package, format=format or format_for_path(target))
    target.write_text(text, encoding="utf-8")
    logger.info(f"Saved package with {len(package.get_assemblies())} assemblies to {target}")
    return target


def load_package(path: str | os.PathLike) -> PackageDescriptor:
    """Read a package document; relative paths in it are taken from its folder."""
    source = Path(path)
    logger.debug(f"Loading package document {source}")
    package = loads(source.read_text(encoding="utf-8"), base_dir=source.resolve().parent)
    logger.info(f"Loaded package from {source}: {package!r}")
    return package


def format_for_path(path: Path) -> str:
    return "yaml" if path.suffix.lower() in (".yaml", ".yml") else "json"


# ---------------------------------------------------------------------------
# helpers


def _decode_path(file_path: str | None, base_dir: str | os.PathLike | None) -> str | None:
    if file_path is None:
        return None
    if os.path.isabs(file_path):
        return file_path
    if base_dir is not None:
        return normalize_path(os.path.join(os.fspath(base_dir), file_path))
    return normalize_path(file_path)


def _load_text_payload(raw: str | bytes) -> Any:
    """Interpret raw text as JSON first, falling back to YAML."""
    text = raw.decode() if isinstance(raw, bytes) else raw
    # PyYAML misreads JSON exponent floats and surrogate-pair escapes
    try:
        return json.loads(text)
    except json.JSONDecodeError:
        pass
    try:
        payload = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ValueError("Package document is neither JSON nor YAML") from exc
    return {} if payload is None else payload


__all__ = [
    "EnumSetting",
    "PackageModel",
    "SettingValue",
    "decode_setting",
    "dumps",
    "encode_setting",
    "from_dict",
    "from_model",
    "load_package",
    "loads",
    "save_package",
    "to_dict",
    "to_model",
]
