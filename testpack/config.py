"""Settings configuration: settings files and ``Name=value`` assignments."""

from __future__ import annotations

import json
import logging
import os
from enum import Enum
from pathlib import Path
from typing import Any, Mapping

import yaml
from box import Box, BoxList

from .models import PackageDescriptor
from .settings import ENUM_SETTINGS, enum_member

logger = logging.getLogger(__name__)

_YAML_BOOL_SPELLINGS = {
    True: ("True", "On", "Yes"),
    False: ("False", "Off", "No"),
}


def load_settings_file(path: str | os.PathLike) -> Box:
    """Read a JSON (or YAML) mapping of setting names to values.

    Returns a Box so that callers may use either ``cfg["DefaultTimeout"]``
    or ``cfg.DefaultTimeout``.
    """
    source = Path(path)
    text = source.read_text(encoding="utf-8")
    # JSON first: PyYAML misreads JSON exponent floats
    try:
        payload = json.loads(text)
    except json.JSONDecodeError:
        try:
            payload = yaml.safe_load(text)
        except yaml.YAMLError as exc:
            raise ValueError(f"Settings file {source} is neither JSON nor YAML") from exc
    if payload is None:
        payload = {}
    if not isinstance(payload, Mapping):
        raise ValueError(f"Settings file {source} must contain a mapping, got {type(payload).__name__}")
    logger.debug(f"Read {len(payload)} settings from {source}")
    return Box(payload)


def parse_setting_assignment(text: str) -> tuple[str, Any]:
    """Split ``Name=value`` and type the value.

    ``true``/``false`` become bools, digits become ints, decimals become
    floats and anything else stays a string. Values for well-known
    enumerated settings are looked up in their Enum.
    """
    name, sep, raw_value = text.partition("=")
    name = name.strip()
    if not sep or not name:
        raise ValueError(f"Expected NAME=VALUE, got {text!r}")
    if name in ENUM_SETTINGS:
        # raw text: YAML would turn Off/On/Yes/No into bools
        return name, coerce_setting(name, raw_value.strip())
    return name, _scalar(raw_value)


def coerce_setting(name: str, value: Any) -> Any:
    """Convert strings given for enumerated settings into Enum members.

    Bools stand for the YAML spellings that produced them, so an unquoted
    ``InternalTraceLevel: Off`` in a settings file still finds ``OFF``.
    """
    enum_cls = ENUM_SETTINGS.get(name)
    if enum_cls is None or isinstance(value, Enum):
        return value
    if isinstance(value, bool):
        for spelling in _YAML_BOOL_SPELLINGS[value]:
            try:
                return enum_member(enum_cls, spelling)
            except ValueError:
                continue
    return enum_member(enum_cls, str(value))


def apply_settings(package: PackageDescriptor, settings: Mapping[str, Any]) -> PackageDescriptor:
    """Write every entry of ``settings`` into ``package`` and return it."""
    for name, value in settings.items():
        if isinstance(value, Box):
            value = value.to_dict()
        elif isinstance(value, BoxList):
            value = value.to_list()
        package.set_setting(name, coerce_setting(name, value))
    return package


def _scalar(raw_value: str) -> Any:
    stripped = raw_value.strip()
    if not stripped:
        return ""
    try:
        value = yaml.safe_load(stripped)
    except yaml.YAMLError:
        return stripped
    # only scalars; "[a]" or "{a: 1}" stay text
    if isinstance(value, (bool, int, float, str)):
        return value
    return stripped


__all__ = [
    "apply_settings",
    "coerce_setting",
    "load_settings_file",
    "parse_setting_assignment",
]
