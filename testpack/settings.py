"""Names and enumerations for settings commonly read by test runners.

Packages accept any setting name; this module only collects the ones
runners agree on so callers do not have to repeat string literals.
"""

from __future__ import annotations

from enum import Enum


class ProcessModel(Enum):
    """How test assemblies are distributed across processes."""

    DEFAULT = "Default"
    IN_PROCESS = "InProcess"
    SEPARATE = "Separate"
    MULTIPLE = "Multiple"


class DomainUsage(Enum):
    """How test assemblies are distributed across application domains."""

    DEFAULT = "Default"
    NONE = "None"
    SINGLE = "Single"
    MULTIPLE = "Multiple"


class InternalTraceLevel(Enum):
    DEFAULT = "Default"
    OFF = "Off"
    ERROR = "Error"
    WARNING = "Warning"
    INFO = "Info"
    VERBOSE = "Verbose"
    DEBUG = "Debug"


# setting names
ACTIVE_CONFIG = "ActiveConfig"
BASE_PATH = "BasePath"
CONFIGURATION_FILE = "ConfigurationFile"
DEFAULT_TIMEOUT = "DefaultTimeout"
DOMAIN_USAGE = "DomainUsage"
INTERNAL_TRACE_LEVEL = "InternalTraceLevel"
NUMBER_OF_TEST_WORKERS = "NumberOfTestWorkers"
PRIVATE_BIN_PATH = "PrivateBinPath"
PROCESS_MODEL = "ProcessModel"
RANDOM_SEED = "RandomSeed"
RUNTIME_FRAMEWORK = "RuntimeFramework"
SHADOW_COPY_FILES = "ShadowCopyFiles"
STOP_ON_ERROR = "StopOnError"
WORK_DIRECTORY = "WorkDirectory"

ENUM_SETTINGS: dict[str, type[Enum]] = {
    DOMAIN_USAGE: DomainUsage,
    INTERNAL_TRACE_LEVEL: InternalTraceLevel,
    PROCESS_MODEL: ProcessModel,
}


def enum_member(enum_cls: type[Enum], text: str) -> Enum:
    """Look up a member of ``enum_cls`` by name or value, ignoring case."""
    wanted = text.strip().lower()
    for member in enum_cls:
        if member.name.lower() == wanted or str(member.value).lower() == wanted:
            return member
    choices = ", ".join(str(member.value) for member in enum_cls)
    raise ValueError(f"{text!r} is not a valid {enum_cls.__name__} (expected one of: {choices})")


__all__ = [
    "DomainUsage",
    "ENUM_SETTINGS",
    "InternalTraceLevel",
    "ProcessModel",
    "enum_member",
]
