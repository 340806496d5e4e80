"""Failure taxonomy for a migration run.

Every external failure is converted into one of these at the call site that
observed it. Each exception carries the ``FailureKind`` the orchestrator uses to
pick between aborting the run and skipping a single package.
"""

from __future__ import annotations

from enum import Enum
from typing import Optional


class FailureKind(Enum):
    """Classified failure reasons."""

    LOOKUP_UNKNOWN = "lookup_unknown"
    TOOL_MISSING = "tool_missing"
    NO_LTS_FOUND = "no_lts_found"
    ALREADY_UP_TO_DATE = "already_up_to_date"
    RUNTIME_SWITCH_FAILED = "runtime_switch_failed"
    PACKAGE_INSTALL_FAILED = "package_install_failed"
    INVENTORY_UNAVAILABLE = "inventory_unavailable"


class CarryoverError(Exception):
    """Base class for all migration failures."""

    kind: FailureKind = FailureKind.LOOKUP_UNKNOWN


class RegistryError(CarryoverError):
    """The registry answered with an error or without the expected fields."""

    kind = FailureKind.LOOKUP_UNKNOWN

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class ToolMissingError(CarryoverError):
    """The runtime version manager is not installed."""

    kind = FailureKind.TOOL_MISSING


class NoLTSFoundError(CarryoverError):
    """The release index yielded no LTS release."""

    kind = FailureKind.NO_LTS_FOUND


class AlreadyUpToDateError(CarryoverError):
    """The requested runtime is already the active one."""

    kind = FailureKind.ALREADY_UP_TO_DATE


class RuntimeSwitchError(CarryoverError):
    """Installing, activating or defaulting the target runtime failed."""

    kind = FailureKind.RUNTIME_SWITCH_FAILED


class PackageInstallError(CarryoverError):
    """A single global package could not be reinstalled."""

    kind = FailureKind.PACKAGE_INSTALL_FAILED

    def __init__(self, package: str, message: str):
        super().__init__(f"{package} error on installation: {message}")
        self.package = package


class InventoryUnavailableError(CarryoverError):
    """The global package listing could not be obtained."""

    kind = FailureKind.INVENTORY_UNAVAILABLE


class ConfigError(Exception):
    """Invalid configuration file or option values."""
