"""Data models for a migration run."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

from constants import Constants
from errors import FailureKind


class MigrationOutcome(Enum):
    """Per-package result of the reinstall step."""
    SKIPPED = "skipped"
    UPGRADED = "upgraded"
    FAILED = "failed"


@dataclass
class Package:
    """A global package and the versions observed for it."""
    name: str
    installed_version: str = Constants.UNKNOWN_VERSION
    latest_version: str = Constants.UNKNOWN_VERSION

    def __post_init__(self):
        if not self.name or "@" in self.name or "/" in self.name:
            raise ValueError(f"Not a plain top-level package name: {self.name!r}")

    @property
    def is_current(self) -> bool:
        """Literal equality of installed and latest versions."""
        return self.installed_version == self.latest_version


@dataclass
class RuntimeVersion:
    """A concrete runtime version and whether it came from the LTS channel."""
    version: str
    lts: bool = False

    def __str__(self) -> str:
        return self.version


@dataclass
class MigrationResult:
    """Outcome of reinstalling one package."""
    package: str
    old_version: str
    new_version: str
    outcome: MigrationOutcome
    error: Optional[str] = None

    def transition(self) -> str:
        return f"{self.package} {self.old_version} -> {self.new_version}"


@dataclass
class InventoryStage:
    """Stage 1: packages captured under the old runtime."""
    packages: List[str]
    ok: bool = True
    error: Optional[str] = None


@dataclass
class RuntimeSwitchResult:
    """Stage 2: outcome of switching the active runtime."""
    ok: bool
    previous: Optional[str] = None
    target: Optional[RuntimeVersion] = None
    failure: Optional[FailureKind] = None
    message: Optional[str] = None


@dataclass
class MigrationReport:
    """Everything a run produced, stage by stage."""
    inventory: InventoryStage
    switch: Optional[RuntimeSwitchResult] = None
    results: List[MigrationResult] = field(default_factory=list)
    aborted: bool = False
    failure: Optional[FailureKind] = None

    def count(self, outcome: MigrationOutcome) -> int:
        return sum(1 for r in self.results if r.outcome == outcome)

    @property
    def has_failures(self) -> bool:
        return self.count(MigrationOutcome.FAILED) > 0
