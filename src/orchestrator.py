"""Migration pipeline: inventory, runtime switch, per-package reinstall.

The stages run strictly in that order. The inventory has to be taken while the
old runtime is still active, because switching replaces the global package
tree the listing reads from. A failed runtime switch aborts the run before any
package is touched, whereas a failed package install only marks that package
as failed.
"""

from __future__ import annotations

import logging
from typing import Callable, List, Optional, Sequence

from constants import Constants
from errors import CarryoverError, FailureKind, PackageInstallError
from common.logging_utils import extra_context
from common.shell import CommandError, CommandResult, run_command
from inventory import PackageInventory
from models import (
    InventoryStage,
    MigrationOutcome,
    MigrationReport,
    MigrationResult,
    Package,
    RuntimeSwitchResult,
)
from registry.npm import NpmVersionResolver
from reporter import StatusReporter
from runtime.fnm import FnmVersionManager

logger = logging.getLogger(__name__)


class UpgradeOrchestrator:
    """Sequences a migration run and owns its failure policy."""

    def __init__(
        self,
        reporter: StatusReporter,
        inventory: PackageInventory,
        resolver: NpmVersionResolver,
        runtime: FnmVersionManager,
        *,
        target: str = Constants.LATEST_LTS,
        remove_old: bool = False,
        force_upgrade: bool = True,
        npm_bin: str = Constants.NPM_BIN,
        runner: Callable[..., CommandResult] = run_command,
    ):
        self.reporter = reporter
        self.inventory = inventory
        self.resolver = resolver
        self.runtime = runtime
        self.target = target
        self.remove_old = remove_old
        self.force_upgrade = force_upgrade
        self.npm_bin = npm_bin
        self._run = runner

    # Stage 1
    def capture_inventory(self) -> InventoryStage:
        packages = self.inventory.list_global_packages()
        error = self.inventory.last_error
        return InventoryStage(packages=packages, ok=error is None, error=error)

    # Stage 2
    def switch_runtime(self) -> RuntimeSwitchResult:
        return self.runtime.switch_runtime(self.target, self.remove_old)

    # Stage 3
    def install_package(self, name: str, runtime_version: Optional[str] = None) -> None:
        """Globally (re)install ``name``, under ``runtime_version`` when given.

        Raises:
            PackageInstallError: If npm failed.
        """
        cmd: List[str] = []
        if runtime_version:
            cmd.extend(self.runtime.exec_prefix(runtime_version))
        cmd.extend([self.npm_bin, "install", "-g", name])
        try:
            self._run(cmd)
        except CommandError as exc:
            raise PackageInstallError(name, str(exc)) from exc

    def migrate_package(self, name: str, runtime_version: Optional[str] = None) -> MigrationResult:
        """Resolve versions for ``name`` and reinstall it unless already current."""
        package = Package(name)
        try:
            package.installed_version = self.resolver.get_installed_version(name)
            package.latest_version = self.resolver.get_latest_version(name)

            if not self.force_upgrade and package.is_current:
                self.reporter.warning(f"{name} already has latest version.")
                return MigrationResult(
                    name, package.installed_version, package.latest_version, MigrationOutcome.SKIPPED
                )

            self.reporter.loading(f"Reinstalling {name} {package.latest_version}...")
            self.install_package(name, runtime_version)
        except CarryoverError as exc:
            return self._failed(package, str(exc))
        except Exception as exc:  # pylint: disable=broad-exception-caught
            logger.exception("Unexpected error while migrating %s", name)
            return self._failed(package, f"{name} error on installation: {exc}")

        result = MigrationResult(
            name, package.installed_version, package.latest_version, MigrationOutcome.UPGRADED
        )
        self.reporter.success(f"{name} successfully upgraded {result.old_version} -> {result.new_version}")
        return result

    def _failed(self, package: Package, message: str) -> MigrationResult:
        logger.debug(
            "%s",
            message,
            extra=extra_context(
                event="install",
                outcome=FailureKind.PACKAGE_INSTALL_FAILED.value,
                package=package.name
            )
        )
        self.reporter.error(message)
        return MigrationResult(
            package.name,
            package.installed_version,
            package.latest_version,
            MigrationOutcome.FAILED,
            error=message,
        )

    def reinstall(self, packages: Sequence[str], runtime_version: Optional[str] = None) -> List[MigrationResult]:
        """Migrate ``packages`` one at a time, in order."""
        return [self.migrate_package(name, runtime_version) for name in packages]

    def migrate(self) -> MigrationReport:
        """Run the whole pipeline and return what each stage produced."""
        try:
            return self._migrate()
        finally:
            self.reporter.close()

    def _migrate(self) -> MigrationReport:
        self.reporter.title("Starting Migration Process")

        self.reporter.step("Step 1: Capturing global packages of the current Node.js version")
        stage = self.capture_inventory()
        report = MigrationReport(inventory=stage)

        self.reporter.step("Step 2: Updating Node.js version")
        report.switch = self.switch_runtime()
        if not report.switch.ok:
            report.aborted = True
            report.failure = report.switch.failure
            logger.error("Migration aborted: %s", report.failure.value)
            return report

        self.reporter.step("Step 3: Listing global packages")
        self.reporter.title("Global Packages")
        if not stage.packages:
            self.reporter.warning("No global packages found!")
            return report
        self.reporter.info("\n".join(f"❒ {name}" for name in stage.packages))

        self.reporter.step("Step 4: Installing packages")
        runtime_version = report.switch.target.version if report.switch.target else None
        report.results = self.reinstall(stage.packages, runtime_version)

        self._summarize(report)
        return report

    def _summarize(self, report: MigrationReport) -> None:
        self.reporter.title("Summary")
        self.reporter.info("\n".join(r.transition() for r in report.results))
        failed = report.count(MigrationOutcome.FAILED)
        logger.info(
            "Migration finished: %d upgraded, %d skipped, %d failed",
            report.count(MigrationOutcome.UPGRADED),
            report.count(MigrationOutcome.SKIPPED),
            failed,
        )
        if failed:
            self.reporter.warning(f"Migration completed with {failed} failed package(s).")
        else:
            self.reporter.success("Migration completed successfully!")
