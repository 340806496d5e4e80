"""carryover - Move global npm packages across a Node.js upgrade.

    Returns:
        int: Exit code
"""
import logging
import sys

from constants import ExitCodes, VersionManagers
from common.logging_utils import configure_logging
from args import parse_args
from cli_config import MigrationSettings, build_settings
from errors import ConfigError
from inventory import PackageInventory
from orchestrator import UpgradeOrchestrator
from registry.npm import NpmVersionResolver
from reporter import ConsoleReporter, LogReporter, StatusReporter
from runtime.fnm import FnmVersionManager

logger = logging.getLogger(__name__)

VERSION_MANAGERS = {
    VersionManagers.FNM.value: FnmVersionManager,
}


def _setup_logging(args) -> None:
    """Configure logging based on CLI arguments."""
    configure_logging(getattr(args, "LOG_LEVEL", None))

    log_file = getattr(args, "LOG_FILE", None)
    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(logging.Formatter(
            "%(asctime)s %(levelname)s %(name)s %(message)s"
        ))
        logging.getLogger().addHandler(file_handler)
        logger.info("Logging to file: %s", log_file)


def build_orchestrator(settings: MigrationSettings, reporter: StatusReporter) -> UpgradeOrchestrator:
    """Wire the components for one run."""
    inventory = PackageInventory(reporter, npm_bin=settings.npm_bin, exclude=settings.exclude)
    resolver = NpmVersionResolver(
        reporter, registry_url=settings.registry_url, npm_bin=settings.npm_bin
    )
    manager_cls = VERSION_MANAGERS[settings.version_manager]
    runtime = manager_cls(
        reporter,
        fnm_bin=settings.fnm_bin,
        node_bin=settings.node_bin,
        release_index_url=settings.release_index_url,
    )
    return UpgradeOrchestrator(
        reporter,
        inventory,
        resolver,
        runtime,
        target=settings.target,
        remove_old=settings.remove_old,
        force_upgrade=settings.force_upgrade,
        npm_bin=settings.npm_bin,
    )


def run(argv=None) -> int:
    """Parse arguments, run a migration and map its report to an exit code."""
    args = parse_args(argv)
    if args.QUIET and args.LOG_LEVEL == "WARNING":
        args.LOG_LEVEL = "INFO"
    _setup_logging(args)

    try:
        settings = build_settings(args)
    except ConfigError as e:
        logger.error("%s", e)
        return ExitCodes.CONFIG_ERROR.value

    reporter = LogReporter() if args.QUIET else ConsoleReporter()
    report = build_orchestrator(settings, reporter).migrate()

    if report.aborted:
        return ExitCodes.MIGRATION_ABORTED.value
    if report.has_failures:
        return ExitCodes.PACKAGE_FAILURES.value
    return ExitCodes.SUCCESS.value


def main():
    """Console script entry point."""
    sys.exit(run())


if __name__ == "__main__":
    main()
