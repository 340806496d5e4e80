"""Enumeration of globally installed npm packages."""

from __future__ import annotations

import logging
from typing import Callable, Iterable, List, Optional

from constants import Constants
from errors import InventoryUnavailableError
from common.shell import CommandError, CommandResult, run_command
from reporter import StatusReporter

logger = logging.getLogger(__name__)


def parse_parseable_listing(text: str, exclude: Optional[Iterable[str]] = None) -> List[str]:
    """Extract top-level package names from ``npm list --parseable`` output.

    Lines without a module root are dropped, as are scoped names (anything
    containing ``@``). Order of first appearance is kept.
    """
    excluded = set(exclude or ())
    packages: List[str] = []
    for line in text.splitlines():
        line = line.strip()
        if Constants.MODULE_ROOT not in line:
            continue
        name = line.split(Constants.MODULE_ROOT)[1]
        if not name or "@" in name:
            continue
        if name in excluded or name in packages:
            continue
        packages.append(name)
    return packages


class PackageInventory:
    """Lists the global packages of the currently active runtime."""

    def __init__(
        self,
        reporter: StatusReporter,
        *,
        npm_bin: str = Constants.NPM_BIN,
        exclude: Optional[Iterable[str]] = None,
        runner: Callable[..., CommandResult] = run_command,
    ):
        self.reporter = reporter
        self.npm_bin = npm_bin
        self.exclude = list(exclude or ())
        self.last_error: Optional[str] = None
        self._run = runner

    def query(self) -> List[str]:
        """Run the listing command.

        Raises:
            InventoryUnavailableError: If npm could not list the global tree.
        """
        try:
            result = self._run([self.npm_bin, "list", "-g", "--depth=0", "--parseable"])
        except CommandError as exc:
            raise InventoryUnavailableError(f"Global packages are not listed!: {exc}") from exc
        packages = parse_parseable_listing(result.stdout, self.exclude)
        logger.debug("Found %d global packages", len(packages))
        return packages

    def list_global_packages(self) -> List[str]:
        """Global package names, or an empty list (with a warning) on failure.

        The reason of the last failure is kept in ``last_error``.
        """
        self.last_error = None
        try:
            return self.query()
        except InventoryUnavailableError as exc:
            logger.debug("%s", exc)
            self.last_error = str(exc)
            self.reporter.warning(self.last_error)
            return []
