"""
  npm version lookups. The installed version of a global package comes
  from the local npm CLI, the latest published one from the npm registry.
  Both lookups degrade to the "unknown" sentinel instead of raising.
"""
from __future__ import annotations

import logging
import urllib.parse
from typing import Callable, Optional

from constants import Constants
from errors import CarryoverError, RegistryError
from common.http_client import get_json
from common.logging_utils import extra_context
from common.shell import CommandError, CommandResult, run_command
from reporter import StatusReporter
from versioning.parser import extract_version

logger = logging.getLogger(__name__)

Runner = Callable[..., CommandResult]


def _extract_latest_version(packument) -> Optional[str]:
    """Extract the latest version from packument dist-tags, if present."""
    if not isinstance(packument, dict):
        return None
    dist_tags = packument.get("dist-tags")
    if not isinstance(dist_tags, dict):
        return None
    latest = dist_tags.get("latest")
    return str(latest) if latest else None


class NpmVersionResolver:
    """Resolve installed and latest versions of global npm packages."""

    def __init__(
        self,
        reporter: StatusReporter,
        *,
        registry_url: str = Constants.REGISTRY_URL_NPM,
        npm_bin: str = Constants.NPM_BIN,
        runner: Runner = run_command,
    ):
        self.reporter = reporter
        self.registry_url = registry_url if registry_url.endswith("/") else registry_url + "/"
        self.npm_bin = npm_bin
        self._run = runner

    def get_installed_version(self, name: str) -> str:
        """Version of ``name`` in the global npm tree, or ``"unknown"``."""
        try:
            result = self._run([self.npm_bin, "list", "-g", name, "--depth=0"])
        except CommandError as exc:
            logger.debug("Installed version lookup failed for %s: %s", name, exc)
            return Constants.UNKNOWN_VERSION
        return extract_version(result.stdout).value

    def fetch_latest_version(self, name: str) -> str:
        """Latest dist-tag of ``name`` from the registry.

        Raises:
            RegistryError: On non-2xx answers or a packument without ``dist-tags.latest``.
        """
        package_url = self.registry_url + urllib.parse.quote(name, safe="")
        packument = get_json(package_url, context="npm")
        latest = _extract_latest_version(packument)
        if latest is None:
            raise RegistryError("Version information is not found!")
        return latest

    def get_latest_version(self, name: str) -> str:
        """Like ``fetch_latest_version`` but reports failures and returns ``"unknown"``."""
        try:
            return self.fetch_latest_version(name)
        except CarryoverError as exc:
            logger.debug(
                "Latest version lookup failed",
                extra=extra_context(
                    event="lookup",
                    outcome=exc.kind.value,
                    package=name,
                    package_manager="npm"
                )
            )
            self.reporter.error(f"Error fetching version for {name}: {exc}")
            return Constants.UNKNOWN_VERSION
