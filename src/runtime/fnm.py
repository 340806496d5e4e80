"""Node.js runtime switching through fnm.

fnm keeps one global package tree per installed Node.js version, which is why
switching versions orphans previously installed global packages.
"""
from __future__ import annotations

import logging
from typing import Callable, List, Optional

from constants import Constants
from errors import (
    AlreadyUpToDateError,
    CarryoverError,
    NoLTSFoundError,
    RuntimeSwitchError,
    ToolMissingError,
)
from common.http_client import get_json
from common.shell import CommandError, CommandResult, run_command
from models import RuntimeSwitchResult, RuntimeVersion
from reporter import StatusReporter
from versioning.parser import extract_runtime_version, pick_latest_lts

logger = logging.getLogger(__name__)

FNM_INSTALL_HINT = "https://github.com/Schniz/fnm#installation"


class FnmVersionManager:
    """Wraps the fnm CLI and the Node.js release index."""

    def __init__(
        self,
        reporter: StatusReporter,
        *,
        fnm_bin: str = Constants.FNM_BIN,
        node_bin: str = Constants.NODE_BIN,
        release_index_url: str = Constants.RELEASE_INDEX_URL_NODE,
        runner: Callable[..., CommandResult] = run_command,
    ):
        self.reporter = reporter
        self.fnm_bin = fnm_bin
        self.node_bin = node_bin
        self.release_index_url = release_index_url
        self._run = runner

    def is_available(self) -> bool:
        try:
            self._run([self.fnm_bin, "--version"])
        except CommandError as exc:
            logger.debug("fnm probe failed: %s", exc)
            return False
        return True

    def get_current_version(self) -> Optional[str]:
        """Active Node.js version (``vX.Y.Z``) or None when node is absent."""
        try:
            result = self._run([self.node_bin, "--version"])
        except CommandError as exc:
            logger.debug("node version probe failed: %s", exc)
            return None
        parsed = extract_runtime_version(result.stdout)
        return parsed.raw

    def get_latest_lts_version(self) -> Optional[str]:
        """Version of the first release index entry flagged as LTS."""
        try:
            releases = get_json(self.release_index_url, context="node")
        except CarryoverError as exc:
            self.reporter.error(f"Error fetching Node.js versions: {exc}")
            return None
        if not isinstance(releases, list):
            self.reporter.error("Error fetching Node.js versions: release index is not a list")
            return None
        return pick_latest_lts(releases)

    def resolve_target(self, target: str) -> RuntimeVersion:
        """Turn ``latest-lts`` into a concrete version; pass anything else through.

        Raises:
            NoLTSFoundError: If the release index has no LTS entry.
        """
        if target != Constants.LATEST_LTS:
            return RuntimeVersion(target, lts=False)
        version = self.get_latest_lts_version()
        if not version:
            raise NoLTSFoundError("No LTS versions found")
        return RuntimeVersion(version, lts=True)

    def exec_prefix(self, version: str) -> List[str]:
        """Command prefix that runs a program under ``version``."""
        return [self.fnm_bin, "exec", f"--using={version}"]

    def _fnm(self, *args: str) -> None:
        try:
            self._run([self.fnm_bin, *args])
        except CommandError as exc:
            raise RuntimeSwitchError(str(exc)) from exc

    def switch_runtime(
        self, target: str = Constants.LATEST_LTS, remove_old: bool = False
    ) -> RuntimeSwitchResult:
        """Install, activate and default ``target``; never raises."""
        previous: Optional[str] = None
        resolved: Optional[RuntimeVersion] = None
        try:
            if not self.is_available():
                raise ToolMissingError(
                    f"fnm is not installed. Please install fnm first: {FNM_INSTALL_HINT}"
                )

            previous = self.get_current_version()
            if previous is None:
                self.reporter.warning("Node.js isn't installed on your device!")

            resolved = self.resolve_target(target)

            if resolved.version == previous:
                raise AlreadyUpToDateError(
                    f"This version {resolved.version} is already installed on your device!"
                )

            self.reporter.loading(f"Installing Node.js version {resolved}...")
            self._fnm("install", resolved.version)

            self.reporter.loading(f"Switching to Node.js version {resolved}...")
            self._fnm("use", resolved.version)

            self.reporter.loading(f"Setting the default Node.js version {resolved}...")
            self._fnm("default", resolved.version)
        except CarryoverError as exc:
            shown = resolved.version if resolved else target
            message = f"Failed to update Node.js version to {shown}: {exc}"
            logger.debug("%s", message)
            self.reporter.error(message)
            return RuntimeSwitchResult(
                ok=False, previous=previous, target=resolved, failure=exc.kind, message=str(exc)
            )

        self.reporter.success(f"Node.js {previous or 'none'} -> {resolved}")

        if remove_old and previous:
            self.reporter.loading(f"Uninstalling old node version {previous}...")
            self.uninstall_runtime_version(previous)

        return RuntimeSwitchResult(ok=True, previous=previous, target=resolved)

    def update_runtime_version(
        self, target: str = Constants.LATEST_LTS, remove_old: bool = False
    ) -> bool:
        return self.switch_runtime(target, remove_old).ok

    def uninstall_runtime_version(self, version: str) -> bool:
        """Best-effort removal of ``version``; failures are reported only."""
        try:
            self._run([self.fnm_bin, "uninstall", version])
        except CommandError as exc:
            logger.debug("fnm uninstall %s failed: %s", version, exc)
            self.reporter.error(f"Node.js {version} was not uninstalled: {exc}")
            return False
        self.reporter.success(f"Uninstalled Node.js {version}")
        return True
