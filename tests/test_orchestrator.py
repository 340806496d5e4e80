"""Tests for the staged migration pipeline."""

import os
from unittest.mock import MagicMock, patch

import pytest

from errors import FailureKind, RegistryError
from inventory import PackageInventory
from models import MigrationOutcome
from orchestrator import UpgradeOrchestrator
from registry.npm import NpmVersionResolver
from runtime.fnm import FnmVersionManager
from fakes import FakeRunner

LIST_CMD = ("npm", "list", "-g", "--depth=0", "--parseable")
NODE_VERSION = ("node", "--version")
TARGET = "v20.11.0"

LATEST = {"typescript": "5.4.0", "eslint": "8.50.0", "vercel": "33.0.0"}


def _listing(*names):
    return "/usr/lib\n" + "".join(f"/usr/lib/node_modules/{n}\n" for n in names)


def _installed(name, version):
    return {("npm", "list", "-g", name, "--depth=0"): f"/usr/lib\n└── {name}@{version}\n"}


def _install_cmd(name):
    return ("fnm", "exec", f"--using={TARGET}", "npm", "install", "-g", name)


def _fake_registry(url, context):
    name = url.rsplit("/", 1)[1]
    if name not in LATEST:
        raise RegistryError("Response isn't ok! status = 404", 404)
    return {"dist-tags": {"latest": LATEST[name]}}


def _build(reporter, runner, force_upgrade=True, lts=TARGET):
    inventory = PackageInventory(reporter, runner=runner)
    resolver = NpmVersionResolver(reporter, runner=runner)
    runtime = FnmVersionManager(reporter, runner=runner)
    runtime.get_latest_lts_version = MagicMock(return_value=lts)
    return UpgradeOrchestrator(
        reporter, inventory, resolver, runtime, force_upgrade=force_upgrade, runner=runner
    )


@pytest.fixture(autouse=True)
def fake_registry():
    with patch("registry.npm.get_json", side_effect=_fake_registry) as mock_get_json:
        yield mock_get_json


class TestMigrate:
    """End-to-end runs over fake commands."""

    def test_forced_reinstall_reports_transitions(self, reporter):
        runner = FakeRunner({
            LIST_CMD: _listing("typescript", "eslint"),
            NODE_VERSION: "v18.19.0\n",
            **_installed("typescript", "5.3.0"),
            **_installed("eslint", "8.50.0"),
        })
        report = _build(reporter, runner).migrate()

        assert not report.aborted
        assert report.switch.ok
        assert runner.calls_with(*_install_cmd("typescript"))
        assert runner.calls_with(*_install_cmd("eslint"))
        assert [r.transition() for r in report.results] == [
            "typescript 5.3.0 -> 5.4.0",
            "eslint 8.50.0 -> 8.50.0",
        ]
        assert all(r.outcome == MigrationOutcome.UPGRADED for r in report.results)
        assert "typescript successfully upgraded 5.3.0 -> 5.4.0" in reporter.texts("success")
        assert "Migration completed successfully!" in reporter.texts("success")
        assert reporter.closed >= 1

    def test_current_packages_skipped_without_force(self, reporter):
        runner = FakeRunner({
            LIST_CMD: _listing("typescript", "eslint"),
            NODE_VERSION: "v18.19.0",
            **_installed("typescript", "5.3.0"),
            **_installed("eslint", "8.50.0"),
        })
        report = _build(reporter, runner, force_upgrade=False).migrate()

        outcomes = {r.package: r.outcome for r in report.results}
        assert outcomes == {
            "typescript": MigrationOutcome.UPGRADED,
            "eslint": MigrationOutcome.SKIPPED,
        }
        assert runner.calls_with(*_install_cmd("typescript"))
        assert not runner.calls_with("install", "-g", "eslint")
        assert "eslint already has latest version." in reporter.texts("warning")

    def test_install_failure_does_not_stop_later_packages(self, reporter):
        runner = FakeRunner({
            LIST_CMD: _listing("typescript", "eslint", "vercel"),
            NODE_VERSION: "v18.19.0",
            _install_cmd("eslint"): 1,
        })
        report = _build(reporter, runner).migrate()

        assert [r.outcome for r in report.results] == [
            MigrationOutcome.UPGRADED,
            MigrationOutcome.FAILED,
            MigrationOutcome.UPGRADED,
        ]
        assert runner.calls_with(*_install_cmd("vercel"))
        assert report.has_failures
        assert any("eslint error on installation" in e for e in reporter.texts("error"))
        assert "Migration completed with 1 failed package(s)." in reporter.texts("warning")

    def test_unexpected_error_is_isolated(self, reporter):
        runner = FakeRunner({LIST_CMD: _listing("typescript", "eslint"), NODE_VERSION: "v18.19.0"})
        orchestrator = _build(reporter, runner)
        orchestrator.resolver.get_installed_version = MagicMock(side_effect=[RuntimeError("odd"), "8.0.0"])

        report = orchestrator.migrate()

        assert [r.outcome for r in report.results] == [MigrationOutcome.FAILED, MigrationOutcome.UPGRADED]

    def test_unknown_versions_compare_equal(self, reporter):
        runner = FakeRunner({LIST_CMD: _listing("left-pad"), NODE_VERSION: "v18.19.0"})
        report = _build(reporter, runner, force_upgrade=False).migrate()

        result = report.results[0]
        assert result.old_version == "unknown"
        assert result.new_version == "unknown"
        assert result.outcome == MigrationOutcome.SKIPPED
        assert "Error fetching version for left-pad" in reporter.texts("error")[0]


class TestAbortPaths:
    """Runtime switch failures abort before any install."""

    def test_switch_failure_means_zero_installs(self, reporter):
        runner = FakeRunner({
            LIST_CMD: _listing("typescript", "eslint"),
            NODE_VERSION: "v18.19.0",
            ("fnm", "install", TARGET): 1,
        })
        report = _build(reporter, runner).migrate()

        assert report.aborted
        assert report.failure == FailureKind.RUNTIME_SWITCH_FAILED
        assert report.results == []
        assert not runner.calls_with("install", "-g")
        assert not runner.calls_with("npm", "list", "-g", "typescript", "--depth=0")

    def test_tool_missing(self, reporter):
        runner = FakeRunner({LIST_CMD: _listing("typescript")}, missing={"fnm"})
        report = _build(reporter, runner).migrate()

        assert report.aborted
        assert report.failure == FailureKind.TOOL_MISSING
        assert report.inventory.packages == ["typescript"]
        assert runner.calls[0] == LIST_CMD
        assert not runner.calls_with("install", "-g")
        assert "Global Packages" not in reporter.texts("title")
        errors = reporter.texts("error")
        assert len(errors) == 1
        assert "fnm is not installed" in errors[0]

    def test_already_up_to_date_aborts(self, reporter):
        runner = FakeRunner({LIST_CMD: _listing("typescript"), NODE_VERSION: TARGET})
        report = _build(reporter, runner).migrate()

        assert report.failure == FailureKind.ALREADY_UP_TO_DATE
        assert report.results == []

    def test_inventory_taken_before_switch(self, reporter):
        runner = FakeRunner({LIST_CMD: _listing("typescript"), NODE_VERSION: "v18.19.0"})
        _build(reporter, runner).migrate()

        assert runner.calls.index(LIST_CMD) < runner.calls.index(("fnm", "install", TARGET))

    def test_unexecutable_fnm_aborts_without_raising(self, reporter, tmp_path):
        fnm = tmp_path / "fnm"
        fnm.write_text("#!/bin/sh\necho 1.35.0\n", encoding="utf-8")
        os.chmod(fnm, 0o644)
        runner = FakeRunner({LIST_CMD: _listing("typescript")})
        inventory = PackageInventory(reporter, runner=runner)
        resolver = NpmVersionResolver(reporter, runner=runner)
        runtime = FnmVersionManager(reporter, fnm_bin=str(fnm))
        orchestrator = UpgradeOrchestrator(reporter, inventory, resolver, runtime, runner=runner)

        report = orchestrator.migrate()

        assert report.aborted
        assert report.failure == FailureKind.TOOL_MISSING
        assert report.inventory.packages == ["typescript"]
        assert not runner.calls_with("install", "-g")
        assert "fnm is not installed" in reporter.texts("error")[0]


class TestEmptyInventory:
    """Runs with nothing to reinstall still switch the runtime."""

    def test_no_packages(self, reporter):
        runner = FakeRunner({LIST_CMD: "/usr/lib\n", NODE_VERSION: "v18.19.0"})
        report = _build(reporter, runner).migrate()

        assert report.switch.ok
        assert report.results == []
        assert "No global packages found!" in reporter.texts("warning")
        assert not runner.calls_with("install", "-g")

    def test_inventory_unavailable_is_not_fatal(self, reporter):
        runner = FakeRunner({LIST_CMD: 1, NODE_VERSION: "v18.19.0"})
        report = _build(reporter, runner).migrate()

        assert not report.inventory.ok
        assert not report.aborted
        assert runner.calls_with("fnm", "default", TARGET)
        assert "No global packages found!" in reporter.texts("warning")

    def test_stage_uses_list_global_packages(self, reporter):
        runner = FakeRunner({LIST_CMD: _listing("typescript"), NODE_VERSION: "v18.19.0"})
        orchestrator = _build(reporter, runner)
        with patch.object(
            orchestrator.inventory, "list_global_packages", wraps=orchestrator.inventory.list_global_packages
        ) as mock_list:
            stage = orchestrator.capture_inventory()
        mock_list.assert_called_once_with()
        assert stage.ok
        assert stage.packages == ["typescript"]

    def test_stage_failure_reported_once(self, reporter):
        runner = FakeRunner({LIST_CMD: 1})
        stage = _build(reporter, runner).capture_inventory()
        assert not stage.ok
        assert "Global packages are not listed" in stage.error
        assert reporter.texts("warning") == [stage.error]
