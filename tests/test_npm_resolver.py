"""Tests for installed and latest npm version lookups."""

import json
from unittest.mock import MagicMock, patch

import pytest
import requests

from errors import FailureKind, RegistryError
from registry.npm import NpmVersionResolver
from fakes import FakeRunner


def _response(status_code=200, data=None, text=None):
    res = MagicMock()
    res.status_code = status_code
    res.text = text if text is not None else json.dumps(data)
    return res


class TestGetInstalledVersion:
    """Local lookups through npm list."""

    def test_parses_listing(self, reporter):
        runner = FakeRunner({
            ("npm", "list", "-g", "typescript", "--depth=0"): "/usr/lib\n└── typescript@5.3.0\n",
        })
        resolver = NpmVersionResolver(reporter, runner=runner)
        assert resolver.get_installed_version("typescript") == "5.3.0"

    def test_command_failure_is_unknown(self, reporter):
        runner = FakeRunner({("npm", "list", "-g", "ghost", "--depth=0"): 1})
        resolver = NpmVersionResolver(reporter, runner=runner)
        assert resolver.get_installed_version("ghost") == "unknown"
        assert reporter.events == []

    def test_no_match_is_unknown(self, reporter):
        resolver = NpmVersionResolver(reporter, runner=FakeRunner())
        assert resolver.get_installed_version("typescript") == "unknown"


class TestGetLatestVersion:
    """Registry lookups."""

    @patch("common.http_client.requests.get")
    def test_reads_latest_dist_tag(self, mock_get, reporter):
        mock_get.return_value = _response(data={"dist-tags": {"latest": "5.4.0"}})
        resolver = NpmVersionResolver(reporter, registry_url="https://registry.example.org")

        assert resolver.get_latest_version("typescript") == "5.4.0"
        assert mock_get.call_args[0][0] == "https://registry.example.org/typescript"
        assert reporter.events == []

    @patch("common.http_client.requests.get")
    def test_non_2xx_reports_and_returns_unknown(self, mock_get, reporter):
        mock_get.return_value = _response(status_code=404, text="{}")
        resolver = NpmVersionResolver(reporter)

        assert resolver.get_latest_version("nope") == "unknown"
        errors = reporter.texts("error")
        assert len(errors) == 1
        assert "Error fetching version for nope" in errors[0]
        assert "404" in errors[0]

    @patch("common.http_client.requests.get")
    def test_missing_dist_tag_reports_and_returns_unknown(self, mock_get, reporter):
        mock_get.return_value = _response(data={"name": "typescript", "dist-tags": {}})
        resolver = NpmVersionResolver(reporter)

        assert resolver.get_latest_version("typescript") == "unknown"
        assert "Version information is not found!" in reporter.texts("error")[0]

    @patch("registry.npm.get_json")
    def test_fetch_latest_version_raises(self, mock_get_json, reporter):
        mock_get_json.return_value = ["not", "a", "packument"]
        resolver = NpmVersionResolver(reporter)

        with pytest.raises(RegistryError) as exc_info:
            resolver.fetch_latest_version("typescript")
        assert exc_info.value.kind == FailureKind.LOOKUP_UNKNOWN


class TestHttpClient:
    """Retry and status handling of the shared GET helper."""

    @patch("common.http_client.time.sleep")
    @patch("common.http_client.requests.get")
    def test_retries_connection_errors(self, mock_get, mock_sleep):
        from common.http_client import get_json

        mock_get.side_effect = [
            requests.ConnectionError("reset"),
            _response(data=[{"version": "v20.11.0", "lts": "Iron"}]),
        ]
        assert get_json("https://nodejs.org/dist/index.json", context="node") == [
            {"version": "v20.11.0", "lts": "Iron"}
        ]
        assert mock_get.call_count == 2
        mock_sleep.assert_called_once()

    @patch("common.http_client.time.sleep")
    @patch("common.http_client.requests.get")
    def test_gives_up_after_max_attempts(self, mock_get, mock_sleep):
        from common.http_client import get_json
        from constants import Constants

        mock_get.side_effect = requests.Timeout("slow")
        with pytest.raises(RegistryError):
            get_json("https://registry.npmjs.org/x", context="npm")
        assert mock_get.call_count == Constants.HTTP_RETRY_MAX

    @patch("common.http_client.requests.get")
    def test_invalid_json_raises(self, mock_get):
        from common.http_client import get_json

        mock_get.return_value = _response(text="<html>")
        with pytest.raises(RegistryError):
            get_json("https://registry.npmjs.org/x", context="npm")

    @patch("common.http_client.requests.get")
    def test_server_error_is_not_retried(self, mock_get):
        from common.http_client import get_json

        mock_get.return_value = _response(status_code=503, text="")
        with pytest.raises(RegistryError) as exc_info:
            get_json("https://registry.npmjs.org/x", context="npm")
        assert exc_info.value.status_code == 503
        assert mock_get.call_count == 1
