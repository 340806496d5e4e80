"""Shared fixtures."""

import pytest

from fakes import FakeRunner, RecordingReporter


@pytest.fixture
def reporter():
    return RecordingReporter()


@pytest.fixture
def runner():
    return FakeRunner()
