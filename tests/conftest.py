"""Shared fixtures for authz-identity tests."""

import pytest

from helpers import FakeDirectoryConnection, RecordingObserver


@pytest.fixture
def fake_connection():
    """Fake directory connection with a successful, control-less bind."""
    return FakeDirectoryConnection()


@pytest.fixture
def observer():
    """Observer recording failure events."""
    return RecordingObserver()
