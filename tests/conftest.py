"""Shared fixtures and fakes for the settings engine tests."""

import os
import tempfile

# Keep test runs from writing into the project's logs/ directory
os.environ.setdefault("VPN_SETTINGS_LOG_DIR", tempfile.mkdtemp(prefix="vpn-settings-logs-"))

import pytest

from vpnsettings.settings.coordinator import CommitCoordinator
from vpnsettings.settings.exceptions import StorageError
from vpnsettings.settings.flags import FeatureFlags
from vpnsettings.settings.models import Configuration, VPNType
from vpnsettings.settings.storage import IniFileStorage
from vpnsettings.settings.store import PreferenceStore
from vpnsettings.vpn.models import ConnectionStatus


class FakeConnection:
    """Connection control double recording what each reconnect saw."""

    def __init__(self, status=ConnectionStatus.CONNECTED, error=None, preferences=None):
        self.current = status
        self.error = error
        self.preferences = preferences
        self.reconnects = 0
        self.reconnected_with = []

    def status(self):
        return self.current

    async def reconnect(self):
        self.reconnects += 1
        if self.preferences is not None:
            self.reconnected_with.append(self.preferences())
        if self.error is not None:
            raise self.error


class FailingStorage(IniFileStorage):
    """Storage whose saves fail until ``fail`` is cleared."""

    def __init__(self, path):
        super().__init__(path)
        self.fail = True

    def save(self, configuration):
        if self.fail:
            raise StorageError("disk full")
        super().save(configuration)


@pytest.fixture
def preferences_path(tmp_path):
    return tmp_path / "preferences.ini"


@pytest.fixture
def storage(preferences_path):
    return IniFileStorage(preferences_path)


@pytest.fixture
def store(storage):
    return PreferenceStore(storage)


@pytest.fixture
def flags():
    return FeatureFlags()


@pytest.fixture
def connection(store):
    return FakeConnection(preferences=store.current_snapshot)


@pytest.fixture
def coordinator(store, connection, flags):
    return CommitCoordinator(store, connection, flags=flags)


@pytest.fixture
def openvpn_store(storage):
    """Store whose active configuration uses the OpenVPN tunnel."""
    storage.save(Configuration(vpn_type=VPNType.OPENVPN, is_persistent_connection=False))
    return PreferenceStore(storage)
