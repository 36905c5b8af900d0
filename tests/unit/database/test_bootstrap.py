"""Tests for the store bootstrapper."""
import pytest

from fogfern.core.exceptions import DatabaseError, StoreUnavailableError
from fogfern.core.paths import sqlite_url
from fogfern.database.bootstrap import BootstrapState, StoreBootstrapper
from fogfern.database.store import StoreConfiguration, SyncBacking


class FailingStore:
    """Store stand-in whose open always fails."""

    def __init__(self, configuration, logger=None):
        self.configuration = configuration

    def open(self):
        raise DatabaseError(f"{self.configuration.name} is down")


@pytest.fixture
def local_configuration(data_dir):
    return StoreConfiguration.local(data_dir)


class TestStoreBootstrapper:
    """Tests for the cloud, local, fatal progression."""

    def test_cloud_first(self, data_dir, tmp_path, local_configuration):
        """A reachable cloud configuration wins."""
        cloud = StoreConfiguration.cloud(sqlite_url(tmp_path / "cloud.db"), data_dir)
        bootstrapper = StoreBootstrapper(cloud, local_configuration)

        store = bootstrapper.start()
        try:
            assert bootstrapper.state is BootstrapState.READY_CLOUD
            assert store.configuration.sync_backing is SyncBacking.CLOUD
            assert [a.configuration for a in bootstrapper.attempts] == ["cloud"]
        finally:
            store.close()

    def test_unconfigured_cloud_falls_back(self, data_dir, local_configuration):
        """A missing cloud URL is attempted, logged as failed, then skipped."""
        bootstrapper = StoreBootstrapper(
            StoreConfiguration.cloud(None, data_dir), local_configuration
        )

        store = bootstrapper.start()
        try:
            assert bootstrapper.state is BootstrapState.READY_LOCAL
            assert bootstrapper.state.is_ready
            assert store.configuration.sync_backing is SyncBacking.LOCAL
            cloud_attempt, local_attempt = bootstrapper.attempts
            assert not cloud_attempt.succeeded
            assert "no user-data URL" in cloud_attempt.error
            assert local_attempt.succeeded
        finally:
            store.close()

    def test_both_fail(self, data_dir, local_configuration):
        """Neither configuration opening is fatal."""
        bootstrapper = StoreBootstrapper(
            StoreConfiguration.cloud("sqlite:///unused.db", data_dir),
            local_configuration,
            store_factory=FailingStore,
        )

        with pytest.raises(StoreUnavailableError) as exc_info:
            bootstrapper.start()

        assert bootstrapper.state is BootstrapState.FATAL
        assert not bootstrapper.state.is_ready
        assert [a.configuration for a in bootstrapper.attempts] == ["cloud", "local"]
        assert "local is down" in str(exc_info.value)

    def test_runs_once(self, data_dir, local_configuration):
        bootstrapper = StoreBootstrapper(
            StoreConfiguration.cloud(None, data_dir), local_configuration
        )
        store = bootstrapper.start()
        try:
            with pytest.raises(DatabaseError, match="already ran"):
                bootstrapper.start()
        finally:
            store.close()
