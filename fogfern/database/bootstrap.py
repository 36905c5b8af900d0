#!/usr/bin/env python3
"""
bootstrap.py
--------------------
Pick the store configuration at process start.

State machine, run once:

    START -> CLOUD -> READY_CLOUD
                 \\-> LOCAL -> READY_LOCAL
                            \\-> FATAL (StoreUnavailableError)

The cloud configuration is always attempted first, even when it is not
configured, so that a missing or broken sync setup shows up in the logs
instead of being skipped silently. Both configurations share the same
versioned user-data schema.
"""
# --- Annotations ---
from __future__ import annotations

# --- Standard library imports ---
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, List, Optional

# --- Local imports ---
from fogfern.core.exceptions import DatabaseError, StoreUnavailableError
from fogfern.core.logging_manager import FogFernLogger, safe_logger
from .store import FogFernStore, StoreConfiguration

StoreFactory = Callable[[StoreConfiguration, Optional[FogFernLogger]], FogFernStore]


class BootstrapState(str, Enum):
    """States of the store bootstrapper."""

    START = "start"
    CLOUD = "cloud"
    LOCAL = "local"
    READY_CLOUD = "ready_cloud"
    READY_LOCAL = "ready_local"
    FATAL = "fatal"

    @property
    def is_ready(self) -> bool:
        return self in (BootstrapState.READY_CLOUD, BootstrapState.READY_LOCAL)


@dataclass
class BootstrapAttempt:
    """One configuration tried by the bootstrapper."""

    configuration: str
    succeeded: bool
    error: Optional[str] = None


@dataclass
class StoreBootstrapper:
    """
    Open the cloud-backed store, falling back to the local-only one.

    Attributes:
        cloud: Cloud-backed configuration (its user-data URL may be None)
        local: Local-only durable configuration
        logger: Optional logger
        store_factory: Builds a store for a configuration; tests swap it
        state: Current state
        attempts: Configurations tried, in order
    """

    cloud: StoreConfiguration
    local: StoreConfiguration
    logger: Optional[FogFernLogger] = None
    store_factory: StoreFactory = FogFernStore
    state: BootstrapState = BootstrapState.START
    attempts: List[BootstrapAttempt] = field(default_factory=list)

    def _try(self, configuration: StoreConfiguration) -> Optional[FogFernStore]:
        log = safe_logger(self.logger)
        try:
            store = self.store_factory(configuration, self.logger).open()
        except DatabaseError as e:
            self.attempts.append(BootstrapAttempt(configuration.name, False, str(e)))
            log.log_error(e, {"operation": "store_bootstrap", "configuration": configuration.name})
            return None
        self.attempts.append(BootstrapAttempt(configuration.name, True))
        return store

    def start(self) -> FogFernStore:
        """
        Run the state machine.

        Returns:
            The open store

        Raises:
            StoreUnavailableError: If neither configuration opens
        """
        if self.state is not BootstrapState.START:
            raise DatabaseError(f"Bootstrapper already ran (state={self.state.value})")

        log = safe_logger(self.logger)

        self.state = BootstrapState.CLOUD
        store = self._try(self.cloud)
        if store is not None:
            self.state = BootstrapState.READY_CLOUD
            log.log_operation("store_bootstrap", {"configuration": self.cloud.name})
            return store

        log.log_warning(
            "Cloud-backed store unavailable, falling back to local-only store",
            {"error": self.attempts[-1].error},
        )

        self.state = BootstrapState.LOCAL
        store = self._try(self.local)
        if store is not None:
            self.state = BootstrapState.READY_LOCAL
            log.log_operation("store_bootstrap", {"configuration": self.local.name})
            return store

        self.state = BootstrapState.FATAL
        errors = "; ".join(f"{a.configuration}: {a.error}" for a in self.attempts)
        raise StoreUnavailableError(f"No store configuration could be opened ({errors})")
