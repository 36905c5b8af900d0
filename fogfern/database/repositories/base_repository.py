#!/usr/bin/env python3
"""
base_repository.py
--------------------
Base repository providing the unit-of-work plumbing shared by the catalog
and account repositories.

Key Features:
    - Every operation gets its own session from ``store.session_scope()``
    - Async surface: the blocking unit of work runs in a worker thread via
      ``asyncio.to_thread``
    - Retry with exponential backoff on SQLite lock contention and on
      unique-constraint conflicts with a concurrent writer; the retry runs
      in a fresh session that sees the row the other writer committed
    - Storage exceptions rewrapped into the repository's own error family
      (``STORAGE_FAILURE``) with operation context; domain errors pass
      through untouched

Usage:
    class CatalogRepository(BaseRepository):
        error_class = CatalogError
        storage_failure = CatalogErrorKind.STORAGE_FAILURE

        async def get_park(self, park_id):
            return await self._run("get_park", lambda s: s.get(Park, park_id))
"""
# --- Annotations ---
from __future__ import annotations

# --- Standard library imports ---
import asyncio
import time
from abc import ABC
from enum import Enum
from typing import Any, Callable, ClassVar, Dict, Optional, Type, TypeVar

# --- Third party imports ---
from sqlalchemy.exc import IntegrityError, OperationalError, SQLAlchemyError
from sqlalchemy.orm import Session

# --- Local imports ---
from fogfern.core.exceptions import DatabaseError, FogFernError
from fogfern.core.logging_manager import FogFernLogger, safe_logger
from ..store import FogFernStore

R = TypeVar("R")


def is_retryable(error: SQLAlchemyError) -> bool:
    """
    Whether a failed unit of work may succeed when rerun from scratch.

    Lock contention clears once the other writer commits. A unique
    constraint violation means another unit of work inserted the same row
    first; rerunning finds that row instead of inserting it again.
    """
    message = str(error).lower()
    if isinstance(error, OperationalError):
        return "locked" in message or "busy" in message
    if isinstance(error, IntegrityError):
        return "unique" in message or "duplicate key" in message
    return False


class BaseRepository(ABC):
    """
    Abstract base for async repositories over a FogFernStore.

    Subclasses set ``error_class`` and ``storage_failure``.

    Attributes:
        store: Open FogFernStore
        logger: Optional logger for operation tracking
    """

    error_class: ClassVar[Type[FogFernError]]
    storage_failure: ClassVar[Enum]

    def __init__(self, store: FogFernStore, logger: Optional[FogFernLogger] = None):
        """
        Initialize the repository.

        Args:
            store: Open store providing session scopes
            logger: Optional logger for operation tracking
        """
        self.store = store
        self.logger = logger

    # -------------------------------------------------------------------------
    # Core Helper Methods
    # -------------------------------------------------------------------------

    def _execute_with_retry(
        self,
        operation: Callable[[], R],
        max_retries: int = 3,
        retry_delay: float = 0.1,
    ) -> R:
        """
        Execute a unit of work, rerunning it on lock contention or on a
        unique-constraint conflict with a concurrent writer.

        Args:
            operation: Callable that performs the whole unit of work
            max_retries: Maximum number of attempts
            retry_delay: Base delay between retries (exponential backoff)

        Returns:
            Result of the operation

        Raises:
            SQLAlchemyError: If not retryable or all retries exhausted
        """
        for attempt in range(max_retries):
            try:
                return operation()
            except (OperationalError, IntegrityError) as e:
                if is_retryable(e) and attempt < max_retries - 1:
                    wait_time = retry_delay * (2**attempt)

                    safe_logger(self.logger).log_debug(
                        f"Concurrent write conflict, retrying in {wait_time}s",
                        {
                            "attempt": attempt + 1,
                            "max_retries": max_retries,
                            "error": type(e).__name__,
                        },
                    )

                    time.sleep(wait_time)
                    continue

                raise

        raise DatabaseError("Retry loop completed without success")

    def _unit_of_work(self, work: Callable[[Session], R]) -> R:
        def attempt() -> R:
            with self.store.session_scope() as session:
                return work(session)

        return self._execute_with_retry(attempt)

    def _wrap_storage_error(
        self, operation: str, error: Exception, context: Optional[Dict[str, Any]]
    ) -> FogFernError:
        details = {"operation": operation}
        details.update(context or {})
        wrapped = self.error_class(
            self.storage_failure,
            f"{operation} failed: {error}",
            context=details,
            cause=error,
        )
        safe_logger(self.logger).log_error(error, details)
        return wrapped

    def _call(
        self,
        operation: str,
        work: Callable[[Session], R],
        context: Optional[Dict[str, Any]] = None,
    ) -> R:
        """
        Run ``work`` in a fresh session on the calling thread.

        Raises:
            FogFernError: Domain errors from ``work`` unchanged; storage
                errors wrapped as the family's ``STORAGE_FAILURE``
        """
        try:
            return self._unit_of_work(work)
        except FogFernError:
            raise
        except (SQLAlchemyError, DatabaseError) as e:
            raise self._wrap_storage_error(operation, e, context) from e

    async def _run(
        self,
        operation: str,
        work: Callable[[Session], R],
        context: Optional[Dict[str, Any]] = None,
    ) -> R:
        """Async form of ``_call``; the unit of work runs in a worker thread."""
        return await asyncio.to_thread(self._call, operation, work, context)
