#!/usr/bin/env python3
"""
exceptions.py
--------------------
Custom exception classes for the FogFern catalog and visit store.

Each repository owns one error family. A family carries a machine-checkable
``kind`` (an Enum member), free-form ``context`` and an optional underlying
``cause``. Families also produce the human-facing description, failure
reason and recovery suggestion that the presentation layer renders.

Exception Hierarchy:
    Exception (built-in)
    ├── FogFernError - Base for all domain error families
    │   ├── CatalogError - Park/City queries and refreshes
    │   ├── AccountError - User and visit operations
    │   ├── DatasetLoaderError - Bundled dataset reconciliation
    │   └── MigrationError - Schema evolution, validation and backup tripwire
    ├── DatabaseError - Store-level failures (engine, session, schema)
    │   └── StoreUnavailableError - No store configuration could be opened
    └── ValidationError - Input validation failures

Usage:
    from fogfern.core.exceptions import CatalogError, CatalogErrorKind

    try:
        parks = await catalog.search(query, city)
    except CatalogError as e:
        if e.kind is CatalogErrorKind.INVALID_INPUT:
            show(e.description, e.recovery_suggestion)
"""
# --- Annotations ---
from __future__ import annotations

# --- Standard library imports ---
from enum import Enum
from typing import Any, ClassVar, Dict, Optional


class DatabaseError(Exception):
    """
    Base exception for store-level errors.

    Raised when the storage engine, session factory or schema setup fails.
    Repository methods never let these escape raw; they rewrap them into
    their own family with ``STORAGE_FAILURE`` kind.

    Examples:
        >>> raise DatabaseError("Could not open catalog database")
    """

    pass


class StoreUnavailableError(DatabaseError):
    """
    Raised when neither the cloud-backed nor the local-only store opens.

    This is the unrecoverable terminal state of the store bootstrapper.
    """

    pass


class ValidationError(Exception):
    """
    Exception for data validation failures.

    Raised by the validators before any storage access:
    - Malformed email addresses
    - Missing required fields
    - Values that cannot be converted

    Examples:
        >>> raise ValidationError("Invalid email address: 'not-an-email'")
    """

    pass


class FogFernError(Exception):
    """
    Base class for the domain error families.

    Subclasses declare ``kind_enum`` plus three lookup tables keyed by kind:
    ``_descriptions`` (format strings over ``detail``), ``_reasons`` and
    ``_suggestions``.

    Attributes:
        kind: Enum member identifying the failure
        detail: Kind-specific payload (id, reason, name, missing fields...)
        context: Free-form diagnostic context (city, query, operation...)
        cause: Wrapped underlying exception, if any
    """

    kind_enum: ClassVar[type]
    _descriptions: ClassVar[Dict[Any, str]] = {}
    _reasons: ClassVar[Dict[Any, str]] = {}
    _suggestions: ClassVar[Dict[Any, str]] = {}

    def __init__(
        self,
        kind: Enum,
        detail: Any = None,
        context: Optional[Dict[str, Any]] = None,
        cause: Optional[BaseException] = None,
    ) -> None:
        if not isinstance(kind, self.kind_enum):
            raise TypeError(
                f"{type(self).__name__} expects a {self.kind_enum.__name__}, got {kind!r}"
            )
        self.kind = kind
        self.detail = detail
        self.context: Dict[str, Any] = dict(context or {})
        self.cause = cause
        super().__init__(self.description)
        if cause is not None:
            self.__cause__ = cause

    @property
    def description(self) -> str:
        """Human-readable description of what went wrong."""
        template = self._descriptions.get(self.kind, self.kind.value)
        detail = self.detail
        if isinstance(detail, (list, tuple)):
            detail = ", ".join(str(item) for item in detail)
        return template.format(detail=detail)

    @property
    def failure_reason(self) -> Optional[str]:
        """Why the failure happened, if known."""
        return self._reasons.get(self.kind)

    @property
    def recovery_suggestion(self) -> Optional[str]:
        """What the user can do about it."""
        return self._suggestions.get(self.kind)

    def __repr__(self) -> str:
        return (
            f"<{type(self).__name__}(kind={self.kind.value}, "
            f"detail={self.detail!r}, context={self.context!r})>"
        )


# ----- Catalog -----
class CatalogErrorKind(str, Enum):
    """Failure kinds for catalog (Park/City) operations."""

    NOT_FOUND = "not_found"
    INVALID_INPUT = "invalid_input"
    DUPLICATE = "duplicate"
    SYNC_FAILURE = "sync_failure"
    DATA_CORRUPTION = "data_corruption"
    MISSING_LOCATION_DATA = "missing_location_data"
    UNSUPPORTED_CITY = "unsupported_city"
    STORAGE_FAILURE = "storage_failure"


class CatalogError(FogFernError):
    """
    Errors raised by the catalog repository.

    Examples:
        >>> CatalogError(CatalogErrorKind.INVALID_INPUT, "search query is empty")
        >>> CatalogError(CatalogErrorKind.UNSUPPORTED_CITY, "oakland")
    """

    kind_enum = CatalogErrorKind
    _descriptions = {
        CatalogErrorKind.NOT_FOUND: "Park with ID {detail} not found",
        CatalogErrorKind.INVALID_INPUT: "Invalid park data: {detail}",
        CatalogErrorKind.DUPLICATE: "Park '{detail}' already exists",
        CatalogErrorKind.SYNC_FAILURE: "Park data sync failed: {detail}",
        CatalogErrorKind.DATA_CORRUPTION: "Data corruption detected: {detail}",
        CatalogErrorKind.MISSING_LOCATION_DATA: "Location data is missing or invalid",
        CatalogErrorKind.UNSUPPORTED_CITY: "City '{detail}' is not currently supported",
        CatalogErrorKind.STORAGE_FAILURE: "Catalog storage error: {detail}",
    }
    _reasons = {
        CatalogErrorKind.NOT_FOUND: "The requested park could not be found in the database",
        CatalogErrorKind.INVALID_INPUT: "The park data does not meet validation requirements",
        CatalogErrorKind.DUPLICATE: "A park with this name already exists in the system",
        CatalogErrorKind.SYNC_FAILURE: "The bundled park dataset could not be applied",
        CatalogErrorKind.DATA_CORRUPTION: "The stored park data appears to be corrupted",
        CatalogErrorKind.MISSING_LOCATION_DATA: "Required location information is not available",
        CatalogErrorKind.UNSUPPORTED_CITY: "This city has no bundled park dataset",
        CatalogErrorKind.STORAGE_FAILURE: "The local catalog database could not be read or written",
    }
    _suggestions = {
        CatalogErrorKind.NOT_FOUND: "Try refreshing the park data",
        CatalogErrorKind.INVALID_INPUT: "Please check your input and try again",
        CatalogErrorKind.DUPLICATE: "Use a different park name or update the existing park",
        CatalogErrorKind.SYNC_FAILURE: "Try refreshing again or reinstall the app data",
        CatalogErrorKind.DATA_CORRUPTION: "Try refreshing the app data or reinstalling the app",
        CatalogErrorKind.MISSING_LOCATION_DATA: "Enable location services for better park discovery",
        CatalogErrorKind.UNSUPPORTED_CITY: "Check back later as we're expanding to new cities",
        CatalogErrorKind.STORAGE_FAILURE: "Restart the app; if the problem persists, reset local data",
    }


# ----- Accounts -----
class AccountErrorKind(str, Enum):
    """Failure kinds for user and visit operations."""

    NOT_FOUND = "not_found"
    INVALID_INPUT = "invalid_input"
    AUTH_FAILURE = "auth_failure"
    PERMISSION_DENIED = "permission_denied"
    INCOMPLETE_PROFILE = "incomplete_profile"
    STORAGE_FAILURE = "storage_failure"


class AccountError(FogFernError):
    """
    Errors raised by the account repository.

    ``INCOMPLETE_PROFILE`` carries the list of missing field names as detail.

    Examples:
        >>> AccountError(AccountErrorKind.INCOMPLETE_PROFILE, ["display_name"])
    """

    kind_enum = AccountErrorKind
    _descriptions = {
        AccountErrorKind.NOT_FOUND: "User with ID {detail} not found",
        AccountErrorKind.INVALID_INPUT: "Invalid user data: {detail}",
        AccountErrorKind.AUTH_FAILURE: "Authentication failed",
        AccountErrorKind.PERMISSION_DENIED: "Permission denied for action: {detail}",
        AccountErrorKind.INCOMPLETE_PROFILE: "Profile incomplete. Missing: {detail}",
        AccountErrorKind.STORAGE_FAILURE: "User data storage error: {detail}",
    }
    _reasons = {
        AccountErrorKind.NOT_FOUND: "The user record no longer exists on this device",
        AccountErrorKind.INVALID_INPUT: "The user data does not meet validation requirements",
        AccountErrorKind.AUTH_FAILURE: "The sync account could not be verified",
        AccountErrorKind.PERMISSION_DENIED: "The action requires a permission that was not granted",
        AccountErrorKind.INCOMPLETE_PROFILE: "Required profile fields are not set",
        AccountErrorKind.STORAGE_FAILURE: "The user-data database could not be read or written",
    }
    _suggestions = {
        AccountErrorKind.NOT_FOUND: "Try creating a new user profile",
        AccountErrorKind.INVALID_INPUT: "Please check your input and try again",
        AccountErrorKind.AUTH_FAILURE: "Please sign in again",
        AccountErrorKind.PERMISSION_DENIED: "Enable the required permissions in Settings",
        AccountErrorKind.INCOMPLETE_PROFILE: "Complete your profile to continue",
        AccountErrorKind.STORAGE_FAILURE: "Your data is saved locally and will sync when available",
    }

    @property
    def missing_fields(self) -> list:
        """Missing field names for ``INCOMPLETE_PROFILE`` errors."""
        if self.kind is AccountErrorKind.INCOMPLETE_PROFILE and self.detail:
            return list(self.detail)
        return []


# ----- Dataset loader -----
class DatasetLoaderErrorKind(str, Enum):
    """Failure kinds for bundled dataset loading."""

    FILE_NOT_FOUND = "file_not_found"
    INVALID_CATEGORY = "invalid_category"
    INVALID_FORMAT = "invalid_format"


class DatasetLoaderError(FogFernError):
    """
    Errors raised while reading or reconciling the bundled dataset.

    ``FILE_NOT_FOUND`` is distinct from generic I/O failures so callers can
    proceed with an empty catalog. ``INVALID_CATEGORY`` is raised per record
    and collected by the loader instead of aborting the load.
    """

    kind_enum = DatasetLoaderErrorKind
    _descriptions = {
        DatasetLoaderErrorKind.FILE_NOT_FOUND: "Could not find bundled park dataset: {detail}",
        DatasetLoaderErrorKind.INVALID_CATEGORY: "Invalid park category: {detail}",
        DatasetLoaderErrorKind.INVALID_FORMAT: "Bundled park dataset is malformed: {detail}",
    }
    _reasons = {
        DatasetLoaderErrorKind.FILE_NOT_FOUND: "The dataset file is not part of this installation",
        DatasetLoaderErrorKind.INVALID_CATEGORY: "The record uses a category outside the supported set",
        DatasetLoaderErrorKind.INVALID_FORMAT: "The dataset file could not be decoded",
    }
    _suggestions = {
        DatasetLoaderErrorKind.FILE_NOT_FOUND: "Reinstall the app to restore bundled data",
        DatasetLoaderErrorKind.INVALID_CATEGORY: "Regenerate the dataset with a supported category",
        DatasetLoaderErrorKind.INVALID_FORMAT: "Regenerate the bundled dataset",
    }


# ----- Migrations -----
class MigrationErrorKind(str, Enum):
    """Failure kinds for schema evolution."""

    MIGRATION_FAILED = "migration_failed"
    VALIDATION_FAILED = "validation_failed"
    BACKUP_FAILED = "backup_failed"


class MigrationError(FogFernError):
    """
    Errors raised by the schema version registry and its utilities.

    Examples:
        >>> MigrationError(MigrationErrorKind.VALIDATION_FAILED, "3 orphaned visits")
    """

    kind_enum = MigrationErrorKind
    _descriptions = {
        MigrationErrorKind.MIGRATION_FAILED: "Migration failed: {detail}",
        MigrationErrorKind.VALIDATION_FAILED: "Migration validation failed: {detail}",
        MigrationErrorKind.BACKUP_FAILED: "Backup creation failed: {detail}",
    }
    _reasons = {
        MigrationErrorKind.MIGRATION_FAILED: "The user-data schema could not be upgraded",
        MigrationErrorKind.VALIDATION_FAILED: "Migrated data failed a sanity check",
        MigrationErrorKind.BACKUP_FAILED: "The pre-migration tripwire could not be recorded",
    }
    _suggestions = {
        MigrationErrorKind.MIGRATION_FAILED: "Update the app to the latest version and try again",
        MigrationErrorKind.VALIDATION_FAILED: "Review orphaned visits with the migration validate command",
        MigrationErrorKind.BACKUP_FAILED: "Free up storage space and try again",
    }
