#!/usr/bin/env python3
"""
schema_versions.py
--------------------
Declared versions of the synced user-data schema and the plan that moves a
database from one version to the next.

Only synced entities (User, Visit) are versioned. Catalog tables are
local-only and rebuilt from the bundled dataset, so they never migrate.

Concepts:
    SchemaVersion: Immutable declaration of one released schema, tied to the
        Alembic revision that produces it
    MigrationStage: One (N, N+1) step with an inspect-only ``will_migrate``
        callback and a finalizing ``did_migrate`` callback
    MigrationPlan: Ordered stages keyed by (from, to); never skips versions
    SchemaMigrator: Storage-layer driver. Detects the current version,
        no-ops at the target, and otherwise runs each stage as
        will_migrate -> alembic upgrade -> did_migrate

Utilities:
    validate_migration: Flags visits with an empty park reference
    record_backup: Writes visit/user counts and a timestamp to the settings
        store. This is a tripwire for spotting data loss after a migration,
        not a backup that can be restored.

Usage:
    migrator = SchemaMigrator(engine, logger=logger)
    result = migrator.migrate()
"""
# --- Annotations ---
from __future__ import annotations

# --- Standard library imports ---
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, Dict, List, Optional, Sequence, Tuple

# --- Third party imports ---
from alembic import command
from alembic.config import Config
from alembic.runtime.migration import MigrationContext
from sqlalchemy import Engine, func, inspect, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

# --- Local imports ---
from fogfern.core.exceptions import MigrationError, MigrationErrorKind
from fogfern.core.logging_manager import FogFernLogger, safe_logger
from fogfern.core.paths import MIGRATIONS_DIR
from .models import User, UserDataBase, Visit, utc_now
from .settings_store import (
    BACKUP_DATE_KEY,
    BACKUP_USER_COUNT_KEY,
    BACKUP_VISIT_COUNT_KEY,
    SettingsStore,
)


# ----- Versions -----
@dataclass(frozen=True)
class SchemaVersion:
    """
    One released shape of the synced schema.

    Attributes:
        number: Ordinal version (1, 2, ...)
        revision: Alembic revision that produces this shape
        entities: Synced entity names covered by this version
        description: What changed in this version
    """

    number: int
    revision: str
    entities: Tuple[str, ...]
    description: str

    @property
    def label(self) -> str:
        return f"{self.number}.0.0"

    def __str__(self) -> str:
        return f"v{self.number} ({self.revision})"


SCHEMA_V1 = SchemaVersion(
    number=1,
    revision="0001_user_data_v1",
    entities=("User", "Visit"),
    description="Users and visits; visits carry an active flag",
)

SCHEMA_V2 = SchemaVersion(
    number=2,
    revision="0002_visit_media_v2",
    entities=("User", "Visit"),
    description="Visits gain photo URLs, weather and a 1-5 rating",
)

VERSIONS: Tuple[SchemaVersion, ...] = (SCHEMA_V1, SCHEMA_V2)
CURRENT_VERSION: SchemaVersion = SCHEMA_V2


# ----- Stages -----
WillMigrate = Callable[[Session], Dict[str, int]]
DidMigrate = Callable[[Session], None]


@dataclass(frozen=True)
class MigrationStage:
    """
    One step between consecutive versions.

    Attributes:
        from_version: Version the stage starts at
        to_version: Version the stage ends at (from + 1)
        will_migrate: Inspect-only callback; returns row counts per entity.
            Runs in a session that is always rolled back.
        did_migrate: Finalizing callback; commits its session
    """

    from_version: SchemaVersion
    to_version: SchemaVersion
    will_migrate: WillMigrate
    did_migrate: DidMigrate

    @property
    def key(self) -> Tuple[int, int]:
        return (self.from_version.number, self.to_version.number)

    @property
    def name(self) -> str:
        return f"v{self.from_version.number}_to_v{self.to_version.number}"


def count_synced_rows(session: Session) -> Dict[str, int]:
    """Row counts for the synced entities. Reads only."""
    return {
        "Visit": session.scalar(select(func.count(Visit.id))) or 0,
        "User": session.scalar(select(func.count(User.id))) or 0,
    }


def commit_stage(session: Session) -> None:
    session.commit()


V1_TO_V2 = MigrationStage(
    from_version=SCHEMA_V1,
    to_version=SCHEMA_V2,
    will_migrate=count_synced_rows,
    did_migrate=commit_stage,
)


class MigrationPlan:
    """
    Ordered migration stages keyed by (from, to).

    The plan only describes transitions; detecting the current version and
    skipping work at the target is the migrator's job.
    """

    def __init__(
        self, versions: Sequence[SchemaVersion], stages: Sequence[MigrationStage]
    ) -> None:
        """
        Build and validate a plan.

        Raises:
            MigrationError: If versions are not consecutive or a stage does
                not join two consecutive declared versions in order
        """
        self.versions: Tuple[SchemaVersion, ...] = tuple(versions)
        self.stages: Tuple[MigrationStage, ...] = tuple(stages)
        self._validate()
        self._by_key: Dict[Tuple[int, int], MigrationStage] = {
            stage.key: stage for stage in self.stages
        }
        self._by_revision: Dict[str, SchemaVersion] = {
            version.revision: version for version in self.versions
        }

    def _validate(self) -> None:
        if not self.versions:
            raise MigrationError(MigrationErrorKind.MIGRATION_FAILED, "no schema versions declared")

        numbers = [version.number for version in self.versions]
        expected = list(range(numbers[0], numbers[0] + len(numbers)))
        if numbers != expected:
            raise MigrationError(
                MigrationErrorKind.MIGRATION_FAILED,
                f"schema versions must be consecutive, got {numbers}",
            )

        declared = set(self.versions)
        previous_to: Optional[int] = None
        for stage in self.stages:
            if stage.from_version not in declared or stage.to_version not in declared:
                raise MigrationError(
                    MigrationErrorKind.MIGRATION_FAILED,
                    f"stage {stage.name} uses an undeclared version",
                )
            if stage.to_version.number != stage.from_version.number + 1:
                raise MigrationError(
                    MigrationErrorKind.MIGRATION_FAILED,
                    f"stage {stage.name} skips versions",
                )
            if previous_to is not None and stage.from_version.number != previous_to:
                raise MigrationError(
                    MigrationErrorKind.MIGRATION_FAILED,
                    f"stage {stage.name} is out of order",
                )
            previous_to = stage.to_version.number

    @property
    def latest(self) -> SchemaVersion:
        return self.versions[-1]

    def version(self, number: int) -> SchemaVersion:
        for version in self.versions:
            if version.number == number:
                return version
        raise MigrationError(MigrationErrorKind.MIGRATION_FAILED, f"unknown schema version {number}")

    def version_for_revision(self, revision: Optional[str]) -> Optional[SchemaVersion]:
        if revision is None:
            return None
        return self._by_revision.get(revision)

    def stage(self, from_number: int, to_number: int) -> Optional[MigrationStage]:
        return self._by_key.get((from_number, to_number))

    def path(self, from_version: SchemaVersion, to_version: SchemaVersion) -> List[MigrationStage]:
        """
        Stages that move ``from_version`` to ``to_version``, in order.

        Returns:
            Empty list when the versions are equal

        Raises:
            MigrationError: On a downgrade or a missing stage
        """
        if to_version.number < from_version.number:
            raise MigrationError(
                MigrationErrorKind.MIGRATION_FAILED,
                f"cannot downgrade from v{from_version.number} to v{to_version.number}",
            )

        stages = []
        for number in range(from_version.number, to_version.number):
            stage = self.stage(number, number + 1)
            if stage is None:
                raise MigrationError(
                    MigrationErrorKind.MIGRATION_FAILED,
                    f"no migration stage from v{number} to v{number + 1}",
                )
            stages.append(stage)
        return stages


DEFAULT_PLAN = MigrationPlan(VERSIONS, (V1_TO_V2,))


# ----- Migrator -----
@dataclass
class MigrationResult:
    """
    Outcome of ``SchemaMigrator.migrate``.

    Attributes:
        from_version: Version found before migrating (None for a fresh store)
        to_version: Version after migrating
        stages_applied: Names of the stages that ran
        counts: Pre-stage row counts reported by each stage's will_migrate
        baselined: True when a fresh store was created at the target
    """

    from_version: Optional[int]
    to_version: int
    stages_applied: List[str] = field(default_factory=list)
    counts: Dict[str, Dict[str, int]] = field(default_factory=dict)
    baselined: bool = False

    @property
    def changed(self) -> bool:
        return self.baselined or bool(self.stages_applied)


class SchemaMigrator:
    """
    Apply a MigrationPlan to a user-data database with Alembic.

    Attributes:
        engine: Engine for the user-data database
        plan: Migration plan to follow
        logger: Optional logger
    """

    def __init__(
        self,
        engine: Engine,
        plan: MigrationPlan = DEFAULT_PLAN,
        logger: Optional[FogFernLogger] = None,
    ) -> None:
        self.engine = engine
        self.plan = plan
        self.logger = logger

    def _alembic_config(self, connection=None) -> Config:
        alembic_cfg = Config()
        alembic_cfg.set_main_option("script_location", str(MIGRATIONS_DIR))
        alembic_cfg.set_main_option(
            "sqlalchemy.url", self.engine.url.render_as_string(hide_password=False)
        )
        if connection is not None:
            alembic_cfg.attributes["connection"] = connection
        return alembic_cfg

    def _upgrade(self, revision: str) -> None:
        with self.engine.begin() as connection:
            command.upgrade(self._alembic_config(connection), revision)

    def _stamp(self, revision: str) -> None:
        with self.engine.begin() as connection:
            command.stamp(self._alembic_config(connection), revision)

    def current_revision(self) -> Optional[str]:
        """Alembic revision recorded in the database, or None."""
        with self.engine.connect() as connection:
            return MigrationContext.configure(connection).get_current_revision()

    def current_version(self) -> Optional[SchemaVersion]:
        """
        Declared version matching the database.

        Raises:
            MigrationError: If the recorded revision is not declared
        """
        revision = self.current_revision()
        version = self.plan.version_for_revision(revision)
        if revision is not None and version is None:
            raise MigrationError(
                MigrationErrorKind.MIGRATION_FAILED,
                f"database is at unknown revision '{revision}'",
            )
        return version

    def _has_user_tables(self) -> bool:
        existing = set(inspect(self.engine).get_table_names())
        return bool(existing & set(UserDataBase.metadata.tables))

    def status(self, target: Optional[SchemaVersion] = None) -> Dict[str, Optional[str]]:
        """
        Migration status summary.

        Returns:
            Dictionary with current_revision, current_version,
            target_version and status ('up_to_date' or 'needs_migration')
        """
        target = target or self.plan.latest
        current = self.current_version()
        return {
            "current_revision": current.revision if current else None,
            "current_version": current.label if current else None,
            "target_version": target.label,
            "status": "up_to_date"
            if current is not None and current.number == target.number
            else "needs_migration",
        }

    def migrate(self, target: Optional[SchemaVersion] = None) -> MigrationResult:
        """
        Bring the database to ``target`` (default: the plan's latest).

        A fresh database is created directly at the target revision. A
        database with user tables but no revision is treated as the first
        declared version. Already at the target: nothing happens.

        Raises:
            MigrationError: If a stage fails or the path is invalid
        """
        target = target or self.plan.latest
        log = safe_logger(self.logger)

        try:
            current = self.current_version()
            if current is None:
                if not self._has_user_tables():
                    self._upgrade(target.revision)
                    log.log_operation(
                        "schema_baselined", {"version": target.number, "revision": target.revision}
                    )
                    return MigrationResult(None, target.number, baselined=True)

                baseline = self.plan.versions[0]
                self._stamp(baseline.revision)
                log.log_warning(
                    "Unversioned user-data tables found; stamped as baseline",
                    {"revision": baseline.revision},
                )
                current = baseline
        except SQLAlchemyError as e:
            raise MigrationError(
                MigrationErrorKind.MIGRATION_FAILED, f"could not read schema version: {e}", cause=e
            ) from e

        result = MigrationResult(current.number, target.number)
        if current.number == target.number:
            log.log_debug("Schema already at target", {"version": target.number})
            return result

        for stage in self.plan.path(current, target):
            result.counts[stage.name] = self._run_stage(stage)
            result.stages_applied.append(stage.name)

        log.log_operation(
            "schema_migrated",
            {
                "from_version": result.from_version,
                "to_version": result.to_version,
                "stages": result.stages_applied,
                "counts": result.counts,
            },
        )
        return result

    def _run_stage(self, stage: MigrationStage) -> Dict[str, int]:
        log = safe_logger(self.logger)
        log.log_info(f"Running migration stage {stage.name}")

        session = Session(bind=self.engine)
        try:
            counts = stage.will_migrate(session)
        except Exception as e:
            raise MigrationError(
                MigrationErrorKind.MIGRATION_FAILED,
                f"{stage.name} pre-migration check failed: {e}",
                context={"stage": stage.name},
                cause=e,
            ) from e
        finally:
            session.rollback()
            session.close()

        try:
            self._upgrade(stage.to_version.revision)
            with Session(bind=self.engine) as session:
                stage.did_migrate(session)
        except Exception as e:
            raise MigrationError(
                MigrationErrorKind.MIGRATION_FAILED,
                f"{stage.name}: {e}",
                context={"stage": stage.name, "counts": counts},
                cause=e,
            ) from e

        log.log_debug(f"Stage {stage.name} complete", {"counts": counts})
        return counts


# ----- Validation -----
@dataclass
class MigrationValidation:
    """
    Post-migration sanity check.

    Attributes:
        visit_count: Visits inspected
        user_count: Users present
        orphaned_visit_ids: Visits whose park reference is empty
    """

    visit_count: int
    user_count: int
    orphaned_visit_ids: List[uuid.UUID] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return not self.orphaned_visit_ids

    def ensure_valid(self) -> "MigrationValidation":
        """
        Raises:
            MigrationError: VALIDATION_FAILED when orphaned visits exist
        """
        if not self.is_valid:
            raise MigrationError(
                MigrationErrorKind.VALIDATION_FAILED,
                f"{len(self.orphaned_visit_ids)} orphaned visits",
                context={"orphaned_visit_ids": [str(i) for i in self.orphaned_visit_ids]},
            )
        return self


def validate_migration(session: Session) -> MigrationValidation:
    """
    Flag visits whose park reference is empty.

    Advisory only: nothing is repaired.
    """
    rows = session.execute(select(Visit.id, Visit.park_unique_id)).all()
    orphaned = [row.id for row in rows if not row.park_unique_id]
    user_count = session.scalar(select(func.count(User.id))) or 0
    return MigrationValidation(len(rows), user_count, orphaned)


# ----- Backup tripwire -----
@dataclass(frozen=True)
class BackupSnapshot:
    """Counts recorded before a risky migration."""

    visit_count: int
    user_count: int
    recorded_at: datetime


def record_backup(session: Session, logger: Optional[FogFernLogger] = None) -> BackupSnapshot:
    """
    Record visit and user counts with a timestamp.

    Only counts are stored. Comparing them after a migration detects lost
    rows; it cannot bring them back.

    Raises:
        MigrationError: BACKUP_FAILED if the counts cannot be read or stored
    """
    try:
        counts = count_synced_rows(session)
        snapshot = BackupSnapshot(counts["Visit"], counts["User"], utc_now())
        settings = SettingsStore(session, logger)
        settings.set(BACKUP_VISIT_COUNT_KEY, str(snapshot.visit_count))
        settings.set(BACKUP_USER_COUNT_KEY, str(snapshot.user_count))
        settings.set(BACKUP_DATE_KEY, snapshot.recorded_at.isoformat())
    except SQLAlchemyError as e:
        raise MigrationError(MigrationErrorKind.BACKUP_FAILED, str(e), cause=e) from e

    safe_logger(logger).log_operation(
        "backup_recorded",
        {"visit_count": snapshot.visit_count, "user_count": snapshot.user_count},
    )
    return snapshot


def last_backup(session: Session) -> Optional[BackupSnapshot]:
    """The most recent tripwire, or None if never recorded."""
    settings = SettingsStore(session)
    recorded = settings.get(BACKUP_DATE_KEY)
    if recorded is None:
        return None
    return BackupSnapshot(
        visit_count=settings.get_int(BACKUP_VISIT_COUNT_KEY),
        user_count=settings.get_int(BACKUP_USER_COUNT_KEY),
        recorded_at=datetime.fromisoformat(recorded),
    )
