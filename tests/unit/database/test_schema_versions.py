"""Tests for schema versions, migration plans and the migrator."""
import uuid

import pytest
from sqlalchemy import inspect, select, text
from sqlalchemy.orm import Session

from fogfern.core.exceptions import MigrationError, MigrationErrorKind
from fogfern.core.paths import sqlite_url
from fogfern.database.models import User, Visit
from fogfern.database.schema_versions import (
    CURRENT_VERSION,
    DEFAULT_PLAN,
    SCHEMA_V1,
    SCHEMA_V2,
    V1_TO_V2,
    VERSIONS,
    MigrationPlan,
    MigrationStage,
    SchemaMigrator,
    SchemaVersion,
    count_synced_rows,
    last_backup,
    record_backup,
    validate_migration,
)
from fogfern.database.store import create_store_engine


SCHEMA_V3 = SchemaVersion(
    number=3,
    revision="0003_future",
    entities=("User", "Visit"),
    description="Not released",
)


@pytest.fixture
def user_data_engine(tmp_path):
    """Empty SQLite user-data database."""
    engine = create_store_engine(sqlite_url(tmp_path / "userdata.db"))
    yield engine
    engine.dispose()


@pytest.fixture
def migrator(user_data_engine):
    return SchemaMigrator(user_data_engine)


def visit_columns(engine):
    return {column["name"] for column in inspect(engine).get_columns("visits")}


class TestMigrationPlan:
    """Tests for plan validation and path finding."""

    def test_default_plan_is_consistent(self):
        assert DEFAULT_PLAN.latest is CURRENT_VERSION
        assert DEFAULT_PLAN.stage(1, 2) is V1_TO_V2
        assert V1_TO_V2.name == "v1_to_v2"

    def test_versions_must_be_consecutive(self):
        """A gap in the declared versions is rejected."""
        with pytest.raises(MigrationError) as exc_info:
            MigrationPlan((SCHEMA_V1, SCHEMA_V3), ())
        assert exc_info.value.kind is MigrationErrorKind.MIGRATION_FAILED

    def test_stage_may_not_skip(self):
        """Stages always join N and N+1."""
        skipping = MigrationStage(SCHEMA_V1, SCHEMA_V3, count_synced_rows, lambda s: None)
        with pytest.raises(MigrationError, match="skips"):
            MigrationPlan((SCHEMA_V1, SCHEMA_V2, SCHEMA_V3), (skipping,))

    def test_stage_versions_must_be_declared(self):
        with pytest.raises(MigrationError, match="undeclared"):
            MigrationPlan((SCHEMA_V1,), (V1_TO_V2,))

    def test_stages_in_order(self):
        """Stages are listed in version order."""
        v2_to_v3 = MigrationStage(SCHEMA_V2, SCHEMA_V3, count_synced_rows, lambda s: None)
        with pytest.raises(MigrationError, match="out of order"):
            MigrationPlan((SCHEMA_V1, SCHEMA_V2, SCHEMA_V3), (v2_to_v3, V1_TO_V2))

    def test_path_same_version_is_empty(self):
        assert DEFAULT_PLAN.path(SCHEMA_V2, SCHEMA_V2) == []

    def test_path_walks_every_stage(self):
        assert DEFAULT_PLAN.path(SCHEMA_V1, SCHEMA_V2) == [V1_TO_V2]

    def test_path_refuses_downgrade(self):
        with pytest.raises(MigrationError, match="downgrade"):
            DEFAULT_PLAN.path(SCHEMA_V2, SCHEMA_V1)

    def test_path_missing_stage(self):
        plan = MigrationPlan(VERSIONS, ())
        with pytest.raises(MigrationError, match="no migration stage"):
            plan.path(SCHEMA_V1, SCHEMA_V2)

    def test_version_for_revision(self):
        assert DEFAULT_PLAN.version_for_revision("0001_user_data_v1") is SCHEMA_V1
        assert DEFAULT_PLAN.version_for_revision(None) is None


class TestSchemaMigrator:
    """Tests for SchemaMigrator against real SQLite files."""

    def test_fresh_database_is_baselined(self, migrator, user_data_engine):
        """An empty database goes straight to the latest version."""
        result = migrator.migrate()

        assert result.baselined
        assert result.from_version is None
        assert result.to_version == 2
        assert migrator.current_version() is SCHEMA_V2
        assert {"photo_urls", "weather", "rating"} <= visit_columns(user_data_engine)

    def test_at_target_is_noop(self, migrator):
        migrator.migrate()
        result = migrator.migrate()

        assert not result.changed
        assert result.stages_applied == []

    def test_status(self, migrator):
        before = migrator.status()
        assert before["status"] == "needs_migration"
        assert before["current_version"] is None

        migrator.migrate()
        after = migrator.status()
        assert after["status"] == "up_to_date"
        assert after["current_version"] == "2.0.0"
        assert after["current_revision"] == "0002_visit_media_v2"

    def test_v1_to_v2_preserves_rows(self, migrator, user_data_engine):
        """Rows written under v1 survive the upgrade with v2 defaults."""
        migrator.migrate(SCHEMA_V1)
        assert migrator.current_version() is SCHEMA_V1
        assert "photo_urls" not in visit_columns(user_data_engine)

        user_id = uuid.uuid4()
        with user_data_engine.begin() as connection:
            connection.execute(
                text(
                    "INSERT INTO users (id, created_at, last_active, has_completed_onboarding, "
                    "total_visits, unique_parks_visited, journal_entry_count, "
                    "current_streak_days, longest_streak_days, preferred_units, "
                    "default_privacy_level, enable_location_tracking, enable_notifications, "
                    "enable_analytics, enable_weather_data, preferred_visit_duration) "
                    "VALUES (:id, '2025-06-01 10:00:00.000000', '2025-06-01 10:00:00.000000', "
                    "0, 1, 1, 0, 0, 0, 'imperial', 'private', 1, 1, 0, 1, 3600.0)"
                ),
                {"id": user_id.hex},
            )
            connection.execute(
                text(
                    "INSERT INTO visits (id, timestamp, park_unique_id, park_name, is_active, user_id) "
                    "VALUES (:id, '2025-06-01 10:00:00.000000', 'sf:INT123', 'Dolores Park', 1, :user_id)"
                ),
                {"id": uuid.uuid4().hex, "user_id": user_id.hex},
            )

        result = migrator.migrate()

        assert result.from_version == 1
        assert result.stages_applied == ["v1_to_v2"]
        assert result.counts["v1_to_v2"] == {"Visit": 1, "User": 1}
        with Session(bind=user_data_engine) as session:
            visit = session.scalars(select(Visit)).one()
            assert visit.park_unique_id == "sf:INT123"
            assert visit.photo_urls == []
            assert visit.rating is None
            assert visit.user.id == user_id

    def test_stage_failure_is_migration_error(self, user_data_engine):
        """A failing pre-migration check stops the migration."""

        def broken_check(session):
            raise RuntimeError("boom")

        stage = MigrationStage(SCHEMA_V1, SCHEMA_V2, broken_check, lambda s: None)
        migrator = SchemaMigrator(user_data_engine, MigrationPlan(VERSIONS, (stage,)))
        migrator.migrate(SCHEMA_V1)

        with pytest.raises(MigrationError) as exc_info:
            migrator.migrate()
        assert exc_info.value.kind is MigrationErrorKind.MIGRATION_FAILED
        assert migrator.current_version() is SCHEMA_V1

    def test_unknown_revision(self, migrator, user_data_engine):
        migrator.migrate()
        with user_data_engine.begin() as connection:
            connection.execute(text("UPDATE alembic_version SET version_num = 'nope'"))

        with pytest.raises(MigrationError, match="unknown revision"):
            migrator.current_version()


class TestValidationAndBackup:
    """Tests for validate_migration and the backup tripwire."""

    def test_no_orphans(self, session):
        user = User(display_name="Ana")
        session.add(user)
        session.add(Visit(park_unique_id="sf:INT123", park_name="Dolores", user=user))
        session.flush()

        validation = validate_migration(session)

        assert validation.visit_count == 1
        assert validation.user_count == 1
        assert validation.ensure_valid() is validation

    def test_orphans_flagged(self, session):
        """Visits with an empty park reference are reported, not repaired."""
        orphan = Visit(park_unique_id="", park_name="Gone")
        session.add(orphan)
        session.flush()

        validation = validate_migration(session)

        assert validation.orphaned_visit_ids == [orphan.id]
        with pytest.raises(MigrationError) as exc_info:
            validation.ensure_valid()
        assert exc_info.value.kind is MigrationErrorKind.VALIDATION_FAILED
        assert orphan.park_unique_id == ""

    def test_record_backup(self, store):
        """Counts and a timestamp land in the settings store."""
        with store.session_scope() as session:
            assert last_backup(session) is None
            user = User()
            session.add(user)
            session.add(Visit(park_unique_id="sf:A", park_name="A", user=user))
            session.add(Visit(park_unique_id="sf:B", park_name="B", user=user))

        with store.session_scope() as session:
            snapshot = record_backup(session)

        assert (snapshot.visit_count, snapshot.user_count) == (2, 1)
        with store.session_scope() as session:
            recorded = last_backup(session)
        assert recorded == snapshot
