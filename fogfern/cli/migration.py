"""
Migration Management Commands
------------------------------

User-data schema commands.

The store migrates itself when it opens; these commands report on and
check that work.

Commands:
    - status: Show current and target schema versions
    - upgrade: Bring the user-data schema to the latest version
    - validate: Flag visits with an empty park reference
    - backup: Record visit/user counts before a risky migration

Usage:
    fogfern migration status
    fogfern migration backup
    fogfern migration validate
"""
import click
from sqlalchemy.exc import SQLAlchemyError

from fogfern.core.exceptions import DatabaseError, FogFernError
from fogfern.core.logging_manager import handle_cli_error
from fogfern.database.schema_versions import last_backup, record_backup, validate_migration
from . import get_app


@click.group()
@click.pass_context
def migration(ctx: click.Context) -> None:
    """User-data schema management (Alembic operations)."""
    pass


@migration.command("status")
@click.pass_context
def migration_status(ctx):
    """Show current migration status."""
    try:
        app = get_app(ctx)
        status = app.store.migrator.status()

        click.echo("\n📊 Migration Status")
        click.echo("=" * 50)
        click.echo(f"Current Revision: {status.get('current_revision') or 'None'}")
        click.echo(f"Current Version: {status.get('current_version') or 'None'}")
        click.echo(f"Target Version: {status.get('target_version')}")
        click.echo(f"Status: {status.get('status', 'Unknown')}")

        with app.store.read_session() as session:
            snapshot = last_backup(session)
        if snapshot is not None:
            click.echo(
                f"Last Backup: {snapshot.recorded_at:%Y-%m-%d %H:%M} "
                f"({snapshot.visit_count} visits, {snapshot.user_count} users)"
            )

    except (DatabaseError, FogFernError, SQLAlchemyError) as e:
        handle_cli_error(ctx, e, "migration_status")


@migration.command("upgrade")
@click.pass_context
def migration_upgrade(ctx):
    """Upgrade the user-data schema to the latest version."""
    try:
        app = get_app(ctx)
        click.echo(f"⬆️  Upgrading user-data schema to: {app.store.plan.latest.label}")
        result = app.store.migrator.migrate()
        opened = app.store.migration_result

        applied = (opened.stages_applied if opened else []) + result.stages_applied
        if applied:
            for stage in applied:
                click.echo(f"  • {stage}")
        click.echo("✅ User-data schema is up to date!")

    except (DatabaseError, FogFernError, SQLAlchemyError) as e:
        handle_cli_error(ctx, e, "migration_upgrade")


@migration.command("validate")
@click.pass_context
def migration_validate(ctx):
    """Check for visits whose park reference is empty (advisory)."""
    try:
        app = get_app(ctx)
        with app.store.read_session() as session:
            validation = validate_migration(session)

        click.echo(f"Visits checked: {validation.visit_count}")
        click.echo(f"Users: {validation.user_count}")
        if not validation.is_valid:
            for visit_id in validation.orphaned_visit_ids:
                click.echo(f"  ⚠️  Orphaned visit: {visit_id}")
        validation.ensure_valid()
        click.echo("✅ No orphaned visits")

    except (DatabaseError, FogFernError, SQLAlchemyError) as e:
        handle_cli_error(ctx, e, "migration_validate")


@migration.command("backup")
@click.pass_context
def migration_backup(ctx):
    """Record visit/user counts as a pre-migration tripwire.

    Only counts and a timestamp are stored; this is not a restorable backup.
    """
    try:
        app = get_app(ctx)
        with app.store.session_scope() as session:
            snapshot = record_backup(session, ctx.obj.get("logger"))

        click.echo(
            f"✅ Recorded {snapshot.visit_count} visits and {snapshot.user_count} users "
            f"at {snapshot.recorded_at:%Y-%m-%d %H:%M:%S} UTC"
        )

    except (DatabaseError, FogFernError, SQLAlchemyError) as e:
        handle_cli_error(ctx, e, "migration_backup")
