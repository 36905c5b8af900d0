"""
Setup Commands
--------------------------------

Store initialization and dataset loading.

Commands:
    - init: Open the store, migrate the schema and bootstrap the user
    - load: Apply the bundled park dataset to the catalog
"""
import asyncio

import click

from fogfern.core.exceptions import DatabaseError, FogFernError
from fogfern.core.logging_manager import handle_cli_error
from . import get_app


@click.command()
@click.pass_context
def init(ctx):
    """Open the store (cloud first, then local) and bootstrap the current user."""
    try:
        click.echo("🚀 Initializing FogFern store...")
        app = get_app(ctx)
        store = app.store
        result = store.migration_result

        click.echo(f"🗄️  Configuration: {store.name} ({store.configuration.sync_backing.value})")
        if result is not None and result.baselined:
            click.echo(f"📐 Created user-data schema at v{result.to_version}")
        elif result is not None and result.changed:
            click.echo(
                f"⬆️  Migrated user-data schema v{result.from_version} → v{result.to_version}"
            )
        else:
            click.echo("📐 User-data schema up to date")
        click.echo(f"👤 Current user: {app.current_user_id}")
        click.echo("✅ Store ready!")

    except (DatabaseError, FogFernError) as e:
        handle_cli_error(ctx, e, "init")


@click.command()
@click.option("--force", is_flag=True, help="Apply even if this dataset version was applied")
@click.pass_context
def load(ctx, force):
    """Apply the bundled park dataset to the local catalog."""
    try:
        app = get_app(ctx)
        click.echo(f"📦 Loading park dataset for {app.city.display_name}...")

        if force:
            report = asyncio.run(app.catalog.refresh(app.city))
        else:
            report = asyncio.run(app.catalog.sync_from_remote(app.city))

        if report.skipped:
            click.echo(f"✓ Dataset {report.version} already applied (use --force to re-apply)")
            return

        click.echo(f"  Inserted: {report.inserted}")
        click.echo(f"  Updated: {report.updated}")
        if report.skipped_missing_id:
            click.echo(f"  Skipped (no external id): {report.skipped_missing_id}")
        if report.duplicates_removed:
            click.echo(f"  Duplicates removed: {report.duplicates_removed}")
        for failure in report.failures:
            click.echo(f"  ⚠️  {failure.description}")
        click.echo(f"✅ Dataset {report.version} applied")

    except (DatabaseError, FogFernError) as e:
        handle_cli_error(ctx, e, "load", additional_context={"force": force})
