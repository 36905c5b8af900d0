"""
Current User Commands
----------------------

Profile, engagement and visit logging for the device's current user.

Commands:
    - show: Display the current user's profile and counters
    - visit: Log a visit to a park by composite or external id
"""
import asyncio

import click

from fogfern.core.exceptions import (
    CatalogError,
    CatalogErrorKind,
    DatabaseError,
    FogFernError,
)
from fogfern.core.logging_manager import handle_cli_error
from fogfern.database.identifiers import SEPARATOR
from . import get_app


@click.group()
@click.pass_context
def user(ctx: click.Context) -> None:
    """Current user profile and visits."""
    pass


@user.command("show")
@click.option("--visits", "show_visits", is_flag=True, help="List logged visits")
@click.pass_context
def show(ctx, show_visits):
    """Display the current user."""
    try:
        app = get_app(ctx)
        current = asyncio.run(app.accounts.get_user(app.current_user_id))
        metrics = asyncio.run(app.accounts.get_engagement_metrics(app.current_user_id))

        click.echo(f"\n👤 {current.display_name or 'Anonymous'} ({current.id})")
        click.echo("=" * 50)
        click.echo(f"Onboarding complete: {'yes' if current.has_completed_onboarding else 'no'}")
        click.echo(f"City: {current.current_city_name or 'not set'}")
        click.echo(f"Visits: {metrics.total_visits}")
        click.echo(f"Unique parks: {metrics.unique_parks_visited}")
        click.echo(f"Journal entries: {metrics.journal_entry_count}")
        click.echo(
            f"Streak: {metrics.current_streak_days} days "
            f"(longest {metrics.longest_streak_days})"
        )

        if show_visits:
            visits = asyncio.run(app.accounts.get_visits(app.current_user_id))
            click.echo(f"\n📝 Visits ({len(visits)})")
            for visit in visits:
                line = f"  • {visit.timestamp:%Y-%m-%d} {visit.park_name}"
                if visit.rating:
                    line += f" {'★' * visit.rating}"
                click.echo(line)

    except (DatabaseError, FogFernError) as e:
        handle_cli_error(ctx, e, "user_show")


@user.command("visit")
@click.argument("park_id")
@click.option("--journal", "-j", default=None, help="Journal entry for this visit")
@click.option("--rating", type=click.IntRange(1, 5), default=None, help="Rating from 1 to 5")
@click.pass_context
def visit(ctx, park_id, journal, rating):
    """Log a visit to PARK_ID ("city:external_id" or a bare external id)."""
    try:
        app = get_app(ctx)
        identifier = park_id if SEPARATOR in park_id else f"{app.city.name}{SEPARATOR}{park_id}"

        # Make sure the catalog is loaded before resolving the park
        asyncio.run(app.catalog.get_all(app.city))
        park = asyncio.run(app.catalog.find_park(identifier))
        if park is None:
            raise CatalogError(CatalogErrorKind.NOT_FOUND, identifier)

        logged = asyncio.run(
            app.accounts.log_visit(
                app.current_user_id, park, journal_entry=journal, rating=rating
            )
        )
        click.echo(f"✅ Logged visit to {logged.park_name} ({logged.park_unique_id})")

    except (DatabaseError, FogFernError) as e:
        handle_cli_error(ctx, e, "user_visit", additional_context={"park_id": park_id})
