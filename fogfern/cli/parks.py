"""
Park Catalog Commands
------------------------

Browse the local park catalog.

Commands:
    - list: Active parks, optionally filtered by category or size
    - search: Case-insensitive search over name, description, neighborhood
    - near: Parks within a radius of a point, nearest first
    - stats: Park counts and acreage per category and size
"""
import asyncio
from typing import List

import click

from fogfern.core.exceptions import DatabaseError, FogFernError
from fogfern.core.location import METERS_PER_MILE, Coordinate
from fogfern.core.logging_manager import handle_cli_error
from fogfern.database.models import Park, ParkCategory, ParkSize
from . import get_app


def _echo_parks(parks: List[Park]) -> None:
    if not parks:
        click.echo("No parks found")
        return
    for park in parks:
        neighborhood = f", {park.neighborhood}" if park.neighborhood else ""
        click.echo(
            f"  • {park.name} ({park.category.display_name}, "
            f"{park.formatted_acreage}{neighborhood})"
        )


@click.group()
@click.pass_context
def parks(ctx: click.Context) -> None:
    """Browse the park catalog."""
    pass


@parks.command("list")
@click.option(
    "--category",
    type=click.Choice(ParkCategory.choices()),
    help="Only parks in this category",
)
@click.option(
    "--size",
    type=click.Choice(ParkSize.choices()),
    help="Only parks of this size class (largest first)",
)
@click.pass_context
def list_parks(ctx, category, size):
    """List active parks sorted by name."""
    try:
        app = get_app(ctx)
        if category:
            result = asyncio.run(app.catalog.get_by_category(category, app.city))
        elif size:
            result = asyncio.run(app.catalog.get_by_size(size, app.city))
        else:
            result = asyncio.run(app.catalog.get_all(app.city))

        click.echo(f"\n🌳 {app.city.display_name} parks ({len(result)})")
        click.echo("=" * 50)
        _echo_parks(result)

    except (DatabaseError, FogFernError) as e:
        handle_cli_error(
            ctx, e, "parks_list", additional_context={"category": category, "size": size}
        )


@parks.command("search")
@click.argument("query")
@click.pass_context
def search(ctx, query):
    """Search parks by name, description or neighborhood."""
    try:
        app = get_app(ctx)
        result = asyncio.run(app.catalog.search(query, app.city))

        click.echo(f"\n🔍 Results for '{query}' ({len(result)})")
        click.echo("=" * 50)
        _echo_parks(result)

    except (DatabaseError, FogFernError) as e:
        handle_cli_error(ctx, e, "parks_search", additional_context={"query": query})


@parks.command("near")
@click.argument("latitude", type=float)
@click.argument("longitude", type=float)
@click.option(
    "--radius",
    type=float,
    default=METERS_PER_MILE,
    show_default=True,
    help="Search radius in meters",
)
@click.pass_context
def near(ctx, latitude, longitude, radius):
    """List parks within RADIUS meters of LATITUDE LONGITUDE."""
    try:
        app = get_app(ctx)
        point = Coordinate(latitude, longitude)
        result = asyncio.run(app.catalog.get_near(point, radius, app.city))

        click.echo(f"\n📍 Parks within {radius:.0f} m ({len(result)})")
        click.echo("=" * 50)
        for park in result:
            click.echo(f"  • {park.name} ({park.formatted_distance(point)})")
        if not result:
            click.echo("No parks found")

    except (DatabaseError, FogFernError) as e:
        handle_cli_error(
            ctx,
            e,
            "parks_near",
            additional_context={"latitude": latitude, "longitude": longitude, "radius": radius},
        )


@parks.command("stats")
@click.pass_context
def stats(ctx):
    """Show catalog statistics."""
    try:
        app = get_app(ctx)
        result = asyncio.run(app.catalog.get_visit_statistics(app.city))

        click.echo(f"\n📊 {app.city.display_name} Catalog")
        click.echo("=" * 50)
        click.echo(f"Parks: {result.total_parks}")
        click.echo(f"Total acreage: {result.total_acreage:.1f}")
        click.echo(f"Average acreage: {result.average_acreage:.1f}")

        if result.category_breakdown:
            click.echo("\nBy category:")
            for category, count in sorted(
                result.category_breakdown.items(), key=lambda item: item[0].display_name
            ):
                click.echo(f"  • {category.display_name}: {count}")

        if result.size_breakdown:
            click.echo("\nBy size:")
            for size in ParkSize:
                if size in result.size_breakdown:
                    click.echo(f"  • {size.display_name}: {result.size_breakdown[size]}")

    except (DatabaseError, FogFernError) as e:
        handle_cli_error(ctx, e, "parks_stats")
