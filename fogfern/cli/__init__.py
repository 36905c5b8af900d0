#!/usr/bin/env python3
"""
FogFern Command-Line Interface
-----------------------------------

Main CLI group and shared context setup for all commands.

Command Structure:
    - Setup (init, load)
    - Catalog browsing (parks list|search|near|stats)
    - Schema management (migration status|upgrade|validate|backup)
    - Current user (user show|visit)

Usage:
    # Open (or create) the store and bootstrap the current user
    fogfern init

    # Re-apply the bundled dataset even if its version was applied
    fogfern load --force

    # Parks within a mile of a point
    fogfern parks near 37.7596 -122.4269 --radius 1609
"""
import asyncio
import logging
from pathlib import Path

import click

from fogfern.app import AppContext, bootstrap_application
from fogfern.core.logging_manager import FogFernLogger
from fogfern.core.paths import BUNDLED_DATASET, DATA_DIR, log_dir


@click.group()
@click.option(
    "--data-dir",
    type=click.Path(file_okay=False),
    default=str(DATA_DIR),
    help="Directory holding the catalog and local user-data databases",
)
@click.option(
    "--dataset",
    type=click.Path(dir_okay=False),
    default=str(BUNDLED_DATASET),
    help="Path to the bundled park dataset",
)
@click.option(
    "--cloud-url",
    envvar="FOGFERN_CLOUD_URL",
    default=None,
    help="SQLAlchemy URL of the cloud-backed user-data database",
)
@click.option(
    "--log-dir",
    "log_dir_option",
    type=click.Path(file_okay=False),
    default=None,
    help="Path to log directory (default: <data-dir>/logs)",
)
@click.option(
    "--verbose",
    is_flag=True,
    help="Show detailed errors and tracebacks",
)
@click.pass_context
def cli(ctx, data_dir, dataset, cloud_url, log_dir_option, verbose):
    """FogFern park catalog and visit store"""

    # Suppress Alembic INFO logging by default
    logging.getLogger("alembic").setLevel(logging.WARNING)

    ctx.ensure_object(dict)
    ctx.obj["data_dir"] = Path(data_dir).expanduser()
    ctx.obj["dataset"] = Path(dataset).expanduser()
    ctx.obj["cloud_url"] = cloud_url
    ctx.obj["log_dir"] = (
        Path(log_dir_option).expanduser() if log_dir_option else log_dir(ctx.obj["data_dir"])
    )
    ctx.obj["verbose"] = verbose
    ctx.obj["logger"] = FogFernLogger(ctx.obj["log_dir"], component_name="cli")


def get_app(ctx) -> AppContext:
    """Get or bootstrap the application context."""
    if "app" not in ctx.obj:
        app = asyncio.run(
            bootstrap_application(
                data_dir=ctx.obj["data_dir"],
                cloud_url=ctx.obj["cloud_url"],
                dataset_path=ctx.obj["dataset"],
                logger=ctx.obj["logger"],
            )
        )
        ctx.obj["app"] = app
        ctx.call_on_close(app.close)
    return ctx.obj["app"]


# Import and register command modules
# These imports must come after CLI group definition
from .setup import init, load  # noqa: E402
from .parks import parks  # noqa: E402
from .migration import migration  # noqa: E402
from .user import user  # noqa: E402

# Register top-level commands
cli.add_command(init)
cli.add_command(load)

# Register command groups
cli.add_command(parks)
cli.add_command(migration)
cli.add_command(user)


if __name__ == "__main__":
    cli(obj={})
