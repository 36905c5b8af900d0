"""
FogFern
=======

Local-first catalog and visit store for city parks.

A curated park dataset is reconciled into a per-device catalog database,
while users and their visits live in a separately configured user-data
database that is either cloud-backed or local-only. The package contains:

- core: errors, logging, validation, paths and the location provider protocol
- database: ORM models, identifier resolver, schema versions, dataset loader,
  repositories and the store bootstrapper
- migrations: Alembic revisions for the user-data schema
- cli: the ``fogfern`` command-line interface

Usage:
    import asyncio

    from fogfern.app import bootstrap_application

    async def main():
        context = await bootstrap_application()
        try:
            return await context.catalog.get_all(context.city)
        finally:
            context.close()

    parks = asyncio.run(main())
"""
__version__ = "1.0.0"
