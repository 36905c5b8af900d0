"""Alembic scripts for the synced user-data schema."""
