"""Pipeline and user stores backed by PostgreSQL (asyncpg)."""
