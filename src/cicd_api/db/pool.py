"""
Pipelines Database Connection Pool

Manages the asyncpg connection pool for the pipeline/user database.
Applies schema.sql on initialization when the schema or any of its tables is missing.

Schema Evolution:
-----------------
When adding/removing/renaming tables in schema.sql:
1. Update the schema.sql file with new DDL (keep every statement idempotent)
2. Update DomainDBPool.EXPECTED_TABLES with the new table names
"""

import asyncio
from pathlib import Path
from typing import Optional

import asyncpg
from loguru import logger

SCHEMA_NAME = "cicd"
SCHEMA_PATH = Path(__file__).parent / "schema.sql"


class DomainDBPool:
    """Pipelines database connection pool manager."""

    # Tables in the cicd schema; update this set when schema.sql changes
    EXPECTED_TABLES = {
        "users",
        "pipelines",
        "jobs",
        "secrets",
    }

    def __init__(self, connection_string: str, min_size: int = 2, max_size: int = 10):
        """
        Initialize domain DB pool.

        Args:
            connection_string: PostgreSQL connection string
            min_size: Minimum pool connections
            max_size: Maximum pool connections
        """
        self.connection_string = connection_string
        self.min_size = min_size
        self.max_size = max_size
        self.pool: Optional[asyncpg.Pool] = None
        self._pool_initialized = False

    async def initialize(self) -> None:
        """Create the connection pool, validate it and apply the schema if needed."""
        if self._pool_initialized and self.pool is not None:
            logger.debug("Domain DB pool already initialized")
            return

        try:
            logger.info("Initializing pipelines database pool")

            self.pool = await asyncpg.create_pool(
                self.connection_string,
                min_size=self.min_size,
                max_size=self.max_size,
                command_timeout=60,  # Query timeout (60 seconds)
                timeout=15,  # Connection timeout (15 seconds)
            )

            async with self.pool.acquire() as conn:
                result = await conn.fetchval("SELECT 1")
                if result != 1:
                    raise RuntimeError("Pool validation query failed")

            logger.info("Domain DB pool validated")

            await self._run_migrations()

            self._pool_initialized = True
            logger.success("Pipelines database initialized successfully")

        except Exception as e:
            logger.error(f"Failed to initialize domain DB pool: {e}")
            if self.pool:
                await self.pool.close()
                self.pool = None
            raise

    async def _existing_tables(self, conn: asyncpg.Connection) -> set:
        rows = await conn.fetch(
            """
            SELECT table_name
            FROM information_schema.tables
            WHERE table_schema = $1
            """,
            SCHEMA_NAME,
        )
        return {row["table_name"] for row in rows}

    async def _run_migrations(self) -> None:
        """Apply schema.sql unless every expected table already exists."""
        async with self.pool.acquire() as conn:
            existing_tables = await self._existing_tables(conn)

            if self.EXPECTED_TABLES <= existing_tables:
                logger.info(f"Schema {SCHEMA_NAME} and all {len(self.EXPECTED_TABLES)} tables exist")
                return

            missing_tables = self.EXPECTED_TABLES - existing_tables
            logger.info("Applying schema.sql", missing_tables=sorted(missing_tables))

            if not SCHEMA_PATH.exists():
                raise FileNotFoundError(f"schema.sql not found at {SCHEMA_PATH}")

            await conn.execute(SCHEMA_PATH.read_text())

            existing_tables = await self._existing_tables(conn)
            missing_tables = self.EXPECTED_TABLES - existing_tables
            if missing_tables:
                raise RuntimeError(f"Migration incomplete: missing tables {sorted(missing_tables)}")

            logger.success(f"All {len(self.EXPECTED_TABLES)} tables verified successfully")

    async def close(self) -> None:
        """Close the connection pool gracefully."""
        if self.pool:
            logger.info("Closing pipelines database pool")
            await self.pool.close()
            self.pool = None
            self._pool_initialized = False

    def acquire(self):
        """
        Acquire a database connection from the pool.

        Usage:
            async with pool.acquire() as conn:
                row = await conn.fetchrow("SELECT * FROM ...")
        """
        if not self.pool:
            raise RuntimeError("Domain DB pool not initialized - call initialize() first")
        return self.pool.acquire()

    async def health_check(self) -> bool:
        """
        Check if database connection is healthy.

        Returns:
            True if connection is healthy, False otherwise
        """
        if not self.pool:
            return False

        try:
            async with self.pool.acquire() as conn:
                return await conn.fetchval("SELECT 1") == 1
        except (asyncpg.PostgresError, OSError, asyncio.TimeoutError) as e:
            logger.error(f"Domain DB health check failed: {e!r}")
            return False
