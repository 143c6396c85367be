"""
Base Repository

Common single-table lookups shared by the concrete repositories.
"""

from typing import Any
from typing import Dict
from typing import Optional

import asyncpg

from cicd_api.db.pool import SCHEMA_NAME


def rows_affected(status: str) -> int:
    """Parse the row count out of an asyncpg command status (``"DELETE 1"`` -> 1)."""
    try:
        return int(status.rsplit(" ", 1)[-1])
    except (AttributeError, ValueError):
        return 0


class BaseRepository:
    """
    Base repository bound to one table of the cicd schema.

    Works with a raw asyncpg.Pool or a DomainDBPool; both expose acquire().
    """

    def __init__(self, pool: asyncpg.Pool, table_name: str, id_column: str = "id"):
        """
        Initialize base repository.

        Args:
            pool: connection pool
            table_name: Database table name (without schema prefix)
            id_column: Primary key column name
        """
        self.pool = pool
        self.table = table_name
        self.id_col = id_column

    @property
    def qualified_table(self) -> str:
        return f"{SCHEMA_NAME}.{self.table}"

    async def get_by_id(self, entity_id: int) -> Optional[Dict[str, Any]]:
        """
        Get a row by primary key.

        Returns:
            Dict of row data or None if not found
        """
        async with self.pool.acquire() as conn:
            row = await conn.fetchrow(
                f"SELECT * FROM {self.qualified_table} WHERE {self.id_col} = $1",
                entity_id,
            )
            return dict(row) if row else None

