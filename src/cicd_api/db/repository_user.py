"""
User Repository

User store: lookup by (username, scm context).
"""

from typing import Optional

import asyncpg

from cicd_api.db.repository_base import BaseRepository
from cicd_api.models.user import User
from cicd_api.scm.client import ScmClient


class UserRepository(BaseRepository):
    """User repository. Returned users are bound to the SCM client for permission lookups."""

    def __init__(self, pool: asyncpg.Pool, scm: ScmClient):
        super().__init__(pool, "users")
        self.scm = scm

    async def get(self, username: str, scm_context: str) -> Optional[User]:
        """Get a user by username within one scm context."""
        async with self.pool.acquire() as conn:
            row = await conn.fetchrow(
                f"""
                SELECT * FROM {self.qualified_table}
                WHERE username = $1 AND scm_context = $2
                """,
                username,
                scm_context,
            )

        if row is None:
            return None

        return User.model_validate(dict(row)).bind_scm(self.scm)
