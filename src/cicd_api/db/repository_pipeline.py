"""
Pipeline Repository

Pipeline store: lookup by id and removal of a pipeline together with the rows it owns.
"""

import json
from typing import Optional

import asyncpg
from loguru import logger

from cicd_api.db.repository_base import BaseRepository
from cicd_api.db.repository_base import rows_affected
from cicd_api.models.pipeline import Pipeline


class PipelineRepository(BaseRepository):
    """Pipeline repository."""

    def __init__(self, pool: asyncpg.Pool):
        super().__init__(pool, "pipelines")

    async def get(self, pipeline_id: int) -> Optional[Pipeline]:
        """Get a pipeline by id, or None if it does not exist."""
        row = await self.get_by_id(pipeline_id)
        if row is None:
            return None

        # asyncpg returns JSONB as text unless a codec is registered
        if isinstance(row.get("admins"), str):
            row["admins"] = json.loads(row["admins"])

        return Pipeline.model_validate(row)

    async def remove(self, pipeline: Pipeline) -> bool:
        """
        Remove a pipeline. Its jobs and secrets are removed by ON DELETE CASCADE.

        The delete only applies while the pipeline is still not a child of a config
        pipeline, so a concurrent re-parenting cannot be overridden.

        Returns:
            True if the pipeline was deleted, False if it was gone or had become a child
        """
        async with self.pool.acquire() as conn:
            status = await conn.execute(
                f"""
                DELETE FROM {self.qualified_table}
                WHERE id = $1 AND config_pipeline_id IS NULL
                """,
                pipeline.id,
            )

        deleted = rows_affected(status) > 0
        logger.info("Pipeline delete executed", pipeline_id=pipeline.id, deleted=deleted)
        return deleted
