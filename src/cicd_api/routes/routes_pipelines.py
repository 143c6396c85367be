import asyncio

from fastapi import APIRouter
from fastapi import Depends
from fastapi import Path
from fastapi import Request
from fastapi import Response
from fastapi import status
from loguru import logger

from cicd_api.db.repository_pipeline import PipelineRepository
from cicd_api.db.repository_user import UserRepository
from cicd_api.dependencies import get_pipeline_store
from cicd_api.dependencies import get_user_store
from cicd_api.dependencies import require_scope
from cicd_api.errors import NotFoundError
from cicd_api.errors import UnauthorizedError
from cicd_api.models.credentials import Credentials
from cicd_api.models.pipeline import Pipeline

ROUTER_PIPELINES = APIRouter(tags=["Pipelines"])

# Same id format as every other pipeline route: a positive integer in the safe integer range
MAX_PIPELINE_ID = 2**53 - 1
PIPELINE_ID = Path(..., gt=0, le=MAX_PIPELINE_ID, description="Identifier of the pipeline")


def child_pipeline_error(pipeline: Pipeline) -> UnauthorizedError:
    return UnauthorizedError(
        "Child pipeline can only be removed by modifying scmUrls "
        f"in config pipeline {pipeline.config_pipeline_id}"
    )


@ROUTER_PIPELINES.delete(
    "/pipelines/{pipeline_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete a single pipeline",
    description="Returns an empty body if successful",
    responses={
        status.HTTP_204_NO_CONTENT: {"description": "Pipeline deleted"},
        status.HTTP_400_BAD_REQUEST: {"description": "Invalid pipeline id"},
        status.HTTP_401_UNAUTHORIZED: {
            "description": "Not authenticated, child pipeline, or no admin permission on the repository",
            "content": {
                "application/json": {
                    "example": {
                        "detail": "User octocat does not have admin permission for this repo",
                        "error_type": "UnauthorizedError",
                    }
                }
            },
        },
        status.HTTP_403_FORBIDDEN: {"description": "Insufficient scope"},
        status.HTTP_404_NOT_FOUND: {
            "description": "Pipeline or user not found",
            "content": {
                "application/json": {
                    "example": {"detail": "Pipeline does not exist", "error_type": "NotFoundError"}
                }
            },
        },
        status.HTTP_502_BAD_GATEWAY: {"description": "Source control service error"},
    },
)
async def remove_pipeline(
    request: Request,
    pipeline_id: int = PIPELINE_ID,
    credentials: Credentials = Depends(require_scope(["user", "!guest"])),
    pipeline_store: PipelineRepository = Depends(get_pipeline_store),
    user_store: UserRepository = Depends(get_user_store),
) -> Response:
    """
    Delete a pipeline the caller administers.

    Child pipelines are rejected; they are removed by editing the scmUrls of their config pipeline.
    """
    username = credentials.username
    scm_context = credentials.scm_context

    logger.info(
        "Deleting pipeline",
        pipeline_id=pipeline_id,
        username=username,
        scm_context=scm_context,
        method=request.method,
        path=request.url.path,
    )

    pipeline, user = await asyncio.gather(
        pipeline_store.get(pipeline_id),
        user_store.get(username, scm_context),
    )

    if pipeline is None:
        raise NotFoundError("Pipeline does not exist")
    if pipeline.is_child:
        raise child_pipeline_error(pipeline)
    if user is None:
        raise NotFoundError(f"User {username} does not exist")

    permissions = await user.get_permissions(pipeline.scm_uri)
    if not permissions.admin:
        raise UnauthorizedError(f"User {username} does not have admin permission for this repo")

    if not await pipeline_store.remove(pipeline):
        # Deleted or re-parented between the checks above and the delete
        current = await pipeline_store.get(pipeline_id)
        if current is not None and current.is_child:
            raise child_pipeline_error(current)
        raise NotFoundError("Pipeline does not exist")

    logger.info("Pipeline deleted successfully", pipeline_id=pipeline_id, scm_uri=pipeline.scm_uri)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
