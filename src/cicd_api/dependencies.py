"""FastAPI dependencies for accessing app state and the authenticated caller."""

from typing import Callable
from typing import List
from typing import Optional

from fastapi import Depends
from fastapi import Request
from fastapi.security import HTTPAuthorizationCredentials
from fastapi.security import HTTPBearer
from loguru import logger

from cicd_api.auth.session import decode_session_token
from cicd_api.db.repository_pipeline import PipelineRepository
from cicd_api.db.repository_user import UserRepository
from cicd_api.errors import ForbiddenError
from cicd_api.errors import ServiceUnavailableError
from cicd_api.errors import UnauthorizedError
from cicd_api.models.credentials import Credentials
from cicd_api.settings import Settings

# auto_error=False so a missing header goes through the same 401 path as a bad token
BEARER_SCHEME = HTTPBearer(auto_error=False, description="Session JWT")


def get_settings(request: Request) -> Settings:
    """
    Get application settings from request state.

    Parameters
    ----------
    request : Request
        FastAPI request object

    Returns
    -------
    Settings
        Application settings instance
    """
    return request.app.state.settings


def get_pipeline_store(request: Request) -> PipelineRepository:
    """Get the pipeline store from app state."""
    store = getattr(request.app.state, "pipeline_store", None)
    if store is None:
        raise ServiceUnavailableError("Pipeline store is not configured")
    return store


def get_user_store(request: Request) -> UserRepository:
    """Get the user store from app state."""
    store = getattr(request.app.state, "user_store", None)
    if store is None:
        raise ServiceUnavailableError("User store is not configured")
    return store


async def get_credentials(
    bearer: Optional[HTTPAuthorizationCredentials] = Depends(BEARER_SCHEME),
    settings: Settings = Depends(get_settings),
) -> Credentials:
    """
    Authenticate the caller from the `Authorization: Bearer <jwt>` header.

    Raises
    ------
    UnauthorizedError
        401 if the header is missing or the token does not verify
    """
    if bearer is None or not bearer.credentials:
        raise UnauthorizedError("Missing authentication")

    return decode_session_token(bearer.credentials, settings)


def require_scope(scope: List[str]) -> Callable:
    """
    Build a dependency that authenticates the caller and enforces a scope rule.

    Parameters
    ----------
    scope : List[str]
        Required roles; entries prefixed with `!` are forbidden roles (e.g. ["user", "!guest"])

    Returns
    -------
    Callable
        Dependency returning the caller's Credentials

    Raises
    ------
    ForbiddenError
        403 if the caller's scope does not satisfy the rule
    """

    async def _require_scope(credentials: Credentials = Depends(get_credentials)) -> Credentials:
        if not credentials.has_scope(scope):
            logger.warning(
                "Insufficient scope",
                username=credentials.username,
                granted=credentials.scope,
                required=scope,
            )
            raise ForbiddenError("Insufficient scope")
        return credentials

    return _require_scope
