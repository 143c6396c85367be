"""Source control permission lookups.

Resolves what a user may do on the repository behind a pipeline's scmUri by asking the
SCM that owns the user's scm context. Only GitHub compatible REST APIs are supported:
``GET {api_url}/repositories/{repo_id}`` answers with a ``permissions`` object when the
request is made with the user's own token.
"""

from typing import Dict
from typing import NamedTuple
from typing import Optional

import httpx
from loguru import logger

from cicd_api.errors import ScmError
from cicd_api.models.user import Permissions

# Default timeout for permission lookups (in seconds)
SCM_REQUEST_TIMEOUT = 10.0


class ScmUri(NamedTuple):
    """Parts of an scmUri: ``<host>:<repoId>:<branch>[:<rootDir>]``."""

    host: str
    repo_id: str
    branch: str
    root_dir: Optional[str] = None


def parse_scm_uri(scm_uri: str) -> ScmUri:
    """
    Split an scmUri into its parts.

    Parameters
    ----------
    scm_uri : str
        URI as stored on the pipeline, e.g. ``github.com:123456:main``

    Returns
    -------
    ScmUri
        Host, repository id, branch and optional root directory

    Raises
    ------
    ScmError
        If the URI does not have at least host, repository id and branch
    """
    parts = scm_uri.split(":") if scm_uri else []
    if len(parts) < 3 or not all(parts[:3]):
        raise ScmError(f"Invalid scmUri: {scm_uri!r}")

    root_dir = ":".join(parts[3:]) or None
    return ScmUri(host=parts[0], repo_id=parts[1], branch=parts[2], root_dir=root_dir)


def scm_context_host(scm_context: str) -> str:
    """Return the host part of an scm context (``github:github.com`` -> ``github.com``)."""
    return scm_context.split(":", 1)[-1]


class ScmClient:
    """
    Permission oracle backed by the source control services configured per scm context.

    Attributes
    ----------
    api_urls : Dict[str, str]
        REST API base URL for each supported scm context
    """

    def __init__(
        self,
        api_urls: Dict[str, str],
        timeout: float = SCM_REQUEST_TIMEOUT,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        self.api_urls = {context: url.rstrip("/") for context, url in api_urls.items()}
        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(timeout=timeout)

    async def close(self) -> None:
        """Close the underlying HTTP client if this instance created it."""
        if self._owns_client:
            await self._client.aclose()

    async def get_permissions(self, token: Optional[str], scm_uri: str, scm_context: str) -> Permissions:
        """
        Get a user's permissions on the repository behind scm_uri.

        Parameters
        ----------
        token : Optional[str]
            The user's SCM access token
        scm_uri : str
            scmUri of the pipeline
        scm_context : str
            scm context of the user

        Returns
        -------
        Permissions
            admin/push/pull flags; all False when the repository is not visible to the user

        Raises
        ------
        ScmError
            Unknown scm context, malformed scmUri, or the SCM failed to answer
        """
        api_url = self.api_urls.get(scm_context)
        if api_url is None:
            raise ScmError(f"Unsupported scm context: {scm_context}")

        repo = parse_scm_uri(scm_uri)
        if repo.host != scm_context_host(scm_context):
            logger.warning(
                "Repository host does not belong to the user's scm context",
                scm_uri=scm_uri,
                scm_context=scm_context,
            )
            return Permissions()

        headers = {"Accept": "application/vnd.github+json"}
        if token:
            headers["Authorization"] = f"Bearer {token}"

        url = f"{api_url}/repositories/{repo.repo_id}"
        try:
            response = await self._client.get(url, headers=headers)
        except httpx.TimeoutException:
            raise ScmError(f"Permission lookup for {scm_uri} timed out")
        except httpx.RequestError as e:
            raise ScmError(f"Could not reach {api_url}: {e}")

        if response.status_code == httpx.codes.NOT_FOUND:
            logger.info("Repository not visible to user", scm_uri=scm_uri, scm_context=scm_context)
            return Permissions()

        if response.is_error:
            raise ScmError(
                f"Permission lookup for {scm_uri} failed with HTTP {response.status_code}",
                status_code=response.status_code,
            )

        try:
            body = response.json()
        except ValueError:
            raise ScmError(f"Permission lookup for {scm_uri} returned invalid JSON")

        permissions = body.get("permissions", {}) if isinstance(body, dict) else None
        if permissions is None and isinstance(body, dict):
            permissions = {}
        if not isinstance(permissions, dict):
            raise ScmError(f"Permission lookup for {scm_uri} returned an unexpected payload")

        logger.debug("Resolved repository permissions", scm_uri=scm_uri, permissions=permissions)
        return Permissions(
            admin=bool(permissions.get("admin")),
            push=bool(permissions.get("push")),
            pull=bool(permissions.get("pull")),
        )
