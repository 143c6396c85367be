"""
User Model

Database model for users, bound to the source control client that resolves their permissions.
"""

from typing import Any
from typing import Optional

from pydantic import BaseModel
from pydantic import ConfigDict
from pydantic import PrivateAttr


class Permissions(BaseModel):
    """A user's access level on one repository."""

    admin: bool = False
    push: bool = False
    pull: bool = False


class User(BaseModel):
    """User database model."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    username: str
    scm_context: str
    token: Optional[str] = None  # SCM access token, never returned by the API

    _scm: Any = PrivateAttr(default=None)  # cicd_api.scm.client.ScmClient

    def bind_scm(self, scm: Any) -> "User":
        """Attach the SCM client used by get_permissions."""
        self._scm = scm
        return self

    async def get_permissions(self, scm_uri: str) -> Permissions:
        """Ask the source control service what this user may do on the repository behind scm_uri."""
        if self._scm is None:
            raise RuntimeError(f"User {self.username} is not bound to an SCM client")

        return await self._scm.get_permissions(
            token=self.token,
            scm_uri=scm_uri,
            scm_context=self.scm_context,
        )
