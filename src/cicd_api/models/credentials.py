"""Caller identity decoded from a verified session token."""

from typing import List

from pydantic import BaseModel
from pydantic import ConfigDict
from pydantic import Field


class Credentials(BaseModel):
    """Claims of an authenticated session."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    username: str
    scm_context: str = Field(alias="scmContext")
    scope: List[str] = Field(default_factory=list)

    def has_scope(self, required: List[str]) -> bool:
        """
        Check the session scope against a hapi-style scope rule.

        Entries without a prefix must all be present, entries prefixed with `!`
        must all be absent.
        """
        granted = set(self.scope)
        for entry in required:
            if entry.startswith("!"):
                if entry[1:] in granted:
                    return False
            elif entry not in granted:
                return False
        return True
