"""
Models Module

Pydantic models for the records the pipelines API reads:
- Pipeline records (pipeline store)
- User records and the permissions resolved for them (user store, SCM)
- Credentials decoded from the caller's session token
"""

from cicd_api.models.credentials import Credentials
from cicd_api.models.pipeline import Pipeline
from cicd_api.models.user import Permissions
from cicd_api.models.user import User

__all__ = [
    "Credentials",
    "Permissions",
    "Pipeline",
    "User",
]
