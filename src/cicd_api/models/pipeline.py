"""
Pipeline Model

Database model for CI/CD pipelines.
"""

from datetime import datetime
from typing import Dict
from typing import Optional

from pydantic import BaseModel
from pydantic import ConfigDict
from pydantic import Field


class Pipeline(BaseModel):
    """Pipeline database model."""

    model_config = ConfigDict(from_attributes=True)

    id: int = Field(gt=0)
    name: str
    scm_uri: str  # <host>:<repoId>:<branch>[:<rootDir>]
    scm_context: str  # e.g. github:github.com
    config_pipeline_id: Optional[int] = None  # set on child pipelines managed by a config pipeline
    admins: Dict[str, bool] = Field(default_factory=dict)  # From JSONB
    create_time: Optional[datetime] = None

    @property
    def is_child(self) -> bool:
        """True when the pipeline is managed through its config pipeline's scmUrls."""
        return self.config_pipeline_id is not None
