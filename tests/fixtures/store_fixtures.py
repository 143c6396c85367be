"""Fixtures for the pipeline store, user store and permission lookups."""

from typing import Optional
from unittest.mock import AsyncMock
from unittest.mock import MagicMock

import pytest

from cicd_api.models.pipeline import Pipeline
from cicd_api.models.user import Permissions
from cicd_api.models.user import User
from tests.consts import TEST_SCM_CONTEXT
from tests.consts import TEST_SCM_URI
from tests.consts import TEST_USERNAME


@pytest.fixture
def sample_pipeline():
    """Create Pipeline instances."""

    def _create_pipeline(
        pipeline_id: int = 123,
        name: str = "octocat/hello-world",
        scm_uri: str = TEST_SCM_URI,
        config_pipeline_id: Optional[int] = None,
    ) -> Pipeline:
        """Factory function to create Pipeline instances."""
        return Pipeline(
            id=pipeline_id,
            name=name,
            scm_uri=scm_uri,
            scm_context=TEST_SCM_CONTEXT,
            config_pipeline_id=config_pipeline_id,
            admins={TEST_USERNAME: True},
        )

    return _create_pipeline


@pytest.fixture
def mock_scm_client():
    """Mock SCM client; grants admin unless a test says otherwise."""
    scm = MagicMock()
    scm.get_permissions = AsyncMock(return_value=Permissions(admin=True, push=True, pull=True))
    return scm


@pytest.fixture
def sample_user(mock_scm_client):
    """User bound to the mock SCM client."""
    return User(id=1, username=TEST_USERNAME, scm_context=TEST_SCM_CONTEXT, token="scm-token").bind_scm(
        mock_scm_client
    )


@pytest.fixture
def mock_pipeline_store(sample_pipeline):
    """Mock pipeline store holding one deletable pipeline."""
    store = MagicMock()
    store.get = AsyncMock(return_value=sample_pipeline())
    store.remove = AsyncMock(return_value=True)
    return store


@pytest.fixture
def mock_user_store(sample_user):
    """Mock user store holding the test user."""
    store = MagicMock()
    store.get = AsyncMock(return_value=sample_user)
    return store
