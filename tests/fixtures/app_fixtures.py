"""Fixtures for FastAPI application and settings."""

from typing import Any
from typing import Dict
from typing import Optional
from unittest.mock import patch

import pytest
from fastapi.testclient import TestClient
from starlette.testclient import TestClient as StarletteTestClient

from tests.consts import JWT_SECRET


class AuthenticatedTestClient(StarletteTestClient):
    """Test client that automatically includes the session Authorization header."""

    def __init__(self, *args: Any, default_headers: Optional[Dict[str, str]] = None, **kwargs: Any) -> None:
        """Initialize with default headers."""
        super().__init__(*args, **kwargs)
        self._default_headers = default_headers or {}

    def _merge_headers(self, headers: Optional[Dict[str, str]] = None) -> Dict[str, str]:
        """Merge default headers with provided headers."""
        merged = dict(self._default_headers)
        if headers:
            merged.update(headers)
        return merged

    def get(self, url: str, **kwargs: Any) -> Any:
        """GET request with default headers."""
        kwargs["headers"] = self._merge_headers(kwargs.get("headers"))
        return super().get(url, **kwargs)

    def delete(self, url: str, **kwargs: Any) -> Any:
        """DELETE request with default headers."""
        kwargs["headers"] = self._merge_headers(kwargs.get("headers"))
        return super().delete(url, **kwargs)


@pytest.fixture
def mock_settings():
    """Settings object with test configuration and no database."""
    from cicd_api.settings import Settings

    with patch.dict(
        "os.environ",
        {
            "JWT_SECRET": JWT_SECRET,
            "DOMAIN_DB_CONNECTION_STRING": "",
            "LOG_LEVEL": "DEBUG",
        },
    ):
        settings = Settings(_env_file=None)
        yield settings


@pytest.fixture
def app(mock_settings, mock_pipeline_store, mock_user_store):
    """Create FastAPI test application with mocked stores."""
    from cicd_api.main import create_app

    app = create_app(
        settings=mock_settings,
        pipeline_store=mock_pipeline_store,
        user_store=mock_user_store,
    )
    yield app


@pytest.fixture
def client(app, auth_headers):
    """Create FastAPI test client that sends a valid user session token."""
    with AuthenticatedTestClient(app, default_headers=auth_headers) as test_client:
        yield test_client


@pytest.fixture
def unauthenticated_client(app):
    """Create FastAPI test client without authentication headers (for testing auth failures)."""
    with TestClient(app) as test_client:
        yield test_client
