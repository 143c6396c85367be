"""Unit tests for errors.py error handlers."""

import json
from unittest.mock import MagicMock
from unittest.mock import patch

import pydantic
import pytest
from fastapi import Request

from cicd_api.errors import ForbiddenError
from cicd_api.errors import handle_api_errors
from cicd_api.errors import handle_broad_exceptions
from cicd_api.errors import handle_pydantic_validation_errors
from cicd_api.errors import handle_scm_errors
from cicd_api.errors import NotFoundError
from cicd_api.errors import ScmError
from cicd_api.errors import UnauthorizedError


class TestHandleBroadExceptions:
    """Tests for handle_broad_exceptions middleware."""

    @pytest.mark.asyncio
    @patch("cicd_api.errors.log_response_info")
    async def test_successful_request(self, mock_log):
        """Test middleware passes through successful requests."""
        mock_request = MagicMock(spec=Request)
        mock_response = MagicMock()

        async def mock_call_next(request):
            return mock_response

        result = await handle_broad_exceptions(mock_request, mock_call_next)

        assert result == mock_response
        mock_log.assert_not_called()

    @pytest.mark.asyncio
    @patch("cicd_api.errors.log_response_info")
    async def test_exception_returns_500(self, mock_log):
        """Test middleware catches exceptions and returns 500."""
        mock_request = MagicMock(spec=Request)

        async def mock_call_next(request):
            raise ValueError("Test error")

        result = await handle_broad_exceptions(mock_request, mock_call_next)

        assert result.status_code == 500
        assert json.loads(result.body) == {"detail": "Internal server error", "error_type": "ValueError"}
        mock_log.assert_called_once()


class TestHandleApiErrors:
    """Tests for handle_api_errors handler."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "exc, expected_status",
        [
            (NotFoundError("Pipeline does not exist"), 404),
            (UnauthorizedError("User octocat does not exist"), 401),
            (ForbiddenError("Insufficient scope"), 403),
        ],
    )
    @patch("cicd_api.errors.log_response_info")
    async def test_status_and_message(self, mock_log, exc, expected_status):
        """Test that each classified error keeps its status and message."""
        mock_request = MagicMock(spec=Request)

        result = await handle_api_errors(mock_request, exc)

        assert result.status_code == expected_status
        body = json.loads(result.body)
        assert body["detail"] == exc.message
        assert body["error_type"] == type(exc).__name__
        mock_log.assert_called_once()


class TestHandleScmErrors:
    """Tests for handle_scm_errors handler."""

    @pytest.mark.asyncio
    @patch("cicd_api.errors.log_response_info")
    async def test_scm_error_returns_502(self, mock_log):
        """Test that SCM failures map to 502 Bad Gateway."""
        mock_request = MagicMock(spec=Request)

        result = await handle_scm_errors(mock_request, ScmError("timed out"))

        assert result.status_code == 502
        assert "timed out" in json.loads(result.body)["detail"]


class TestHandlePydanticValidationErrors:
    """Tests for handle_pydantic_validation_errors handler."""

    @pytest.mark.asyncio
    @patch("cicd_api.errors.log_response_info")
    async def test_validation_error(self, mock_log):
        """Test handling pydantic validation errors."""
        mock_request = MagicMock(spec=Request)

        class TestModel(pydantic.BaseModel):
            name: str
            value: int

        with pytest.raises(pydantic.ValidationError) as exc_info:
            TestModel(name=123, value="not_int")

        result = await handle_pydantic_validation_errors(mock_request, exc_info.value)

        assert result.status_code == 422
        mock_log.assert_called_once()
