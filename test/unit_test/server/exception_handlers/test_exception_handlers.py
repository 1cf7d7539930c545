"""
Unit tests for server exception handlers.

Tests cover rendering of domain errors, the global fallback for unhandled
exceptions and handler registration.
"""

import json
from unittest.mock import Mock, patch

import pytest
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from fitcoach.core.error_messages import get_error_message
from fitcoach.core.errors import (
    AccessDeniedError,
    AuthRequiredError,
    FitcoachError,
    NotFoundError,
    ProviderError,
    TrialAlreadyUsedError,
)
from fitcoach.server.exception_handlers import setup_exception_handlers
from fitcoach.server.exception_handlers.global_handler import (
    fitcoach_error_handler,
    global_exception_handler,
)

HANDLER_MODULE = "fitcoach.server.exception_handlers.global_handler"


@pytest.fixture
def mock_request():
    """Create a mock request object."""
    request = Mock(spec=Request)
    request.method = "GET"
    request.url.path = "/api/v1/programs/1"
    request.query_params = {}
    request.client = Mock()
    request.client.host = "127.0.0.1"
    return request


def _body(response: JSONResponse) -> dict:
    return json.loads(response.body)


class TestFitcoachErrorHandler:
    """Test suite for the domain error handler."""

    @pytest.mark.asyncio
    async def test_renders_localized_message(self, mock_request):
        exc = NotFoundError("Program 1 not found", code="PROGRAM_NOT_FOUND")

        with patch(f"{HANDLER_MODULE}.logger"):
            response = await fitcoach_error_handler(mock_request, exc)

        assert response.status_code == 404
        body = _body(response)
        message = get_error_message("PROGRAM_NOT_FOUND")
        assert body["error"] == "PROGRAM_NOT_FOUND"
        assert body["title"] == message.title
        assert body["description"] == message.description
        assert body["action"] == message.action
        assert body["severity"] == message.severity
        assert body["detail"] == "Program 1 not found"
        assert "redirect_to" not in body

    @pytest.mark.asyncio
    async def test_access_denied_adds_redirect(self, mock_request):
        exc = AccessDeniedError("No static access", redirect_to="/pricing")

        with patch(f"{HANDLER_MODULE}.logger"):
            response = await fitcoach_error_handler(mock_request, exc)

        assert response.status_code == 403
        body = _body(response)
        assert body["error"] == "SUBSCRIPTION_REQUIRED"
        assert body["redirect_to"] == "/pricing"

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "exc,status",
        [
            (AuthRequiredError("missing token"), 401),
            (TrialAlreadyUsedError("used"), 409),
            (ProviderError("stripe down"), 502),
            (FitcoachError("boom"), 500),
        ],
    )
    async def test_status_code_follows_error(self, mock_request, exc, status):
        with patch(f"{HANDLER_MODULE}.logger"):
            response = await fitcoach_error_handler(mock_request, exc)
        assert response.status_code == status
        assert _body(response)["error"] == exc.code

    @pytest.mark.asyncio
    async def test_client_errors_log_at_info(self, mock_request):
        with patch(f"{HANDLER_MODULE}.logger") as mock_logger, patch(f"{HANDLER_MODULE}.log_error") as mock_log_error:
            await fitcoach_error_handler(mock_request, AuthRequiredError("missing token"))

        mock_logger.info.assert_called_once()
        mock_logger.error.assert_not_called()
        mock_log_error.assert_not_called()

    @pytest.mark.asyncio
    async def test_server_errors_log_at_error(self, mock_request):
        with patch(f"{HANDLER_MODULE}.logger") as mock_logger, patch(f"{HANDLER_MODULE}.log_error") as mock_log_error:
            await fitcoach_error_handler(mock_request, ProviderError("email api down", details={"status": 503}))

        mock_logger.error.assert_called_once()
        assert mock_logger.error.call_args[1]["extra"]["details"] == {"status": 503}
        mock_log_error.assert_called_once()
        assert mock_log_error.call_args[0][0] == "ProviderError"


class TestGlobalExceptionHandler:
    """Test suite for global exception handler."""

    @pytest.mark.asyncio
    async def test_exception_handler_logs_error(self, mock_request):
        """Test that exception handler logs errors."""
        exc = ValueError("Test error")

        with patch(f"{HANDLER_MODULE}.logger") as mock_logger:
            await global_exception_handler(mock_request, exc)

            mock_logger.error.assert_called_once()
            call_args = mock_logger.error.call_args
            assert "Unhandled exception" in call_args[0][0]
            assert call_args[1]["extra"]["error_type"] == "ValueError"
            assert call_args[1]["extra"]["client"] == "127.0.0.1"

    @pytest.mark.asyncio
    async def test_exception_handler_returns_500_status(self, mock_request):
        """Test that exception handler returns 500 status code."""
        with patch(f"{HANDLER_MODULE}.logger"):
            response = await global_exception_handler(mock_request, RuntimeError("Test error"))

        assert isinstance(response, JSONResponse)
        assert response.status_code == 500

    @pytest.mark.asyncio
    async def test_exception_handler_body(self, mock_request):
        exc = KeyError("missing")

        with patch(f"{HANDLER_MODULE}.logger"):
            response = await global_exception_handler(mock_request, exc)

        body = _body(response)
        assert body["error"] == "SYSTEM_ERROR"
        assert body["detail"] == "Internal server error"
        assert body["error_id"] == id(exc)
        assert body["error_type"] == "KeyError"
        assert body["title"] == get_error_message("SYSTEM_ERROR").title

    @pytest.mark.asyncio
    async def test_exception_handler_without_client(self, mock_request):
        mock_request.client = None

        with patch(f"{HANDLER_MODULE}.logger") as mock_logger:
            await global_exception_handler(mock_request, ValueError("no client"))

        assert mock_logger.error.call_args[1]["extra"]["client"] == "unknown"


class TestSetupExceptionHandlers:
    """Test handler registration on the application."""

    def test_registers_both_handlers(self):
        app = FastAPI()
        setup_exception_handlers(app)

        assert app.exception_handlers[FitcoachError] is fitcoach_error_handler
        assert app.exception_handlers[Exception] is global_exception_handler
