"""Tests for access logging middleware."""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest
import structlog
from starlette.requests import Request
from starlette.responses import Response

from subway.middleware.access_logging import AccessLoggingMiddleware


class TestAccessLoggingMiddleware:
    """Tests for AccessLoggingMiddleware."""

    @pytest.fixture
    def middleware(self) -> AccessLoggingMiddleware:
        return AccessLoggingMiddleware(MagicMock(), quiet_paths=["/health"])

    @pytest.fixture
    def mock_request(self) -> MagicMock:
        request = MagicMock(spec=Request)
        request.method = "GET"
        request.url.path = "/api/v1/favorites"
        request.client.host = "127.0.0.1"
        request.headers = {}
        return request

    async def test_logs_request_fields(self, middleware: AccessLoggingMiddleware, mock_request: MagicMock) -> None:
        response = Response(status_code=200)
        call_next = AsyncMock(return_value=response)

        with patch("subway.middleware.access_logging.logger") as mock_logger:
            result = await middleware.dispatch(mock_request, call_next)

        assert result is response
        mock_logger.info.assert_called_once()
        call_args = mock_logger.info.call_args
        assert call_args[0][0] == "http_request"
        assert call_args[1]["method"] == "GET"
        assert call_args[1]["path"] == "/api/v1/favorites"
        assert call_args[1]["status_code"] == 200
        assert call_args[1]["client_ip"] == "127.0.0.1"
        assert "duration_ms" in call_args[1]
        assert "forwarded_for" not in call_args[1]

    async def test_starts_each_request_with_empty_log_context(
        self, middleware: AccessLoggingMiddleware, mock_request: MagicMock
    ) -> None:
        structlog.contextvars.bind_contextvars(member_id="left-over")
        seen: dict[str, object] = {}

        async def call_next(request: Request) -> Response:
            seen.update(structlog.contextvars.get_contextvars())
            return Response(status_code=200)

        with patch("subway.middleware.access_logging.logger"):
            await middleware.dispatch(mock_request, call_next)

        assert "member_id" not in seen

    async def test_records_first_forwarded_hop(
        self, middleware: AccessLoggingMiddleware, mock_request: MagicMock
    ) -> None:
        mock_request.headers = {"x-forwarded-for": "203.0.113.195, 70.41.3.18"}
        call_next = AsyncMock(return_value=Response(status_code=200))

        with patch("subway.middleware.access_logging.logger") as mock_logger:
            await middleware.dispatch(mock_request, call_next)

        call_args = mock_logger.info.call_args
        assert call_args[1]["forwarded_for"] == "203.0.113.195"
        assert call_args[1]["client_ip"] == "127.0.0.1"

    async def test_handles_missing_client(self, middleware: AccessLoggingMiddleware, mock_request: MagicMock) -> None:
        mock_request.client = None
        call_next = AsyncMock(return_value=Response(status_code=200))

        with patch("subway.middleware.access_logging.logger") as mock_logger:
            await middleware.dispatch(mock_request, call_next)

        assert mock_logger.info.call_args[1]["client_ip"] == "unknown"

    @pytest.mark.parametrize(
        ("status_code", "level"),
        [(201, "info"), (204, "info"), (403, "warning"), (404, "warning"), (500, "error"), (503, "error")],
    )
    async def test_level_follows_status(
        self, middleware: AccessLoggingMiddleware, mock_request: MagicMock, status_code: int, level: str
    ) -> None:
        call_next = AsyncMock(return_value=Response(status_code=status_code))

        with patch("subway.middleware.access_logging.logger") as mock_logger:
            await middleware.dispatch(mock_request, call_next)

        getattr(mock_logger, level).assert_called_once()
        assert getattr(mock_logger, level).call_args[1]["status_code"] == status_code

    async def test_quiet_paths_log_at_debug(self, middleware: AccessLoggingMiddleware, mock_request: MagicMock) -> None:
        mock_request.url.path = "/health"
        call_next = AsyncMock(return_value=Response(status_code=200))

        with patch("subway.middleware.access_logging.logger") as mock_logger:
            await middleware.dispatch(mock_request, call_next)

        mock_logger.debug.assert_called_once()
        mock_logger.info.assert_not_called()
