"""Tests for request context and request logging middleware."""

import pytest
from fastapi import FastAPI, Request
from httpx import ASGITransport, AsyncClient
from starlette.datastructures import Headers
from structlog.testing import capture_logs

from swan_fastapi.logging import (
    RequestContextMiddleware,
    RequestLoggingMiddleware,
    get_client_ip,
    get_request_context,
    update_request_context,
)


def create_app() -> FastAPI:
    app = FastAPI()
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RequestContextMiddleware)

    @app.get("/api/context")
    async def context(request: Request):
        return {
            "context": get_request_context(),
            "request_id": request.state.request_id,
        }

    @app.get("/api/me")
    async def me():
        update_request_context(user_id="u1", user_name="alice")
        return {}

    return app


@pytest.fixture
async def client():
    async with AsyncClient(
        transport=ASGITransport(app=create_app()), base_url="http://test"
    ) as ac:
        yield ac


class TestRequestContextMiddleware:
    """Tests for RequestContextMiddleware."""

    async def test_generates_request_id(self, client: AsyncClient):
        response = await client.get("/api/context")

        request_id = response.headers["X-Request-ID"]
        assert request_id
        assert response.json()["request_id"] == request_id

    async def test_keeps_incoming_request_id(self, client: AsyncClient):
        response = await client.get(
            "/api/context", headers={"X-Request-ID": "abc-123"}
        )

        assert response.headers["X-Request-ID"] == "abc-123"
        assert response.json()["context"]["request_id"] == "abc-123"

    async def test_publishes_client_details(self, client: AsyncClient):
        """The endpoint sees the client address, user agent and path."""
        response = await client.get(
            "/api/context",
            headers={"User-Agent": "Mozilla/5.0", "X-Forwarded-For": "203.0.113.7"},
        )

        context = response.json()["context"]
        assert context["user_agent"] == "Mozilla/5.0"
        assert context["ip_address"] == "203.0.113.7"
        assert context["url"] == "/api/context"

    async def test_context_cleared_after_request(self, client: AsyncClient):
        await client.get("/api/context")

        assert get_request_context() == {}


class TestRequestLoggingMiddleware:
    """Tests for RequestLoggingMiddleware."""

    async def test_logs_request_and_response(self, client: AsyncClient):
        with capture_logs() as logs:
            await client.get("/api/context?page=2")

        events = [log["event"] for log in logs]
        assert events == ["request_started", "request_completed"]
        assert logs[0]["query"] == "page=2"
        assert logs[1]["status_code"] == 200
        assert logs[1]["log_level"] == "info"
        assert "request_id" in logs[1]

    async def test_client_errors_log_warning(self, client: AsyncClient):
        with capture_logs() as logs:
            await client.get("/api/unknown")

        assert logs[-1]["status_code"] == 404
        assert logs[-1]["log_level"] == "warning"

    async def test_completion_carries_user(self, client: AsyncClient):
        """A user added to the request context downstream is logged."""
        with capture_logs() as logs:
            await client.get("/api/me")

        assert "user_id" not in logs[0]
        assert logs[1]["user_id"] == "u1"
        assert logs[1]["user_name"] == "alice"

    async def test_anonymous_request_has_no_user(self, client: AsyncClient):
        with capture_logs() as logs:
            await client.get("/api/context")

        assert "user_id" not in logs[1]

    async def test_client_ip_from_context(self, client: AsyncClient):
        with capture_logs() as logs:
            await client.get("/api/context", headers={"X-Real-IP": "198.51.100.4"})

        assert logs[0]["client_ip"] == "198.51.100.4"

    @pytest.mark.parametrize("path", ["/openapi.json", "/docs", "/redoc"])
    async def test_excluded_paths(self, client: AsyncClient, path):
        with capture_logs() as logs:
            await client.get(path)

        assert logs == []


class TestIsExcluded:
    """Tests for path exclusion."""

    def test_matches_whole_segments(self):
        middleware = RequestLoggingMiddleware(FastAPI(), exclude_paths=["/health"])

        assert middleware.is_excluded("/health")
        assert middleware.is_excluded("/health/live")
        assert not middleware.is_excluded("/healthz")

    def test_empty_list_logs_everything(self):
        middleware = RequestLoggingMiddleware(FastAPI(), exclude_paths=[])

        assert not middleware.is_excluded("/docs")


class TestGetClientIp:
    """Tests for get_client_ip."""

    def _request(self, headers=None, client=("10.0.0.1", 1234)) -> Request:
        scope = {
            "type": "http",
            "method": "GET",
            "path": "/",
            "headers": Headers(headers or {}).raw,
            "client": client,
        }
        return Request(scope)

    def test_forwarded_for_first_address(self):
        request = self._request({"X-Forwarded-For": "203.0.113.7, 10.0.0.2"})

        assert get_client_ip(request) == "203.0.113.7"

    def test_real_ip(self):
        assert get_client_ip(self._request({"X-Real-IP": "198.51.100.4"})) == "198.51.100.4"

    def test_socket_address(self):
        assert get_client_ip(self._request()) == "10.0.0.1"

    def test_unknown(self):
        assert get_client_ip(self._request(client=None)) is None
