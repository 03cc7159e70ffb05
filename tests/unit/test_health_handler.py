"""Tests for health check endpoint handler."""

from datetime import datetime
from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest
from fastapi.testclient import TestClient

from promptlab import __version__
from promptlab.api.deps import get_settings_dependency
from promptlab.api.handlers.health import (
    check_credentials_health,
    check_local_inference_health,
    determine_overall_status,
)
from promptlab.config import HealthSettings, ProvidersSettings, Settings
from promptlab.main import create_app
from promptlab.models.health import ComponentHealth, HealthStatus


def create_test_client(settings: Settings) -> TestClient:
    app = create_app(settings)
    app.dependency_overrides[get_settings_dependency] = lambda: settings
    return TestClient(app)


class TestDetermineOverallStatus:
    """Tests for determine_overall_status function."""

    def test_all_healthy(self):
        """Test all healthy components result in healthy status."""
        checks = {
            "local_inference": ComponentHealth(status=HealthStatus.HEALTHY),
            "credentials": ComponentHealth(status=HealthStatus.HEALTHY),
        }
        assert determine_overall_status(checks) == HealthStatus.HEALTHY

    def test_any_degraded(self):
        """Test any degraded component results in degraded status."""
        checks = {
            "local_inference": ComponentHealth(status=HealthStatus.DEGRADED),
            "credentials": ComponentHealth(status=HealthStatus.HEALTHY),
        }
        assert determine_overall_status(checks) == HealthStatus.DEGRADED

    def test_unhealthy_takes_precedence(self):
        """Test unhealthy takes precedence over degraded."""
        checks = {
            "local_inference": ComponentHealth(status=HealthStatus.UNHEALTHY),
            "credentials": ComponentHealth(status=HealthStatus.DEGRADED),
        }
        assert determine_overall_status(checks) == HealthStatus.UNHEALTHY

    def test_empty_checks(self):
        """Test empty checks results in healthy."""
        assert determine_overall_status({}) == HealthStatus.HEALTHY


class TestCheckLocalInferenceHealth:
    """Tests for check_local_inference_health function."""

    @pytest.fixture
    def settings(self):
        return Settings(health=HealthSettings(local_inference_check_enabled=True, timeout_seconds=5))

    @pytest.mark.asyncio
    async def test_check_disabled(self):
        """Test check returns healthy when disabled."""
        settings = Settings(health=HealthSettings(local_inference_check_enabled=False))

        result = await check_local_inference_health(settings)

        assert result.status == HealthStatus.HEALTHY
        assert result.message == "Check disabled"

    @pytest.mark.asyncio
    async def test_successful_check(self, settings):
        """Test healthy status when the tags endpoint answers."""
        with patch("httpx.AsyncClient") as mock_client:
            mock_response = MagicMock()
            mock_response.status_code = 200
            get = AsyncMock(return_value=mock_response)
            mock_client.return_value.__aenter__.return_value.get = get

            result = await check_local_inference_health(settings)

        assert result.status == HealthStatus.HEALTHY
        assert result.latency_ms is not None
        get.assert_awaited_once_with("http://localhost:11434/api/tags")

    @pytest.mark.asyncio
    async def test_unexpected_status(self, settings):
        """Test degraded on a non-200 answer."""
        with patch("httpx.AsyncClient") as mock_client:
            mock_response = MagicMock()
            mock_response.status_code = 500
            mock_client.return_value.__aenter__.return_value.get = AsyncMock(
                return_value=mock_response
            )

            result = await check_local_inference_health(settings)

        assert result.status == HealthStatus.DEGRADED
        assert "500" in result.error

    @pytest.mark.asyncio
    async def test_connection_timeout(self, settings):
        """Test degraded on timeout."""
        with patch("httpx.AsyncClient") as mock_client:
            mock_client.return_value.__aenter__.return_value.get = AsyncMock(
                side_effect=httpx.TimeoutException("Timeout")
            )

            result = await check_local_inference_health(settings)

        assert result.status == HealthStatus.DEGRADED
        assert "timeout" in result.error.lower()

    @pytest.mark.asyncio
    async def test_connection_error(self, settings):
        """Test an absent local server only degrades the service."""
        with patch("httpx.AsyncClient") as mock_client:
            mock_client.return_value.__aenter__.return_value.get = AsyncMock(
                side_effect=httpx.ConnectError("Connection refused")
            )

            result = await check_local_inference_health(settings)

        assert result.status == HealthStatus.DEGRADED
        assert "Connection failed" in result.error


class TestCheckCredentialsHealth:
    """Tests for check_credentials_health function."""

    def test_keys_configured(self):
        """Test configured providers are named, keys are not."""
        settings = Settings(
            providers=ProvidersSettings(
                openai={"api_key": "sk-secret"},
                grok={"api_key": "xai-secret"},
            )
        )

        result = check_credentials_health(settings)

        assert result.status == HealthStatus.HEALTHY
        assert "grok" in result.message
        assert "openai" in result.message
        assert "secret" not in result.message

    def test_no_keys(self, monkeypatch):
        """Test degraded when no provider key is configured."""
        for var in (
            "OPENAI_API_KEY",
            "OPENROUTER_API_KEY",
            "PERPLEXITY_API_KEY",
            "DEEPSEEK_API_KEY",
            "XAI_API_KEY",
            "DASHSCOPE_API_KEY",
        ):
            monkeypatch.delenv(var, raising=False)

        result = check_credentials_health(Settings())

        assert result.status == HealthStatus.DEGRADED


class TestHealthEndpoint:
    """Integration tests for health endpoints."""

    @pytest.fixture
    def client(self):
        settings = Settings(
            providers={"openai": {"api_key": "sk-test"}},
            health=HealthSettings(local_inference_check_enabled=False),
        )
        return create_test_client(settings)

    def test_health_endpoint_returns_200(self, client):
        """Test health endpoint returns 200 when healthy."""
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    def test_health_response_structure(self, client):
        """Test health response has correct structure."""
        data = client.get("/health").json()

        assert data["service"] == "promptlab-server"
        assert data["version"] == __version__
        assert set(data["checks"]) == {"local_inference", "credentials"}

    def test_health_timestamp_format(self, client):
        """Test timestamp is ISO 8601 format."""
        timestamp = client.get("/health").json()["timestamp"]
        datetime.fromisoformat(timestamp.replace("Z", "+00:00"))

    def test_liveness_endpoint(self, client):
        """Test liveness probe endpoint."""
        response = client.get("/health/live")
        assert response.status_code == 200
        assert response.json()["status"] == "alive"

    def test_readiness_endpoint(self, client):
        """Test readiness probe endpoint."""
        response = client.get("/health/ready")
        assert response.status_code == 200
        assert "status" in response.json()


class TestHealthEndpointUnhealthy:
    """Tests for unhealthy scenarios."""

    @pytest.fixture
    def unhealthy_client(self):
        """Create client whose local inference check reports unhealthy."""

        async def mock_unhealthy_check(settings):
            return ComponentHealth(status=HealthStatus.UNHEALTHY, error="Mock failure")

        with patch(
            "promptlab.api.handlers.health.check_local_inference_health",
            mock_unhealthy_check,
        ):
            settings = Settings(providers={"openai": {"api_key": "sk-test"}})
            yield create_test_client(settings)

    def test_unhealthy_returns_503(self, unhealthy_client):
        """Test unhealthy status returns 503."""
        response = unhealthy_client.get("/health")

        assert response.status_code == 503
        assert response.json()["status"] == "unhealthy"
        assert response.json()["checks"]["local_inference"]["error"] == "Mock failure"
