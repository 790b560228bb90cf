"""Tests for health check endpoints."""

from typing import Any

import pytest
from httpx import AsyncClient


class TestHealthEndpoint:
    """Tests for the health check endpoint."""

    @pytest.mark.asyncio
    async def test_health_returns_200(self, client: AsyncClient) -> None:
        """Test that health endpoint returns 200 OK."""
        response = await client.get("/health")

        assert response.status_code == 200

    @pytest.mark.asyncio
    async def test_health_returns_correct_structure(self, client: AsyncClient) -> None:
        """Test that health endpoint returns expected structure."""
        response = await client.get("/health")
        data = response.json()

        assert "status" in data
        assert "version" in data
        assert "timestamp" in data
        assert "environment" in data

    @pytest.mark.asyncio
    async def test_health_status_is_healthy(self, client: AsyncClient) -> None:
        """Test that health status is 'healthy'."""
        response = await client.get("/health")
        data = response.json()

        assert data["status"] == "healthy"

    @pytest.mark.asyncio
    async def test_health_version_format(self, client: AsyncClient) -> None:
        """Test that version has expected format."""
        response = await client.get("/health")
        data = response.json()

        # Check version follows semver pattern
        assert data["version"] == "1.0.0"


class TestDetailedHealthEndpoint:
    """Tests for the detailed health check endpoint."""

    @pytest.mark.asyncio
    async def test_reports_providers_and_stream(
        self, authenticated_client: AsyncClient, components: Any
    ) -> None:
        """Detailed health lists database, providers and live connection counts."""
        unsubscribe = components.stream.subscribe("user-1", lambda event: None)
        components.stream.subscribe("user-1", lambda event: None)
        components.stream.subscribe("user-2", lambda event: None)

        response = await authenticated_client.get("/health/detailed")
        unsubscribe()

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["database"] == "healthy"
        assert data["push_provider"] == "noop"
        assert data["mailer"] == "noop"
        assert data["stream"] == {"connected_users": 2, "connections": 3}
