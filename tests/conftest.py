"""
Test Configuration
==================

Pytest fixtures for CIRRUS tests.
"""

import os
from collections.abc import AsyncGenerator
from typing import Any

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

# Set test environment
os.environ["ENVIRONMENT"] = "testing"


@pytest.fixture(scope="session")
def anyio_backend() -> str:
    """Use asyncio backend for async tests."""
    return "asyncio"


@pytest.fixture
def dashboard_app() -> Any:
    """Security Dashboard app with dependency overrides cleared after each test."""
    from services.security_dashboard.main import app

    yield app
    app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def security_dashboard_client(dashboard_app: Any) -> AsyncGenerator[AsyncClient, None]:
    """Create test client for the Security Dashboard Service."""
    async with AsyncClient(
        transport=ASGITransport(app=dashboard_app),
        base_url="http://test",
    ) as client:
        yield client


@pytest.fixture
def sample_resource_data() -> dict[str, Any]:
    """Sample resource data for tests."""
    return {
        "resource_id": "i-09a8d67b5e4c3f21d",
        "resource_type": "EC2",
        "name": "API Server",
        "region": "us-east-1",
        "status": "Compromised",
        "metadata": {"type": "t3.medium", "vpc": "vpc-89a7f3c1"},
    }


@pytest.fixture
def sample_incident_data() -> dict[str, Any]:
    """Sample incident data for tests."""
    return {
        "incident_id": "INC-20230715-0053",
        "title": "Unauthorized API Access",
        "description": "Unauthorized API calls made with instance profile credentials.",
        "severity": "critical",
        "affected_resources": ["i-09a8d67b5e4c3f21d"],
        "assigned_to": 1,
    }


@pytest.fixture
def sample_account_data() -> dict[str, Any]:
    """Sample cloud account data for tests."""
    return {
        "account_id": "123456789012",
        "provider": "aws",
        "name": "Production",
        "owner_email": "secops@example.com",
        "metadata": {"environment": "production"},
    }
