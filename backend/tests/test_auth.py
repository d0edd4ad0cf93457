"""Tests for API key authentication."""

from unittest.mock import patch

import pytest
import pytest_asyncio
from fastapi import Depends, FastAPI
from httpx import ASGITransport, AsyncClient

from fhirindex.auth import verify_api_key

VALID_KEY = "valid-test-key"


@pytest.fixture
def protected_app():
    """Create a test app with a protected endpoint."""
    app = FastAPI()

    @app.get("/protected")
    async def protected_endpoint(api_key: str = Depends(verify_api_key)):
        return {"message": "success"}

    return app


@pytest_asyncio.fixture
async def protected_client(protected_app):
    """Async test client for protected app."""
    with patch("fhirindex.auth.settings") as mock_settings:
        mock_settings.api_key = VALID_KEY
        async with AsyncClient(
            transport=ASGITransport(app=protected_app),
            base_url="http://test",
        ) as ac:
            yield ac


class TestVerifyApiKey:
    """Tests for verify_api_key."""

    @pytest.mark.asyncio
    async def test_valid_key(self, protected_client):
        response = await protected_client.get("/protected", headers={"X-API-Key": VALID_KEY})
        assert response.status_code == 200
        assert response.json() == {"message": "success"}

    @pytest.mark.asyncio
    async def test_missing_key(self, protected_client):
        response = await protected_client.get("/protected")
        assert response.status_code == 401
        assert response.json()["detail"] == "Missing API key"

    @pytest.mark.asyncio
    async def test_wrong_key(self, protected_client):
        response = await protected_client.get("/protected", headers={"X-API-Key": "nope"})
        assert response.status_code == 401
        assert response.json()["detail"] == "Invalid API key"

    @pytest.mark.asyncio
    async def test_main_app_requires_key(self, protected_client):
        """Index routes are protected on the real app too."""
        from fhirindex.main import app

        async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
            response = await ac.get("/api/index/tags")
        assert response.status_code == 401
