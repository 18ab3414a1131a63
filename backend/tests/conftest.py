"""Shared pytest fixtures for Mindweave import tests."""

import pytest
from httpx import ASGITransport, AsyncClient

from mindweave.importer.config import ImportLimits
from mindweave.importer.router import get_import_service
from mindweave.importer.service import ImportService
from mindweave.main import app


@pytest.fixture
def limits():
    """Default limits; tests override individual fields via model_copy."""
    return ImportLimits()


@pytest.fixture
def import_service(limits):
    return ImportService(limits)


@pytest.fixture
async def client(import_service):
    """Async test client with the import service wired into the app."""
    app.dependency_overrides[get_import_service] = lambda: import_service
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as client:
        yield client
    app.dependency_overrides.clear()
