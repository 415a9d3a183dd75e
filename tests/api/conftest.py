"""Fixtures for HTTP API tests."""

from collections.abc import AsyncGenerator

import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

from stockledger.api.main import create_app


@pytest.fixture
def app(settings, service) -> FastAPI:
    return create_app(settings, inventory_service=service)


@pytest.fixture
async def client(app: FastAPI) -> AsyncGenerator[AsyncClient, None]:
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest.fixture
def user_headers() -> dict[str, str]:
    return {"X-User-Id": "user-1", "X-User-Email": "clerk@example.com"}


@pytest.fixture
def tee_payload(tee_request) -> dict:
    return tee_request.model_dump()
