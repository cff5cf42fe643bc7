"""
Shared fixtures for adversarial tests.

Provides an identity service with a seeded account and an ASGI app whose
identity calls can be held open, so tests can fire overlapping requests.
"""

from unittest.mock import Mock

import pytest
from fastapi import FastAPI

from src.adapters.identity.memory import InMemoryIdentityService
from src.adapters.storage.memory import InMemoryDocumentStorage
from src.api.surfaces import SurfaceRegistry
from src.api.v1.routes import router
from tests.helpers import DEMO_EMAIL, DEMO_SECRET, GatedOperation


@pytest.fixture
def identity_service() -> InMemoryIdentityService:
    """Identity service with one enrolled account and no simulated latency."""
    service = InMemoryIdentityService(latency=0.0, bcrypt_cost=4)
    service.enroll(DEMO_EMAIL, DEMO_SECRET)
    return service


@pytest.fixture
def gated_identity() -> Mock:
    """Identity service whose calls stay pending until released."""
    service = Mock()
    service.authenticate = GatedOperation()
    service.register_account = GatedOperation()
    return service


@pytest.fixture
def gated_app(gated_identity: Mock) -> FastAPI:
    test_app = FastAPI()
    test_app.include_router(router, prefix="/v1")
    test_app.state.registry = SurfaceRegistry(identity=gated_identity, storage=InMemoryDocumentStorage())
    return test_app
