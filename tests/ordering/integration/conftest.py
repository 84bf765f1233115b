import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from ordering.api import cart_router, order_router, register_exception_handlers
from shared.utils.db import get_session_factory


@pytest.fixture()
def client(session_factory):
    app = FastAPI()
    app.include_router(cart_router)
    app.include_router(order_router)
    register_exception_handlers(app)
    app.dependency_overrides[get_session_factory] = lambda: session_factory
    return TestClient(app)


@pytest.fixture()
def as_user():
    def _headers(user_id, role="customer"):
        return {"X-User-Id": str(user_id), "X-User-Role": role}

    return _headers
